"""Payload builders for common QR content types (contact, WiFi, email, SMS, phone, location)."""

from urllib.parse import quote

from qrstyle.errors import ValidationError

WIFI_AUTH = ("WPA", "WEP", "nopass")


def _clean(value) -> str:
    return "" if value is None else str(value).strip()


def _encode_component(value: str) -> str:
    # Same reserved set as JavaScript's encodeURIComponent.
    return quote(value, safe="-_.!~*'()")


def vcard(name: str = "", phone: str = "", email: str = "", company: str = "") -> str:
    """vCard 3.0; empty fields are omitted."""
    lines = ["BEGIN:VCARD", "VERSION:3.0"]
    for tag, value in (("FN", name), ("TEL", phone), ("EMAIL", email), ("ORG", company)):
        value = _clean(value)
        if value:
            lines.append(f"{tag}:{value}")
    lines.append("END:VCARD")
    return "\n".join(lines)


def wifi(ssid: str, auth: str = "WPA", password: str = "") -> str:
    ssid = _clean(ssid)
    if not ssid:
        raise ValidationError("WiFi payload needs an SSID")
    if auth not in WIFI_AUTH:
        raise ValidationError(f"Unknown WiFi auth {auth!r} (expected one of: {', '.join(WIFI_AUTH)})")
    payload = f"WIFI:T:{auth};S:{ssid};"
    password = _clean(password)
    if password:
        payload += f"P:{password};"
    return payload + ";"


def mailto(address: str, subject: str = "", body: str = "") -> str:
    params = []
    if _clean(subject):
        params.append(f"subject={_encode_component(_clean(subject))}")
    if _clean(body):
        params.append(f"body={_encode_component(_clean(body))}")
    payload = f"mailto:{_clean(address)}"
    if params:
        payload += "?" + "&".join(params)
    return payload


def sms(phone: str, message: str = "") -> str:
    payload = f"sms:{_clean(phone)}"
    if _clean(message):
        payload += f"?body={_encode_component(_clean(message))}"
    return payload


def tel(number: str) -> str:
    return f"tel:{_clean(number)}"


def geo(lat, lon) -> str:
    return f"geo:{_clean(lat)},{_clean(lon)}"


BUILDERS = {
    "contact": vcard,
    "vcard": vcard,
    "wifi": wifi,
    "email": mailto,
    "mailto": mailto,
    "sms": sms,
    "phone": tel,
    "tel": tel,
    "location": geo,
    "geo": geo,
}


def build_payload(kind: str, **fields) -> str:
    """Dispatch to the builder for *kind* ('text' returns the ``text`` field trimmed)."""
    kind = kind.lower()
    if kind == "text":
        return _clean(fields.get("text"))
    builder = BUILDERS.get(kind)
    if builder is None:
        raise ValidationError(f"Unknown payload kind {kind!r} (expected one of: text, {', '.join(sorted(BUILDERS))})")
    try:
        return builder(**fields)
    except TypeError as e:
        raise ValidationError(f"Bad fields for {kind} payload: {e}") from e
