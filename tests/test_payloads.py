"""Tests for structured payload builders."""

import unittest

from qrstyle.errors import ValidationError
from qrstyle.payloads import build_payload, geo, mailto, sms, tel, vcard, wifi


class TestBuilders(unittest.TestCase):

    def test_vcard_full(self):
        self.assertEqual(
            vcard(name="Ada Lovelace", phone="+44 20 1234", email="ada@example.com", company="Engines Ltd"),
            "BEGIN:VCARD\nVERSION:3.0\nFN:Ada Lovelace\nTEL:+44 20 1234\n"
            "EMAIL:ada@example.com\nORG:Engines Ltd\nEND:VCARD",
        )

    def test_vcard_skips_blank_fields(self):
        self.assertEqual(vcard(name="  Bob  ", email=" "), "BEGIN:VCARD\nVERSION:3.0\nFN:Bob\nEND:VCARD")

    def test_wifi(self):
        self.assertEqual(wifi("Home", password="secret"), "WIFI:T:WPA;S:Home;P:secret;;")
        self.assertEqual(wifi("Cafe", auth="nopass"), "WIFI:T:nopass;S:Cafe;;")

    def test_wifi_validation(self):
        with self.assertRaises(ValidationError):
            wifi("  ")
        with self.assertRaises(ValidationError):
            wifi("Home", auth="WPA3-ENTERPRISE")

    def test_mailto_encodes_components(self):
        self.assertEqual(mailto("a@b.c"), "mailto:a@b.c")
        self.assertEqual(mailto("a@b.c", subject="Hi there", body="x&y=z"),
                         "mailto:a@b.c?subject=Hi%20there&body=x%26y%3Dz")

    def test_sms(self):
        self.assertEqual(sms("12345"), "sms:12345")
        self.assertEqual(sms("12345", "see you!"), "sms:12345?body=see%20you!")

    def test_tel_and_geo(self):
        self.assertEqual(tel(" 555-0100 "), "tel:555-0100")
        self.assertEqual(geo("51.5", " -0.12"), "geo:51.5,-0.12")


class TestDispatch(unittest.TestCase):

    def test_aliases(self):
        self.assertEqual(build_payload("phone", number="1"), build_payload("tel", number="1"))
        self.assertEqual(build_payload("location", lat=1, lon=2), "geo:1,2")
        self.assertEqual(build_payload("WIFI", ssid="x"), "WIFI:T:WPA;S:x;;")

    def test_text_is_trimmed(self):
        self.assertEqual(build_payload("text", text="  hi  "), "hi")

    def test_unknown_kind(self):
        with self.assertRaises(ValidationError):
            build_payload("fax", number="1")

    def test_bad_fields(self):
        with self.assertRaises(ValidationError):
            build_payload("tel", phone="1")


if __name__ == "__main__":
    unittest.main()
