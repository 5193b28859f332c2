"""Logo overlay: asynchronous loading from path / data URI / URL and centered compositing."""

import asyncio
import base64
import binascii
import io
from pathlib import Path

import requests
from PIL import Image, UnidentifiedImageError

from qrstyle.errors import LogoLoadError
from qrstyle.logging import audit, get_logger, trace
from qrstyle.surface import Surface

log = get_logger("logo")

DEFAULT_COVERAGE = 0.2   # logo side as a fraction of the canvas width
PLATE_MARGIN_PX = 5
PLATE_COLOR = (255, 255, 255)
HTTP_TIMEOUT = 10
USER_AGENT = "qrstyle/1.0"


def _read_data_uri(src: str) -> bytes:
    header, _, payload = src.partition(",")
    if not payload:
        raise LogoLoadError("Malformed data URI")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise LogoLoadError(f"Bad base64 payload in data URI: {e}") from e
    return payload.encode("utf-8")


def _read_url(src: str) -> bytes:
    try:
        resp = requests.get(src, timeout=HTTP_TIMEOUT, headers={"User-Agent": USER_AGENT})
        resp.raise_for_status()
    except requests.RequestException as e:
        raise LogoLoadError(f"Could not fetch logo {src}: {e}") from e
    return resp.content


def _read_source(src: str) -> bytes:
    if src.startswith("data:"):
        return _read_data_uri(src)
    if src.startswith(("http://", "https://")):
        return _read_url(src)
    try:
        return Path(src).read_bytes()
    except OSError as e:
        raise LogoLoadError(f"Could not read logo file {src}: {e}") from e


def decode_logo(raw: bytes) -> Image.Image:
    """Decode image bytes to an RGBA Pillow image."""
    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise LogoLoadError(f"Logo is not a decodable image: {e}") from e
    return img.convert("RGBA")


@trace
async def load_logo(src: str) -> Image.Image:
    """Load a logo without blocking the event loop.

    Raises:
        LogoLoadError: the source is missing, unreachable or not an image.
    """
    if not src:
        raise LogoLoadError("Empty logo source")
    raw = await asyncio.to_thread(_read_source, src)
    return decode_logo(raw)


@trace
def composite_logo(surface: Surface, logo: Image.Image, size: float | None = None) -> tuple[float, float, float]:
    """Draw a white backing plate and the logo, centered on the surface.

    Returns:
        (x, y, side) of the logo square in surface pixels.
    """
    canvas = surface.width
    side = size or canvas * DEFAULT_COVERAGE
    x = (canvas - side) / 2
    y = (canvas - side) / 2

    with surface.saved():
        surface.fill_rect(
            x - PLATE_MARGIN_PX, y - PLATE_MARGIN_PX,
            side + 2 * PLATE_MARGIN_PX, side + 2 * PLATE_MARGIN_PX,
            PLATE_COLOR,
        )
        surface.draw_image(logo, x, y, side, side)

    audit("logo.composited", logger=log,
          canvas=f"{surface.width}x{surface.height}",
          logo_px=f"{int(side)}x{int(side)}", plate_margin_px=PLATE_MARGIN_PX)
    return x, y, side
