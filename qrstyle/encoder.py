"""QR symbol encoder: module matrix, base raster and plain SVG output."""

import io
import math

import numpy as np
import qrcode
import qrcode.constants
import segno
from PIL import Image

from qrstyle.colors import resolve_rgb
from qrstyle.config import ErrorCorrectionLevel
from qrstyle.logging import audit, get_logger, trace

log = get_logger("encoder")

QRCODE_LEVELS = {
    ErrorCorrectionLevel.LOW: qrcode.constants.ERROR_CORRECT_L,       # 7%
    ErrorCorrectionLevel.MEDIUM: qrcode.constants.ERROR_CORRECT_M,    # 15%
    ErrorCorrectionLevel.QUARTILE: qrcode.constants.ERROR_CORRECT_Q,  # 25%
    ErrorCorrectionLevel.HIGH: qrcode.constants.ERROR_CORRECT_H,      # 30%
}

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


def encode_matrix(text: str, level: ErrorCorrectionLevel = ErrorCorrectionLevel.MEDIUM) -> list[list[bool]]:
    """Module matrix (True = dark) with no quiet zone, smallest fitting version."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=QRCODE_LEVELS[ErrorCorrectionLevel.parse(level)],
        box_size=1,
        border=0,
    )
    qr.add_data(text)
    qr.make(fit=True)
    return [list(row) for row in qr.get_matrix()]


def raster_scale(modules: int, width: int | None, margin: int, scale: float) -> float:
    """Pixels per module: fit *width* when it can hold the symbol, else *scale*."""
    total = modules + 2 * margin
    if width and width >= total:
        return width / total
    return scale


@trace
def encode_to_raster(
    text: str,
    width: int | None = 200,
    level: ErrorCorrectionLevel = ErrorCorrectionLevel.MEDIUM,
    dark: str | None = "#000000",
    light: str | None = "#ffffff",
    margin: int = 4,
    scale: float = 4,
) -> Image.Image:
    """Render the plain symbol as an RGBA image, quiet zone in the light color.

    Pixel ``i`` maps to module ``floor((i - margin*scale) / scale)``.
    """
    matrix = np.array(encode_matrix(text, level), dtype=bool)
    n = matrix.shape[0]
    px = raster_scale(n, width, margin, scale)
    total = n + 2 * margin
    side = int(width) if width and width >= total else int(math.floor(total * px))
    border = margin * px

    idx = np.arange(side)
    src = np.floor((idx - border) / px).astype(int)
    inside = (idx >= border) & (idx < side - border) & (src >= 0) & (src < n)
    src = np.clip(src, 0, n - 1)

    dark_mask = matrix[np.ix_(src, src)] & inside[:, None] & inside[None, :]

    out = np.empty((side, side, 4), dtype=np.uint8)
    out[...] = resolve_rgb(light, WHITE) + (255,)
    out[dark_mask] = resolve_rgb(dark, BLACK) + (255,)
    img = Image.fromarray(out)

    version = (n - 17) // 4
    audit("qr.encoded", logger=log,
          data=text[:80], version=version, modules=f"{n}x{n}",
          ecc=ErrorCorrectionLevel.parse(level).value, image_px=f"{side}x{side}")
    return img


@trace
def encode_to_vector(
    text: str,
    width: int | None = 200,
    level: ErrorCorrectionLevel = ErrorCorrectionLevel.MEDIUM,
    dark: str | None = "#000000",
    light: str | None = "#ffffff",
    margin: int = 4,
) -> str:
    """Plain SVG markup for the symbol; no module styling is applied."""
    qr = segno.make(
        text,
        error=ErrorCorrectionLevel.parse(level).value.lower(),
        boost_error=False,
        micro=False,
    )
    symbol_w, _ = qr.symbol_size(scale=1, border=margin)
    scale = width / symbol_w if width else 1

    buf = io.BytesIO()
    qr.save(buf, kind="svg", scale=scale, border=margin,
            dark=dark or "#000000", light=light or "#ffffff", xmldecl=False)
    svg = buf.getvalue().decode("utf-8")

    audit("qr.encoded", logger=log,
          data=text[:80], version=qr.version, kind="svg",
          ecc=qr.error, image_px=f"{width}x{width}")
    return svg
