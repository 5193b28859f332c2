"""Styled QR generation: text -> base raster -> style pass -> data URI / file.

All entry points are coroutines because logo loading is awaited; drawing
itself is synchronous.
"""

import base64
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from qrstyle.colors import optimize_colors
from qrstyle.compositor import StyleCompositor
from qrstyle.config import RenderConfig, resolve_config
from qrstyle.encoder import encode_to_raster, encode_to_vector
from qrstyle.errors import QRStyleError, RenderError, ValidationError
from qrstyle.logging import audit, get_logger, trace
from qrstyle.surface import Surface

log = get_logger("generator")

JPEG_QUALITY = 90


@dataclass
class RenderResult:
    """A finished render: PNG data URI, the resolved options and the image itself."""
    data_url: str
    config: RenderConfig
    image: Image.Image


def _require_text(text) -> str:
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Text cannot be empty")
    return text


def _save(data: bytes, file_name: str | Path) -> Path:
    path = Path(file_name)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    audit("export.saved", logger=log, path=str(path), bytes=len(data))
    return path


def _data_uri_bytes(data_url: str) -> bytes:
    return base64.b64decode(data_url.partition(",")[2])


async def _draw(text: str, surface: Surface, config: RenderConfig, compositor: StyleCompositor) -> None:
    base = encode_to_raster(
        text,
        width=config.size,
        level=config.error_correction_level,
        dark=config.color.dark,
        light=config.color.light,
        margin=config.margin,
        scale=config.scale,
    )
    surface.resize(*base.size)
    surface.draw_image(base, 0, 0)
    await compositor.apply(surface, config)


@trace
async def render_to_surface(
    text: str,
    surface: Surface,
    config: RenderConfig | dict | None = None,
    compositor: StyleCompositor | None = None,
) -> None:
    """Draw the styled code onto an existing surface (resized to the raster).

    Colors are used as given; the smart-color pass only runs in ``generate``.

    Raises:
        ValidationError: empty text, or *surface* is not a Surface.
        RenderError: encoder or drawing failure (stage "render").
    """
    _require_text(text)
    if not isinstance(surface, Surface):
        raise ValidationError("Invalid target surface")
    config = resolve_config(config)

    try:
        await _draw(text, surface, config, compositor or StyleCompositor())
    except QRStyleError:
        raise
    except Exception as e:
        raise RenderError.wrap("render", e) from e


@trace
async def generate(
    text: str,
    config: RenderConfig | dict | None = None,
    compositor: StyleCompositor | None = None,
) -> RenderResult:
    """Render *text* into a new surface and return it as a PNG data URI.

    The returned config is the one actually used, after color optimization.
    """
    _require_text(text)
    config = optimize_colors(resolve_config(config))
    surface = Surface(config.size, config.size)

    try:
        await _draw(text, surface, config, compositor or StyleCompositor())
        data_url = surface.to_data_uri("png")
    except QRStyleError:
        raise
    except Exception as e:
        raise RenderError.wrap("generate", e) from e

    audit("qr.generated", logger=log,
          data=text[:80], size=f"{surface.width}x{surface.height}",
          ecc=config.error_correction_level.value, shape=config.shape.value)
    return RenderResult(data_url=data_url, config=config, image=surface.image)


async def get_data_url(text: str, config: RenderConfig | dict | None = None) -> str:
    result = await generate(text, config)
    return result.data_url


@trace
async def export_raster(
    text: str,
    config: RenderConfig | dict | None = None,
    file_name: str | Path | None = None,
    fmt: str = "png",
    quality: int = JPEG_QUALITY,
) -> str:
    """Render and return a data URI in *fmt* ('png' or 'jpeg'); write it to *file_name* if given.

    JPEG output is flattened onto white.
    """
    fmt = fmt.lower()
    if fmt not in ("png", "jpg", "jpeg"):
        raise ValidationError(f"Unsupported raster format: {fmt}")

    result = await generate(text, config)
    if fmt == "png":
        data_url = result.data_url
    else:
        data_url = Surface.wrap(result.image).to_data_uri("jpeg", quality=quality)

    if file_name:
        _save(_data_uri_bytes(data_url), file_name)
    return data_url


async def export_png(
    text: str,
    config: RenderConfig | dict | None = None,
    file_name: str | Path | None = None,
) -> str:
    return await export_raster(text, config, file_name, fmt="png")


@trace
async def export_svg(
    text: str,
    config: RenderConfig | dict | None = None,
    file_name: str | Path | None = None,
) -> str:
    """Plain SVG for *text*: size, colors, margin and level only, no module styling."""
    _require_text(text)
    config = resolve_config(config)

    try:
        svg = encode_to_vector(
            text,
            width=config.size,
            level=config.error_correction_level,
            dark=config.color.dark,
            light=config.color.light,
            margin=config.margin,
        )
    except QRStyleError:
        raise
    except Exception as e:
        raise RenderError.wrap("export", e) from e

    if file_name:
        _save(svg.encode("utf-8"), file_name)
    return svg
