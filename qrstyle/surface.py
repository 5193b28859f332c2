"""Raster drawing surface with canvas-style state: affine transform, global alpha, filter.

A ``Surface`` wraps a Pillow RGBA image. Drawing state is pushed and popped with
``with surface.saved():`` so every paint call leaves the surface state exactly
as it found it. Polygons are filled through a pixel-center coverage mask cropped to
their bounding box, then alpha-composited; fill styles are a flat RGB(A) tuple,
a ``LinearGradient`` or a ``RadialGradient`` whose coordinates live in user
space (they follow the current transform, like a 2D canvas).
"""

import base64
import io
import math
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Callable, NamedTuple, Sequence

import numpy as np
from PIL import Image, ImageChops

from qrstyle.colors import parse_hex
from qrstyle.errors import ValidationError

Point = tuple[float, float]
Filter = Callable[[Image.Image], Image.Image]


# ---------------------------------------------------------------------------
# Affine transform
# ---------------------------------------------------------------------------

class Affine(NamedTuple):
    """2D affine matrix in canvas order: x' = a*x + c*y + e, y' = b*x + d*y + f."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    def multiply(self, o: "Affine") -> "Affine":
        """Return self x o (o is applied first)."""
        return Affine(
            self.a * o.a + self.c * o.b,
            self.b * o.a + self.d * o.b,
            self.a * o.c + self.c * o.d,
            self.b * o.c + self.d * o.d,
            self.a * o.e + self.c * o.f + self.e,
            self.b * o.e + self.d * o.f + self.f,
        )

    @property
    def determinant(self) -> float:
        return self.a * self.d - self.b * self.c

    def inverse(self) -> "Affine":
        det = self.determinant
        if det == 0:
            raise ZeroDivisionError("singular transform")
        return Affine(
            self.d / det,
            -self.b / det,
            -self.c / det,
            self.a / det,
            (self.c * self.f - self.d * self.e) / det,
            (self.b * self.e - self.a * self.f) / det,
        )

    def apply(self, x: float, y: float) -> Point:
        return (self.a * x + self.c * y + self.e, self.b * x + self.d * y + self.f)


IDENTITY = Affine()


def _cover(mask: np.ndarray, poly: Sequence[Point], ox: int, oy: int) -> None:
    """OR into *mask* the pixels whose centers lie inside *poly* (even-odd rule).

    Coverage is half-open: a square from 0 to ``size`` fills exactly ``size``
    pixels per axis. *mask* row 0, column 0 is device pixel (ox, oy).
    """
    h, w = mask.shape
    xs = [p[0] for p in poly]
    ys = [p[1] for p in poly]
    bx0 = max(ox, int(math.floor(min(xs))))
    by0 = max(oy, int(math.floor(min(ys))))
    bx1 = min(ox + w, int(math.ceil(max(xs))))
    by1 = min(oy + h, int(math.ceil(max(ys))))
    if bx1 <= bx0 or by1 <= by0:
        return

    cx = (np.arange(bx0, bx1) + 0.5)[None, :]
    cy = (np.arange(by0, by1) + 0.5)[:, None]
    inside = np.zeros((by1 - by0, bx1 - bx0), dtype=bool)
    for (xa, ya), (xb, yb) in zip(poly, list(poly[1:]) + [poly[0]]):
        if ya == yb:
            continue
        spans = (ya > cy) != (yb > cy)
        x_cross = xa + (cy - ya) * (xb - xa) / (yb - ya)
        inside ^= spans & (cx < x_cross)
    mask[by0 - oy:by1 - oy, bx0 - ox:bx1 - ox] |= inside


# ---------------------------------------------------------------------------
# Fill styles
# ---------------------------------------------------------------------------

def gradient_stops(colors: Sequence[str]) -> tuple[tuple[float, tuple[int, int, int]], ...]:
    """Spread colors evenly over [0, 1]; a single color sits at offset 0."""
    if not colors:
        raise ValidationError("Gradient needs at least one color")
    stops = []
    last = max(1, len(colors) - 1)
    for i, color in enumerate(colors):
        rgb = parse_hex(color)
        if rgb is None:
            raise ValidationError(f"Invalid gradient color: {color!r}")
        stops.append((i / last, rgb))
    return tuple(stops)


def _interpolate(stops, t: np.ndarray) -> np.ndarray:
    """Map a parameter array (clamped to [0, 1]) through the color stops -> HxWx3 uint8."""
    t = np.clip(t, 0.0, 1.0)
    offsets = [s[0] for s in stops]
    out = np.empty(t.shape + (3,), dtype=np.float64)
    for ch in range(3):
        out[..., ch] = np.interp(t, offsets, [s[1][ch] for s in stops])
    return np.clip(np.rint(out), 0, 255).astype(np.uint8)


@dataclass(frozen=True)
class LinearGradient:
    x0: float
    y0: float
    x1: float
    y1: float
    stops: tuple

    def parameter(self, ux: np.ndarray, uy: np.ndarray) -> np.ndarray:
        dx, dy = self.x1 - self.x0, self.y1 - self.y0
        length2 = dx * dx + dy * dy
        if length2 == 0:
            return np.zeros_like(ux)
        return ((ux - self.x0) * dx + (uy - self.y0) * dy) / length2


@dataclass(frozen=True)
class RadialGradient:
    cx: float
    cy: float
    radius: float
    stops: tuple

    def parameter(self, ux: np.ndarray, uy: np.ndarray) -> np.ndarray:
        if self.radius <= 0:
            return np.ones_like(ux)
        return np.hypot(ux - self.cx, uy - self.cy) / self.radius


FillStyle = tuple | LinearGradient | RadialGradient


@dataclass(frozen=True)
class _State:
    matrix: Affine = IDENTITY
    alpha: float = 1.0
    filter: Filter | None = None
    smoothing: bool = True


# ---------------------------------------------------------------------------
# Surface
# ---------------------------------------------------------------------------

class Surface:
    """An RGBA raster plus a stack of drawing states."""

    def __init__(self, width: int | None = None, height: int | None = None, image: Image.Image | None = None):
        if image is None:
            if not width or not height or width <= 0 or height <= 0:
                raise ValidationError(f"Surface needs a positive size, got {width}x{height}")
            image = Image.new("RGBA", (int(width), int(height)), (0, 0, 0, 0))
        self.image = image
        self._state = _State()
        self._stack: list[_State] = []

    @classmethod
    def wrap(cls, image: Image.Image) -> "Surface":
        """Draw onto an existing Pillow image (kept in its own mode)."""
        return cls(image=image)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def has_context(self) -> bool:
        """True when the image supports styled drawing (RGBA)."""
        return self.image.mode == "RGBA"

    def resize(self, width: int, height: int) -> None:
        """Resize like a canvas element: content and state are reset."""
        self.image = Image.new(self.image.mode, (int(width), int(height)))
        self._state = _State()
        self._stack.clear()

    # -- state ------------------------------------------------------------

    @contextmanager
    def saved(self):
        """Scope transform/alpha/filter changes to a block."""
        self._stack.append(self._state)
        try:
            yield self
        finally:
            self._state = self._stack.pop()

    @property
    def matrix(self) -> Affine:
        return self._state.matrix

    def translate(self, dx: float, dy: float) -> None:
        self._state = replace(self._state, matrix=self._state.matrix.multiply(Affine(e=dx, f=dy)))

    def rotate(self, radians: float) -> None:
        cos, sin = math.cos(radians), math.sin(radians)
        self._state = replace(self._state, matrix=self._state.matrix.multiply(Affine(cos, sin, -sin, cos)))

    def scale(self, sx: float, sy: float | None = None) -> None:
        sy = sx if sy is None else sy
        self._state = replace(self._state, matrix=self._state.matrix.multiply(Affine(a=sx, d=sy)))

    @property
    def alpha(self) -> float:
        return self._state.alpha

    @alpha.setter
    def alpha(self, value: float) -> None:
        self._state = replace(self._state, alpha=max(0.0, min(1.0, float(value))))

    @property
    def filter(self) -> Filter | None:
        return self._state.filter

    @filter.setter
    def filter(self, fn: Filter | None) -> None:
        self._state = replace(self._state, filter=fn)

    @property
    def smoothing(self) -> bool:
        return self._state.smoothing

    @smoothing.setter
    def smoothing(self, enabled: bool) -> None:
        self._state = replace(self._state, smoothing=bool(enabled))

    # -- pixels -------------------------------------------------------------

    def clear(self) -> None:
        self.image.paste((0, 0, 0, 0) if self.image.mode == "RGBA" else 0, (0, 0, self.width, self.height))

    def snapshot(self) -> Image.Image:
        return self.image.copy()

    def pixels(self) -> np.ndarray:
        """H x W x 4 uint8 copy of the current content."""
        return np.array(self.image.convert("RGBA"))

    def to_data_uri(self, fmt: str = "png", quality: int = 90) -> str:
        buf = io.BytesIO()
        fmt = fmt.lower()
        if fmt in ("jpg", "jpeg"):
            flat = Image.new("RGB", self.image.size, (255, 255, 255))
            rgba = self.image.convert("RGBA")
            flat.paste(rgba, mask=rgba.getchannel("A"))
            flat.save(buf, format="JPEG", quality=quality)
            mime = "image/jpeg"
        else:
            self.image.save(buf, format="PNG")
            mime = "image/png"
        return f"data:{mime};base64,{base64.b64encode(buf.getvalue()).decode('ascii')}"

    # -- drawing ------------------------------------------------------------

    def fill_rect(self, x: float, y: float, w: float, h: float, style: FillStyle) -> None:
        self.fill_polygons([[(x, y), (x + w, y), (x + w, y + h), (x, y + h)]], style)

    def fill_polygon(self, points: Sequence[Point], style: FillStyle) -> None:
        self.fill_polygons([points], style)

    def fill_polygons(self, polygons: Sequence[Sequence[Point]], style: FillStyle) -> None:
        """Fill several polygons as one compound path with a single composite."""
        m = self._state.matrix
        if m.determinant == 0 or self._state.alpha <= 0:
            return

        device = [[m.apply(x, y) for x, y in poly] for poly in polygons if len(poly) >= 3]
        if not device:
            return

        xs = [p[0] for poly in device for p in poly]
        ys = [p[1] for poly in device for p in poly]
        x0 = max(0, int(math.floor(min(xs))))
        y0 = max(0, int(math.floor(min(ys))))
        x1 = min(self.width, int(math.ceil(max(xs))))
        y1 = min(self.height, int(math.ceil(max(ys))))
        if x1 <= x0 or y1 <= y0:
            return

        covered = np.zeros((y1 - y0, x1 - x0), dtype=bool)
        for poly in device:
            _cover(covered, poly, x0, y0)
        if not covered.any():
            return
        mask = Image.fromarray(covered.astype(np.uint8) * 255)

        layer = self._style_layer(style, x0, y0, x1 - x0, y1 - y0)
        self._composite(layer, mask, x0, y0)

    def draw_image(self, image: Image.Image, x: float, y: float,
                   width: float | None = None, height: float | None = None) -> None:
        """Draw an image at (x, y), optionally scaled; axis-aligned transforms only."""
        m = self._state.matrix
        width = image.width if width is None else width
        height = image.height if height is None else height
        dx, dy = m.apply(x, y)
        dw, dh = int(round(width * abs(m.a))), int(round(height * abs(m.d)))
        if dw <= 0 or dh <= 0 or self._state.alpha <= 0:
            return

        layer = image.convert("RGBA")
        if layer.size != (dw, dh):
            resample = Image.LANCZOS if self._state.smoothing else Image.NEAREST
            layer = layer.resize((dw, dh), resample)
        self._composite(layer, layer.getchannel("A"), int(round(dx)), int(round(dy)))

    # -- internals ----------------------------------------------------------

    def _style_layer(self, style: FillStyle, ox: int, oy: int, w: int, h: int) -> Image.Image:
        if isinstance(style, (LinearGradient, RadialGradient)):
            inv = self._state.matrix.inverse()
            px, py = np.meshgrid(np.arange(w) + ox + 0.5, np.arange(h) + oy + 0.5)
            ux = inv.a * px + inv.c * py + inv.e
            uy = inv.b * px + inv.d * py + inv.f
            rgb = _interpolate(style.stops, style.parameter(ux, uy))
            layer = Image.fromarray(rgb).convert("RGBA")
            return layer
        color = tuple(style)
        if len(color) == 3:
            color = color + (255,)
        return Image.new("RGBA", (w, h), color)

    def _composite(self, layer: Image.Image, coverage: Image.Image, ox: int, oy: int) -> None:
        """Blend *layer* (masked by *coverage* and global alpha) onto the image at (ox, oy)."""
        alpha = ImageChops.multiply(layer.getchannel("A"), coverage)
        if self._state.alpha < 1.0:
            ga = self._state.alpha
            alpha = alpha.point(lambda v: int(v * ga + 0.5))
        layer = layer.copy()
        layer.putalpha(alpha)
        if self._state.filter is not None:
            layer = self._state.filter(layer)

        # Crop to the visible overlap; alpha_composite needs a non-negative dest.
        sx, sy = max(0, -ox), max(0, -oy)
        dx, dy = max(0, ox), max(0, oy)
        w = min(layer.width - sx, self.width - dx)
        h = min(layer.height - sy, self.height - dy)
        if w <= 0 or h <= 0:
            return
        if (sx, sy, w, h) != (0, 0, layer.width, layer.height):
            layer = layer.crop((sx, sy, sx + w, sy + h))
        if self.image.mode == "RGBA":
            self.image.alpha_composite(layer, dest=(dx, dy))
        else:
            self.image.paste(layer.convert(self.image.mode), (dx, dy), layer.getchannel("A"))
