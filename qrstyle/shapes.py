"""Module shapes: per-shape outlines and the single-module painter."""

import math
import random
from typing import Callable, Sequence

from qrstyle.colors import resolve_rgb
from qrstyle.config import Shape
from qrstyle.surface import LinearGradient, Point, Surface, gradient_stops

STAR_POINTS = 5
STAR_OUTER = 0.4
STAR_INNER = 0.2
HEX_RADIUS = 0.4
ROUNDED_DEFAULT = 0.2


def _arc(cx: float, cy: float, r: float, start: float, end: float, steps: int) -> list[Point]:
    return [
        (cx + math.cos(start + (end - start) * i / steps) * r,
         cy + math.sin(start + (end - start) * i / steps) * r)
        for i in range(steps + 1)
    ]


def _segments(radius: float) -> int:
    """Vertex count for a curve of *radius* px: dense enough to look round."""
    return max(16, int(math.ceil(math.pi * radius)))


def _square(size: float, corner_radius: float | None) -> list[Point]:
    return [(0.0, 0.0), (size, 0.0), (size, size), (0.0, size)]


def _circle(size: float, corner_radius: float | None) -> list[Point]:
    r = size / 2
    n = _segments(r)
    return [(r + math.cos(2 * math.pi * i / n) * r, r + math.sin(2 * math.pi * i / n) * r) for i in range(n)]


def _rounded(size: float, corner_radius: float | None) -> list[Point]:
    r = min(corner_radius or size * ROUNDED_DEFAULT, size / 2)
    if r <= 0:
        return _square(size, None)
    steps = max(2, _segments(r) // 4)
    half_pi = math.pi / 2
    return (
        _arc(size - r, r, r, -half_pi, 0, steps)
        + _arc(size - r, size - r, r, 0, half_pi, steps)
        + _arc(r, size - r, r, half_pi, math.pi, steps)
        + _arc(r, r, r, math.pi, 3 * half_pi, steps)
    )


def _star(size: float, corner_radius: float | None) -> list[Point]:
    c = size / 2
    angle = math.pi / STAR_POINTS
    pts = []
    for i in range(2 * STAR_POINTS):
        radius = size * (STAR_OUTER if i % 2 == 0 else STAR_INNER)
        pts.append((c + math.cos(i * angle - math.pi / 2) * radius,
                    c + math.sin(i * angle - math.pi / 2) * radius))
    return pts


def _hexagon(size: float, corner_radius: float | None) -> list[Point]:
    c = size / 2
    radius = size * HEX_RADIUS
    angle = math.pi / 3
    return [(c + math.cos(i * angle - math.pi / 2) * radius,
             c + math.sin(i * angle - math.pi / 2) * radius) for i in range(6)]


def _diamond(size: float, corner_radius: float | None) -> list[Point]:
    return [(size / 2, 0.0), (size, size / 2), (size / 2, size), (0.0, size / 2)]


def _triangle(size: float, corner_radius: float | None) -> list[Point]:
    return [(size / 2, 0.0), (size, size), (0.0, size)]


_OUTLINES: dict[Shape, Callable[[float, float | None], list[Point]]] = {
    Shape.SQUARE: _square,
    Shape.CIRCLE: _circle,
    Shape.ROUNDED: _rounded,
    Shape.STAR: _star,
    Shape.HEXAGON: _hexagon,
    Shape.DIAMOND: _diamond,
    Shape.TRIANGLE: _triangle,
}

_missing = set(Shape) - set(_OUTLINES)
if _missing:
    raise ImportError(f"No outline registered for shapes: {sorted(s.value for s in _missing)}")


def outline(shape: Shape, size: float, corner_radius: float | None = None) -> list[Point]:
    """Module-local polygon for *shape* inscribed in a size x size cell."""
    return _OUTLINES[shape](size, corner_radius)


def module_gradient(colors: Sequence[str], size: float) -> LinearGradient:
    """Diagonal gradient spanning one module's bounding box."""
    return LinearGradient(0.0, 0.0, size, size, gradient_stops(colors))


def paint(
    surface: Surface,
    shape: Shape,
    x: float,
    y: float,
    size: float,
    color: str,
    corner_radius: float | None = None,
    gradient: Sequence[str] | None = None,
    randomness: float | None = None,
    rng: Callable[[], float] = random.random,
) -> None:
    """Draw one styled module at (x, y); the surface state is restored afterwards.

    With randomness > 0 the module is jittered by up to +/- randomness/2 px and
    rotated by up to +/- randomness/20 rad, so repeated renders differ.
    """
    with surface.saved():
        if randomness and randomness > 0:
            jitter = (rng() - 0.5) * randomness
            rotation = (rng() - 0.5) * randomness * 0.1
            surface.translate(x + size / 2 + jitter, y + size / 2 + jitter)
            surface.rotate(rotation)
            surface.translate(-size / 2, -size / 2)
        else:
            surface.translate(x, y)

        if gradient:
            style = module_gradient(gradient, size)
        else:
            style = resolve_rgb(color, (0, 0, 0))

        surface.fill_polygon(outline(shape, size, corner_radius), style)
