"""Batched module drawing: one compound fill for homogeneous shapes, per-module otherwise."""

import random
from typing import Callable, Sequence

from qrstyle.colors import resolve_rgb
from qrstyle.config import ModulePosition, Shape
from qrstyle.logging import get_logger
from qrstyle.shapes import outline, paint
from qrstyle.surface import Surface

log = get_logger("batch")

# Shapes whose outline is identical for every module and needs no per-module state.
BATCHABLE = frozenset({Shape.SQUARE, Shape.CIRCLE})


def draw_modules(
    surface: Surface,
    shape: Shape,
    modules: Sequence[ModulePosition],
    spacing_offset: float,
    size: float,
    color: str,
    corner_radius: float | None = None,
) -> None:
    """Draw every dark module with a flat color.

    Square and circle modules are gathered into a single compound path and
    filled once; other shapes go through ``paint`` one module at a time.
    """
    if not modules:
        return

    if shape in BATCHABLE:
        local = outline(shape, size, corner_radius)
        polygons = []
        for m in modules:
            ox, oy = m.x + spacing_offset, m.y + spacing_offset
            polygons.append([(px + ox, py + oy) for px, py in local])
        surface.fill_polygons(polygons, resolve_rgb(color, (0, 0, 0)))
        log.debug("batched %d %s modules into one fill", len(modules), shape.value)
        return

    for m in modules:
        paint(surface, shape, m.x + spacing_offset, m.y + spacing_offset, size, color, corner_radius)


def draw_each(
    surface: Surface,
    shape: Shape,
    modules: Sequence[ModulePosition],
    spacing_offset: float,
    size: float,
    color: str,
    corner_radius: float | None = None,
    gradient: Sequence[str] | None = None,
    randomness: float | None = None,
    rng: Callable[[], float] = random.random,
) -> None:
    """Per-module drawing, used for gradient fills (gradient space is module-local) and jitter."""
    for m in modules:
        paint(surface, shape, m.x + spacing_offset, m.y + spacing_offset, size, color,
              corner_radius, gradient, randomness, rng)
