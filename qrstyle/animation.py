"""Animated reveal: module ordering, eased per-module progress and per-module transforms.

Progress is sampled from the wall clock when ``draw_animated`` runs; there is no
frame loop here. A caller wanting motion re-renders on its own timer.
"""

import math
import random
import time
from typing import Callable, Sequence

from qrstyle.config import AnimationConfig, AnimationDirection, AnimationType, ModulePosition, Shape
from qrstyle.logging import get_logger
from qrstyle.shapes import paint
from qrstyle.surface import Surface

log = get_logger("animation")


def now_ms() -> float:
    return time.time() * 1000.0


def order_modules(
    modules: Sequence[ModulePosition],
    direction: AnimationDirection,
    size: float,
) -> list[ModulePosition]:
    """Resolve draw order: natural, reversed, or serpentine by row."""
    if direction is AnimationDirection.REVERSE:
        return list(reversed(modules))
    if direction is AnimationDirection.ALTERNATE:
        rows: dict[int, list[ModulePosition]] = {}
        for m in modules:
            rows.setdefault(int(math.floor(m.y / size)), []).append(m)
        ordered = []
        for row in sorted(rows):
            ordered.extend(rows[row] if row % 2 == 0 else reversed(rows[row]))
        return ordered
    return list(modules)


def ease_in_out_cubic(t: float) -> float:
    return 4 * t * t * t if t < 0.5 else 1 - (-2 * t + 2) ** 3 / 2


def progress(now: float, delay: float, index: int, stagger: float, duration: float) -> float:
    """Linear progress of module *index* at time *now* (ms), clamped to [0, 1]."""
    return min(1.0, max(0.0, (now - delay - index * stagger) / duration))


def _about_center(surface: Surface, x: float, y: float, size: float, apply: Callable[[], None]) -> None:
    surface.translate(x + size / 2, y + size / 2)
    apply()
    surface.translate(-size / 2, -size / 2)


def _fade(surface, x, y, size, p):
    surface.alpha = p
    surface.translate(x, y)


def _scale(surface, x, y, size, p):
    _about_center(surface, x, y, size, lambda: surface.scale(p))


def _rotate(surface, x, y, size, p):
    _about_center(surface, x, y, size, lambda: surface.rotate(p * math.pi * 2))


def _bounce(surface, x, y, size, p):
    s = p * 2 if p < 0.5 else 2 - p * 2
    _about_center(surface, x, y, size, lambda: surface.scale(s))


def _pulse(surface, x, y, size, p):
    _about_center(surface, x, y, size, lambda: surface.scale(0.5 + p * 0.5))


_TRANSFORMS = {
    AnimationType.FADE: _fade,
    AnimationType.SCALE: _scale,
    AnimationType.ROTATE: _rotate,
    AnimationType.BOUNCE: _bounce,
    AnimationType.PULSE: _pulse,
}

_missing = set(AnimationType) - set(_TRANSFORMS)
if _missing:
    raise ImportError(f"No transform registered for animations: {sorted(a.value for a in _missing)}")


def draw_animated(
    surface: Surface,
    modules: Sequence[ModulePosition],
    shape: Shape,
    size: float,
    spacing_offset: float,
    color: str,
    corner_radius: float | None = None,
    gradient: Sequence[str] | None = None,
    randomness: float | None = None,
    animation: AnimationConfig | None = None,
    now: float | None = None,
    rng: Callable[[], float] = random.random,
) -> None:
    """Paint each module with the transform for its eased progress at *now*."""
    anim = animation or AnimationConfig(enabled=True)
    now = now_ms() if now is None else now
    transform = _TRANSFORMS[anim.type]

    ordered = order_modules(modules, anim.direction, size)
    for i, m in enumerate(ordered):
        p = ease_in_out_cubic(progress(now, anim.delay, i, anim.stagger, anim.duration))
        with surface.saved():
            transform(surface, m.x + spacing_offset, m.y + spacing_offset, size, p)
            paint(surface, shape, 0, 0, size, color, corner_radius, gradient or None, randomness, rng)

    log.debug("animated %d modules type=%s direction=%s", len(ordered), anim.type.value, anim.direction.value)
