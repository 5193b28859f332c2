"""Color math: hex parsing, WCAG luminance/contrast and scan-safe color correction."""

import math
import re
from dataclasses import replace

from qrstyle.config import RenderConfig
from qrstyle.logging import audit, get_logger, trace

log = get_logger("colors")

_HEX_RE = re.compile(r"^#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})$", re.IGNORECASE)

WHITE = "#ffffff"
BLACK = "#000000"

# Smart-color policy thresholds
DARK_MIN_RATIO = 4.5
LIGHT_MAX_RATIO = 1.2
LIGHT_TARGET_RATIO = 1.1

# Bounded search parameters
_MAX_STEPS = 20
_STEP_FACTOR_DARKEN = 0.9
_STEP_FACTOR_LIGHTEN = 1.1


def parse_hex(color: str | None) -> tuple[int, int, int] | None:
    """Parse '#rrggbb' (the '#' is optional) to an RGB tuple, or None if invalid."""
    if not isinstance(color, str):
        return None
    m = _HEX_RE.match(color.strip())
    if not m:
        return None
    return tuple(int(g, 16) for g in m.groups())


def to_hex(r: int, g: int, b: int) -> str:
    return f"#{int(r):02x}{int(g):02x}{int(b):02x}"


def resolve_rgb(color: str | None, fallback: tuple[int, int, int]) -> tuple[int, int, int]:
    """Parse a color, falling back to a safe default when it is not a valid hex string."""
    rgb = parse_hex(color)
    return rgb if rgb is not None else fallback


def _round(v: float) -> int:
    """Round half up, so 127.5 -> 128 the way browsers round channels."""
    return int(math.floor(v + 0.5))


def _linearize(channel: int) -> float:
    """Convert sRGB channel (0-255) to linear light value."""
    c = channel / 255.0
    return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4


def luminance(color: str | tuple[int, int, int]) -> float:
    """Relative luminance per WCAG 2.0, in [0, 1]. Unparsable colors count as 0."""
    rgb = color if isinstance(color, tuple) else parse_hex(color)
    if rgb is None:
        return 0.0
    r, g, b = [_linearize(ch) for ch in rgb[:3]]
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(l1: float, l2: float) -> float:
    """WCAG contrast ratio between two luminances (1.0 - 21.0)."""
    lighter, darker = max(l1, l2), min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def adjust_for_contrast(
    color: str,
    background_luminance: float,
    target_ratio: float,
    darken: bool,
    max_steps: int = _MAX_STEPS,
) -> str:
    """Nudge *color* toward black (darken) or white until it reaches *target_ratio*.

    Each step scales the channels by 0.9 (darken) or divides them by 1.1
    (lighten). Stops at the first color meeting the target or after
    *max_steps* steps, returning the last color reached.
    """
    rgb = parse_hex(color)
    if rgb is None:
        return BLACK if darken else WHITE

    r, g, b = (float(c) for c in rgb)
    for _ in range(max_steps):
        current = luminance((_round(r), _round(g), _round(b)))
        if contrast_ratio(current, background_luminance) >= target_ratio:
            break
        if darken:
            r, g, b = (max(0.0, c * _STEP_FACTOR_DARKEN) for c in (r, g, b))
        else:
            r, g, b = (min(255.0, c / _STEP_FACTOR_LIGHTEN) for c in (r, g, b))

    return to_hex(_round(r), _round(g), _round(b))


@trace
def optimize_colors(config: RenderConfig) -> RenderConfig:
    """Apply the smart-color policy and return a new config.

    Dark modules must stay highly legible against white (>= 4.5:1); light
    modules must stay visually close to the background (<= 1.2:1, corrected
    toward 1.1:1). Disabled by ``smart_gradient=False``.
    """
    if not config.smart_gradient:
        return config

    white = luminance(WHITE)
    dark, light = config.color.dark, config.color.light

    if dark:
        ratio = contrast_ratio(luminance(dark), white)
        if ratio < DARK_MIN_RATIO:
            dark = adjust_for_contrast(dark, white, DARK_MIN_RATIO, darken=True)
            if dark != config.color.dark:
                audit("colors.optimized", logger=log, role="dark",
                      before=config.color.dark, after=dark, ratio=f"{ratio:.2f}")

    if light:
        ratio = contrast_ratio(luminance(light), white)
        if ratio > LIGHT_MAX_RATIO:
            light = adjust_for_contrast(light, white, LIGHT_TARGET_RATIO, darken=False)
            if light != config.color.light:
                audit("colors.optimized", logger=log, role="light",
                      before=config.color.light, after=light, ratio=f"{ratio:.2f}")

    if (dark, light) == (config.color.dark, config.color.light):
        return config
    return replace(config, color=replace(config.color, dark=dark, light=light))
