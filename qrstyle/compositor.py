"""Style compositor: background, complexity tier, module re-drawing and logo overlay.

One ``apply`` call is one render pass over a surface that already holds the
base QR raster:

    1. snapshot the base raster and clear the surface
    2. paint the background (solid light color or gradient)
    3. select the complexity tier (filter, smoothing, optional drop shadow)
    4. re-draw dark modules with the configured shape/animation, or copy the
       base raster unchanged when no module styling is requested
    5. overlay the logo (load failures are logged and skipped)
"""

import math
import random
from dataclasses import dataclass
from typing import Awaitable, Callable

import numpy as np
from PIL import Image, ImageEnhance, ImageFilter

from qrstyle.animation import draw_animated, now_ms
from qrstyle.batch import draw_each, draw_modules
from qrstyle.classifier import ModuleClassifier
from qrstyle.colors import resolve_rgb
from qrstyle.config import GradientType, LogoConfig, ModulePosition, RenderConfig
from qrstyle.errors import LogoLoadError
from qrstyle.logging import audit, get_logger, trace
from qrstyle.logo import composite_logo, load_logo
from qrstyle.surface import Filter, LinearGradient, RadialGradient, Surface, gradient_stops

log = get_logger("compositor")

# Modules assumed across the canvas when deriving the module cell size.
GRID_DENSITY = 40

SHADOW_OFFSET_PX = 2
SHADOW_BLUR_PX = 1
SHADOW_ALPHA = 0.3
SHADOW_COMPOSITE_ALPHA = 0.1


# ---------------------------------------------------------------------------
# Complexity tiers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ComplexityTier:
    """Visual preset for one complexity band."""

    name: str
    smoothing: bool = True
    contrast: float = 1.0
    brightness: float = 1.0
    sharpen: float = 0.0
    shadow: bool = False

    def as_filter(self) -> Filter | None:
        """Per-layer filter (alpha preserved), or None for the identity tier."""
        if self.contrast == 1.0 and self.brightness == 1.0 and not self.sharpen:
            return None

        contrast, brightness, sharpen = self.contrast, self.brightness, self.sharpen
        lut = [max(0, min(255, int(round((v - 127.5) * contrast + 127.5)))) for v in range(256)]

        def apply(layer: Image.Image) -> Image.Image:
            alpha = layer.getchannel("A")
            rgb = layer.convert("RGB")
            if contrast != 1.0:
                rgb = rgb.point(lut * 3)
            if brightness != 1.0:
                rgb = ImageEnhance.Brightness(rgb).enhance(brightness)
            if sharpen:
                rgb = rgb.filter(ImageFilter.UnsharpMask(radius=1, percent=int(100 * sharpen), threshold=0))
            rgb.putalpha(alpha)
            return rgb

        return apply


TIERS = (
    (2, ComplexityTier("minimal", smoothing=False, contrast=1.2, brightness=1.1)),
    (4, ComplexityTier("simple", contrast=1.1, brightness=1.05)),
    (6, ComplexityTier("standard")),
    (8, ComplexityTier("detailed", contrast=1.05, brightness=1.02, sharpen=0.5)),
    (10, ComplexityTier("extreme", contrast=1.02, brightness=1.01, sharpen=1.0, shadow=True)),
)


def complexity_tier(complexity: int | None) -> ComplexityTier:
    level = complexity or 5
    for upper, tier in TIERS:
        if level <= upper:
            return tier
    return TIERS[-1][1]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def draw_background(surface: Surface, config: RenderConfig) -> None:
    """Solid light color, or the configured gradient spread evenly over [0, 1]."""
    w, h = surface.width, surface.height
    gradient = config.color.gradient
    if gradient and gradient.colors:
        stops = gradient_stops(gradient.colors)
        if gradient.type is GradientType.RADIAL:
            style = RadialGradient(w / 2, h / 2, w / 2, stops)
        else:
            style = LinearGradient(0, 0, w, h, stops)
    else:
        style = resolve_rgb(config.color.light, (255, 255, 255))
    surface.fill_rect(0, 0, w, h, style)


def module_cell(width: int, height: int) -> int:
    """Module cell size in px from the fixed grid-density assumption."""
    cell = max(1, math.ceil(width / GRID_DENSITY))
    return min(cell, math.ceil(height / GRID_DENSITY))


def collect_dark_modules(
    classifier: ModuleClassifier,
    pixels: np.ndarray,
    width: int,
    height: int,
    cell: int,
) -> list[ModulePosition]:
    """Row-major scan of the raster in steps of *cell*; returns dark module positions."""
    modules = []
    for y in range(0, height, cell):
        for x in range(0, width, cell):
            if classifier.is_dark(pixels, x, y, width, height, cell):
                modules.append(ModulePosition(x, y, len(modules)))
    return modules


def _draw_shadow(surface: Surface, base: Image.Image) -> None:
    shadow = Image.new("RGBA", base.size, (0, 0, 0, 0))
    ghost = base.convert("RGBA")
    ghost.putalpha(ghost.getchannel("A").point(lambda v: int(v * SHADOW_ALPHA + 0.5)))
    ghost = ghost.crop((0, 0, base.width - SHADOW_OFFSET_PX, base.height - SHADOW_OFFSET_PX))
    shadow.alpha_composite(ghost, dest=(SHADOW_OFFSET_PX, SHADOW_OFFSET_PX))
    shadow = shadow.filter(ImageFilter.GaussianBlur(SHADOW_BLUR_PX))
    with surface.saved():
        surface.alpha = SHADOW_COMPOSITE_ALPHA
        surface.draw_image(shadow, 0, 0)


# ---------------------------------------------------------------------------
# Compositor
# ---------------------------------------------------------------------------

class StyleCompositor:
    """Drives one styling pass; holds no state between passes.

    Args:
        clock: Returns "now" in ms for animation progress (wall clock by default).
        rng: Returns floats in [0, 1) for module jitter.
        classifier_factory: Builds the per-pass ModuleClassifier.
        logo_loader: Coroutine function ``src -> PIL.Image``.
    """

    def __init__(
        self,
        clock: Callable[[], float] = now_ms,
        rng: Callable[[], float] = random.random,
        classifier_factory: Callable[[], ModuleClassifier] = ModuleClassifier,
        logo_loader: Callable[[str], Awaitable[Image.Image]] = load_logo,
    ):
        self.clock = clock
        self.rng = rng
        self.classifier_factory = classifier_factory
        self.logo_loader = logo_loader

    @trace
    async def apply(self, surface: Surface, config: RenderConfig) -> None:
        if not surface.has_context:
            log.debug("surface mode %s has no drawing context; styling skipped", surface.image.mode)
            return

        base = surface.snapshot()
        surface.clear()
        draw_background(surface, config)

        tier = complexity_tier(config.complexity)
        modules_drawn = 0
        with surface.saved():
            surface.smoothing = tier.smoothing
            surface.filter = tier.as_filter()
            if tier.shadow:
                _draw_shadow(surface, base)
            if config.wants_module_styling:
                modules_drawn = self._draw_modules(surface, base, config)
            else:
                surface.draw_image(base, 0, 0)

        audit("render.styled", logger=log,
              size=f"{surface.width}x{surface.height}", shape=config.shape.value,
              tier=tier.name, modules=modules_drawn,
              animated=bool(config.animation and config.animation.enabled))

        if config.logo and config.logo.src:
            await self._overlay_logo(surface, config.logo)

    def _draw_modules(self, surface: Surface, base: Image.Image, config: RenderConfig) -> int:
        classifier = self.classifier_factory()
        classifier.clear()

        width, height = base.size
        pixels = np.asarray(base.convert("RGBA"))
        cell = module_cell(width, height)
        size = cell * (config.module_size / 100)
        offset = (cell - size) / 2 + config.module_spacing / 2

        modules = collect_dark_modules(classifier, pixels, width, height, cell)
        audit("modules.collected", logger=log, cell_px=cell, dark=len(modules), sampled=len(classifier))

        color = config.color.dark or "#000000"
        gradient = config.color.gradient.colors if config.color.gradient and config.color.gradient.colors else None
        animation = config.animation

        if animation and animation.enabled:
            draw_animated(surface, modules, config.shape, size, offset, color,
                          config.corner_radius, gradient, config.randomness, animation,
                          now=self.clock(), rng=self.rng)
        elif gradient or config.randomness:
            draw_each(surface, config.shape, modules, offset, size, color,
                      config.corner_radius, gradient, config.randomness, self.rng)
        else:
            draw_modules(surface, config.shape, modules, offset, size, color, config.corner_radius)
        return len(modules)

    async def _overlay_logo(self, surface: Surface, logo: LogoConfig) -> None:
        try:
            image = await self.logo_loader(logo.src)
        except LogoLoadError as e:
            log.warning("Failed to add logo to QR code: %s", e)
            audit("logo.skipped", logger=log, src=logo.src[:80], error=str(e))
            return
        composite_logo(surface, image, logo.size)
