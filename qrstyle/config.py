"""Render configuration: enums, option dataclasses, defaults and dict/JSON loading."""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import NamedTuple

from qrstyle.errors import ValidationError


class ErrorCorrectionLevel(Enum):
    LOW = "L"        # 7%
    MEDIUM = "M"     # 15%
    QUARTILE = "Q"   # 25%
    HIGH = "H"       # 30%

    @classmethod
    def parse(cls, value) -> "ErrorCorrectionLevel":
        """Accept an enum member, its letter ('H') or its name ('high')."""
        if isinstance(value, cls):
            return value
        s = str(value).strip().upper()
        for level in cls:
            if s in (level.value, level.name):
                return level
        raise ValidationError(f"Unknown error correction level: {value!r}")


class Shape(Enum):
    SQUARE = "square"
    ROUNDED = "rounded"
    CIRCLE = "circle"
    STAR = "star"
    HEXAGON = "hexagon"
    DIAMOND = "diamond"
    TRIANGLE = "triangle"


class GradientType(Enum):
    LINEAR = "linear"
    RADIAL = "radial"


class AnimationType(Enum):
    FADE = "fade"
    SCALE = "scale"
    ROTATE = "rotate"
    BOUNCE = "bounce"
    PULSE = "pulse"


class AnimationDirection(Enum):
    FORWARD = "forward"
    REVERSE = "reverse"
    ALTERNATE = "alternate"


def _enum(cls, value):
    if isinstance(value, cls):
        return value
    try:
        return cls(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(m.value for m in cls)
        raise ValidationError(f"Invalid {cls.__name__} {value!r} (expected one of: {choices})") from None


def _check_range(name: str, value, lo=None, hi=None, lo_open: bool = False):
    if value is None:
        return
    if lo is not None and (value <= lo if lo_open else value < lo):
        raise ValidationError(f"{name} must be {'>' if lo_open else '>='} {lo}, got {value}")
    if hi is not None and value > hi:
        raise ValidationError(f"{name} must be <= {hi}, got {value}")


class ModulePosition(NamedTuple):
    """Top-left pixel of a dark module and its sequential draw order."""
    x: int
    y: int
    index: int


@dataclass(frozen=True)
class Gradient:
    type: GradientType = GradientType.LINEAR
    colors: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "type", _enum(GradientType, self.type))
        object.__setattr__(self, "colors", tuple(self.colors))


@dataclass(frozen=True)
class ColorConfig:
    dark: str = "#000000"
    light: str = "#ffffff"
    gradient: Gradient | None = None


@dataclass(frozen=True)
class LogoConfig:
    src: str
    size: float | None = None  # None = 20% of the canvas width


@dataclass(frozen=True)
class AnimationConfig:
    enabled: bool = False
    type: AnimationType = AnimationType.FADE
    duration: float = 1000.0  # ms
    delay: float = 0.0        # ms
    stagger: float = 50.0     # ms per module
    direction: AnimationDirection = AnimationDirection.FORWARD

    def __post_init__(self):
        object.__setattr__(self, "type", _enum(AnimationType, self.type))
        object.__setattr__(self, "direction", _enum(AnimationDirection, self.direction))
        _check_range("animation.duration", self.duration, 0, lo_open=True)
        _check_range("animation.delay", self.delay, 0)
        _check_range("animation.stagger", self.stagger, 0)


@dataclass(frozen=True)
class RenderConfig:
    """Everything the renderer needs; unset fields resolve to these defaults."""

    size: int = 200
    margin: int = 4
    scale: int = 4
    error_correction_level: ErrorCorrectionLevel = ErrorCorrectionLevel.MEDIUM
    color: ColorConfig = field(default_factory=ColorConfig)
    shape: Shape = Shape.SQUARE
    corner_radius: float | None = None
    complexity: int = 5
    module_size: float = 100.0      # percent of the module cell
    module_spacing: float = 0.0     # px
    randomness: float | None = None
    animation: AnimationConfig | None = None
    smart_gradient: bool = True
    logo: LogoConfig | None = None

    def __post_init__(self):
        object.__setattr__(self, "error_correction_level", ErrorCorrectionLevel.parse(self.error_correction_level))
        object.__setattr__(self, "shape", _enum(Shape, self.shape))
        _check_range("size", self.size, 0, lo_open=True)
        _check_range("margin", self.margin, 0)
        _check_range("scale", self.scale, 0, lo_open=True)
        _check_range("complexity", self.complexity, 1, 10)
        _check_range("module_size", self.module_size, 50, 150)
        _check_range("module_spacing", self.module_spacing, 0, 10)
        _check_range("randomness", self.randomness, 0, 100)

    @property
    def wants_module_styling(self) -> bool:
        """True when modules must be re-drawn instead of copying the base raster."""
        return (
            self.shape is not Shape.SQUARE
            or bool(self.corner_radius)
            or self.module_size != 100
            or bool(self.module_spacing)
            or bool(self.randomness)
            or bool(self.animation and self.animation.enabled)
        )

    def evolve(self, **changes) -> "RenderConfig":
        return replace(self, **changes)

    # -- wire format ------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict | None) -> "RenderConfig":
        """Build a config from the camelCase option object (snake_case also accepted)."""
        data = dict(data or {})

        def pick(*keys, default=None):
            for k in keys:
                if k in data and data[k] is not None:
                    return data[k]
            return default

        kwargs = {}
        for attr, keys in _SCALAR_KEYS.items():
            value = pick(*keys)
            if value is not None:
                kwargs[attr] = value

        color = data.get("color")
        if color:
            gradient = color.get("gradient")
            kwargs["color"] = ColorConfig(
                dark=color.get("dark") or ColorConfig.dark,
                light=color.get("light") or ColorConfig.light,
                gradient=Gradient(
                    type=gradient.get("type") or GradientType.LINEAR,
                    colors=tuple(gradient.get("colors") or ()),
                ) if gradient else None,
            )

        animation = data.get("animation")
        if animation:
            kwargs["animation"] = AnimationConfig(
                enabled=bool(animation.get("enabled", False)),
                type=animation.get("type") or AnimationType.FADE,
                duration=animation.get("duration") or AnimationConfig.duration,
                delay=animation.get("delay") or 0.0,
                stagger=animation.get("stagger") if animation.get("stagger") is not None else AnimationConfig.stagger,
                direction=animation.get("direction") or AnimationDirection.FORWARD,
            )

        logo = data.get("logo")
        if logo and logo.get("src"):
            kwargs["logo"] = LogoConfig(src=logo["src"], size=logo.get("size"))

        return cls(**kwargs)

    def to_dict(self) -> dict:
        """camelCase echo of the resolved options."""
        out = {
            "size": self.size,
            "margin": self.margin,
            "scale": self.scale,
            "errorCorrectionLevel": self.error_correction_level.value,
            "color": {"dark": self.color.dark, "light": self.color.light},
            "shape": self.shape.value,
            "complexity": self.complexity,
            "moduleSize": self.module_size,
            "moduleSpacing": self.module_spacing,
            "smartGradient": self.smart_gradient,
        }
        if self.color.gradient:
            out["color"]["gradient"] = {
                "type": self.color.gradient.type.value,
                "colors": list(self.color.gradient.colors),
            }
        if self.corner_radius is not None:
            out["cornerRadius"] = self.corner_radius
        if self.randomness is not None:
            out["randomness"] = self.randomness
        if self.animation:
            a = self.animation
            out["animation"] = {
                "enabled": a.enabled, "type": a.type.value, "duration": a.duration,
                "delay": a.delay, "stagger": a.stagger, "direction": a.direction.value,
            }
        if self.logo:
            out["logo"] = {"src": self.logo.src, "size": self.logo.size}
        return out


_SCALAR_KEYS = {
    "size": ("size",),
    "margin": ("margin",),
    "scale": ("scale",),
    "error_correction_level": ("errorCorrectionLevel", "error_correction_level"),
    "shape": ("shape",),
    "corner_radius": ("cornerRadius", "corner_radius"),
    "complexity": ("complexity",),
    "module_size": ("moduleSize", "module_size"),
    "module_spacing": ("moduleSpacing", "module_spacing"),
    "randomness": ("randomness",),
    "smart_gradient": ("smartGradient", "smart_gradient"),
}


def resolve_config(config: RenderConfig | dict | None) -> RenderConfig:
    """Merge a partial option object (or None) with the defaults."""
    if config is None:
        return RenderConfig()
    if isinstance(config, RenderConfig):
        return config
    if isinstance(config, dict):
        return RenderConfig.from_dict(config)
    raise ValidationError(f"Unsupported config type: {type(config).__name__}")


def load_config(path: str | Path) -> RenderConfig:
    """Read a JSON option file into a RenderConfig."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError(f"Config file {path} must contain a JSON object")
    return RenderConfig.from_dict(data)
