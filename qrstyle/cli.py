"""qrstyle CLI: render styled QR codes, plain SVGs, scan checks and payload strings."""

import argparse
import asyncio
import sys
from pathlib import Path

from PIL import Image

from qrstyle.config import (
    AnimationConfig,
    AnimationDirection,
    AnimationType,
    ColorConfig,
    Gradient,
    GradientType,
    LogoConfig,
    RenderConfig,
    Shape,
    load_config,
)
from qrstyle.errors import QRStyleError
from qrstyle.logging import audit, get_logger, setup_logging

log = get_logger("cli")

ECC_CHOICES = ["L", "M", "Q", "H"]


def _color_overrides(args, base: ColorConfig) -> ColorConfig:
    gradient = base.gradient
    gradient_colors = getattr(args, "gradient_color", None)
    gradient_kind = getattr(args, "gradient", None)
    if gradient_colors:
        gradient_type = gradient_kind or (gradient.type if gradient else GradientType.LINEAR)
        gradient = Gradient(type=gradient_type, colors=tuple(gradient_colors))
    elif gradient_kind and gradient:
        gradient = Gradient(type=gradient_kind, colors=gradient.colors)
    return ColorConfig(
        dark=args.dark or base.dark,
        light=args.light or base.light,
        gradient=gradient,
    )


def _animation_overrides(args, base: AnimationConfig | None) -> AnimationConfig | None:
    if not args.animate and base is None:
        return None
    base = base or AnimationConfig()
    return AnimationConfig(
        enabled=True if args.animate else base.enabled,
        type=args.animate or base.type,
        duration=args.duration if args.duration is not None else base.duration,
        delay=args.delay if args.delay is not None else base.delay,
        stagger=args.stagger if args.stagger is not None else base.stagger,
        direction=args.direction or base.direction,
    )


def build_config(args) -> RenderConfig:
    """Config file first (if any), then every flag that was actually given."""
    config = load_config(args.config) if getattr(args, "config", None) else RenderConfig()

    changes = {}
    for attr in ("size", "margin", "scale", "corner_radius", "complexity",
                 "module_size", "module_spacing", "randomness"):
        value = getattr(args, attr, None)
        if value is not None:
            changes[attr] = value
    if args.ecc:
        changes["error_correction_level"] = args.ecc
    if getattr(args, "shape", None):
        changes["shape"] = args.shape

    changes["color"] = _color_overrides(args, config.color)

    if hasattr(args, "animate"):
        changes["animation"] = _animation_overrides(args, config.animation)
    if getattr(args, "no_smart_gradient", False):
        changes["smart_gradient"] = False
    if getattr(args, "logo", None):
        changes["logo"] = LogoConfig(src=args.logo, size=args.logo_size)
    elif getattr(args, "logo_size", None) is not None and config.logo:
        changes["logo"] = LogoConfig(src=config.logo.src, size=args.logo_size)

    return config.evolve(**changes)


def cmd_generate(args):
    """Render a styled QR code to PNG or JPEG."""
    from qrstyle.generator import export_raster, generate

    config = build_config(args)
    output = Path(args.output)

    asyncio.run(export_raster(args.text, config, file_name=output, fmt=args.format))
    img = Image.open(output)
    print(f"Generated: {output} ({img.size[0]}x{img.size[1]}, shape={config.shape.value}, "
          f"ecc={config.error_correction_level.value})")

    if args.verify:
        from qrstyle.verify import verify

        # Verify the lossless render even when writing JPEG.
        result = asyncio.run(generate(args.text, config))
        return _report_scans(verify(result.image, expected_data=args.text))
    return 0


def cmd_svg(args):
    """Render a plain (unstyled) SVG."""
    from qrstyle.generator import export_svg

    config = build_config(args)
    svg = asyncio.run(export_svg(args.text, config, file_name=args.output))
    print(f"Generated: {args.output} ({len(svg)} bytes)")
    return 0


def _report_scans(results) -> int:
    all_pass = True
    for r in results:
        status = "PASS" if r.success else "FAIL"
        if not r.success:
            all_pass = False
        print(f"  [{r.decoder:12s}] {status} | {r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")
    return 0 if all_pass else 1


def cmd_verify(args):
    """Verify a QR code image."""
    from qrstyle.verify import verify

    img = Image.open(args.image)
    return _report_scans(verify(img, expected_data=args.expected))


def cmd_payload(args):
    """Print a structured payload string."""
    from qrstyle.payloads import build_payload

    fields = {}
    for item in args.fields:
        key, sep, value = item.partition("=")
        if not sep:
            raise QRStyleError(f"Expected key=value, got {item!r}")
        fields[key.replace("-", "_")] = value
    print(build_payload(args.kind, **fields))
    return 0


def _add_encoder_flags(p):
    p.add_argument("--config", default=None, help="JSON option file (flags override it)")
    p.add_argument("--size", type=int, default=None, help="Output width in px (default 200)")
    p.add_argument("--margin", type=int, default=None, help="Quiet zone in modules (default 4)")
    p.add_argument("--scale", type=int, default=None, help="Px per module when --size is too small")
    p.add_argument("-e", "--ecc", default=None, choices=ECC_CHOICES, help="Error correction level")
    p.add_argument("--dark", default=None, help="Dark module color (hex)")
    p.add_argument("--light", default=None, help="Light/background color (hex)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qrstyle", description="Styled QR code renderer")

    # Global logging flags
    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")
    parser.add_argument("--json-logs", action="store_true", help="JSON log lines on the console")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- generate ---
    p_gen = subparsers.add_parser("generate", help="Render a styled QR code")
    p_gen.add_argument("text", help="Text or URL to encode")
    p_gen.add_argument("-o", "--output", default="output/qrcode.png", help="Output file path")
    p_gen.add_argument("--format", default="png", choices=["png", "jpeg"], help="Raster format")
    _add_encoder_flags(p_gen)
    p_gen.add_argument("--gradient", default=None, choices=[g.value for g in GradientType],
                       help="Gradient type for modules and background")
    p_gen.add_argument("--gradient-color", action="append", default=None,
                       help="Gradient color stop (repeatable, in order)")
    p_gen.add_argument("--shape", default=None, choices=[s.value for s in Shape], help="Module shape")
    p_gen.add_argument("--corner-radius", type=float, default=None, help="Corner radius for rounded modules (px)")
    p_gen.add_argument("--complexity", type=int, default=None, help="Visual complexity 1-10 (default 5)")
    p_gen.add_argument("--module-size", type=float, default=None, help="Module size 50-150 percent")
    p_gen.add_argument("--module-spacing", type=float, default=None, help="Module spacing 0-10 px")
    p_gen.add_argument("--randomness", type=float, default=None, help="Per-module jitter 0-100")
    p_gen.add_argument("--animate", default=None, choices=[a.value for a in AnimationType],
                       help="Enable the reveal animation (one frame sampled at render time)")
    p_gen.add_argument("--duration", type=float, default=None, help="Animation duration (ms)")
    p_gen.add_argument("--delay", type=float, default=None, help="Animation start delay (ms)")
    p_gen.add_argument("--stagger", type=float, default=None, help="Per-module animation stagger (ms)")
    p_gen.add_argument("--direction", default=None, choices=[d.value for d in AnimationDirection],
                       help="Animation order")
    p_gen.add_argument("--no-smart-gradient", action="store_true", help="Keep colors as given")
    p_gen.add_argument("--logo", default=None, help="Logo path, data URI or http(s) URL")
    p_gen.add_argument("--logo-size", type=float, default=None, help="Logo side in px (default 20%% of size)")
    p_gen.add_argument("--verify", action="store_true", help="Scan the result with OpenCV")

    # --- svg ---
    p_svg = subparsers.add_parser("svg", help="Render a plain SVG (no module styling)")
    p_svg.add_argument("text", help="Text or URL to encode")
    p_svg.add_argument("-o", "--output", default="output/qrcode.svg", help="Output file path")
    _add_encoder_flags(p_svg)

    # --- verify ---
    p_ver = subparsers.add_parser("verify", help="Verify a QR code image")
    p_ver.add_argument("image", help="Path to QR code image")
    p_ver.add_argument("--expected", default=None, help="Expected decoded data (fails if mismatch)")

    # --- payload ---
    p_pay = subparsers.add_parser("payload", help="Build a structured payload string")
    p_pay.add_argument("kind", help="text, contact, wifi, email, sms, phone or location")
    p_pay.add_argument("fields", nargs="*", help="key=value pairs, e.g. ssid=Home password=secret")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging before any command runs
    level = "DEBUG" if args.verbose else "INFO"
    setup_logging(level=level, log_file=args.log_file, json_format=args.json_logs)
    audit("cli.start", logger=log, command=args.command, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        return 1

    commands = {
        "generate": cmd_generate,
        "svg": cmd_svg,
        "verify": cmd_verify,
        "payload": cmd_payload,
    }
    try:
        code = commands[args.command](args)
    except QRStyleError as e:
        log.error("%s", e)
        print(f"Error: {e}", file=sys.stderr)
        code = 2
    audit("cli.done", logger=log, command=args.command, exit_code=code)
    return code


if __name__ == "__main__":
    sys.exit(main())
