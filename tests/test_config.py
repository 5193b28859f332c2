"""Tests for RenderConfig defaults, validation and dict/JSON loading."""

import json
import tempfile
import unittest
from pathlib import Path

from qrstyle.config import (
    AnimationConfig,
    AnimationDirection,
    AnimationType,
    ErrorCorrectionLevel,
    GradientType,
    RenderConfig,
    Shape,
    load_config,
    resolve_config,
)
from qrstyle.errors import ValidationError


class TestDefaults(unittest.TestCase):

    def test_defaults(self):
        c = RenderConfig()
        self.assertEqual(c.size, 200)
        self.assertEqual(c.margin, 4)
        self.assertEqual(c.scale, 4)
        self.assertIs(c.error_correction_level, ErrorCorrectionLevel.MEDIUM)
        self.assertEqual((c.color.dark, c.color.light), ("#000000", "#ffffff"))
        self.assertIs(c.shape, Shape.SQUARE)
        self.assertEqual(c.complexity, 5)
        self.assertEqual(c.module_size, 100)
        self.assertTrue(c.smart_gradient)
        self.assertFalse(c.wants_module_styling)

    def test_animation_defaults(self):
        a = AnimationConfig()
        self.assertFalse(a.enabled)
        self.assertIs(a.type, AnimationType.FADE)
        self.assertEqual((a.duration, a.delay, a.stagger), (1000.0, 0.0, 50.0))
        self.assertIs(a.direction, AnimationDirection.FORWARD)

    def test_resolve_none_gives_defaults(self):
        self.assertEqual(resolve_config(None), RenderConfig())


class TestValidation(unittest.TestCase):

    def test_ranges(self):
        for bad in ({"size": 0}, {"margin": -1}, {"complexity": 11}, {"complexity": 0},
                    {"module_size": 49}, {"module_size": 151}, {"module_spacing": 11},
                    {"randomness": 101}):
            with self.assertRaises(ValidationError, msg=bad):
                RenderConfig(**bad)

    def test_unknown_enum_values(self):
        with self.assertRaises(ValidationError):
            RenderConfig(shape="blob")
        with self.assertRaises(ValidationError):
            RenderConfig(error_correction_level="Z")

    def test_validation_error_is_value_error(self):
        with self.assertRaises(ValueError):
            RenderConfig(size=-5)

    def test_ecc_parse_letter_or_name(self):
        self.assertIs(ErrorCorrectionLevel.parse("h"), ErrorCorrectionLevel.HIGH)
        self.assertIs(ErrorCorrectionLevel.parse("quartile"), ErrorCorrectionLevel.QUARTILE)

    def test_module_styling_triggers(self):
        self.assertTrue(RenderConfig(shape="circle").wants_module_styling)
        self.assertTrue(RenderConfig(corner_radius=2).wants_module_styling)
        self.assertTrue(RenderConfig(module_size=80).wants_module_styling)
        self.assertTrue(RenderConfig(module_spacing=2).wants_module_styling)
        self.assertTrue(RenderConfig(randomness=5).wants_module_styling)
        self.assertTrue(RenderConfig(animation=AnimationConfig(enabled=True)).wants_module_styling)
        self.assertFalse(RenderConfig(animation=AnimationConfig(enabled=False)).wants_module_styling)


class TestDictLoading(unittest.TestCase):

    def test_camel_and_snake_case_agree(self):
        camel = RenderConfig.from_dict({
            "errorCorrectionLevel": "H", "cornerRadius": 3, "moduleSize": 90,
            "moduleSpacing": 1, "smartGradient": False, "shape": "rounded",
        })
        snake = RenderConfig.from_dict({
            "error_correction_level": "H", "corner_radius": 3, "module_size": 90,
            "module_spacing": 1, "smart_gradient": False, "shape": "rounded",
        })
        self.assertEqual(camel, snake)

    def test_nested_objects(self):
        c = RenderConfig.from_dict({
            "color": {"dark": "#112233", "gradient": {"type": "radial", "colors": ["#ff0000", "#0000ff"]}},
            "animation": {"enabled": True, "type": "pulse", "direction": "alternate"},
            "logo": {"src": "logo.png", "size": 40},
        })
        self.assertEqual(c.color.dark, "#112233")
        self.assertEqual(c.color.light, "#ffffff")
        self.assertIs(c.color.gradient.type, GradientType.RADIAL)
        self.assertEqual(c.color.gradient.colors, ("#ff0000", "#0000ff"))
        self.assertIs(c.animation.type, AnimationType.PULSE)
        self.assertEqual(c.animation.stagger, 50.0)
        self.assertEqual(c.logo.size, 40)

    def test_to_dict_echoes_level_letter(self):
        d = RenderConfig(size=300, error_correction_level="HIGH").to_dict()
        self.assertEqual(d["size"], 300)
        self.assertEqual(d["errorCorrectionLevel"], "H")

    def test_to_dict_from_dict_preserves_config(self):
        c = RenderConfig.from_dict({"shape": "star", "randomness": 10,
                                    "color": {"gradient": {"colors": ["#000000", "#333333"]}}})
        self.assertEqual(RenderConfig.from_dict(c.to_dict()), c)

    def test_load_config_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "opts.json"
            path.write_text(json.dumps({"size": 256, "shape": "hexagon"}))
            c = load_config(path)
        self.assertEqual(c.size, 256)
        self.assertIs(c.shape, Shape.HEXAGON)

    def test_load_config_rejects_bad_json(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "opts.json"
            path.write_text("{not json")
            with self.assertRaises(ValidationError):
                load_config(path)


if __name__ == "__main__":
    unittest.main()
