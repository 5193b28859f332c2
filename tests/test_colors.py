"""Tests for WCAG color math and the smart-color policy."""

import unittest

from qrstyle.colors import (
    adjust_for_contrast,
    contrast_ratio,
    luminance,
    optimize_colors,
    parse_hex,
    resolve_rgb,
)
from qrstyle.config import ColorConfig, RenderConfig
from qrstyle.logging import AUDIT


class TestParsing(unittest.TestCase):

    def test_parse_hex_accepts_optional_hash(self):
        self.assertEqual(parse_hex("#ff8000"), (255, 128, 0))
        self.assertEqual(parse_hex("FF8000"), (255, 128, 0))

    def test_parse_hex_rejects_garbage(self):
        for bad in ("", "#fff", "red", "#gg0000", None, 42):
            self.assertIsNone(parse_hex(bad), bad)

    def test_resolve_rgb_falls_back(self):
        self.assertEqual(resolve_rgb("nope", (1, 2, 3)), (1, 2, 3))
        self.assertEqual(resolve_rgb("#010203", (9, 9, 9)), (1, 2, 3))


class TestLuminance(unittest.TestCase):

    def test_extremes(self):
        self.assertAlmostEqual(luminance("#ffffff"), 1.0, places=6)
        self.assertAlmostEqual(luminance("#000000"), 0.0, places=6)

    def test_invalid_color_counts_as_black(self):
        self.assertEqual(luminance("not-a-color"), 0.0)

    def test_ratio_black_on_white_is_21(self):
        self.assertAlmostEqual(contrast_ratio(luminance("#000000"), luminance("#ffffff")), 21.0, places=6)

    def test_ratio_is_symmetric_and_at_least_one(self):
        a, b = luminance("#336699"), luminance("#cccccc")
        self.assertAlmostEqual(contrast_ratio(a, b), contrast_ratio(b, a))
        self.assertGreaterEqual(contrast_ratio(a, a), 1.0)


class TestAdjustForContrast(unittest.TestCase):

    def setUp(self):
        self.white = luminance("#ffffff")

    def test_invalid_input_short_circuits(self):
        self.assertEqual(adjust_for_contrast("bogus", self.white, 4.5, darken=True), "#000000")
        self.assertEqual(adjust_for_contrast("bogus", self.white, 1.1, darken=False), "#ffffff")

    def test_darkening_reaches_target(self):
        out = adjust_for_contrast("#aaaaaa", self.white, 4.5, darken=True)
        self.assertGreaterEqual(contrast_ratio(luminance(out), self.white), 4.5)

    def test_darkening_is_monotonic_in_steps(self):
        ratios = [
            contrast_ratio(luminance(adjust_for_contrast("#e0c0a0", self.white, 21, darken=True, max_steps=k)),
                           self.white)
            for k in range(0, 21)
        ]
        self.assertEqual(ratios, sorted(ratios))

    def test_lightening_is_monotonic_in_steps(self):
        black = luminance("#000000")
        ratios = [
            contrast_ratio(luminance(adjust_for_contrast("#203040", black, 21, darken=False, max_steps=k)), black)
            for k in range(0, 21)
        ]
        self.assertEqual(ratios, sorted(ratios))

    def test_already_compliant_color_is_returned_unchanged(self):
        self.assertEqual(adjust_for_contrast("#000000", self.white, 4.5, darken=True), "#000000")


class TestOptimizeColors(unittest.TestCase):

    def test_weak_dark_is_strengthened(self):
        config = RenderConfig(color=ColorConfig(dark="#aaaaaa"))
        out = optimize_colors(config)
        self.assertNotEqual(out.color.dark, "#aaaaaa")
        self.assertGreaterEqual(contrast_ratio(luminance(out.color.dark), 1.0), 4.5)

    def test_dark_correction_is_audited(self):
        with self.assertLogs("qrstyle.colors", level=AUDIT) as cm:
            optimize_colors(RenderConfig(color=ColorConfig(dark="#aaaaaa")))
        self.assertEqual([(r.event, r.ctx["role"]) for r in cm.records], [("colors.optimized", "dark")])

    def test_light_above_limit_already_meets_target(self):
        # #888888 is 3.54:1 against white: over the 1.2 limit, yet it already
        # satisfies the >= 1.1 walk target, so it comes back unchanged.
        self.assertGreater(contrast_ratio(luminance("#888888"), 1.0), 1.2)
        config = RenderConfig(color=ColorConfig(light="#888888"))
        with self.assertNoLogs("qrstyle.colors", level=AUDIT):
            out = optimize_colors(config)
        self.assertIs(out, config)
        self.assertEqual(out.color.light, "#888888")

    def test_disabled_by_smart_gradient_false(self):
        config = RenderConfig(color=ColorConfig(dark="#aaaaaa"), smart_gradient=False)
        self.assertIs(optimize_colors(config), config)

    def test_compliant_colors_untouched(self):
        config = RenderConfig()
        self.assertIs(optimize_colors(config), config)

    def test_input_config_not_mutated(self):
        config = RenderConfig(color=ColorConfig(dark="#aaaaaa"))
        optimize_colors(config)
        self.assertEqual(config.color.dark, "#aaaaaa")


if __name__ == "__main__":
    unittest.main()
