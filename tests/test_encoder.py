"""Tests for the QR encoder adapter (matrix, base raster, plain SVG)."""

import unittest

from qrstyle.config import ErrorCorrectionLevel
from qrstyle.encoder import encode_matrix, encode_to_raster, encode_to_vector, raster_scale


class TestMatrix(unittest.TestCase):

    def test_version_one_for_short_text(self):
        m = encode_matrix("hello", ErrorCorrectionLevel.MEDIUM)
        self.assertEqual(len(m), 21)
        self.assertTrue(all(len(row) == 21 for row in m))

    def test_finder_pattern_corner(self):
        m = encode_matrix("hello")
        self.assertTrue(m[0][0])
        self.assertTrue(m[6][6])
        self.assertFalse(m[1][1])

    def test_higher_level_needs_more_modules_for_long_text(self):
        text = "https://example.com/" + "x" * 60
        low = encode_matrix(text, ErrorCorrectionLevel.LOW)
        high = encode_matrix(text, ErrorCorrectionLevel.HIGH)
        self.assertGreater(len(high), len(low))


class TestRaster(unittest.TestCase):

    def test_width_fills_requested_size(self):
        img = encode_to_raster("hello", width=200)
        self.assertEqual(img.size, (200, 200))
        self.assertEqual(img.mode, "RGBA")

    def test_quiet_zone_uses_light_color(self):
        img = encode_to_raster("hello", width=200, dark="#102030", light="#f0e0d0")
        self.assertEqual(img.getpixel((0, 0)), (0xF0, 0xE0, 0xD0, 255))
        # 21 + 8 modules over 200 px; pixel 30 lies in the top-left finder.
        self.assertEqual(img.getpixel((30, 30)), (0x10, 0x20, 0x30, 255))

    def test_small_width_falls_back_to_scale(self):
        self.assertEqual(raster_scale(21, 10, 4, 4), 4)
        img = encode_to_raster("hello", width=10, scale=4)
        self.assertEqual(img.size, (116, 116))

    def test_zero_margin(self):
        img = encode_to_raster("hello", width=210, margin=0)
        self.assertEqual(img.getpixel((0, 0)), (0, 0, 0, 255))

    def test_invalid_colors_fall_back(self):
        img = encode_to_raster("hello", width=200, dark="oops", light="nope")
        self.assertEqual(img.getpixel((0, 0)), (255, 255, 255, 255))
        self.assertEqual(img.getpixel((30, 30)), (0, 0, 0, 255))


class TestVector(unittest.TestCase):

    def test_svg_markup(self):
        svg = encode_to_vector("hello", width=200)
        self.assertIn("<svg", svg)
        self.assertTrue(svg.rstrip().endswith("</svg>"))
        self.assertFalse(svg.startswith("<?xml"))


if __name__ == "__main__":
    unittest.main()
