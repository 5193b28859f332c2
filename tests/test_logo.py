"""Tests for logo loading and centered compositing (no network access)."""

import asyncio
import base64
import io
import tempfile
import unittest
from pathlib import Path

from PIL import Image

from qrstyle.errors import LogoLoadError
from qrstyle.logo import composite_logo, decode_logo, load_logo
from qrstyle.surface import Surface


def _png_bytes(color=(255, 0, 0), size=(10, 10)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


class TestLoadLogo(unittest.TestCase):

    def test_loads_from_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "logo.png"
            path.write_bytes(_png_bytes())
            img = asyncio.run(load_logo(str(path)))
        self.assertEqual(img.mode, "RGBA")
        self.assertEqual(img.size, (10, 10))

    def test_loads_from_data_uri(self):
        uri = "data:image/png;base64," + base64.b64encode(_png_bytes((0, 0, 255))).decode("ascii")
        img = asyncio.run(load_logo(uri))
        self.assertEqual(img.getpixel((3, 3)), (0, 0, 255, 255))

    def test_missing_file_raises(self):
        with self.assertRaises(LogoLoadError):
            asyncio.run(load_logo("/nonexistent/path/logo.png"))

    def test_empty_source_raises(self):
        with self.assertRaises(LogoLoadError):
            asyncio.run(load_logo(""))

    def test_bad_base64_raises(self):
        with self.assertRaises(LogoLoadError):
            asyncio.run(load_logo("data:image/png;base64,@@@not-base64@@@"))

    def test_non_image_bytes_raise(self):
        with self.assertRaises(LogoLoadError):
            decode_logo(b"definitely not an image")


class TestCompositeLogo(unittest.TestCase):

    def setUp(self):
        self.surface = Surface(200, 200)
        self.surface.fill_rect(0, 0, 200, 200, (0, 0, 0))

    def test_default_size_is_one_fifth_of_canvas(self):
        x, y, side = composite_logo(self.surface, Image.new("RGBA", (10, 10), (255, 0, 0, 255)))
        self.assertEqual((x, y, side), (80.0, 80.0, 40.0))

    def test_plate_then_logo(self):
        composite_logo(self.surface, Image.new("RGBA", (50, 50), (255, 0, 0, 255)), size=50)
        px = self.surface.pixels()
        self.assertEqual(tuple(px[100, 100]), (255, 0, 0, 255))   # logo
        self.assertEqual(tuple(px[72, 72]), (255, 255, 255, 255))  # plate margin
        self.assertEqual(tuple(px[65, 65]), (0, 0, 0, 255))        # untouched

    def test_plate_is_side_plus_both_margins(self):
        composite_logo(self.surface, Image.new("RGBA", (50, 50), (255, 0, 0, 255)), size=50)
        row = self.surface.pixels()[100]
        white = [x for x in range(200) if tuple(row[x][:3]) != (0, 0, 0)]
        self.assertEqual((white[0], white[-1]), (70, 129))
        self.assertEqual(len(white), 60)

    def test_surface_state_restored(self):
        composite_logo(self.surface, Image.new("RGBA", (4, 4)), size=20)
        self.assertEqual(self.surface.alpha, 1.0)


if __name__ == "__main__":
    unittest.main()
