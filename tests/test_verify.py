"""Tests for OpenCV scan verification."""

import unittest

import numpy as np
from PIL import Image

from qrstyle.encoder import encode_to_raster
from qrstyle.verify import scan_opencv, verify


class TestVerify(unittest.TestCase):

    def setUp(self):
        self.image = encode_to_raster("scan me", width=300)

    def test_plain_code_scans(self):
        result = scan_opencv(self.image)
        self.assertTrue(result.success, result.error)
        self.assertEqual(result.decoded_data, "scan me")
        self.assertEqual(result.decoder, "opencv")

    def test_mismatch_marks_failure(self):
        results = verify(self.image, expected_data="something else")
        self.assertFalse(results[0].success)
        self.assertIn("Data mismatch", results[0].error)

    def test_blank_image_fails(self):
        result = scan_opencv(Image.new("RGB", (200, 200), (255, 255, 255)))
        self.assertFalse(result.success)
        self.assertEqual(result.error, "No QR code detected")

    def test_transparent_background_is_flattened_onto_white(self):
        arr = np.array(self.image)
        light = arr[..., 0] > 128
        arr[light] = (0, 0, 0, 0)  # invisible black: only the alpha says "background"
        self.assertTrue(scan_opencv(Image.fromarray(arr)).success)


if __name__ == "__main__":
    unittest.main()
