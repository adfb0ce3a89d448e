#!/usr/bin/env python3

from __future__ import annotations

import unittest

from PIL import Image

from packages.tilesheet_core.imaging.color import (
    LinearImage,
    decode_pixel,
    decode_srgb,
    encode_pixel,
    encode_srgb,
    fix_translucent,
)


class ColorPipelineTests(unittest.TestCase):
    def test_opaque_pixels_round_trip_exactly(self) -> None:
        for v in range(256):
            pixel = (v, 255 - v, v // 2, 255)
            self.assertEqual(encode_pixel(decode_pixel(pixel)), pixel)

    def test_transparent_black_round_trips(self) -> None:
        self.assertEqual(encode_pixel(decode_pixel((0, 0, 0, 0))), (0, 0, 0, 0))

    def test_zero_alpha_encodes_to_transparent_black(self) -> None:
        self.assertEqual(encode_pixel(decode_pixel((200, 10, 30, 0))), (0, 0, 0, 0))
        self.assertEqual(encode_pixel((0.5, 0.5, 0.5, 0.00005)), (0, 0, 0, 0))

    def test_partial_alpha_round_trip_within_quantization(self) -> None:
        for pixel in ((200, 100, 50, 128), (1, 254, 77, 3), (90, 90, 90, 250)):
            out = encode_pixel(decode_pixel(pixel))
            for got, want in zip(out, pixel):
                self.assertLessEqual(abs(got - want), 1, msg=f"{pixel} -> {out}")

    def test_decode_premultiplies_color_by_linear_alpha(self) -> None:
        r, g, b, a = decode_pixel((255, 255, 255, 128))
        self.assertAlmostEqual(r, a)
        self.assertAlmostEqual(g, a)
        self.assertAlmostEqual(b, a)
        self.assertLess(a, 0.5)

    def test_decode_uses_linear_segment_near_black(self) -> None:
        r, _, _, a = decode_pixel((10, 0, 0, 255))
        self.assertAlmostEqual(a, 1.0)
        self.assertAlmostEqual(r, (10 / 255) / 12.92)

    def test_fix_translucent_unmultiplies_partial_alpha_only(self) -> None:
        img = Image.new("RGBA", (3, 1))
        img.putpixel((0, 0), (64, 32, 255, 128))
        img.putpixel((1, 0), (10, 20, 30, 255))
        img.putpixel((2, 0), (10, 20, 30, 0))

        fixed = fix_translucent(img)

        self.assertEqual(fixed.getpixel((0, 0)), (127, 63, 255, 128))
        self.assertEqual(fixed.getpixel((1, 0)), (10, 20, 30, 255))
        self.assertEqual(fixed.getpixel((2, 0)), (10, 20, 30, 0))
        self.assertEqual(img.getpixel((0, 0)), (64, 32, 255, 128))

    def test_image_round_trip(self) -> None:
        img = Image.new("RGBA", (2, 2), (12, 200, 99, 255))
        img.putpixel((1, 1), (0, 0, 0, 0))

        linear = decode_srgb(img)
        self.assertIsInstance(linear, LinearImage)
        self.assertEqual(linear.size, (2, 2))

        back = encode_srgb(linear)
        self.assertEqual(back.mode, "RGBA")
        self.assertEqual(back.getpixel((0, 0)), (12, 200, 99, 255))
        self.assertEqual(back.getpixel((1, 1)), (0, 0, 0, 0))

    def test_linear_image_rejects_wrong_pixel_count(self) -> None:
        with self.assertRaises(ValueError):
            LinearImage(2, 2, [(0.0, 0.0, 0.0, 0.0)])


if __name__ == "__main__":
    unittest.main()
