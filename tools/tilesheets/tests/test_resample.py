#!/usr/bin/env python3

from __future__ import annotations

import unittest

from packages.tilesheet_core.imaging.color import LinearImage
from packages.tilesheet_core.imaging.resample import resize


def _uniform(size: int, pixel: tuple[float, float, float, float]) -> LinearImage:
    return LinearImage(size, size, [pixel] * (size * size))


def _indexed(size: int) -> LinearImage:
    return LinearImage(size, size, [(float(i), 0.0, 0.0, 1.0) for i in range(size * size)])


class ResampleTests(unittest.TestCase):
    def test_same_size_is_identity_copy(self) -> None:
        img = _indexed(3)
        out = resize(img, 3, 3)
        self.assertEqual(out.pixels, img.pixels)
        self.assertIsNot(out, img)
        self.assertIsNot(out.pixels, img.pixels)

    def test_shrinking_uniform_image_keeps_color(self) -> None:
        pixel = (0.2, 0.3, 0.4, 1.0)
        out = resize(_uniform(8, pixel), 2, 2)
        self.assertEqual(out.size, (2, 2))
        for got in out.pixels:
            for channel, want in zip(got, pixel):
                self.assertAlmostEqual(channel, want)

    def test_box_filter_averages_each_channel(self) -> None:
        img = LinearImage(
            2,
            2,
            [
                (1.0, 0.0, 0.0, 1.0),
                (0.0, 1.0, 0.0, 1.0),
                (0.0, 0.0, 1.0, 0.0),
                (0.0, 0.0, 0.0, 0.0),
            ],
        )
        (r, g, b, a), = resize(img, 1, 1).pixels
        self.assertAlmostEqual(r, 0.25)
        self.assertAlmostEqual(g, 0.25)
        self.assertAlmostEqual(b, 0.25)
        self.assertAlmostEqual(a, 0.5)

    def test_non_integer_ratio_uses_truncated_cell_bounds(self) -> None:
        out = resize(_indexed(3), 2, 2)
        # Cells are [0, 1) and [1, 3) on each axis.
        self.assertAlmostEqual(out.get(0, 0)[0], 0.0)
        self.assertAlmostEqual(out.get(1, 0)[0], (1 + 2) / 2)
        self.assertAlmostEqual(out.get(1, 1)[0], (4 + 5 + 7 + 8) / 4)

    def test_upscale_is_nearest_neighbour(self) -> None:
        img = _indexed(2)
        out = resize(img, 4, 4)
        self.assertEqual(out.get(0, 0), img.get(0, 0))
        self.assertEqual(out.get(1, 0), img.get(0, 0))
        self.assertEqual(out.get(2, 0), img.get(1, 0))
        self.assertEqual(out.get(3, 3), img.get(1, 1))

    def test_non_square_source_is_rejected(self) -> None:
        img = LinearImage(2, 1, [(0.0, 0.0, 0.0, 0.0)] * 2)
        with self.assertRaises(ValueError):
            resize(img, 1, 1)

    def test_non_square_target_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            resize(_indexed(4), 2, 8)


if __name__ == "__main__":
    unittest.main()
