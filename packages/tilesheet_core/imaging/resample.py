"""Square image resampling in linear premultiplied space."""

from __future__ import annotations

from .color import LinearImage, LinearPixel


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def _box_downscale(image: LinearImage, width: int, height: int) -> LinearImage:
    rw = image.width / width
    rh = image.height / height
    src = image.pixels
    stride = image.width
    out: list[LinearPixel] = []
    for y in range(height):
        y1, y2 = int(y * rh), int((y + 1) * rh)
        for x in range(width):
            x1, x2 = int(x * rw), int((x + 1) * rw)
            r = g = b = a = 0.0
            for yy in range(y1, y2):
                row = yy * stride
                for xx in range(x1, x2):
                    pr, pg, pb, pa = src[row + xx]
                    r += pr
                    g += pg
                    b += pb
                    a += pa
            m = 1.0 / ((x2 - x1) * (y2 - y1))
            out.append((r * m, g * m, b * m, a * m))
    return LinearImage(width, height, out)


def _nearest_upscale(image: LinearImage, width: int, height: int) -> LinearImage:
    rw = image.width / width
    rh = image.height / height
    out: list[LinearPixel] = []
    for y in range(height):
        yy = int(y * rh)
        for x in range(width):
            out.append(image.get(int(x * rw), yy))
    return LinearImage(width, height, out)


def resize(image: LinearImage, width: int, height: int) -> LinearImage:
    """Resize a square linear image to a square target.

    Shrinking uses a box filter, growing uses nearest neighbour. Mixed
    shrink/grow requests and non-square inputs are rejected.
    """
    if image.width != image.height:
        raise ValueError(f"Source image must be square, got {image.width}x{image.height}")
    if width != height:
        raise ValueError(f"Target size must be square, got {width}x{height}")
    if width < 1:
        raise ValueError(f"Target size must be positive, got {width}")
    if _sign(width - image.width) != _sign(height - image.height):
        raise ValueError("Resize must shrink or grow both axes together")

    if width < image.width:
        return _box_downscale(image, width, height)
    if width > image.width:
        return _nearest_upscale(image, width, height)
    return image.copy()
