"""sRGB <-> linear premultiplied-alpha conversions.

Linear images are kept as flat row-major lists of float RGBA tuples so that
averaging during resampling happens in linear light.
"""

from __future__ import annotations

from dataclasses import dataclass
import math

from PIL import Image

LinearPixel = tuple[float, float, float, float]
SrgbPixel = tuple[int, int, int, int]

_DECODE_THRESHOLD = 0.04045
_ENCODE_THRESHOLD = 0.0031308
_ALPHA_EPSILON = 0.0001
_TRANSPARENT: LinearPixel = (0.0, 0.0, 0.0, 0.0)


@dataclass
class LinearImage:
    """Linear-light, premultiplied RGBA image."""

    width: int
    height: int
    pixels: list[LinearPixel]

    def __post_init__(self) -> None:
        if len(self.pixels) != self.width * self.height:
            raise ValueError(
                f"Pixel count {len(self.pixels)} does not match {self.width}x{self.height}"
            )

    @classmethod
    def blank(cls, width: int, height: int) -> "LinearImage":
        return cls(width, height, [_TRANSPARENT] * (width * height))

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def get(self, x: int, y: int) -> LinearPixel:
        return self.pixels[y * self.width + x]

    def copy(self) -> "LinearImage":
        return LinearImage(self.width, self.height, list(self.pixels))


def _decode_channel(value: int) -> float:
    x = value * (1.0 / 255.0)
    if x <= _DECODE_THRESHOLD:
        return x / 12.92
    return ((x + 0.055) / 1.055) ** 2.4


def _encode_channel(value: float) -> int:
    if value <= _ENCODE_THRESHOLD:
        x = value * 12.92
    else:
        x = value ** (1.0 / 2.4) * 1.055 - 0.055
    return int(max(0.0, min(255.0, math.floor(x * 255.0 + 0.5))))


# 8-bit inputs only ever take 256 values.
_DECODE_TABLE = tuple(_decode_channel(v) for v in range(256))


def decode_pixel(pixel: SrgbPixel) -> LinearPixel:
    r, g, b, a = pixel
    alpha = _DECODE_TABLE[a]
    return (
        _DECODE_TABLE[r] * alpha,
        _DECODE_TABLE[g] * alpha,
        _DECODE_TABLE[b] * alpha,
        alpha,
    )


def encode_pixel(pixel: LinearPixel) -> SrgbPixel:
    r, g, b, a = pixel
    if a <= _ALPHA_EPSILON:
        return (0, 0, 0, 0)
    return (
        _encode_channel(r / a),
        _encode_channel(g / a),
        _encode_channel(b / a),
        _encode_channel(a),
    )


def _unmultiply(value: int, alpha: int) -> int:
    return min(255, value * 255 // alpha)


def fix_translucent(image: Image.Image) -> Image.Image:
    """Undo upstream un-premultiplication on partially transparent pixels.

    Returns a new RGBA image; fully opaque and fully transparent pixels are
    left untouched.
    """
    rgba = image.convert("RGBA")
    data = bytearray(rgba.tobytes())
    for i in range(0, len(data), 4):
        a = data[i + 3]
        if a == 0 or a == 255:
            continue
        data[i] = _unmultiply(data[i], a)
        data[i + 1] = _unmultiply(data[i + 1], a)
        data[i + 2] = _unmultiply(data[i + 2], a)
    return Image.frombytes("RGBA", rgba.size, bytes(data))


def decode_srgb(image: Image.Image) -> LinearImage:
    rgba = image.convert("RGBA")
    width, height = rgba.size
    data = rgba.tobytes()
    pixels = [decode_pixel((data[i], data[i + 1], data[i + 2], data[i + 3])) for i in range(0, len(data), 4)]
    return LinearImage(width, height, pixels)


def encode_srgb(image: LinearImage) -> Image.Image:
    data = bytearray()
    for pixel in image.pixels:
        data.extend(encode_pixel(pixel))
    return Image.frombytes("RGBA", image.size, bytes(data))


def load_tile_image(path) -> LinearImage:
    """Open an 8-bit sRGB tile, repair translucency and decode it to linear light."""
    with Image.open(path) as raw:
        raw.load()
        return decode_srgb(fix_translucent(raw))
