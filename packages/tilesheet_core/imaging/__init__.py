"""Linear-light image helpers for tilesheet compositing."""

from .color import (
    LinearImage,
    decode_pixel,
    decode_srgb,
    encode_pixel,
    encode_srgb,
    fix_translucent,
    load_tile_image,
)
from .resample import resize
from .shrink import shrink_directory, shrink_file

__all__ = [
    "LinearImage",
    "decode_pixel",
    "decode_srgb",
    "encode_pixel",
    "encode_srgb",
    "fix_translucent",
    "load_tile_image",
    "resize",
    "shrink_directory",
    "shrink_file",
]
