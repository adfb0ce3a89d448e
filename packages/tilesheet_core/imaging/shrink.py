"""Batch shrinking of oversized square block renders."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from ..errors import TileImageError
from .color import decode_srgb, encode_srgb, fix_translucent
from .resample import resize

logger = getLogger("tilesheet_core.imaging.shrink")

DEFAULT_SHRINK_SIZE = 192
DEFAULT_MIN_SOURCE_SIZE = 384
DEFAULT_PREFIX = "Block "


@dataclass
class ShrinkResult:
    written: list[Path] = field(default_factory=list)


def shrink_file(
    src: Path,
    dst: Path,
    *,
    size: int = DEFAULT_SHRINK_SIZE,
    min_source_size: int = DEFAULT_MIN_SOURCE_SIZE,
) -> Path:
    try:
        with Image.open(src) as raw:
            raw.load()
            fixed = fix_translucent(raw)
    except (OSError, UnidentifiedImageError) as exc:
        raise TileImageError(f"Cannot read image {src}: {exc}", error_code="unreadable_image") from exc

    width, height = fixed.size
    if width != height:
        raise TileImageError(f"Image was not square: {src} ({width}x{height})", error_code="not_square")
    if width < min_source_size:
        raise TileImageError(
            f"Image dimensions are too small: {src} ({width}px < {min_source_size}px)",
            error_code="too_small",
        )

    shrunk = encode_srgb(resize(decode_srgb(fixed), size, size))
    dst.parent.mkdir(parents=True, exist_ok=True)
    shrunk.save(dst)
    return dst


def shrink_directory(
    src_root: Path,
    out_root: Path,
    *,
    size: int = DEFAULT_SHRINK_SIZE,
    min_source_size: int = DEFAULT_MIN_SOURCE_SIZE,
    prefix: str = DEFAULT_PREFIX,
) -> ShrinkResult:
    """Shrink every image below ``src_root`` into ``out_root`` as ``<prefix><name>``."""
    result = ShrinkResult()
    for path in sorted(p for p in src_root.rglob("*") if p.is_file()):
        logger.info("[SHRINK] %s", path.name)
        dst = out_root / f"{prefix}{path.name}"
        result.written.append(shrink_file(path, dst, size=size, min_source_size=min_source_size))
    return result
