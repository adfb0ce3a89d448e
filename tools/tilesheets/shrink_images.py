#!/usr/bin/env python3
"""Shrink large square block renders for upload."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from packages.tilesheet_core.errors import TilesheetError
from packages.tilesheet_core.imaging.shrink import (
    DEFAULT_MIN_SOURCE_SIZE,
    DEFAULT_PREFIX,
    DEFAULT_SHRINK_SIZE,
    shrink_directory,
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Shrink square renders with a linear-light box filter")
    parser.add_argument("src", type=Path, nargs="?", default=Path("work/shrink"), help="Source directory")
    parser.add_argument("--out", type=Path, default=Path("work/shrunk"), help="Output directory")
    parser.add_argument("--size", type=int, default=DEFAULT_SHRINK_SIZE, help="Output edge length")
    parser.add_argument(
        "--min-size",
        type=int,
        default=DEFAULT_MIN_SOURCE_SIZE,
        help="Smallest accepted source edge length",
    )
    parser.add_argument("--prefix", default=DEFAULT_PREFIX, help="Prefix for output file names")
    args = parser.parse_args()

    if not args.src.is_dir():
        print(f"ERR: source directory not found: {args.src}")
        return 1

    try:
        result = shrink_directory(
            args.src,
            args.out,
            size=args.size,
            min_source_size=args.min_size,
            prefix=args.prefix,
        )
    except TilesheetError as exc:
        print(f"ERR: {exc}")
        return 1

    print(f"Shrunk {len(result.written)} images into {args.out}")
    for path in result.written:
        print(path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
