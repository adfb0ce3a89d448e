"""Local tile directory scanning and name normalization."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from pathlib import Path

from ..errors import DuplicateTileError, IllegalTileNameError

logger = getLogger("tilesheet_core.sheets.scan")

RENAMES_FILENAME = "renames.txt"
FORBIDDEN_NAME_CHARS = frozenset("_[]")


@dataclass(frozen=True)
class ScannedTile:
    name: str
    path: Path


def validate_tile_name(name: str, path: Path | None = None) -> str:
    if not name or any(ch in FORBIDDEN_NAME_CHARS for ch in name):
        raise IllegalTileNameError(name, str(path) if path else None)
    return name


def parse_renames(text: str, *, source: str = RENAMES_FILENAME) -> dict[str, str]:
    """Parse ``old=new`` lines. An empty ``new`` marks the file as ignored."""
    renames: dict[str, str] = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        if "=" not in line:
            logger.warning("[SCAN] %s:%d has no '=', skipping line: %r", source, lineno, line)
            continue
        old, new = line.split("=", 1)
        renames[old.strip()] = new.strip()
    return renames


def load_renames(tile_dir: Path) -> dict[str, str]:
    path = tile_dir / RENAMES_FILENAME
    if not path.is_file():
        return {}
    return parse_renames(path.read_text(encoding="utf-8"), source=str(path))


def scan_tiles(tile_dir: Path, renames: dict[str, str] | None = None) -> list[ScannedTile]:
    """Return the tiles in ``tile_dir`` in a stable order.

    Every name is validated before anything is returned, so an illegal name
    aborts the scan before any placement happens.
    """
    if not tile_dir.is_dir():
        raise FileNotFoundError(f"Tile directory does not exist: {tile_dir}")
    if renames is None:
        renames = load_renames(tile_dir)

    tiles: list[ScannedTile] = []
    seen: dict[str, Path] = {}
    skipped = 0
    for path in sorted(tile_dir.iterdir()):
        if not path.is_file() or path.suffix.lower() != ".png":
            continue
        name = renames.get(path.stem, path.stem)
        if name == "":
            skipped += 1
            logger.debug("[SCAN] Ignoring %s per rename table", path.name)
            continue
        validate_tile_name(name, path)
        if name in seen:
            raise DuplicateTileError(name, str(seen[name]), str(path))
        seen[name] = path
        tiles.append(ScannedTile(name=name, path=path))

    logger.info("[SCAN] Found %d tiles in %s (%d ignored)", len(tiles), tile_dir, skipped)
    return tiles
