"""Plain-text placement index (``Tilesheet <namespace>.txt``)."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path
from typing import Iterable
import re

from .allocator import GridCoordinate

logger = getLogger("tilesheet_core.sheets.legacy_index")

_LINE_3D = re.compile(r"^(\d+) (\d+) (\d+) (.+?)$")
_LINE_2D = re.compile(r"^(\d+) (\d+) (.+?)$")


def index_filename(namespace: str) -> str:
    return f"Tilesheet {namespace}.txt"


def parse_index(text: str) -> dict[str, GridCoordinate]:
    """Parse ``x y z name`` lines; older ``x y name`` lines map to layer 0."""
    out: dict[str, GridCoordinate] = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.rstrip("\r")
        if not line.strip():
            continue
        match = _LINE_3D.match(line)
        if match:
            x, y, z, name = match.groups()
        else:
            match = _LINE_2D.match(line)
            if not match:
                raise ValueError(f"Malformed index line {lineno}: {line!r}")
            x, y, name = match.groups()
            z = "0"
        out[name] = GridCoordinate(int(x), int(y), int(z))
    return out


def format_index(entries: Iterable[tuple[str, GridCoordinate]]) -> str:
    ordered = sorted(entries, key=lambda item: (item[1].z, item[1].y, item[1].x, item[0]))
    return "".join(f"{c.x} {c.y} {c.z} {name}\n" for name, c in ordered)


def read_index(path: Path) -> dict[str, GridCoordinate]:
    if not path.is_file():
        logger.info("[INDEX] No index at %s", path)
        return {}
    return parse_index(path.read_text(encoding="utf-8"))


def write_index(path: Path, entries: Iterable[tuple[str, GridCoordinate]]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_index(entries), encoding="utf-8")
    return path
