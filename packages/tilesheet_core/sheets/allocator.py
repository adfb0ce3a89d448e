"""Deterministic grid coordinate allocation for tiles."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import Iterable, Iterator

logger = getLogger("tilesheet_core.sheets.allocator")


@dataclass(frozen=True, order=True)
class GridCoordinate:
    x: int
    y: int
    z: int = 0

    def __post_init__(self) -> None:
        if self.x < 0 or self.y < 0 or self.z < 0:
            raise ValueError(f"Grid coordinates must be non-negative: {self}")

    def as_tuple(self) -> tuple[int, int, int]:
        return self.x, self.y, self.z


class CoordinateAllocator:
    """Hands out stable cells in a layered diagonal fill order.

    The cursor ``(a, b)`` walks L-shaped shells around the origin: shell ``a``
    covers cells ``(a, 0..a-1)`` then ``(0..a, a)``. Once ``a`` reaches
    ``layer_width`` the walk restarts at the origin of the next depth layer.
    A released cell stays reserved until the allocator is discarded, so it is
    only handed out again by a later run whose walk reaches it.
    """

    def __init__(self, layer_width: int, existing: dict[str, GridCoordinate] | None = None) -> None:
        if layer_width < 1:
            raise ValueError("layer_width must be >= 1")
        self.layer_width = layer_width
        self._lookup: dict[str, GridCoordinate] = {}
        self._occupied: dict[GridCoordinate, str] = {}
        self._reserved: set[GridCoordinate] = set()
        self._a = 0
        self._b = 0
        self._z = 0
        for name, coord in (existing or {}).items():
            self.claim(name, coord)

    def __contains__(self, name: str) -> bool:
        return name in self._lookup

    def __len__(self) -> int:
        return len(self._lookup)

    @property
    def cursor(self) -> tuple[int, int, int]:
        return self._a, self._b, self._z

    def get(self, name: str) -> GridCoordinate | None:
        return self._lookup.get(name)

    def owner(self, coord: GridCoordinate) -> str | None:
        return self._occupied.get(coord)

    def items(self) -> Iterator[tuple[str, GridCoordinate]]:
        return iter(self._lookup.items())

    def claim(self, name: str, coord: GridCoordinate) -> None:
        """Record an already-known placement, e.g. one imported from the registry."""
        current = self._lookup.get(name)
        if current == coord:
            return
        if current is not None:
            raise ValueError(f"Tile {name!r} is already placed at {current.as_tuple()}")
        holder = self._occupied.get(coord)
        if holder is not None:
            raise ValueError(f"Cell {coord.as_tuple()} is already occupied by {holder!r}")
        self._lookup[name] = coord
        self._occupied[coord] = name

    def release(self, name: str) -> GridCoordinate | None:
        coord = self._lookup.pop(name, None)
        if coord is not None:
            del self._occupied[coord]
            self._reserved.add(coord)
            logger.debug("[ALLOC] Released %s from %s", name, coord.as_tuple())
        return coord

    def _candidate(self) -> GridCoordinate:
        a, b = self._a, self._b
        if b < a:
            return GridCoordinate(a, b, self._z)
        return GridCoordinate(b - a, a, self._z)

    def _advance(self) -> None:
        self._b += 1
        if self._b > 2 * self._a:
            self._a += 1
            self._b = 0
        if self._a >= self.layer_width:
            self._a = 0
            self._b = 0
            self._z += 1

    def allocate(self, name: str) -> GridCoordinate:
        existing = self._lookup.get(name)
        if existing is not None:
            return existing
        while True:
            candidate = self._candidate()
            if candidate not in self._occupied and candidate not in self._reserved:
                self._lookup[name] = candidate
                self._occupied[candidate] = name
                logger.debug("[ALLOC] %s -> %s", name, candidate.as_tuple())
                return candidate
            self._advance()

    def allocate_all(self, names: Iterable[str]) -> dict[str, GridCoordinate]:
        return {name: self.allocate(name) for name in names}
