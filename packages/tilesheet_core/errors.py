"""Error types shared by the tilesheet engine and its entrypoints."""

from __future__ import annotations


class TilesheetError(RuntimeError):
    def __init__(self, message: str, *, error_code: str) -> None:
        super().__init__(message)
        self.error_code = error_code


class ConfigError(TilesheetError):
    pass


class CredentialsError(TilesheetError):
    pass


class IllegalTileNameError(TilesheetError):
    def __init__(self, name: str, path: str | None = None) -> None:
        where = f" (from {path})" if path else ""
        super().__init__(
            f"Illegal tile name {name!r}{where}: names may not contain '_', '[' or ']'",
            error_code="illegal_tile_name",
        )
        self.name = name
        self.path = path


class DuplicateTileError(TilesheetError):
    def __init__(self, name: str, first: str, second: str) -> None:
        super().__init__(
            f"Tile {name!r} is provided by both {first} and {second}",
            error_code="duplicate_tile",
        )
        self.name = name


class TileImageError(TilesheetError):
    pass


class SyncAborted(TilesheetError):
    pass
