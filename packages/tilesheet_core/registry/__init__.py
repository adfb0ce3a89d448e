"""Remote tilesheet registry access."""

from .client import LocalRegistry, MediaWikiRegistry, TilesheetRegistry
from .credentials import Credentials, load_credentials
from .schema import (
    NewTile,
    RegistryDecodeError,
    RegistryError,
    RegistryRequestError,
    SheetRecord,
    TileRecord,
)

__all__ = [
    "Credentials",
    "LocalRegistry",
    "MediaWikiRegistry",
    "NewTile",
    "RegistryDecodeError",
    "RegistryError",
    "RegistryRequestError",
    "SheetRecord",
    "TileRecord",
    "TilesheetRegistry",
    "load_credentials",
]
