"""Tilesheet assembly and wiki synchronization."""

from .config import SyncConfig, load_sync_config
from .errors import TilesheetError

__all__ = ["SyncConfig", "TilesheetError", "load_sync_config"]
