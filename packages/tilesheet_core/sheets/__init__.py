"""Tile placement, sheet compositing and registry reconciliation."""

from .allocator import CoordinateAllocator, GridCoordinate
from .canvas import SheetCanvas, SheetSet
from .prompts import ConfirmationProvider, ConsoleConfirmationProvider, StaticConfirmationProvider
from .reconcile import ReconciliationLists, TileRegistryReconciler
from .scan import ScannedTile, load_renames, scan_tiles
from .sync import SyncReport, TilesheetSynchronizer

__all__ = [
    "ConfirmationProvider",
    "ConsoleConfirmationProvider",
    "CoordinateAllocator",
    "GridCoordinate",
    "ReconciliationLists",
    "ScannedTile",
    "SheetCanvas",
    "SheetSet",
    "StaticConfirmationProvider",
    "SyncReport",
    "TileRegistryReconciler",
    "TilesheetSynchronizer",
    "load_renames",
    "scan_tiles",
]
