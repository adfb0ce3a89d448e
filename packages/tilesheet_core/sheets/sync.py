"""Tilesheet synchronization: import, scan, reconcile, composite, publish."""

from __future__ import annotations

from dataclasses import dataclass, field
from io import BytesIO
from logging import getLogger
from pathlib import Path
from typing import Any, Callable, Sequence

from PIL import Image, UnidentifiedImageError

from ..config import SyncConfig
from ..errors import TileImageError, TilesheetError
from ..imaging.color import LinearImage, load_tile_image
from ..registry.client import TilesheetRegistry
from ..registry.schema import NewTile, RegistryError
from .allocator import CoordinateAllocator, GridCoordinate
from .canvas import SheetSet
from .legacy_index import index_filename, write_index
from .optimize import OptimizeResult, optimize_files
from .prompts import ConfirmationProvider, SizesProvider
from .reconcile import TileRegistryReconciler
from .scan import ScannedTile, scan_tiles

logger = getLogger("tilesheet_core.sheets.sync")

Optimizer = Callable[..., list[OptimizeResult]]
ImageLoader = Callable[[Path], LinearImage]


def chunked(items: Sequence[Any], size: int) -> list[list[Any]]:
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


@dataclass
class SyncReport:
    namespace: str
    sizes: list[int] = field(default_factory=list)
    created_sheet: bool = False
    added: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    deleted_ids: list[int] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    written: list[str] = field(default_factory=list)
    uploaded: list[str] = field(default_factory=list)
    failed_uploads: list[str] = field(default_factory=list)
    failed_chunks: list[str] = field(default_factory=list)
    optimizer_failures: list[str] = field(default_factory=list)
    malformed_records: int = 0

    @property
    def ok(self) -> bool:
        return not (self.errors or self.failed_uploads or self.failed_chunks)

    def as_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "ok": self.ok,
            "sizes": list(self.sizes),
            "created_sheet": self.created_sheet,
            "added": list(self.added),
            "missing": list(self.missing),
            "deleted": list(self.deleted),
            "deleted_ids": list(self.deleted_ids),
            "errors": list(self.errors),
            "written": list(self.written),
            "uploaded": list(self.uploaded),
            "failed_uploads": list(self.failed_uploads),
            "failed_chunks": list(self.failed_chunks),
            "optimizer_failures": list(self.optimizer_failures),
            "malformed_records": self.malformed_records,
        }


class TilesheetSynchronizer:
    """Runs one synchronization pass for a single namespace."""

    def __init__(
        self,
        config: SyncConfig,
        registry: TilesheetRegistry,
        *,
        confirmation: ConfirmationProvider,
        sizes_provider: SizesProvider,
        optimizer: Optimizer = optimize_files,
        image_loader: ImageLoader = load_tile_image,
    ) -> None:
        self.config = config
        self.registry = registry
        self.confirmation = confirmation
        self.sizes_provider = sizes_provider
        self.optimizer = optimizer
        self.image_loader = image_loader

        self.report = SyncReport(namespace=config.namespace)
        self.allocator = CoordinateAllocator(config.layer_width)
        self.sheets = SheetSet([])
        self.reconciler = TileRegistryReconciler([], config.work_dir)
        self.new_tiles: list[NewTile] = []

    def run(self) -> SyncReport:
        logger.info("[SYNC] Updating tilesheet %s", self.config.namespace)
        self.import_state()
        tiles = self.scan()
        self.reconcile(tiles)
        self.apply_deletions()
        self.composite(tiles)
        self.publish()
        self.report.malformed_records = self.registry.malformed_records
        logger.info(
            "[SYNC] Finished %s: added=%d deleted=%d uploaded=%d failed_chunks=%d",
            self.config.namespace,
            len(self.report.added),
            len(self.report.deleted),
            len(self.report.uploaded),
            len(self.report.failed_chunks),
        )
        return self.report

    # -- import -----------------------------------------------------------

    def _sheet_sizes(self) -> list[int]:
        for sheet in self.registry.query_sheets():
            if sheet.namespace == self.config.namespace:
                return list(sheet.sizes)

        sizes = self.sizes_provider(self.config.namespace)
        logger.info("[SYNC] No sheet registered for %s; creating one with sizes %s", self.config.namespace, sizes)
        token = self.registry.get_token()
        self.registry.create_sheet(token, self.config.namespace, sizes, summary=self.config.summary)
        self.report.created_sheet = True
        return list(sizes)

    def _import_layers(self, size: int) -> int:
        layer = 0
        while True:
            filename = self.config.sheet_filename(size, layer)
            data = self.registry.download_file(filename)
            if data is None:
                return layer
            try:
                with Image.open(BytesIO(data)) as raw:
                    raw.load()
                    image = raw.convert("RGBA")
            except (OSError, UnidentifiedImageError) as exc:
                raise TileImageError(f"Cannot decode {filename}: {exc}", error_code="corrupt_sheet") from exc
            self.sheets.seed(size, layer, image)
            layer += 1

    def import_state(self) -> None:
        sizes = self._sheet_sizes()
        self.sheets = SheetSet(sizes)
        self.report.sizes = list(self.sheets.sizes)

        records = self.registry.query_tiles(self.config.namespace)
        self.reconciler = TileRegistryReconciler(records, self.config.work_dir)
        for name, record in self.reconciler.tiles.items():
            try:
                self.allocator.claim(name, GridCoordinate(record.x, record.y, record.z))
            except ValueError as exc:
                raise TilesheetError(f"Registry conflict: {exc}", error_code="registry_conflict") from exc

        for size in self.sheets.sizes:
            layers = self._import_layers(size)
            logger.info("[SYNC] Imported %d layers at %dpx", layers, size)
        logger.info("[SYNC] Registry holds %d tiles for %s", len(self.reconciler.tiles), self.config.namespace)

    # -- scan / reconcile -------------------------------------------------

    def scan(self) -> list[ScannedTile]:
        try:
            return scan_tiles(self.config.tile_dir)
        except FileNotFoundError as exc:
            raise TilesheetError(str(exc), error_code="missing_tile_dir") from exc

    def reconcile(self, tiles: list[ScannedTile]) -> None:
        lists = self.reconciler.diff(tile.name for tile in tiles)
        self.report.added = list(lists.added)
        self.report.missing = list(lists.missing)
        self.reconciler.checkpoint(self.confirmation)

    def apply_deletions(self, names: list[str] | None = None) -> None:
        for record in self.reconciler.record_deletions(names):
            coord = self.allocator.release(record.name)
            if coord is not None:
                self.sheets.clear(coord.x, coord.y, coord.z)
        lists = self.reconciler.lists
        self.report.deleted = list(lists.deleted)
        self.report.deleted_ids = list(lists.deleted_ids)
        self.report.errors = list(lists.errors)

    # -- composite --------------------------------------------------------

    def _load(self, tile: ScannedTile) -> LinearImage:
        try:
            image = self.image_loader(tile.path)
        except (OSError, UnidentifiedImageError) as exc:
            raise TileImageError(f"Cannot read tile {tile.path}: {exc}", error_code="unreadable_tile") from exc
        if image.width != image.height:
            raise TileImageError(
                f"Tile {tile.path} is not square ({image.width}x{image.height})",
                error_code="not_square",
            )
        return image

    def composite(self, tiles: list[ScannedTile]) -> None:
        added = set(self.report.added)
        for tile in tiles:
            image = self._load(tile)
            coord = self.allocator.allocate(tile.name)
            self.sheets.insert(coord.x, coord.y, coord.z, image)
            if tile.name in added:
                self.new_tiles.append(NewTile(name=tile.name, x=coord.x, y=coord.y, z=coord.z))
        logger.info("[SYNC] Composited %d tiles (%d new)", len(tiles), len(self.new_tiles))

    # -- publish ----------------------------------------------------------

    def write_sheets(self) -> list[Path]:
        self.sheets.fill_gaps()
        written: list[Path] = []
        for canvas in self.sheets.canvases():
            path = self.config.work_dir / self.config.sheet_filename(canvas.size, canvas.layer)
            written.append(canvas.save(path))
        write_index(self.config.work_dir / index_filename(self.config.namespace), self.allocator.items())
        self.report.written = [str(p) for p in written]
        return written

    def publish(self) -> None:
        written = self.write_sheets()
        results = self.optimizer(
            written,
            self.config.optimizer_command,
            max_workers=self.config.optimizer_workers,
        )
        self.report.optimizer_failures = [str(r.path) for r in results if not r.ok]

        token = self.registry.get_token()
        for path in written:
            try:
                self.registry.upload(path.name, token, content=path.read_bytes(), comment=self.config.summary)
            except (RegistryError, OSError) as exc:
                logger.error("[SYNC] Upload of %s failed: %s", path.name, exc)
                self.report.failed_uploads.append(path.name)
                continue
            self.report.uploaded.append(path.name)

        size = self.config.chunk_size
        for chunk in chunked(self.report.deleted_ids, size):
            try:
                self.registry.delete_tiles(token, chunk, summary=self.config.summary)
            except RegistryError as exc:
                logger.error("[SYNC] Deleting tiles %s failed: %s", chunk, exc)
                self.report.failed_chunks.append(f"delete {chunk[0]}..{chunk[-1]}: {exc}")
        for chunk in chunked(self.new_tiles, size):
            try:
                self.registry.add_tiles(token, self.config.namespace, chunk, summary=self.config.summary)
            except RegistryError as exc:
                logger.error("[SYNC] Adding %d tiles starting at %s failed: %s", len(chunk), chunk[0].name, exc)
                self.report.failed_chunks.append(f"add {chunk[0].name}..{chunk[-1].name}: {exc}")
