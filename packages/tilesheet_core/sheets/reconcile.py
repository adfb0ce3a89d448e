"""Diffing the local tile set against the registry and the operator checkpoint."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from typing import Any, Iterable

from ..errors import SyncAborted
from ..registry.schema import TileRecord
from .prompts import ConfirmationProvider

logger = getLogger("tilesheet_core.sheets.reconcile")

ADDITIONS_FILENAME = "additions.txt"
MISSING_FILENAME = "missing.txt"
TODELETE_FILENAME = "todelete.txt"


@dataclass
class ReconciliationLists:
    added: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    deleted_ids: list[int] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "added": list(self.added),
            "missing": list(self.missing),
            "deleted": list(self.deleted),
            "deleted_ids": list(self.deleted_ids),
            "errors": list(self.errors),
        }


def _write_lines(path: Path, names: Iterable[str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{name}\n" for name in names), encoding="utf-8")
    return path


def read_name_list(path: Path) -> list[str]:
    if not path.is_file():
        return []
    names: list[str] = []
    for raw in path.read_text(encoding="utf-8").splitlines():
        name = raw.strip()
        if name and name not in names:
            names.append(name)
    return names


class TileRegistryReconciler:
    """Tracks the registry's name set for one run and computes the work lists."""

    def __init__(self, registry_tiles: Iterable[TileRecord], work_dir: Path) -> None:
        self.work_dir = work_dir
        self.tiles: dict[str, TileRecord] = {}
        for record in registry_tiles:
            if record.name in self.tiles:
                logger.warning(
                    "[RECONCILE] Registry lists %s twice (ids %d and %d); keeping the first",
                    record.name, self.tiles[record.name].id, record.id,
                )
                continue
            self.tiles[record.name] = record
        self.lists = ReconciliationLists()

    @property
    def additions_path(self) -> Path:
        return self.work_dir / ADDITIONS_FILENAME

    @property
    def missing_path(self) -> Path:
        return self.work_dir / MISSING_FILENAME

    @property
    def todelete_path(self) -> Path:
        return self.work_dir / TODELETE_FILENAME

    def diff(self, local_names: Iterable[str]) -> ReconciliationLists:
        missing = dict.fromkeys(sorted(self.tiles))
        added: list[str] = []
        for name in local_names:
            if name in self.tiles:
                missing.pop(name, None)
            elif name not in added:
                added.append(name)
        self.lists.added = added
        self.lists.missing = list(missing)
        logger.info(
            "[RECONCILE] %d added, %d missing out of %d registered",
            len(added), len(self.lists.missing), len(self.tiles),
        )
        return self.lists

    def write_review_files(self) -> list[Path]:
        return [
            _write_lines(self.additions_path, self.lists.added),
            _write_lines(self.missing_path, self.lists.missing),
            _write_lines(self.todelete_path, []),
        ]

    def checkpoint(self, confirmation: ConfirmationProvider) -> None:
        """Write the review lists and block until the operator approves."""
        self.write_review_files()
        prompt = (
            f"{len(self.lists.added)} tiles will be added (see {self.additions_path}).\n"
            f"{len(self.lists.missing)} registered tiles were not found locally (see {self.missing_path}).\n"
            f"Copy the names to purge into {self.todelete_path} before continuing."
        )
        if not confirmation.confirm(prompt):
            raise SyncAborted("Operator declined the reconciliation checkpoint", error_code="declined")

    def record_deletions(self, names: Iterable[str] | None = None) -> list[TileRecord]:
        """Drop the operator-selected tiles from the in-memory registry.

        Names that are unknown or still present locally are reported and
        skipped. Returns the removed records.
        """
        if names is None:
            names = read_name_list(self.todelete_path)
        missing = set(self.lists.missing)
        removed: list[TileRecord] = []
        for name in names:
            record = self.tiles.get(name)
            if record is None:
                message = f"Cannot delete {name}: no such tile in the registry"
                logger.error("[RECONCILE] %s", message)
                self.lists.errors.append(message)
                continue
            if name not in missing:
                message = f"Cannot delete {name}: tile is still present locally"
                logger.error("[RECONCILE] %s", message)
                self.lists.errors.append(message)
                continue
            del self.tiles[name]
            removed.append(record)
            self.lists.deleted.append(name)
            self.lists.deleted_ids.append(record.id)
        if removed:
            logger.info("[RECONCILE] Marked %d tiles for deletion", len(removed))
        return removed

    def final_names(self) -> set[str]:
        return set(self.tiles) | set(self.lists.added)
