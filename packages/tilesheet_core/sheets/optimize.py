"""Parallel lossless recompression of written sheet files."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from typing import Sequence
import os
import shutil
import subprocess

logger = getLogger("tilesheet_core.sheets.optimize")


@dataclass(frozen=True)
class OptimizeResult:
    path: Path
    ok: bool
    detail: str = ""


def _run_one(command: Sequence[str], path: Path) -> OptimizeResult:
    before = path.stat().st_size
    try:
        proc = subprocess.run(
            [*command, str(path)],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        return OptimizeResult(path=path, ok=False, detail=str(exc))
    if proc.returncode != 0:
        detail = (proc.stderr or proc.stdout or "").strip()[-400:]
        return OptimizeResult(path=path, ok=False, detail=f"exit {proc.returncode}: {detail}")
    after = path.stat().st_size
    return OptimizeResult(path=path, ok=True, detail=f"{before} -> {after} bytes")


def optimize_files(
    paths: Sequence[Path],
    command: Sequence[str],
    *,
    max_workers: int | None = None,
) -> list[OptimizeResult]:
    """Recompress every file with ``command`` and wait for all of them.

    Results come back in the order of ``paths``. An empty command or a
    missing executable skips recompression with a warning.
    """
    if not paths:
        return []
    if not command:
        logger.info("[OPTIMIZE] Recompression disabled")
        return []
    if shutil.which(command[0]) is None:
        logger.warning("[OPTIMIZE] %s not found on PATH; sheets are left as written", command[0])
        return [OptimizeResult(path=p, ok=False, detail=f"{command[0]} not found") for p in paths]

    workers = max(1, min(max_workers or os.cpu_count() or 1, len(paths)))
    logger.info("[OPTIMIZE] Recompressing %d files with %d workers", len(paths), workers)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(lambda p: _run_one(command, p), paths))

    for result in results:
        if result.ok:
            logger.debug("[OPTIMIZE] %s: %s", result.path.name, result.detail)
        else:
            logger.error("[OPTIMIZE] %s failed: %s", result.path.name, result.detail)
    return results
