"""Run configuration for tilesheet synchronization."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any
import os
import shlex

from .errors import ConfigError

DEFAULT_TILES_DIR = Path("work") / "tilesheets"
DEFAULT_WORK_DIR = Path("work")
DEFAULT_LAYER_WIDTH = 32
MAX_CHUNK_SIZE = 50
DEFAULT_OPTIMIZER = ("optipng", "-quiet", "-o7")
DEFAULT_SUMMARY = "Automated tilesheet update"


def _first_non_empty(*values: str | None) -> str | None:
    for value in values:
        if value and value.strip():
            return value.strip()
    return None


def _int_env(name: str, default: int, *, minimum: int = 1) -> int:
    raw = _first_non_empty(os.environ.get(name))
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}", error_code="invalid_config") from exc
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}", error_code="invalid_config")
    return value


@dataclass(frozen=True)
class SyncConfig:
    namespace: str
    tiles_root: Path = DEFAULT_TILES_DIR
    work_dir: Path = DEFAULT_WORK_DIR
    layer_width: int = DEFAULT_LAYER_WIDTH
    chunk_size: int = MAX_CHUNK_SIZE
    optimizer_command: tuple[str, ...] = DEFAULT_OPTIMIZER
    optimizer_workers: int = field(default_factory=lambda: os.cpu_count() or 1)
    summary: str = DEFAULT_SUMMARY

    def __post_init__(self) -> None:
        if not self.namespace or not self.namespace.strip():
            raise ConfigError("Namespace must not be empty", error_code="missing_namespace")
        if self.layer_width < 1:
            raise ConfigError("layer_width must be >= 1", error_code="invalid_config")
        if not 1 <= self.chunk_size <= MAX_CHUNK_SIZE:
            raise ConfigError(
                f"chunk_size must be between 1 and {MAX_CHUNK_SIZE}",
                error_code="invalid_config",
            )
        if self.optimizer_workers < 1:
            raise ConfigError("optimizer_workers must be >= 1", error_code="invalid_config")

    @property
    def tile_dir(self) -> Path:
        return self.tiles_root / self.namespace

    def sheet_filename(self, size: int, layer: int) -> str:
        return f"Tilesheet {self.namespace} {size} {layer}.png"

    def as_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["tiles_root"] = str(self.tiles_root)
        out["work_dir"] = str(self.work_dir)
        out["optimizer_command"] = list(self.optimizer_command)
        return out


def load_sync_config(namespace: str, **overrides: Any) -> SyncConfig:
    """Build a SyncConfig from TILESHEET_* environment variables.

    Keyword overrides that are not None take precedence over the environment.
    """
    values: dict[str, Any] = {
        "namespace": namespace.strip(),
        "tiles_root": Path(_first_non_empty(os.environ.get("TILESHEET_TILES_DIR")) or DEFAULT_TILES_DIR),
        "work_dir": Path(_first_non_empty(os.environ.get("TILESHEET_WORK_DIR")) or DEFAULT_WORK_DIR),
        "layer_width": _int_env("TILESHEET_LAYER_WIDTH", DEFAULT_LAYER_WIDTH),
        "optimizer_workers": _int_env("TILESHEET_OPTIMIZER_WORKERS", os.cpu_count() or 1),
        "summary": _first_non_empty(os.environ.get("TILESHEET_SUMMARY")) or DEFAULT_SUMMARY,
    }

    raw_optimizer = os.environ.get("TILESHEET_OPTIMIZER")
    if raw_optimizer is None:
        values["optimizer_command"] = DEFAULT_OPTIMIZER
    else:
        # An explicitly empty value turns recompression off.
        values["optimizer_command"] = tuple(shlex.split(raw_optimizer))

    for key, value in overrides.items():
        if value is None:
            continue
        if key not in values and key != "chunk_size":
            raise ConfigError(f"Unknown config override: {key}", error_code="invalid_config")
        values[key] = value
    if isinstance(values.get("optimizer_command"), list):
        values["optimizer_command"] = tuple(values["optimizer_command"])
    return SyncConfig(**values)
