"""Typed records for registry responses, validated at the network boundary."""

from __future__ import annotations

from logging import getLogger
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import TilesheetError

logger = getLogger("tilesheet_core.registry.schema")


class RegistryError(TilesheetError):
    pass


class RegistryDecodeError(RegistryError):
    pass


class RegistryRequestError(RegistryError):
    pass


class SheetRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    namespace: str = Field(alias="mod", min_length=1)
    sizes: list[int] = Field(min_length=1)

    @field_validator("sizes", mode="before")
    @classmethod
    def _split_sizes(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [int(part) for part in value.replace("|", ",").split(",") if part.strip()]
        return value

    @field_validator("sizes")
    @classmethod
    def _positive_sizes(cls, value: list[int]) -> list[int]:
        if any(size < 1 for size in value):
            raise ValueError("sizes must be positive")
        return value


class TileRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    name: str = Field(min_length=1)
    x: int = Field(ge=0)
    y: int = Field(ge=0)
    z: int = Field(default=0, ge=0)
    namespace: Optional[str] = Field(default=None, alias="mod")


class NewTile(BaseModel):
    name: str = Field(min_length=1)
    x: int = Field(ge=0)
    y: int = Field(ge=0)
    z: int = Field(default=0, ge=0)

    def import_line(self) -> str:
        return f"{self.x} {self.y} {self.z} {self.name}"


class ImageInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str


class ApiError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str = "unknown"
    info: str = ""


RecordT = TypeVar("RecordT", bound=BaseModel)


def parse_records(
    model: type[RecordT],
    raw_items: Any,
    *,
    context: str,
) -> tuple[list[RecordT], int]:
    """Validate a list of raw records, skipping malformed entries.

    Returns the parsed records and the number of entries that were dropped.
    A payload that is not a list at all is a decode error.
    """
    if raw_items is None:
        return [], 0
    if not isinstance(raw_items, list):
        raise RegistryDecodeError(
            f"Expected a list of {model.__name__} for {context}, got {type(raw_items).__name__}",
            error_code="invalid_envelope",
        )
    records: list[RecordT] = []
    skipped = 0
    for item in raw_items:
        try:
            records.append(model.model_validate(item))
        except ValidationError as exc:
            skipped += 1
            logger.warning(
                "[REGISTRY] Skipping malformed %s record in %s: %s (%s)",
                model.__name__, context, item, exc.errors(include_url=False),
            )
    return records, skipped
