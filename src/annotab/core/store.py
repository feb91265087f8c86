"""Flat record store abstraction shared by all services."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field


class FilterCondition(BaseModel):
    """Field-equality clause; a search combines its conditions with AND."""

    field: str = Field(..., description="Field name to filter on")
    value: str = Field(..., description="Value the field must equal")


def equals(**fields: str) -> list[FilterCondition]:
    """Shorthand for a list of equality conditions."""
    return [FilterCondition(field=name, value=value) for name, value in fields.items()]


def field_text(value: Any) -> str:
    """Normalize a cell value to plain text.

    Bitable returns text cells as plain strings or as lists of rich-text
    segments, and link cells as ``{"link": ..., "text": ...}``. Missing
    cells read as an empty string.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "".join(field_text(item) for item in value)
    if isinstance(value, dict):
        return str(value.get("text") or value.get("link") or "")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Record(BaseModel):
    """One flat row: opaque store-assigned id plus schema-less fields."""

    record_id: str
    fields: dict[str, Any] = Field(default_factory=dict)

    def text(self, name: str) -> str:
        return field_text(self.fields.get(name))

    def number(self, name: str) -> int:
        """Numeric cell as int, 0 when absent or not numeric."""
        value = self.fields.get(name)
        if isinstance(value, bool):
            return 0
        if isinstance(value, int | float):
            return int(value)
        try:
            return int(float(field_text(value)))
        except ValueError:
            return 0


class RecordStore(ABC):
    """Create/search/update/delete against flat tables addressed by record id.

    Implementations raise NotFoundError for stale record ids and
    UpstreamError for any other failed remote call. Nothing is retried.
    """

    @abstractmethod
    async def search(self, table: str, conditions: list[FilterCondition] | None = None) -> list[Record]:
        """Return rows matching all conditions, or every row when there are none."""

    @abstractmethod
    async def create(self, table: str, fields: dict[str, Any]) -> Record:
        """Insert a row and return it with its assigned record id."""

    @abstractmethod
    async def update(self, table: str, record_id: str, fields: dict[str, Any]) -> Record:
        """Overwrite the given fields of an existing row."""

    @abstractmethod
    async def delete(self, table: str, record_id: str) -> None:
        """Remove a row."""

    async def aclose(self) -> None:
        """Release transport resources."""
