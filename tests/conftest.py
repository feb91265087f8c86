"""Shared pytest fixtures."""

from collections import defaultdict
from typing import Any

import pytest

from annotab.app import App
from annotab.config import Config
from annotab.core.core import Core
from annotab.core.store import FilterCondition, Record, RecordStore, field_text
from annotab.errors import NotFoundError, UpstreamError

PROJECTS_TABLE = "tbl_projects"
COMMENTS_TABLE = "tbl_comments"


class InMemoryRecordStore(RecordStore):
    """Record store fake that evaluates equality conditions like the remote filter does."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self.calls: list[tuple[str, str]] = []
        self.failing_deletes: set[str] = set()
        self.reverse_order = False
        self.closed = False
        self._next_id = 0

    def rows(self, table: str) -> list[dict[str, Any]]:
        return list(self.tables[table].values())

    def insert(self, table: str, fields: dict[str, Any]) -> str:
        self._next_id += 1
        record_id = f"rec{self._next_id:04d}"
        self.tables[table][record_id] = dict(fields)
        return record_id

    async def search(self, table: str, conditions: list[FilterCondition] | None = None) -> list[Record]:
        self.calls.append(("search", table))
        records = [
            Record(record_id=record_id, fields=dict(fields))
            for record_id, fields in self.tables[table].items()
            if all(field_text(fields.get(condition.field)) == condition.value for condition in conditions or [])
        ]
        return list(reversed(records)) if self.reverse_order else records

    async def create(self, table: str, fields: dict[str, Any]) -> Record:
        self.calls.append(("create", table))
        record_id = self.insert(table, fields)
        return Record(record_id=record_id, fields=dict(fields))

    async def update(self, table: str, record_id: str, fields: dict[str, Any]) -> Record:
        self.calls.append(("update", table))
        if record_id not in self.tables[table]:
            raise NotFoundError("Update Record Failed: record not found")
        self.tables[table][record_id].update(fields)
        return Record(record_id=record_id, fields=dict(self.tables[table][record_id]))

    async def delete(self, table: str, record_id: str) -> None:
        self.calls.append(("delete", table))
        if record_id in self.failing_deletes:
            raise UpstreamError("Delete Record Failed: internal error")
        if record_id not in self.tables[table]:
            raise NotFoundError("Delete Record Failed: record not found")
        del self.tables[table][record_id]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def config():
    """Create a fully configured Config that ignores the environment's .env file."""
    return Config(
        _env_file=None,
        lark_app_id="cli_test",
        lark_app_secret="secret",
        lark_base_token="bascnTest",
        lark_table_projects=PROJECTS_TABLE,
        lark_table_comments=COMMENTS_TABLE,
        lark_api_base="https://lark.test/open-apis",
    )


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def core(config, store):
    return Core(config, store)


@pytest.fixture
def app(config, store):
    return App(config, store)
