"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import date
from types import SimpleNamespace
from typing import Any

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from contact_snapshot.academic_year import generate_window
from contact_snapshot.errors import SourceError
from contact_snapshot.models import AggregatedCell
from contact_snapshot.sources.base import ContactSource


class FakeDatabase:
    """Database holding whichever fake collections have been created."""

    def __init__(self) -> None:
        self.names: set[str] = set()

    def list_collection_names(self, filter: dict[str, Any] | None = None) -> list[str]:
        wanted = (filter or {}).get("name")
        return sorted(n for n in self.names if wanted is None or n == wanted)


class FakeCollection:
    """In-memory stand-in for the few PyMongo collection calls the report makes."""

    def __init__(
        self,
        docs: list[dict[str, Any]] | None = None,
        name: str = "fake",
        exists: bool = True,
    ) -> None:
        self.docs = list(docs or [])
        self.name = name
        self.database = FakeDatabase()
        if exists:
            self.database.names.add(name)
        self.queries: list[dict[str, Any]] = []
        self.bulk_ops: list[Any] = []
        self.deleted: list[dict[str, Any]] = []

    def find(self, query: dict[str, Any] | None = None, projection: Any = None) -> list[dict[str, Any]]:
        self.queries.append(query or {})
        return [dict(d) for d in self.docs]

    def bulk_write(self, ops: list[Any], ordered: bool = True) -> None:
        self.bulk_ops.extend(ops)

    def delete_many(self, query: dict[str, Any]) -> SimpleNamespace:
        self.deleted.append(query)
        return SimpleNamespace(deleted_count=0)


class BrokenCollection(FakeCollection):
    """Collection whose reads fail like an unreachable server."""

    def find(self, query: dict[str, Any] | None = None, projection: Any = None) -> list[dict[str, Any]]:
        self.queries.append(query or {})
        raise ServerSelectionTimeoutError("no servers available")


class StubSource(ContactSource):
    """ContactSource returning canned cells (or raising) and counting calls."""

    def __init__(self, name: str, cells: list[AggregatedCell] | None = None, error: SourceError | None = None) -> None:
        self.name = name
        self.cells = cells or []
        self.error = error
        self.calls = 0

    def fetch(self, window, scope_id):  # type: ignore[override]
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.cells)


def cell(cid: str, name: str, month: str, contact_type: str, count: int) -> AggregatedCell:
    return AggregatedCell(
        counselor_id=cid,
        counselor_name=name,
        month=month,
        contact_type=contact_type,
        count=count,
    )


@pytest.fixture
def window():
    """Academic year August 2024 → June 2025."""
    return generate_window(date(2024, 10, 1))


@pytest.fixture
def sample_cells() -> list[AggregatedCell]:
    return [
        cell("C1", "Ann", "2024-09", "meeting", 3),
        cell("C1", "Ann", "2024-09", "email", 2),
        cell("C2", "Bob", "2024-10", "meeting", 5),
    ]
