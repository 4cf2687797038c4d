"""Shared fixtures: an in-memory query backend."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

import pytest

from termgraf.providers import ColumnMeta, Widget


@dataclass
class FakeTable:
    """Table with column-major data."""

    key: tuple[str, ...]
    columns: tuple[ColumnMeta, ...] = ()
    data: dict[int, list[Any]] = field(default_factory=dict)

    def key_values(self) -> list[str]:
        return list(self.key)

    def ints(self, idx: int) -> list[Any]:
        return self.data[idx]

    def uints(self, idx: int) -> list[Any]:
        return self.data[idx]

    def floats(self, idx: int) -> list[Any]:
        return self.data[idx]


def float_table(key: tuple[str, ...], values: list[float], column: str = "_value") -> FakeTable:
    return FakeTable(
        key=key,
        columns=(ColumnMeta("_time", "dateTime:RFC3339"), ColumnMeta(column, "double")),
        data={0: [None] * len(values), 1: values},
    )


class FakeResult:
    def __init__(self, tables: list[Any]):
        self._tables = tables

    def tables(self) -> list[Any]:
        return list(self._tables)


class FakeResultIterator:
    def __init__(self, results: list[FakeResult], error: Exception | None = None):
        self._results = iter(results)
        self._error = error
        self.cancelled = False

    def __iter__(self) -> "FakeResultIterator":
        return self

    def __next__(self) -> FakeResult:
        try:
            return next(self._results)
        except StopIteration:
            if self._error is not None:
                raise self._error
            raise

    def cancel(self) -> None:
        self.cancelled = True


class FakeBackend:
    """QueryBackend returning canned tables.

    `tables` is a list of tables (one result) or a list of lists (several
    results). `query_error` fails the request itself; `stream_error` fails
    after the results are exhausted.
    """

    def __init__(
        self,
        tables: list[Any] | None = None,
        query_error: Exception | None = None,
        stream_error: Exception | None = None,
    ):
        self.tables = tables or []
        self.query_error = query_error
        self.stream_error = stream_error
        self.queries: list[str] = []
        self.iterators: list[FakeResultIterator] = []
        self.closed = False
        self._lock = threading.Lock()

    def _results(self) -> list[FakeResult]:
        if self.tables and isinstance(self.tables[0], list):
            return [FakeResult(t) for t in self.tables]
        return [FakeResult(self.tables)]

    def query(self, text: str) -> FakeResultIterator:
        with self._lock:
            self.queries.append(text)
        if self.query_error is not None:
            raise self.query_error
        itr = FakeResultIterator(self._results(), self.stream_error)
        with self._lock:
            self.iterators.append(itr)
        return itr

    def close(self) -> None:
        self.closed = True


class BlockingBackend(FakeBackend):
    """FakeBackend whose queries wait until `release` is set."""

    def __init__(self, tables: list[Any] | None = None):
        super().__init__(tables)
        self.started = threading.Event()
        self.release = threading.Event()

    def query(self, text: str) -> FakeResultIterator:
        self.started.set()
        self.release.wait(5)
        return super().query(text)


@pytest.fixture
def widget() -> Widget:
    return Widget(title="cpu", query="from(bucket: \"b\")", color="cyan", height=1, limit=5)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()
