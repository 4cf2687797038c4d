"""
Data model and backend providers.

Protocols define the interface to the query backend; implementations can be
swapped for testing or alternative data sources.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

DEFAULT_COLUMN = "_value"


@dataclass(eq=False)
class Widget:
    """One configured chart.

    Compared and hashed by identity: titles may repeat, and the widget object
    itself is the key for its datasets and visuals.
    """

    title: str = ""
    query: str = ""
    column: str = ""
    color: str = ""
    height: int = 1
    span: int = 0
    limit: int = 0
    interval: float | None = None
    # Compiled query template, set by the loader for "@file" queries only.
    template: Any = field(default=None, repr=False)

    @property
    def column_name(self) -> str:
        return self.column or DEFAULT_COLUMN


@dataclass(frozen=True)
class Row:
    """Layout grouping of widgets."""

    widgets: tuple[Widget, ...] = ()


@dataclass(frozen=True)
class Config:
    """Static dashboard layout."""

    rows: tuple[Row, ...] = ()

    def widgets(self) -> Iterator[Widget]:
        for row in self.rows:
            yield from row.widgets


@dataclass(frozen=True)
class Dataset:
    """Numeric series extracted from one result table."""

    title: str
    values: tuple[int, ...] = ()


@dataclass(frozen=True)
class ColumnMeta:
    """Column name and declared type, as reported by the backend."""

    label: str
    data_type: str


class Table(Protocol):
    """One grouped table of a query result."""

    @property
    def columns(self) -> Sequence[ColumnMeta]:
        ...

    def key_values(self) -> list[str]:
        """String form of the group key values, in key order."""
        ...

    def ints(self, idx: int) -> Sequence[Any]:
        ...

    def uints(self, idx: int) -> Sequence[Any]:
        ...

    def floats(self, idx: int) -> Sequence[Any]:
        ...


class QueryResult(Protocol):
    """One named result of a query."""

    def tables(self) -> Iterable[Table]:
        ...


class ResultIterator(Protocol):
    """Cancelable iterator over query results.

    Backend failures are raised out of iteration.
    """

    def __iter__(self) -> Iterator[QueryResult]:
        ...

    def __next__(self) -> QueryResult:
        ...

    def cancel(self) -> None:
        """Release the underlying response; safe to call more than once."""
        ...


class QueryBackend(Protocol):
    """Protocol for executing query text."""

    def query(self, text: str) -> ResultIterator:
        ...

    def close(self) -> None:
        ...
