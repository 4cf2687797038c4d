"""
Query execution: turns backend result tables into Datasets.

Every table yields exactly one Dataset, titled by its group key. The target
column's declared type selects a converter; types other than signed,
unsigned and floating point produce an empty series.
"""

from __future__ import annotations

import math
import threading
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

from termgraf.errors import QueryError
from termgraf.providers import DEFAULT_COLUMN, Dataset, QueryBackend, Table


class ColumnKind(Enum):
    """Declared column types, keyed by their annotated-CSV names."""

    SIGNED = "long"
    UNSIGNED = "unsignedLong"
    FLOAT = "double"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_data_type(cls, data_type: str) -> "ColumnKind":
        try:
            return cls(data_type)
        except ValueError:
            return cls.UNSUPPORTED


def _as_int(value: Any) -> int:
    return 0 if value is None else int(value)


def _truncate(value: Any) -> int:
    if value is None:
        return 0
    value = float(value)
    if not math.isfinite(value):
        return 0
    return int(value)


def _convert_signed(table: Table, idx: int) -> list[int]:
    return [_as_int(v) for v in table.ints(idx)]


def _convert_unsigned(table: Table, idx: int) -> list[int]:
    return [_as_int(v) for v in table.uints(idx)]


def _convert_float(table: Table, idx: int) -> list[int]:
    return [_truncate(v) for v in table.floats(idx)]


def _convert_unsupported(table: Table, idx: int) -> list[int]:
    return []


_CONVERTERS: dict[ColumnKind, Callable[[Table, int], list[int]]] = {
    ColumnKind.SIGNED: _convert_signed,
    ColumnKind.UNSIGNED: _convert_unsigned,
    ColumnKind.FLOAT: _convert_float,
    ColumnKind.UNSUPPORTED: _convert_unsupported,
}


def format_dataset_title(table: Table) -> str:
    """Comma-joined group key values, newline-terminated."""
    return ", ".join(table.key_values()) + "\n"


def column_index(label: str, columns: Sequence[Any]) -> int:
    """Index of the column named label, or -1."""
    for i, col in enumerate(columns):
        if col.label == label:
            return i
    return -1


def extract_dataset(table: Table, column: str = DEFAULT_COLUMN) -> Dataset:
    """Build the Dataset for one table.

    A table without the target column still yields its title with no values.
    """
    title = format_dataset_title(table)
    columns = table.columns
    idx = column_index(column or DEFAULT_COLUMN, columns)
    if idx == -1:
        return Dataset(title=title)

    kind = ColumnKind.from_data_type(columns[idx].data_type)
    return Dataset(title=title, values=tuple(_CONVERTERS[kind](table, idx)))


class QueryExecutor:
    """Runs literal query text against a backend."""

    def __init__(self, backend: QueryBackend):
        self._backend = backend

    def execute(
        self,
        query: str,
        column: str = DEFAULT_COLUMN,
        cancel: threading.Event | None = None,
    ) -> tuple[Dataset, ...]:
        """Run a query and return one Dataset per result table.

        All-or-nothing: any failure raises QueryError and nothing is returned.
        """
        try:
            results = self._backend.query(query)
        except Exception as e:
            raise QueryError(f"query failed: {e}") from e

        datasets: list[Dataset] = []
        try:
            for result in results:
                for table in result.tables():
                    if cancel is not None and cancel.is_set():
                        raise QueryError("query cancelled")
                    datasets.append(extract_dataset(table, column))
        except QueryError:
            raise
        except Exception as e:
            raise QueryError(f"reading query results failed: {e}") from e
        finally:
            results.cancel()

        return tuple(datasets)
