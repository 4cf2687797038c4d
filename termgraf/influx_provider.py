"""
QueryBackend implementation over the InfluxDB 2.x HTTP API.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from datetime import datetime
from typing import Any

from influxdb_client import InfluxDBClient
from influxdb_client.client.flux_table import FluxTable

from termgraf.providers import ColumnMeta

logger = logging.getLogger(__name__)

DEFAULT_HOST = "http://localhost:8086"
DEFAULT_RESULT = "_result"


def _value_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class FluxTableReader:
    """Table view over an influxdb_client FluxTable."""

    def __init__(self, table: FluxTable):
        self._table = table
        self._columns = tuple(
            ColumnMeta(label=c.label, data_type=c.data_type) for c in table.columns
        )

    @property
    def columns(self) -> Sequence[ColumnMeta]:
        return self._columns

    def key_values(self) -> list[str]:
        first = self._table.records[0].values if self._table.records else {}
        return [
            _value_string(first.get(col.label, col.default_value))
            for col in self._table.get_group_key()
        ]

    def _column(self, idx: int) -> list[Any]:
        label = self._columns[idx].label
        return [record.values.get(label) for record in self._table.records]

    def ints(self, idx: int) -> list[Any]:
        return self._column(idx)

    def uints(self, idx: int) -> list[Any]:
        return self._column(idx)

    def floats(self, idx: int) -> list[Any]:
        return self._column(idx)


class InfluxResult:
    """Tables sharing one `result` name."""

    def __init__(self, name: str):
        self.name = name
        self._tables: list[FluxTableReader] = []

    def add(self, table: FluxTable) -> None:
        self._tables.append(FluxTableReader(table))

    def tables(self) -> list[FluxTableReader]:
        return list(self._tables)


def split_results(tables: Sequence[FluxTable]) -> list[InfluxResult]:
    """Group consecutive tables by the `result` column of their records."""
    results: list[InfluxResult] = []
    for table in tables:
        if table.records:
            name = table.records[0].values.get("result") or DEFAULT_RESULT
        elif results:
            name = results[-1].name
        else:
            name = DEFAULT_RESULT
        if not results or results[-1].name != name:
            results.append(InfluxResult(name))
        results[-1].add(table)
    return results


class InfluxResultIterator:
    """Iterator over the results of one query."""

    def __init__(self, results: list[InfluxResult]):
        self._results: Iterator[InfluxResult] | None = iter(results)

    def __iter__(self) -> "InfluxResultIterator":
        return self

    def __next__(self) -> InfluxResult:
        if self._results is None:
            raise StopIteration
        return next(self._results)

    def cancel(self) -> None:
        self._results = None


class InfluxQueryBackend:
    """Runs Flux queries through influxdb_client's query API."""

    def __init__(self, url: str = DEFAULT_HOST, token: str = "", org: str = ""):
        self.url = url
        self.org = org
        self._client = InfluxDBClient(url=url, token=token, org=org)
        self._query_api = self._client.query_api()

    def query(self, text: str) -> InfluxResultIterator:
        tables = self._query_api.query(text, org=self.org or None)
        logger.debug("Query on %s returned %d table(s)", self.url, len(tables))
        return InfluxResultIterator(split_results(tables))

    def close(self) -> None:
        self._client.close()
