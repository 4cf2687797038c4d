"""
Dataset store shared between polling threads and the UI.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

from termgraf.providers import Dataset, Widget


class DashboardState:
    """Latest datasets per widget, keyed by widget identity.

    All access goes through one lock. A stored list is only ever replaced
    whole, never edited in place.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._datasets: dict[Widget, tuple[Dataset, ...]] = {}

    def get(self, widget: Widget) -> tuple[Dataset, ...] | None:
        """Current datasets for a widget, or None if it was never updated."""
        with self._lock:
            return self._datasets.get(widget)

    def replace(self, widget: Widget, datasets: Iterable[Dataset]) -> bool:
        """Substitute the widget's datasets. Returns whether they changed."""
        new = tuple(datasets)
        with self._lock:
            old = self._datasets.get(widget)
            self._datasets[widget] = new
        return old != new

    def widgets(self) -> list[Widget]:
        with self._lock:
            return list(self._datasets)
