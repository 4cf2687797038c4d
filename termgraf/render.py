"""Reconciliation of a widget's sparkline lines against its datasets."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from termgraf.providers import Dataset, Widget

BORDER_THICKNESS = 1

COLORS = ("black", "red", "green", "yellow", "blue", "magenta", "cyan", "white")
DEFAULT_COLOR = "green"


def lookup_color(name: str) -> str:
    return name if name in COLORS else DEFAULT_COLOR


def panel_height(widget: Widget) -> int:
    """Rows reserved for a widget: `limit` lines of title plus chart, and borders."""
    return widget.limit * (widget.height + 1) + BORDER_THICKNESS * 2


@dataclass
class SparklineLine:
    """Visual state of one sparkline."""

    title: str = ""
    data: tuple[int, ...] = ()
    color: str = DEFAULT_COLOR
    height: int = 1


def reconcile_lines(
    lines: list[SparklineLine],
    widget: Widget,
    datasets: Sequence[Dataset],
) -> bool:
    """Make `lines` mirror `datasets` in place. Returns whether anything changed."""
    changed = False

    if len(lines) > len(datasets):
        del lines[len(datasets):]
        changed = True

    color = lookup_color(widget.color)
    while len(lines) < len(datasets):
        lines.append(SparklineLine(color=color, height=widget.height))
        changed = True

    for line, ds in zip(lines, datasets):
        if line.title != ds.title or line.data != ds.values:
            line.title = ds.title
            line.data = ds.values
            changed = True

    return changed
