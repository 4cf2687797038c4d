"""Reusable widgets for the dashboard."""

from collections.abc import Sequence

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Label, Sparkline

from termgraf.providers import Dataset, Widget
from termgraf.render import (
    COLORS,
    SparklineLine,
    panel_height,
    reconcile_lines,
)


def _color_css() -> str:
    rules = []
    for color in COLORS:
        rules.append(
            f"SparklineRow.-{color} .line-title {{ color: {color}; }}\n"
            f"SparklineRow.-{color} Sparkline > .sparkline--max-color {{ color: {color}; }}\n"
            f"SparklineRow.-{color} Sparkline > .sparkline--min-color {{ color: {color} 50%; }}\n"
        )
    return "".join(rules)


class SparklineRow(Vertical):
    """Single titled sparkline inside a panel."""

    DEFAULT_CSS = """
    SparklineRow {
        height: auto;
        width: 100%;
    }

    SparklineRow .line-title {
        height: 1;
        text-style: bold;
    }
    """ + _color_css()

    def __init__(self, line: SparklineLine, **kwargs) -> None:
        super().__init__(**kwargs)
        self.add_class(f"-{line.color}")
        self._title_label = Label(line.title.rstrip("\n"), classes="line-title", markup=False)
        self._chart = Sparkline(list(line.data), summary_function=max)
        self._chart.styles.height = line.height
        self._shown = (line.title, line.data)

    def compose(self) -> ComposeResult:
        yield self._title_label
        yield self._chart

    @property
    def shown_line(self) -> tuple[str, tuple[int, ...]]:
        """Title and data currently displayed."""
        return self._shown

    def set_line(self, line: SparklineLine) -> None:
        if (line.title, line.data) == self._shown:
            return
        self._title_label.update(line.title.rstrip("\n"))
        self._chart.data = list(line.data)
        self._shown = (line.title, line.data)


class SparklinesPanel(Vertical):
    """Bordered panel holding one widget's sparklines."""

    DEFAULT_CSS = """
    SparklinesPanel {
        border: solid $primary;
        padding: 0 1;
        overflow: hidden;
    }
    """

    def __init__(self, widget: Widget, **kwargs) -> None:
        super().__init__(**kwargs)
        self._chart_widget = widget
        self._spark_lines: list[SparklineLine] = []
        self._spark_rows: list[SparklineRow] = []
        self.border_title = widget.title
        self.styles.height = panel_height(widget)
        self.styles.width = f"{max(widget.span, 1)}fr"

    @property
    def chart_widget(self) -> Widget:
        return self._chart_widget

    @property
    def spark_lines(self) -> tuple[SparklineLine, ...]:
        return tuple(self._spark_lines)

    @property
    def spark_rows(self) -> tuple[SparklineRow, ...]:
        return tuple(self._spark_rows)

    def reconcile(self, datasets: Sequence[Dataset]) -> bool:
        """Bring the displayed lines in line with `datasets`.

        Returns whether anything changed. Must run on the UI thread.
        """
        if not self.is_mounted:
            return False
        if not reconcile_lines(self._spark_lines, self._chart_widget, datasets):
            return False

        keep = len(self._spark_lines)
        for row in self._spark_rows[keep:]:
            row.remove()
        del self._spark_rows[keep:]

        for row, line in zip(self._spark_rows, self._spark_lines):
            row.set_line(line)

        new_rows = [SparklineRow(line) for line in self._spark_lines[len(self._spark_rows):]]
        if new_rows:
            self.mount(*new_rows)
            self._spark_rows.extend(new_rows)

        self.refresh(layout=True)
        return True
