"""Main dashboard view: rows of sparkline panels."""

from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import Screen
from textual.widgets import Footer, Header, Label

from termgraf.providers import Config, Widget
from termgraf.state import DashboardState
from termgraf.views.widgets import SparklinesPanel


class DashboardScreen(Screen):
    """Main dashboard screen."""

    DEFAULT_CSS = """
    DashboardScreen #rows {
        height: 1fr;
    }

    DashboardScreen .widget-row {
        height: auto;
        width: 100%;
    }

    .no-widgets {
        text-align: center;
        margin: 2;
        color: $warning;
    }
    """

    def __init__(self, config: Config, state: DashboardState, **kwargs) -> None:
        super().__init__(**kwargs)
        self._config = config
        self._state = state
        self._panels: dict[Widget, SparklinesPanel] = {}

    def compose(self) -> ComposeResult:
        yield Header()

        if not any(True for _ in self._config.widgets()):
            yield Label("No widgets configured.", classes="no-widgets")
            yield Footer()
            return

        with VerticalScroll(id="rows"):
            for row in self._config.rows:
                with Horizontal(classes="widget-row"):
                    for widget in row.widgets:
                        panel = SparklinesPanel(widget)
                        self._panels[widget] = panel
                        yield panel

        yield Footer()

    def on_mount(self) -> None:
        # Catch up on anything stored before the panels existed
        self.render_all()

    def panel_for(self, widget: Widget) -> SparklinesPanel | None:
        return self._panels.get(widget)

    def render_widget(self, widget: Widget) -> bool:
        """Reconcile one widget's panel with its stored datasets and repaint."""
        panel = self._panels.get(widget)
        if panel is None:
            return False
        changed = panel.reconcile(self._state.get(widget) or ())
        if changed:
            self.refresh()
        return changed

    def render_all(self) -> None:
        """Reconcile every widget that already has stored datasets."""
        for widget in self._state.widgets():
            self.render_widget(widget)
