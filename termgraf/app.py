"""
termgraf TUI application.

Polling threads never draw: they post a DatasetsUpdated message, which the
app's event loop drains and turns into a panel reconciliation.
"""

from __future__ import annotations

import sys

from textual.app import App
from textual.binding import Binding
from textual.message import Message

from termgraf.errors import UIInitError
from termgraf.executor import QueryExecutor
from termgraf.providers import Config, QueryBackend, Widget
from termgraf.scheduler import DEFAULT_POLL_INTERVAL, Scheduler, WidgetUpdater
from termgraf.state import DashboardState
from termgraf.views.dashboard import DashboardScreen


class DatasetsUpdated(Message):
    """A widget's stored datasets changed."""

    def __init__(self, widget: Widget) -> None:
        super().__init__()
        self.widget = widget


class TermgrafApp(App):
    """Main termgraf application."""

    TITLE = "termgraf"
    SUB_TITLE = "Flux Sparklines"

    CSS = """
    Screen {
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
        Binding("r", "refresh", "Refresh", show=True),
        Binding("a", "toggle_auto_refresh", "Auto-Refresh", show=True),
        Binding("d", "toggle_dark", "Dark/Light", show=True),
    ]

    def __init__(
        self,
        config: Config,
        backend: QueryBackend,
        interval: float = DEFAULT_POLL_INTERVAL,
        auto_refresh: bool = True,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._state = DashboardState()
        self._updater = WidgetUpdater(
            QueryExecutor(backend), self._state, self._post_update
        )
        self._scheduler = Scheduler(config.widgets(), self._updater, interval=interval)
        self._scheduler.paused = not auto_refresh
        self._dashboard = DashboardScreen(config, self._state)

    @property
    def dashboard_state(self) -> DashboardState:
        return self._state

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def dashboard(self) -> DashboardScreen:
        return self._dashboard

    def on_mount(self) -> None:
        """Called when app is mounted."""
        self.push_screen(self._dashboard)
        self._scheduler.start()

    def _post_update(self, widget: Widget) -> None:
        # Called from poll threads; post_message is thread-safe.
        self.post_message(DatasetsUpdated(widget))

    def on_datasets_updated(self, message: DatasetsUpdated) -> None:
        self._dashboard.render_widget(message.widget)

    def action_refresh(self) -> None:
        """Query every widget now."""
        self._scheduler.trigger_all()

    def action_toggle_auto_refresh(self) -> None:
        """Toggle polling on/off."""
        self._scheduler.paused = not self._scheduler.paused
        if self._scheduler.paused:
            self.notify("Auto-refresh disabled")
        else:
            self.notify("Auto-refresh enabled")

    async def action_quit(self) -> None:
        self._scheduler.stop(wait=False)
        self.exit()


def run(
    config: Config,
    backend: QueryBackend,
    interval: float = DEFAULT_POLL_INTERVAL,
    auto_refresh: bool = True,
) -> None:
    """Run the TUI application until the user quits."""
    if not sys.stdout.isatty():
        raise UIInitError("stdout is not a terminal")

    app = TermgrafApp(config, backend, interval=interval, auto_refresh=auto_refresh)
    try:
        app.run()
    except Exception as e:
        raise UIInitError(f"terminal session failed: {e}") from e
    finally:
        app.scheduler.stop()
