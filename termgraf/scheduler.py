"""
Per-widget polling.

Each widget gets its own PollTask thread that runs an update cycle once per
period: render the query, execute it, store the datasets and publish a
change notification. Failures are logged and the previous datasets stay in
place until the next tick.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable

from termgraf.errors import QueryError, TemplateRenderError
from termgraf.executor import QueryExecutor
from termgraf.providers import Widget
from termgraf.state import DashboardState
from termgraf.templates import DEFAULT_TEMPLATE_DATA, TemplateData, render_query

logger = logging.getLogger(__name__)

# Poll period in seconds for widgets without their own interval
DEFAULT_POLL_INTERVAL = 1.0


class WidgetUpdater:
    """Runs update cycles, at most one in flight per widget."""

    def __init__(
        self,
        executor: QueryExecutor,
        state: DashboardState,
        notify: Callable[[Widget], None],
        template_data: TemplateData = DEFAULT_TEMPLATE_DATA,
    ) -> None:
        self._executor = executor
        self._state = state
        self._notify = notify
        self._template_data = template_data
        self._guard = threading.Lock()
        self._in_flight: dict[Widget, threading.Lock] = {}

    def _flight_lock(self, widget: Widget) -> threading.Lock:
        with self._guard:
            return self._in_flight.setdefault(widget, threading.Lock())

    def update(self, widget: Widget, cancel: threading.Event | None = None) -> bool:
        """Run one cycle for a widget.

        Returns True if new datasets were stored. A cycle requested while
        another one for the same widget is running is skipped.
        """
        flight = self._flight_lock(widget)
        if not flight.acquire(blocking=False):
            logger.debug("Skipping update of %r: previous cycle still running", widget.title)
            return False
        try:
            return self._run_cycle(widget, cancel)
        finally:
            flight.release()

    def _run_cycle(self, widget: Widget, cancel: threading.Event | None) -> bool:
        try:
            query = render_query(widget, self._template_data)
        except TemplateRenderError as e:
            logger.warning("Template render failed for %r: %s", widget.title, e)
            return False

        try:
            datasets = self._executor.execute(query, widget.column_name, cancel)
        except QueryError as e:
            logger.warning("Query failed for %r: %s", widget.title, e)
            return False

        if self._state.replace(widget, datasets):
            self._notify(widget)
        return True


class PollTask(threading.Thread):
    """Repeating timer driving one widget's updates."""

    def __init__(self, widget: Widget, scheduler: "Scheduler", interval: float) -> None:
        super().__init__(name=f"poll-{widget.title or id(widget)}", daemon=True)
        self.widget = widget
        self.interval = interval
        self._scheduler = scheduler

    def run(self) -> None:
        stopped = self._scheduler.stop_event
        while not stopped.wait(self.interval):
            if self._scheduler.paused:
                continue
            self._scheduler.updater.update(self.widget, stopped)


class Scheduler:
    """Owns the poll tasks of all widgets and stops them as a group."""

    def __init__(
        self,
        widgets: Iterable[Widget],
        updater: WidgetUpdater,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.updater = updater
        self.interval = interval
        self.paused = False
        self.stop_event = threading.Event()
        self._widgets = list(widgets)
        self._tasks: list[PollTask] = []
        self._refreshes: list[threading.Thread] = []
        self._refresh_lock = threading.Lock()

    @property
    def tasks(self) -> list[PollTask]:
        return list(self._tasks)

    def start(self) -> None:
        """Start one poll task per widget."""
        if self._tasks:
            raise RuntimeError("scheduler already started")
        for widget in self._widgets:
            task = PollTask(widget, self, widget.interval or self.interval)
            self._tasks.append(task)
            task.start()
        logger.info("Started polling %d widget(s)", len(self._tasks))

    def stop(self, wait: bool = True, timeout: float | None = None) -> None:
        """Cancel every task; in-flight queries see the cancel event.

        With `wait`, joins the poll and refresh threads even if an earlier
        call already set the event.
        """
        if not self.stop_event.is_set():
            self.stop_event.set()
            logger.info("Stopped polling")
        if not wait:
            return
        with self._refresh_lock:
            threads = self._tasks + self._refreshes
        for thread in threads:
            if thread.is_alive():
                thread.join(timeout)

    def trigger_all(self) -> None:
        """Run an immediate cycle for every widget in the background."""
        with self._refresh_lock:
            if self.stop_event.is_set():
                return
            self._refreshes = [t for t in self._refreshes if t.is_alive()]
            for widget in self._widgets:
                thread = threading.Thread(
                    target=self.updater.update,
                    args=(widget, self.stop_event),
                    name=f"refresh-{widget.title or id(widget)}",
                    daemon=True,
                )
                self._refreshes.append(thread)
                thread.start()
