"""Tests for scheduler.py - update cycles and per-widget polling."""

import threading
import time

import pytest

from conftest import BlockingBackend, FakeBackend, float_table
from termgraf.executor import QueryExecutor
from termgraf.providers import Dataset, Widget
from termgraf.scheduler import Scheduler, WidgetUpdater
from termgraf.state import DashboardState
from termgraf.templates import compile_template


def wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class Recorder:
    """Collects notifications from poll threads."""

    def __init__(self) -> None:
        self.widgets: list[Widget] = []
        self._lock = threading.Lock()

    def __call__(self, widget: Widget) -> None:
        with self._lock:
            self.widgets.append(widget)


def make_updater(backend, state=None, notify=None):
    state = state or DashboardState()
    return WidgetUpdater(QueryExecutor(backend), state, notify or Recorder()), state


class TestWidgetUpdater:
    """Tests for a single update cycle."""

    def test_success_stores_and_notifies(self, widget: Widget) -> None:
        backend = FakeBackend([float_table(("a",), [1.0, 2.0])])
        notify = Recorder()
        updater, state = make_updater(backend, notify=notify)

        assert updater.update(widget) is True

        assert state.get(widget) == (Dataset("a\n", (1, 2)),)
        assert notify.widgets == [widget]
        assert backend.queries == [widget.query]

    def test_unchanged_data_does_not_notify(self, widget: Widget) -> None:
        backend = FakeBackend([float_table(("a",), [1.0])])
        notify = Recorder()
        updater, _ = make_updater(backend, notify=notify)

        updater.update(widget)
        updater.update(widget)

        assert notify.widgets == [widget]

    def test_query_failure_keeps_previous_datasets(self, widget: Widget, caplog) -> None:
        backend = FakeBackend([float_table(("a",), [1.0])])
        notify = Recorder()
        updater, state = make_updater(backend, notify=notify)
        updater.update(widget)
        before = state.get(widget)

        backend.stream_error = RuntimeError("backend down")
        assert updater.update(widget) is False

        assert state.get(widget) is before
        assert notify.widgets == [widget]
        assert "backend down" in caplog.text

    def test_template_failure_skips_query(self, caplog) -> None:
        widget = Widget(title="bad", query="@q.flux", template=compile_template("{{ nope }}"))
        backend = FakeBackend([float_table(("a",), [1.0])])
        updater, state = make_updater(backend)

        assert updater.update(widget) is False

        assert backend.queries == []
        assert state.get(widget) is None
        assert "Template render failed" in caplog.text

    def test_renders_template_before_querying(self) -> None:
        widget = Widget(query="@q.flux", template=compile_template("start={{ range.start }}"))
        backend = FakeBackend()
        updater, _ = make_updater(backend)

        updater.update(widget)

        assert backend.queries == ["start=-40s"]

    def test_overlapping_cycle_is_skipped(self, widget: Widget) -> None:
        backend = BlockingBackend([float_table(("a",), [1.0])])
        updater, state = make_updater(backend)
        first = threading.Thread(target=updater.update, args=(widget,))
        first.start()
        assert backend.started.wait(2)

        assert updater.update(widget) is False

        backend.release.set()
        first.join(2)
        assert len(backend.queries) == 1
        assert state.get(widget) == (Dataset("a\n", (1,)),)

    def test_different_widgets_run_concurrently(self) -> None:
        backend = BlockingBackend([float_table(("a",), [1.0])])
        updater, _ = make_updater(backend)
        first, second = Widget(title="one"), Widget(title="two")
        t1 = threading.Thread(target=updater.update, args=(first,))
        t2 = threading.Thread(target=updater.update, args=(second,))
        t1.start()
        t2.start()
        backend.release.set()
        t1.join(2)
        t2.join(2)

        assert len(backend.queries) == 2


class TestScheduler:
    """Tests for Scheduler and its poll tasks."""

    def test_polls_every_widget_until_stopped(self) -> None:
        widgets = [Widget(title="one", query="q1"), Widget(title="two", query="q2")]
        backend = FakeBackend([float_table(("a",), [1.0])])
        updater, state = make_updater(backend)
        scheduler = Scheduler(widgets, updater, interval=0.01)

        scheduler.start()
        try:
            assert wait_for(lambda: all(state.get(w) is not None for w in widgets))
        finally:
            scheduler.stop()

        assert all(not task.is_alive() for task in scheduler.tasks)
        count = len(backend.queries)
        time.sleep(0.05)
        assert len(backend.queries) == count

    def test_widget_interval_overrides_default(self) -> None:
        fast, slow = Widget(title="fast"), Widget(title="slow", interval=30)
        updater, _ = make_updater(FakeBackend())
        scheduler = Scheduler([fast, slow], updater, interval=0.5)

        scheduler.start()
        scheduler.stop()

        assert [task.interval for task in scheduler.tasks] == [0.5, 30]

    def test_first_tick_waits_one_period(self, widget: Widget) -> None:
        backend = FakeBackend()
        updater, _ = make_updater(backend)
        scheduler = Scheduler([widget], updater, interval=10)

        scheduler.start()
        time.sleep(0.05)
        scheduler.stop()

        assert backend.queries == []

    def test_paused_scheduler_skips_ticks(self, widget: Widget) -> None:
        backend = FakeBackend()
        updater, _ = make_updater(backend)
        scheduler = Scheduler([widget], updater, interval=0.01)
        scheduler.paused = True

        scheduler.start()
        time.sleep(0.1)
        scheduler.stop()

        assert backend.queries == []

    def test_trigger_all_runs_immediately(self) -> None:
        widgets = [Widget(title="one"), Widget(title="two")]
        backend = FakeBackend([float_table(("a",), [1.0])])
        updater, state = make_updater(backend)
        scheduler = Scheduler(widgets, updater, interval=60)

        scheduler.trigger_all()

        assert wait_for(lambda: all(state.get(w) is not None for w in widgets))

    def test_stop_cancels_in_flight_query(self, widget: Widget) -> None:
        backend = BlockingBackend([float_table(("a",), [1.0])])
        updater, state = make_updater(backend)
        scheduler = Scheduler([widget], updater, interval=0.01)

        scheduler.start()
        assert backend.started.wait(2)
        scheduler.stop(wait=False)
        backend.release.set()
        for task in scheduler.tasks:
            task.join(2)

        assert state.get(widget) is None

    def test_start_twice_raises(self, widget: Widget) -> None:
        updater, _ = make_updater(FakeBackend())
        scheduler = Scheduler([widget], updater, interval=60)
        scheduler.start()
        try:
            with pytest.raises(RuntimeError, match="already started"):
                scheduler.start()
        finally:
            scheduler.stop()

    def test_stop_joins_after_earlier_non_waiting_stop(self, widget: Widget) -> None:
        backend = BlockingBackend([float_table(("a",), [1.0])])
        updater, _ = make_updater(backend)
        scheduler = Scheduler([widget], updater, interval=0.01)

        scheduler.start()
        assert backend.started.wait(2)
        scheduler.stop(wait=False)
        threading.Timer(0.1, backend.release.set).start()
        scheduler.stop()

        assert [task.is_alive() for task in scheduler.tasks] == [False]
        assert backend.queries == [widget.query]

    def test_stop_joins_refresh_threads(self, widget: Widget) -> None:
        backend = BlockingBackend([float_table(("a",), [1.0])])
        updater, _ = make_updater(backend)
        scheduler = Scheduler([widget], updater, interval=60)

        scheduler.trigger_all()
        assert backend.started.wait(2)
        threading.Timer(0.1, backend.release.set).start()
        scheduler.stop()

        assert backend.queries == [widget.query]

    def test_trigger_all_after_stop_does_nothing(self, widget: Widget) -> None:
        backend = FakeBackend()
        updater, _ = make_updater(backend)
        scheduler = Scheduler([widget], updater, interval=60)

        scheduler.stop()
        scheduler.trigger_all()
        scheduler.stop()

        assert backend.queries == []
