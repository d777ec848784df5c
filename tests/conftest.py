"""Shared test fixtures and configuration.

Isolates tests from the real config/data directories and provides
deterministic stand-ins (clock, ticker, stores, surface) for the timer core.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from polmodor.models.config_models import TimerSettings
from polmodor.models.task import Subtask
from polmodor.models.timer.clock import SessionClock
from polmodor.models.timer.events import EventBus
from polmodor.models.timer.session import SessionSnapshot
from polmodor.repositories.repository import SubtaskLookup

T0 = datetime(2026, 3, 2, 9, 0, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Filesystem isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path):
    """Point every platformdirs lookup at *tmp_path* and reset cached state."""
    from polmodor.adapters.sqlite.connection import DatabaseConnection
    from polmodor.services.config_service import get_config_service

    config_dir = str(tmp_path / "config")
    data_dir = str(tmp_path / "data")
    get_config_service.cache_clear()
    with (
        patch("polmodor.services.config_service.user_config_dir", return_value=config_dir),
        patch("polmodor.services.config_service.user_data_dir", return_value=data_dir),
        patch("polmodor.services.snapshot_store.user_data_dir", return_value=data_dir),
        patch("polmodor.adapters.sqlite.connection.user_data_dir", return_value=data_dir),
    ):
        yield tmp_path
    get_config_service.cache_clear()
    DatabaseConnection.close_all()


# ---------------------------------------------------------------------------
# Timer core doubles
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


class FakeTicker:
    """Ticker that only fires when the test says so."""

    def __init__(self):
        self.callback = None
        self.starts = 0
        self.stops = 0

    @property
    def is_active(self) -> bool:
        return self.callback is not None

    def start(self, callback) -> None:
        self.starts += 1
        self.callback = callback

    def stop(self) -> None:
        self.stops += 1
        self.callback = None

    def fire(self):
        assert self.callback is not None, "ticker is not armed"
        return self.callback()


class InMemorySubtasks(SubtaskLookup):
    """Dictionary-backed subtask lookup with switchable failures."""

    def __init__(self):
        self.items: dict[str, Subtask] = {}
        self.fail_fetch = False
        self.fail_save = False
        self.saves = 0

    def add(self, subtask_id: str, title: str = "Write report", target: int = 2, completed: int = 0) -> Subtask:
        subtask = Subtask(
            id=subtask_id,
            task_id="task-1",
            title=title,
            pomodoro_target=target,
            pomodoro_completed=completed,
            created_at=T0,
            updated_at=T0,
        )
        self.items[subtask_id] = subtask
        return subtask

    def fetch_by_id(self, subtask_id: str) -> Subtask | None:
        if self.fail_fetch:
            raise RuntimeError("lookup unavailable")
        return self.items.get(subtask_id)

    def save(self, subtask: Subtask) -> Subtask:
        if self.fail_save:
            raise RuntimeError("save failed")
        self.saves += 1
        self.items[subtask.id] = subtask
        return subtask


class MemoryStore:
    """Snapshot store keeping the last saved record in memory."""

    def __init__(self, initial: SessionSnapshot | None = None):
        self.record = initial.copy() if initial else None
        self.saves = 0
        self.fail_save = False

    def save(self, snapshot: SessionSnapshot) -> None:
        if self.fail_save:
            raise OSError("disk full")
        self.saves += 1
        self.record = snapshot.copy()

    def load(self, lookup=None) -> SessionSnapshot | None:
        if self.record is None:
            return None
        snapshot = self.record.copy()
        if lookup is not None and snapshot.active_subtask_id is not None:
            if lookup.fetch_by_id(snapshot.active_subtask_id) is None:
                snapshot.active_subtask_id = None
        return snapshot


class RecordingPresentation:
    """Live status sync double that records every call in order."""

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []
        self.fail = False

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def last(self, name: str) -> dict:
        for call_name, kwargs in reversed(self.calls):
            if call_name == name:
                return kwargs
        raise AssertionError(f"{name} was never called")

    async def _record(self, name: str, **kwargs):
        self.calls.append((name, kwargs))
        if self.fail:
            raise RuntimeError("surface backend down")

    async def start_surface(self, **kwargs):
        await self._record("start_surface", **kwargs)

    async def update_surface(self, **kwargs):
        await self._record("update_surface", **kwargs)

    async def end_surface(self):
        await self._record("end_surface")

    async def toggle_pause(self, paused, remaining, paused_at=None):
        await self._record("toggle_pause", paused=paused, remaining=remaining, paused_at=paused_at)

    async def toggle_lock(self, locked):
        await self._record("toggle_lock", locked=locked)

    async def cleanup_orphans(self):
        await self._record("cleanup_orphans")
        return 0


class RecordingNotifier:
    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    def notify(self, title: str, message: str) -> None:
        self.messages.append((title, message))


@pytest.fixture()
def fake_clock():
    return FakeClock()


@pytest.fixture()
def fake_ticker():
    return FakeTicker()


@pytest.fixture()
def subtasks():
    return InMemorySubtasks()


@pytest.fixture()
def store():
    return MemoryStore()


@pytest.fixture()
def presentation():
    return RecordingPresentation()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def events():
    return EventBus()


@pytest.fixture()
def recorded_events(events):
    received = []
    events.subscribe(received.append)
    return received


@pytest.fixture()
def make_clock(store, presentation, subtasks, fake_ticker, fake_clock, notifier, events):
    """Factory building a SessionClock wired to the shared doubles."""

    def _make(settings: TimerSettings | None = None, **overrides) -> SessionClock:
        kwargs = dict(
            settings=settings or TimerSettings(),
            store=store,
            presentation=presentation,
            subtasks=subtasks,
            ticker=fake_ticker,
            clock=fake_clock,
            notifier=notifier,
            events=events,
        )
        kwargs.update(overrides)
        return SessionClock(**kwargs)

    return _make


@pytest.fixture()
def session_clock(make_clock):
    return make_clock()
