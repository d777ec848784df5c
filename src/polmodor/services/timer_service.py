"""Wires the session clock to its storage, surface and notification backends."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from rich.console import Console

from polmodor.adapters.sqlite.task_repository import SqliteTaskRepository
from polmodor.models.timer.clock import SessionClock
from polmodor.models.timer.events import EventBus
from polmodor.models.timer.ticker import LoopTicker, Ticker
from polmodor.services.config_service import ConfigService, get_config_service
from polmodor.services.history_service import HistoryLogger
from polmodor.services.live_status import LiveStatusSync, StatusFileBackend
from polmodor.services.notification_service import ConsoleNotifier
from polmodor.services.snapshot_store import JsonSnapshotStore
from polmodor.services.task_status import TaskStatusTracker
from polmodor.utils.logger import get_logger

logger = get_logger(__name__)


class TimerService:
    """Owns one fully wired :class:`SessionClock` and its collaborators.

    Timer settings changes made through the config service are forwarded to
    the clock until :meth:`close` is called.
    """

    def __init__(
        self,
        config_service: ConfigService | None = None,
        db_path: str | Path | None = None,
        snapshot_path: Path | None = None,
        ticker: Ticker | None = None,
        console: Console | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.config_service = config_service or get_config_service()
        config = self.config_service.config

        self.repository = SqliteTaskRepository(db_path)
        self.history = HistoryLogger(db_path)
        self.store = JsonSnapshotStore(snapshot_path)
        self.events = EventBus()
        self.live_status = LiveStatusSync(
            StatusFileBackend(
                self.config_service.live_status_directory(),
                enabled=config.live_status.enabled,
            )
        )
        self.notifier = ConsoleNotifier(console, sound=config.timer.sound_enabled)

        extra = {} if clock is None else {"clock": clock}
        self.clock = SessionClock(
            settings=config.timer,
            store=self.store,
            presentation=self.live_status,
            subtasks=self.repository,
            ticker=ticker or LoopTicker(),
            notifier=self.notifier,
            events=self.events,
            **extra,
        )

        self._unsubscribers = [
            self.events.subscribe(self.history),
            self.events.subscribe(TaskStatusTracker(self.repository)),
            self.config_service.subscribe(self._on_settings_changed),
        ]

    def _on_settings_changed(self, settings) -> None:
        self.notifier.sound = settings.sound_enabled
        self.clock.apply_settings(settings)

    def restore(self, now: datetime | None = None) -> SessionClock:
        """Load the persisted session and catch up with the wall clock."""
        self.clock.restore(now)
        return self.clock

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []


def get_timer_service() -> TimerService:
    """Build a timer service on the default config, restored from disk."""
    service = TimerService()
    service.restore()
    return service
