"""Typed timer events and a minimal observer bus."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from polmodor.utils.logger import get_logger

from .session import SessionKind, SessionSnapshot

logger = get_logger(__name__)


class TimerEventType(str, Enum):
    STARTED = "started"
    RESUMED = "resumed"
    PAUSED = "paused"
    RESET = "reset"
    TICK = "tick"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    SUBTASK_CHANGED = "subtask_changed"
    LOCK_CHANGED = "lock_changed"
    SETTINGS_APPLIED = "settings_applied"
    RESTORED = "restored"


@dataclass(frozen=True)
class TimerEvent:
    """A state change published after the snapshot was committed in memory.

    ``snapshot`` is a copy taken at publish time. For COMPLETED and SKIPPED
    events, ``previous_kind``/``previous_started_at``/``previous_duration``
    describe the session that just ended.
    """

    type: TimerEventType
    snapshot: SessionSnapshot
    remaining: float
    at: datetime
    previous_kind: SessionKind | None = None
    previous_started_at: datetime | None = None
    previous_duration: int | None = None


TimerObserver = Callable[[TimerEvent], None]


class EventBus:
    """Synchronous fan-out of timer events to subscribers.

    A failing observer is logged and skipped; it never reaches the publisher.
    """

    def __init__(self):
        self._observers: list[TimerObserver] = []

    def subscribe(self, observer: TimerObserver) -> Callable[[], None]:
        """Register *observer* and return a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def publish(self, event: TimerEvent) -> None:
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception:
                logger.warning(
                    "timer observer failed on %s", event.type.value, exc_info=True
                )
