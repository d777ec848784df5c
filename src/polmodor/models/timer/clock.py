"""Session clock: the Pomodoro timer state machine.

The clock owns the single :class:`SessionSnapshot`. Every command mutates the
in-memory snapshot first, then saves it, then publishes a
:class:`TimerEvent`, then notifies the live status surface. Failures at the
storage or presentation boundary are logged and never reach the caller.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from datetime import datetime, timedelta
from typing import Any, Protocol

from polmodor.models.config_models import TimerSettings
from polmodor.repositories.repository import SubtaskLookup
from polmodor.services.notification_service import Notifier, completion_message
from polmodor.utils.logger import get_logger

from . import cycle
from .durations import duration_for
from .events import EventBus, TimerEvent, TimerEventType
from .progress import SubtaskProgressUpdater
from .reconcile import reconcile_after_suspension
from .session import SessionKind, SessionSnapshot
from .ticker import Ticker

logger = get_logger(__name__)

DEFAULT_LABEL = "Polmodor Timer"


class SnapshotStore(Protocol):
    def save(self, snapshot: SessionSnapshot) -> None: ...

    def load(self, lookup: SubtaskLookup | None = None) -> SessionSnapshot | None: ...


class PresentationSync(Protocol):
    """Live status surface operations, as coroutines."""

    def start_surface(
        self,
        label: str,
        remaining: int,
        kind: SessionKind,
        started_at: datetime | None,
        paused_at: datetime | None,
        nominal_duration: int,
        locked: bool = False,
    ) -> Awaitable[None]: ...

    def update_surface(self, **fields: Any) -> Awaitable[None]: ...

    def end_surface(self) -> Awaitable[None]: ...

    def toggle_pause(
        self, paused: bool, remaining: int, paused_at: datetime | None = None
    ) -> Awaitable[None]: ...

    def toggle_lock(self, locked: bool) -> Awaitable[None]: ...

    def cleanup_orphans(self) -> Awaitable[int]: ...


def _local_now() -> datetime:
    return datetime.now().astimezone()


class SessionClock:
    """Tracks one Pomodoro session and walks the work/break cycle."""

    def __init__(
        self,
        settings: TimerSettings,
        store: SnapshotStore,
        presentation: PresentationSync | None,
        subtasks: SubtaskLookup,
        ticker: Ticker,
        notifier: Notifier | None = None,
        events: EventBus | None = None,
        clock: Callable[[], datetime] = _local_now,
        surface_refresh_seconds: int = 15,
    ):
        self.settings = settings
        self.store = store
        self.subtasks = subtasks
        self.ticker = ticker
        self.presentation = presentation
        self.notifier = notifier
        self.events = events or EventBus()
        self.clock = clock
        self.surface_refresh_seconds = surface_refresh_seconds

        self.progress_updater = SubtaskProgressUpdater(subtasks)
        self.snapshot = SessionSnapshot(
            nominal_duration=duration_for(SessionKind.WORK, settings)
        )

        self._surface_open = False
        self._last_surface_push: float | None = None
        self._pending: set[asyncio.Task] = set()

    # ----- Queries -----

    @property
    def is_running(self) -> bool:
        return self.snapshot.is_running

    @property
    def kind(self) -> SessionKind:
        return self.snapshot.kind

    def query_remaining(self, now: datetime | None = None) -> float:
        """Seconds left in the loaded session; frozen while paused."""
        return self.snapshot.remaining(now or self.clock())

    def query_progress(self, now: datetime | None = None) -> float:
        nominal = self.snapshot.nominal_duration
        if nominal <= 0:
            return 0.0
        return max(0.0, min(1.0, 1 - self.query_remaining(now) / nominal))

    @property
    def label(self) -> str:
        """Title of the active subtask, or a generic label."""
        subtask_id = self.snapshot.active_subtask_id
        if subtask_id is None:
            return DEFAULT_LABEL
        try:
            subtask = self.subtasks.fetch_by_id(subtask_id)
        except Exception:
            logger.warning("could not fetch subtask %s", subtask_id, exc_info=True)
            return DEFAULT_LABEL
        return subtask.title if subtask else DEFAULT_LABEL

    # ----- Commands -----

    def start(self) -> None:
        """Start a fresh session or resume a paused one."""
        snap = self.snapshot
        if snap.is_running:
            logger.debug("start ignored: already running")
            return

        now = self.clock()
        if self.query_remaining(now) <= 0:
            logger.debug("start ignored: no time remaining")
            return

        resuming = snap.started_at is not None
        if resuming:
            elapsed = snap.elapsed(now)
            snap.started_at = now - timedelta(seconds=elapsed)
        else:
            snap.nominal_duration = duration_for(snap.kind, self.settings)
            snap.started_at = now
        snap.paused_at = None
        snap.is_running = True

        self._persist()
        self.ticker.start(self.tick)
        self._last_surface_push = None
        event_type = TimerEventType.RESUMED if resuming else TimerEventType.STARTED
        self._publish(event_type, now)
        logger.info(
            "%s %s session (%ds left)",
            "resumed" if resuming else "started",
            snap.kind.value,
            int(self.query_remaining(now)),
        )

        if resuming and self._surface_open:
            self._fire(
                self.presentation.update_surface(
                    remaining=int(self.query_remaining(now)), paused_at=None
                )
            )
        else:
            self._open_surface(now)

    def pause(self) -> None:
        snap = self.snapshot
        if not snap.is_running:
            logger.debug("pause ignored: not running")
            return

        now = self.clock()
        snap.is_running = False
        snap.paused_at = now
        self.ticker.stop()

        self._persist()
        remaining = self.query_remaining(now)
        self._publish(TimerEventType.PAUSED, now)
        logger.info("paused %s session (%ds left)", snap.kind.value, int(remaining))

        if self._surface_open:
            self._fire(self.presentation.toggle_pause(True, int(remaining), now))
        else:
            self._open_surface(now)

    def reset(self, full: bool = False) -> None:
        """Stop the clock and reload the current kind's duration.

        With *full*, also return to a work session and clear the cycle count.
        """
        self.ticker.stop()
        snap = self.snapshot
        snap.is_running = False
        snap.started_at = None
        snap.paused_at = None
        if full:
            snap.kind = SessionKind.WORK
            snap.completed_work_count = 0
        snap.nominal_duration = duration_for(snap.kind, self.settings)

        now = self.clock()
        self._persist()
        self._publish(TimerEventType.RESET, now)
        logger.info("reset %s session%s", snap.kind.value, " and cycle" if full else "")
        self._close_surface()

    def tick(self) -> bool:
        """Advance on a periodic trigger. Returns True if the session completed."""
        if not self.snapshot.is_running:
            return False

        now = self.clock()
        remaining = self.query_remaining(now)
        if remaining <= 0:
            self._complete(now, natural=True)
            return True

        self._publish(TimerEventType.TICK, now)
        elapsed = int(self.snapshot.elapsed(now))
        if (
            self._surface_open
            and elapsed % self.surface_refresh_seconds == 0
            and self._last_surface_push != elapsed
        ):
            self._last_surface_push = elapsed
            self._fire(
                self.presentation.update_surface(remaining=int(remaining), paused_at=None)
            )
        return False

    def skip_to_next(self) -> None:
        """Move to the next session without crediting the current one."""
        self._complete(self.clock(), natural=False)

    def set_active_subtask(self, subtask_id: str | None) -> str | None:
        """Attach the timer to a subtask. Unknown ids clear the attachment."""
        if subtask_id is not None:
            try:
                found = self.subtasks.fetch_by_id(subtask_id)
            except Exception:
                logger.warning("could not fetch subtask %s", subtask_id, exc_info=True)
                found = None
            if found is None:
                logger.info("unknown subtask %s, clearing active subtask", subtask_id)
                subtask_id = None

        self.snapshot.active_subtask_id = subtask_id
        now = self.clock()
        self._persist()
        self._publish(TimerEventType.SUBTASK_CHANGED, now)

        if self._surface_open:
            self._fire(
                self.presentation.update_surface(
                    label=self.label, paused_at=self.snapshot.paused_at
                )
            )
        return subtask_id

    def toggle_lock(self) -> bool:
        snap = self.snapshot
        snap.locked = not snap.locked
        now = self.clock()
        self._persist()
        self._publish(TimerEventType.LOCK_CHANGED, now)
        if self._surface_open:
            self._fire(self.presentation.toggle_lock(snap.locked))
        return snap.locked

    def apply_settings(self, settings: TimerSettings) -> None:
        """Adopt new settings. A session already counting down keeps its length."""
        self.settings = settings
        snap = self.snapshot
        if not snap.is_idle:
            logger.debug("settings changed mid-session; duration kept")
            return

        duration = duration_for(snap.kind, settings)
        if duration == snap.nominal_duration:
            return
        snap.nominal_duration = duration
        now = self.clock()
        self._persist()
        self._publish(TimerEventType.SETTINGS_APPLIED, now)

    # ----- Restore / reconcile -----

    def restore(self, now: datetime | None = None) -> None:
        """Cold start: load the saved snapshot and catch up with the clock."""
        loaded = None
        try:
            loaded = self.store.load(self.subtasks)
        except Exception:
            logger.warning("could not load timer snapshot", exc_info=True)

        if loaded is not None:
            self.snapshot = loaded
        if self.snapshot.is_idle:
            self.snapshot.nominal_duration = duration_for(
                self.snapshot.kind, self.settings
            )

        if self.presentation is not None:
            self._fire(self.presentation.cleanup_orphans())
        self._safe_reconcile(now)

    def reload(self, now: datetime | None = None) -> bool:
        """Adopt a snapshot saved by another process.

        Returns True when the stored record differed from the one in memory.
        The adopted session is reconciled like a cold start, so a session
        stopped elsewhere stops ticking here and closes its surface.
        """
        try:
            loaded = self.store.load(self.subtasks)
        except Exception:
            logger.warning("could not reload timer snapshot", exc_info=True)
            return False
        if loaded is None or loaded.to_dict() == self.snapshot.to_dict():
            return False

        logger.info(
            "timer changed elsewhere: %s session, %s",
            loaded.kind.value,
            "running" if loaded.is_running else "paused" if loaded.is_paused else "idle",
        )
        self.ticker.stop()
        self.snapshot = loaded
        if self.presentation is not None:
            self._fire(self.presentation.cleanup_orphans())
        if loaded.is_idle and self._surface_open:
            self._close_surface()
        self._safe_reconcile(now)
        return True

    def _safe_reconcile(self, now: datetime | None) -> None:
        try:
            self.reconcile(now)
        except Exception:
            logger.warning(
                "could not reconcile stored session, starting fresh", exc_info=True
            )
            self.ticker.stop()
            self.snapshot = SessionSnapshot(
                nominal_duration=duration_for(SessionKind.WORK, self.settings)
            )
            self._persist()

    def reconcile(self, now: datetime | None = None) -> None:
        """Resume from suspension, completing a session that ran out meanwhile."""
        now = now or self.clock()
        outcome = reconcile_after_suspension(self.snapshot, now)

        if outcome.expired:
            logger.info(
                "%s session ran out while suspended", self.snapshot.kind.value
            )
            self._complete(outcome.missed_at or now, natural=True, auto_start=False)
            return

        if self.snapshot.is_running:
            self.ticker.start(self.tick)
            self._open_surface(now)
        elif self.snapshot.is_paused:
            self.ticker.stop()
            self._open_surface(now)
        self._publish(TimerEventType.RESTORED, now)

    # ----- Completion transition -----

    def _complete(self, now: datetime, natural: bool, auto_start: bool = True) -> None:
        snap = self.snapshot
        self.ticker.stop()

        finished_kind = snap.kind
        finished_started_at = snap.started_at
        finished_duration = snap.nominal_duration

        if natural and finished_kind is SessionKind.WORK:
            self.progress_updater.apply(snap.active_subtask_id)

        next_kind = cycle.advance(snap, self.settings.pomodoros_until_long_break)
        snap.nominal_duration = duration_for(next_kind, self.settings)
        snap.started_at = None
        snap.paused_at = None
        snap.is_running = False

        self._persist()
        self.events.publish(
            TimerEvent(
                type=TimerEventType.COMPLETED if natural else TimerEventType.SKIPPED,
                snapshot=snap.copy(),
                remaining=float(snap.nominal_duration),
                at=now,
                previous_kind=finished_kind,
                previous_started_at=finished_started_at,
                previous_duration=finished_duration,
            )
        )
        logger.info(
            "%s %s session -> %s (work sessions: %d)",
            "completed" if natural else "skipped",
            finished_kind.value,
            next_kind.value,
            snap.completed_work_count,
        )
        self._close_surface()

        if not natural:
            return

        self._notify_completion(next_kind)
        if auto_start and self._should_auto_start(finished_kind):
            self.start()

    def _should_auto_start(self, finished_kind: SessionKind) -> bool:
        if finished_kind is SessionKind.WORK:
            return self.settings.auto_start_breaks
        return self.settings.auto_start_pomodoros

    def _notify_completion(self, next_kind: SessionKind) -> None:
        if self.notifier is None or not self.settings.notifications_enabled:
            return
        subtask_title = None if self.snapshot.active_subtask_id is None else self.label
        title, message = completion_message(next_kind.is_break, subtask_title)
        try:
            self.notifier.notify(title, message)
        except Exception:
            logger.warning("completion notification failed", exc_info=True)

    # ----- Boundaries -----

    def _persist(self) -> None:
        try:
            self.store.save(self.snapshot)
        except Exception:
            logger.warning("could not save timer snapshot", exc_info=True)

    def _publish(self, event_type: TimerEventType, now: datetime) -> None:
        self.events.publish(
            TimerEvent(
                type=event_type,
                snapshot=self.snapshot.copy(),
                remaining=self.query_remaining(now),
                at=now,
            )
        )

    def _open_surface(self, now: datetime) -> None:
        if self.presentation is None:
            return
        snap = self.snapshot
        self._surface_open = True
        self._fire(
            self.presentation.start_surface(
                label=self.label,
                remaining=int(self.query_remaining(now)),
                kind=snap.kind,
                started_at=snap.started_at,
                paused_at=snap.paused_at,
                nominal_duration=snap.nominal_duration,
                locked=snap.locked,
            )
        )

    def _close_surface(self) -> None:
        if self.presentation is None:
            return
        self._surface_open = False
        self._fire(self.presentation.end_surface())

    def _fire(self, operation: Awaitable[Any]) -> None:
        """Run a presentation coroutine without waiting on its outcome.

        On a running loop it becomes a task; otherwise it runs inline.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            try:
                asyncio.run(_as_coroutine(operation))
            except Exception:
                logger.warning("live status operation failed", exc_info=True)
            return

        task = loop.create_task(_as_coroutine(operation))
        self._pending.add(task)
        task.add_done_callback(self._on_fired)

    def _on_fired(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("live status operation failed", exc_info=exc)

    async def drain(self) -> None:
        """Wait for outstanding presentation operations (used on shutdown)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


async def _as_coroutine(operation: Awaitable[Any]) -> Any:
    return await operation
