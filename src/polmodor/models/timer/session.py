"""Session kinds and the durable timer snapshot."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


class SessionKind(str, Enum):
    """Kind of a single timed interval."""

    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @property
    def title(self) -> str:
        if self is SessionKind.WORK:
            return "Focus Time"
        if self is SessionKind.SHORT_BREAK:
            return "Short Break"
        return "Long Break"

    @property
    def is_break(self) -> bool:
        return self is not SessionKind.WORK

    @property
    def emoji(self) -> str:
        if self is SessionKind.WORK:
            return "🍅"
        if self is SessionKind.SHORT_BREAK:
            return "☕"
        return "🌴"


def _parse_instant(value: str | None) -> datetime | None:
    """Parse an ISO instant. Naive values are taken as local time."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


@dataclass
class SessionSnapshot:
    """Flat, persistable state of the timer.

    Remaining time is never stored. It is derived from ``started_at``,
    ``paused_at`` and ``nominal_duration`` so a persisted record cannot drift
    from wall-clock time.
    """

    nominal_duration: int = 25 * 60  # seconds
    kind: SessionKind = SessionKind.WORK
    completed_work_count: int = 0
    is_running: bool = False
    started_at: datetime | None = None
    paused_at: datetime | None = None
    active_subtask_id: str | None = None
    locked: bool = False

    @property
    def is_idle(self) -> bool:
        """True when no session is counting down (fresh or reset)."""
        return self.started_at is None

    @property
    def is_paused(self) -> bool:
        return not self.is_running and self.started_at is not None

    def elapsed(self, now: datetime) -> float:
        """Seconds elapsed in the current session, frozen while paused."""
        if self.started_at is None:
            return 0.0
        reference = now if self.is_running else (self.paused_at or self.started_at)
        return max(0.0, (reference - self.started_at).total_seconds())

    def remaining(self, now: datetime) -> float:
        """Seconds left, clamped to ``[0, nominal_duration]``."""
        remaining = self.nominal_duration - self.elapsed(now)
        return max(0.0, min(float(self.nominal_duration), remaining))

    def copy(self) -> SessionSnapshot:
        return replace(self)

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dictionary."""
        return {
            "active_subtask_id": self.active_subtask_id,
            "nominal_duration": self.nominal_duration,
            "kind": self.kind.value,
            "completed_work_count": self.completed_work_count,
            "is_running": self.is_running,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "paused_at": self.paused_at.isoformat() if self.paused_at else None,
            "locked": self.locked,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SessionSnapshot:
        """Create from a dictionary written by :meth:`to_dict`.

        Missing keys fall back to defaults. Malformed values raise
        ``ValueError``, ``TypeError`` or ``KeyError``.
        """
        snapshot = cls(
            nominal_duration=int(data.get("nominal_duration", 25 * 60)),
            kind=SessionKind(data.get("kind", SessionKind.WORK.value)),
            completed_work_count=max(0, int(data.get("completed_work_count", 0))),
            is_running=bool(data.get("is_running", False)),
            started_at=_parse_instant(data.get("started_at")),
            paused_at=_parse_instant(data.get("paused_at")),
            active_subtask_id=data.get("active_subtask_id"),
            locked=bool(data.get("locked", False)),
        )
        snapshot.normalize()
        return snapshot

    def normalize(self) -> None:
        """Restore the running/paused invariants on a loaded record."""
        if self.started_at is None:
            self.is_running = False
            self.paused_at = None
        elif self.is_running:
            self.paused_at = None
        elif self.paused_at is None:
            # Paused without a pause instant: treat as zero elapsed
            self.paused_at = self.started_at
