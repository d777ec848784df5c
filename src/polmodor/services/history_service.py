"""Pomodoro session history with SQLite storage."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from polmodor.adapters.sqlite.connection import get_connection
from polmodor.models.timer.events import TimerEvent, TimerEventType
from polmodor.utils.logger import get_logger

logger = get_logger(__name__)


def _utc_iso(value: datetime) -> str:
    return value.astimezone(UTC).isoformat()


class HistoryLogger:
    """Records every finished session in the ``pomodoro_sessions`` table.

    Subscribe an instance to the clock's event bus; it reacts to COMPLETED
    and SKIPPED events and ignores the rest. Instants are stored in UTC so
    range queries compare as strings.
    """

    def __init__(self, db_path: str | Path | None = None):
        """Initialize history logger."""
        self.db_path = db_path
        self._connection: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            self._connection = get_connection(self.db_path)
        return self._connection

    def __call__(self, event: TimerEvent) -> None:
        if event.type not in (TimerEventType.COMPLETED, TimerEventType.SKIPPED):
            return
        if event.previous_kind is None:
            return

        self.log_session(
            kind=event.previous_kind.value,
            subtask_id=event.snapshot.active_subtask_id,
            started_at=event.previous_started_at,
            ended_at=event.at,
            nominal_duration=event.previous_duration or 0,
            completed=event.type is TimerEventType.COMPLETED,
        )

    def log_session(
        self,
        kind: str,
        subtask_id: str | None,
        started_at: datetime | None,
        ended_at: datetime,
        nominal_duration: int,
        completed: bool,
    ) -> None:
        """Log a completed or skipped session to history."""
        self.connection.execute(
            """
            INSERT INTO pomodoro_sessions (
                kind, subtask_id, started_at, ended_at, nominal_duration, completed
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                kind,
                subtask_id,
                _utc_iso(started_at) if started_at else None,
                _utc_iso(ended_at),
                nominal_duration,
                1 if completed else 0,
            ),
        )
        self.connection.commit()
        logger.debug(
            "logged %s %s session", "completed" if completed else "skipped", kind
        )

    def get_sessions(
        self, since: datetime | None = None, until: datetime | None = None
    ) -> list[dict[str, Any]]:
        """Sessions that ended in ``[since, until)``, oldest first.

        ``started_at`` and ``ended_at`` come back as aware datetimes.
        """
        query = "SELECT * FROM pomodoro_sessions WHERE 1 = 1"
        params: list[Any] = []
        if since is not None:
            query += " AND ended_at >= ?"
            params.append(_utc_iso(since))
        if until is not None:
            query += " AND ended_at < ?"
            params.append(_utc_iso(until))
        query += " ORDER BY ended_at, id"

        sessions = []
        for row in self.connection.execute(query, params).fetchall():
            session = dict(row)
            session["completed"] = bool(session["completed"])
            session["ended_at"] = datetime.fromisoformat(session["ended_at"])
            if session["started_at"]:
                session["started_at"] = datetime.fromisoformat(session["started_at"])
            sessions.append(session)
        return sessions

    def get_recent_sessions(self, limit: int = 20) -> list[dict[str, Any]]:
        """Get the most recent sessions, newest first."""
        rows = self.connection.execute(
            "SELECT * FROM pomodoro_sessions ORDER BY ended_at DESC, id DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [dict(row) for row in rows]
