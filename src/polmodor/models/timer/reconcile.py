"""Recompute timer state after the process was suspended or restarted."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from .session import SessionSnapshot


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of comparing a snapshot against the current instant."""

    remaining: float
    expired: bool = False
    missed_at: datetime | None = None  # when the session actually ran out


def reconcile_after_suspension(
    snapshot: SessionSnapshot, now: datetime
) -> Reconciliation:
    """Work out where *snapshot* stands at *now*.

    A running session whose wall-clock elapsed time reached its nominal
    duration is reported as expired, together with the instant it ran out.
    Paused and idle sessions never expire here.
    """
    if snapshot.is_running and snapshot.started_at is not None:
        elapsed = (now - snapshot.started_at).total_seconds()
        if elapsed >= snapshot.nominal_duration:
            return Reconciliation(
                remaining=0.0,
                expired=True,
                missed_at=snapshot.started_at
                + timedelta(seconds=snapshot.nominal_duration),
            )
        return Reconciliation(remaining=snapshot.nominal_duration - max(0.0, elapsed))

    return Reconciliation(remaining=snapshot.remaining(now))
