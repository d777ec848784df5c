"""Pomodoro cycle sequencing: which session comes next."""

from .session import SessionKind, SessionSnapshot


def next_kind(
    kind: SessionKind, completed_work_count: int, long_break_interval: int
) -> SessionKind:
    """Determine the kind that follows *kind*.

    ``completed_work_count`` must already include the session that just
    finished when *kind* is WORK.
    """
    if kind is SessionKind.WORK:
        if long_break_interval > 0 and completed_work_count % long_break_interval == 0:
            return SessionKind.LONG_BREAK
        return SessionKind.SHORT_BREAK

    # Both break kinds lead back to focus
    return SessionKind.WORK


def advance(snapshot: SessionSnapshot, long_break_interval: int) -> SessionKind:
    """Advance *snapshot* to the next kind in the cycle.

    Counts the finished work session, then switches ``kind``. Durations and
    timestamps are left to the caller.
    """
    if snapshot.kind is SessionKind.WORK:
        snapshot.completed_work_count += 1

    snapshot.kind = next_kind(
        snapshot.kind, snapshot.completed_work_count, long_break_interval
    )
    return snapshot.kind


def progress_dots(
    kind: SessionKind, completed_work_count: int, long_break_interval: int
) -> str:
    """Get progress dots showing cycle position."""
    done = completed_work_count % long_break_interval if long_break_interval else 0
    if done == 0 and completed_work_count > 0 and kind is SessionKind.LONG_BREAK:
        done = long_break_interval

    dots = []
    for i in range(1, long_break_interval + 1):
        if i <= done:
            dots.append("⬤")  # Completed
        elif i == done + 1 and kind is SessionKind.WORK:
            dots.append("◉")  # Current
        else:
            dots.append("○")  # Upcoming
    return " ".join(dots)
