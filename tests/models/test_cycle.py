"""Tests for Pomodoro cycle sequencing."""

from __future__ import annotations

import pytest

from polmodor.models.timer.cycle import advance, next_kind, progress_dots
from polmodor.models.timer.session import SessionKind, SessionSnapshot


class TestNextKind:
    @pytest.mark.parametrize("count", [1, 2, 3, 5, 7])
    def test_short_break_between_long_breaks(self, count) -> None:
        assert next_kind(SessionKind.WORK, count, 4) is SessionKind.SHORT_BREAK

    @pytest.mark.parametrize("count", [4, 8, 12])
    def test_long_break_on_multiples(self, count) -> None:
        assert next_kind(SessionKind.WORK, count, 4) is SessionKind.LONG_BREAK

    def test_breaks_lead_to_work(self) -> None:
        assert next_kind(SessionKind.SHORT_BREAK, 1, 4) is SessionKind.WORK
        assert next_kind(SessionKind.LONG_BREAK, 4, 4) is SessionKind.WORK


class TestAdvance:
    def test_work_to_long_break_at_interval(self) -> None:
        snap = SessionSnapshot(completed_work_count=3)
        assert advance(snap, 4) is SessionKind.LONG_BREAK
        assert snap.completed_work_count == 4
        assert snap.kind is SessionKind.LONG_BREAK

    def test_break_does_not_count(self) -> None:
        snap = SessionSnapshot(kind=SessionKind.LONG_BREAK, completed_work_count=4)
        assert advance(snap, 4) is SessionKind.WORK
        assert snap.completed_work_count == 4

    def test_full_cycle(self) -> None:
        snap = SessionSnapshot()
        kinds = [advance(snap, 2) for _ in range(6)]
        assert kinds == [
            SessionKind.SHORT_BREAK,
            SessionKind.WORK,
            SessionKind.LONG_BREAK,
            SessionKind.WORK,
            SessionKind.SHORT_BREAK,
            SessionKind.WORK,
        ]
        assert snap.completed_work_count == 3


class TestProgressDots:
    def test_first_work_session(self) -> None:
        assert progress_dots(SessionKind.WORK, 0, 4) == "◉ ○ ○ ○"

    def test_long_break_shows_all_done(self) -> None:
        assert progress_dots(SessionKind.LONG_BREAK, 4, 4) == "⬤ ⬤ ⬤ ⬤"
