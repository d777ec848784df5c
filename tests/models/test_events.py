"""Tests for the timer event bus."""

from __future__ import annotations

from datetime import UTC, datetime

from polmodor.models.timer.events import EventBus, TimerEvent, TimerEventType
from polmodor.models.timer.session import SessionSnapshot


def _event(event_type=TimerEventType.STARTED) -> TimerEvent:
    return TimerEvent(
        type=event_type,
        snapshot=SessionSnapshot(),
        remaining=1500.0,
        at=datetime(2026, 3, 2, tzinfo=UTC),
    )


class TestEventBus:
    def test_delivers_to_all_subscribers_in_order(self) -> None:
        bus = EventBus()
        seen = []
        bus.subscribe(lambda e: seen.append(("a", e.type)))
        bus.subscribe(lambda e: seen.append(("b", e.type)))

        bus.publish(_event())
        assert seen == [("a", TimerEventType.STARTED), ("b", TimerEventType.STARTED)]

    def test_unsubscribe(self) -> None:
        bus = EventBus()
        seen = []
        unsubscribe = bus.subscribe(seen.append)
        unsubscribe()
        unsubscribe()  # second call is harmless

        bus.publish(_event())
        assert seen == []

    def test_failing_observer_does_not_block_others(self) -> None:
        bus = EventBus()
        seen = []

        def broken(event):
            raise RuntimeError("observer crashed")

        bus.subscribe(broken)
        bus.subscribe(seen.append)
        bus.publish(_event(TimerEventType.PAUSED))
        assert [e.type for e in seen] == [TimerEventType.PAUSED]
