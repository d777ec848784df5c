"""Pomodoro timer core - session state machine and its collaborators."""

from .clock import SessionClock
from .cycle import advance, next_kind, progress_dots
from .durations import duration_for
from .events import EventBus, TimerEvent, TimerEventType
from .progress import SubtaskProgressUpdater
from .reconcile import Reconciliation, reconcile_after_suspension
from .session import SessionKind, SessionSnapshot
from .ticker import LoopTicker, Ticker

__all__ = [
    "SessionClock",
    "SessionKind",
    "SessionSnapshot",
    "EventBus",
    "TimerEvent",
    "TimerEventType",
    "SubtaskProgressUpdater",
    "Reconciliation",
    "reconcile_after_suspension",
    "LoopTicker",
    "Ticker",
    "advance",
    "next_kind",
    "progress_dots",
    "duration_for",
]
