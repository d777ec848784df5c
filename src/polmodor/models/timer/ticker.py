"""Periodic trigger that drives ``SessionClock.tick``."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol


class Ticker(Protocol):
    """Something that calls a callback periodically until stopped."""

    @property
    def is_active(self) -> bool: ...

    def start(self, callback: Callable[[], object]) -> None: ...

    def stop(self) -> None: ...


class LoopTicker:
    """1 Hz ticker on the running asyncio loop.

    Outside a running loop (one-shot CLI commands) ``start`` only records that
    the ticker is armed; nothing fires until a loop calls ``start`` again.
    ``stop`` cancels the pending handle synchronously, so no tick can fire
    after it returns.
    """

    def __init__(self, interval: float = 1.0):
        self.interval = interval
        self._callback: Callable[[], object] | None = None
        self._handle: asyncio.TimerHandle | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_active(self) -> bool:
        return self._callback is not None

    @property
    def is_scheduled(self) -> bool:
        return self._handle is not None

    def start(self, callback: Callable[[], object]) -> None:
        self.stop()
        self._callback = callback
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None
            return
        self._schedule()

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._callback = None

    def _schedule(self) -> None:
        assert self._loop is not None
        self._handle = self._loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        self._handle = None
        callback = self._callback
        if callback is None:
            return
        # Re-arm first: the callback may stop (or restart) the ticker
        self._schedule()
        callback()
