"""Timer facility backed by the running asyncio loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Timers(Protocol):
    """Schedules a callback after `delay_ms` milliseconds; the handle cancels it."""

    def call_later(self, delay_ms: float, callback: Callable[[], Any]) -> TimerHandle:
        ...


class LoopTimers:
    """Default timer facility: `loop.call_later` on the running event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def call_later(self, delay_ms: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay_ms / 1000.0, callback)


class TimerSlot:
    """
    Holds at most one pending timer.

    Arming an occupied slot cancels the previous timer first, and the slot
    is emptied before its callback runs, so `active` is False inside it.
    """

    def __init__(self, timers: Timers, name: str) -> None:
        self._timers = timers
        self.name = name
        self._handle: Optional[TimerHandle] = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def arm(self, delay_ms: float, callback: Callable[[], Any]) -> None:
        self.cancel()

        def _fire() -> None:
            self._handle = None
            callback()

        self._handle = self._timers.call_later(delay_ms, _fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug("Cancelled %s timer", self.name)


__all__ = ["TimerHandle", "Timers", "LoopTimers", "TimerSlot"]
