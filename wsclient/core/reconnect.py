from __future__ import annotations

import logging
from typing import Callable

from wsclient.config import ConnectionOptions

from .timers import Timers, TimerSlot

logger = logging.getLogger(__name__)


class ReconnectScheduler:
    """Decides if and when to retry after an unexpected closure."""

    def __init__(self, options: ConnectionOptions, timers: Timers, on_reconnect: Callable[[], None]) -> None:
        self.options = options
        self._on_reconnect = on_reconnect
        self._slot = TimerSlot(timers, "reconnect")
        self.attempt_count = 0
        self.current_delay = options.reconnect_delay
        self.enabled = True
        self._level = logging.INFO if options.debug else logging.DEBUG

    @property
    def pending(self) -> bool:
        return self._slot.active

    @property
    def exhausted(self) -> bool:
        limit = self.options.max_reconnect_attempts
        return limit > 0 and self.attempt_count >= limit

    def schedule(self) -> bool:
        """Arm the reconnect timer; False when disabled, already pending or out of attempts."""
        if not self.enabled:
            return False
        if self._slot.active:
            logger.log(self._level, "Reconnect already pending, not arming another timer")
            return False
        if self.exhausted:
            logger.log(self._level, "Reached max reconnect attempts (%s), giving up", self.options.max_reconnect_attempts)
            return False
        logger.log(self._level, "Reconnecting in %sms (attempt %s)", self.current_delay, self.attempt_count + 1)
        self._slot.arm(self.current_delay, self._fire)
        return True

    def cancel(self) -> None:
        self._slot.cancel()

    def disable(self) -> None:
        self.enabled = False
        self._slot.cancel()

    def reset(self) -> None:
        self.attempt_count = 0
        self.current_delay = self.options.reconnect_delay
        self.enabled = True

    def _fire(self) -> None:
        self.attempt_count += 1
        if self.options.backoff_enabled:
            # linear growth, capped
            self.current_delay = min(
                self.current_delay + self.options.reconnect_delay, self.options.max_reconnect_delay
            )
        self._on_reconnect()


__all__ = ["ReconnectScheduler"]
