"""Application-level liveness probing over the envelope protocol."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from wsclient.config import ConnectionOptions
from wsprotocol.messages import BaseMsg, PingMsg, PongMsg

from .timers import TimerHandle, Timers, TimerSlot

logger = logging.getLogger(__name__)


@dataclass
class PendingProbe:
    """An outstanding ping: its timeout timer and when it was sent."""

    sent_at: float
    timer: TimerHandle

    def cancel(self) -> None:
        self.timer.cancel()


class HeartbeatEngine:
    """
    Periodic ping/pong probing while the connection is open.

    Self-driven (``heartbeat_initiator="client"``): the first ping goes out
    one ``heartbeat_interval`` after ``start()`` and then every interval.
    Each ping arms a ``probe_timeout`` timer that a pong disarms; if it
    fires, ``on_liveness_failure`` is called once and the engine stops.

    Peer-driven (``heartbeat_initiator="server"``): no pings are sent.
    A watchdog of ``heartbeat_interval + probe_timeout`` is re-armed by
    every ping from the peer, and each such ping is answered with a pong.
    """

    def __init__(
        self,
        options: ConnectionOptions,
        timers: Timers,
        send: Callable[[BaseMsg], bool],
        on_liveness_failure: Callable[[], None],
    ) -> None:
        self.options = options
        self._timers = timers
        self._send = send
        self._on_liveness_failure = on_liveness_failure
        self._interval = TimerSlot(timers, "heartbeat")
        self._watchdog = TimerSlot(timers, "peer-watchdog")
        self.pending: Optional[PendingProbe] = None
        self.running = False
        self.last_rtt: Optional[float] = None
        self._level = logging.INFO if options.debug else logging.DEBUG

    def start(self) -> None:
        self.stop()
        self.running = True
        if self.options.peer_driven:
            self._arm_watchdog()
        else:
            self._interval.arm(self.options.heartbeat_interval, self._tick)

    def stop(self) -> None:
        self.running = False
        self._interval.cancel()
        self._watchdog.cancel()
        if self.pending is not None:
            self.pending.cancel()
            self.pending = None

    def handle_pong(self) -> bool:
        """Resolve the pending probe; a pong with nothing outstanding is ignored."""
        if self.pending is None:
            logger.log(self._level, "Ignoring unsolicited pong")
            return False
        self.pending.cancel()
        self.last_rtt = time.monotonic() - self.pending.sent_at
        self.pending = None
        logger.log(self._level, "Pong received after %.3fs", self.last_rtt)
        return True

    def handle_ping(self) -> None:
        self._send(PongMsg())
        if self.running and self.options.peer_driven:
            self._arm_watchdog()

    def _tick(self) -> None:
        if not self.running:
            return
        if self.pending is None and self._send(PingMsg()):
            handle = self._timers.call_later(self.options.probe_timeout, self._on_probe_timeout)
            self.pending = PendingProbe(sent_at=time.monotonic(), timer=handle)
            logger.log(self._level, "Heartbeat ping sent")
        self._interval.arm(self.options.heartbeat_interval, self._tick)

    def _arm_watchdog(self) -> None:
        self._watchdog.arm(self.options.heartbeat_interval + self.options.probe_timeout, self._on_watchdog_expired)

    def _on_probe_timeout(self) -> None:
        self.pending = None
        if not self.running:
            return
        logger.log(self._level, "No pong within %sms, connection considered dead", self.options.probe_timeout)
        self._fail()

    def _on_watchdog_expired(self) -> None:
        if not self.running:
            return
        logger.log(self._level, "No ping from peer within %sms", self.options.heartbeat_interval + self.options.probe_timeout)
        self._fail()

    def _fail(self) -> None:
        self.stop()
        self._on_liveness_failure()


__all__ = ["HeartbeatEngine", "PendingProbe"]
