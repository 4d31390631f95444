"""Suspend the connection while the host is in the background."""

from __future__ import annotations

import logging
from typing import Callable, List, Protocol

from .controller import ConnectionController, ConnectionState

logger = logging.getLogger(__name__)

VisibilityListener = Callable[[bool], None]

_ACTIVE_STATES = (ConnectionState.CONNECTING, ConnectionState.OPEN, ConnectionState.RECONNECTING)


class VisibilitySource(Protocol):
    """Host foreground/background signal; ``subscribe`` returns an unsubscribe callable."""

    def subscribe(self, listener: VisibilityListener) -> Callable[[], None]:
        ...


class ManualVisibilitySource:
    """A visibility signal driven by the host calling ``set_visible``."""

    def __init__(self, visible: bool = True) -> None:
        self.visible = visible
        self._listeners: List[VisibilityListener] = []

    def subscribe(self, listener: VisibilityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set_visible(self, visible: bool) -> None:
        if visible == self.visible:
            return
        self.visible = visible
        for listener in list(self._listeners):
            listener(visible)


class VisibilityGate:
    """Closes the connection on background and reopens it on foreground, skipping backoff."""

    def __init__(self, controller: ConnectionController, source: VisibilitySource) -> None:
        self.controller = controller
        self.source = source
        self.suspended = False
        self._unsubscribe: Callable[[], None] | None = None

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.source.subscribe(self._on_visibility_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_visibility_change(self, visible: bool) -> None:
        if visible:
            self.resume()
        else:
            self.suspend()

    def suspend(self) -> None:
        # an idle controller was never asked to connect, so foreground must not open it
        if self.suspended or self.controller.state not in _ACTIVE_STATES:
            return
        logger.info("Host went to background, suspending %s", self.controller.url)
        self.controller.suspend()
        self.suspended = True

    def resume(self) -> None:
        if not self.suspended:
            return
        self.suspended = False
        # a close() while suspended wins
        if self.controller.state == ConnectionState.IDLE:
            logger.info("Host back in foreground, reconnecting %s", self.controller.url)
            self.controller.connect()


__all__ = ["ManualVisibilitySource", "VisibilityGate", "VisibilityListener", "VisibilitySource"]
