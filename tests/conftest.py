from __future__ import annotations

import json
from typing import Any, Callable, List

import pytest

from wsclient.core.events import CLOSE_ABNORMAL, CloseEvent, ErrorEvent, OpenEvent
from wsclient.core.transport import Transport


class FakeHandle:
    def __init__(self, due: float, seq: int, callback: Callable[[], Any]) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimers:
    """Virtual clock in milliseconds; timers only fire from advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self._handles: List[FakeHandle] = []
        self._seq = 0

    def call_later(self, delay_ms: float, callback: Callable[[], Any]) -> FakeHandle:
        self._seq += 1
        handle = FakeHandle(self.now + delay_ms, self._seq, callback)
        self._handles.append(handle)
        return handle

    def pending(self) -> List[FakeHandle]:
        return [h for h in self._handles if not h.cancelled and not h.fired]

    def advance(self, ms: float) -> None:
        target = self.now + ms
        while True:
            due = [h for h in self.pending() if h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.due, h.seq))
            self.now = handle.due
            handle.fired = True
            handle.callback()
        self.now = target


class FakeTransport(Transport):
    """In-memory transport; tests drive its events by hand."""

    def __init__(self, url: str) -> None:
        super().__init__(url)
        self.sent: List[Any] = []
        self.opened = False
        self.closed = False
        self.close_args = None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        self.opened = True

    def send(self, data: Any) -> None:
        self.sent.append(data)

    def close(self, code: int = 1000, reason: str = "") -> None:
        if self.closed:
            return
        self.closed = True
        self.close_args = (code, reason)
        self._open = False

    def accept(self) -> None:
        self._open = True
        self.on_open(OpenEvent(url=self.url))

    def receive(self, payload: Any) -> None:
        self.on_message(json.dumps(payload) if isinstance(payload, dict) else payload)

    def drop(self, code: int = CLOSE_ABNORMAL, reason: str = "") -> None:
        self._open = False
        self.closed = True
        self.on_close(CloseEvent(code=code, reason=reason, was_clean=False))

    def finish_close(self) -> None:
        code, reason = self.close_args
        self.on_close(CloseEvent(code=code, reason=reason, was_clean=True))

    def fail(self, exc: BaseException) -> None:
        self.on_error(ErrorEvent(error=exc, message=str(exc)))

    def messages(self) -> List[dict]:
        return [json.loads(frame) for frame in self.sent]


class FakeTransportFactory:
    def __init__(self) -> None:
        self.created: List[FakeTransport] = []

    def __call__(self, url: str) -> FakeTransport:
        transport = FakeTransport(url)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


@pytest.fixture
def timers() -> FakeTimers:
    return FakeTimers()


@pytest.fixture
def transports() -> FakeTransportFactory:
    return FakeTransportFactory()
