"""Event-style transports: one instance per connection attempt."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Set, Union

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, InvalidHandshake, InvalidURI

from wsprotocol.errors import ErrorCode, ProtocolError, StatusCode

from .events import CLOSE_ABNORMAL, CLOSE_INTERNAL_ERROR, CLOSE_NORMAL, CloseEvent, ErrorEvent, OpenEvent

logger = logging.getLogger(__name__)

Data = Union[str, bytes]


class TransportError(ProtocolError):
    """Transport level error surfaced through ErrorEvent."""

    def __init__(self, message: str) -> None:
        super().__init__(StatusCode.SERVICE_UNAVAILABLE, ErrorCode.TRANSPORT_FAILED, message)


def _noop(*_: Any) -> None:
    return None


class Transport(ABC):
    """
    A single-use full-duplex socket exposing open/message/close/error events.

    `on_message` receives the raw frame (str or bytes). `on_close` fires
    exactly once per instance, including when the connection never opened.
    """

    on_open: Callable[[OpenEvent], Any]
    on_message: Callable[[Data], Any]
    on_close: Callable[[CloseEvent], Any]
    on_error: Callable[[ErrorEvent], Any]

    def __init__(self, url: str) -> None:
        self.url = url
        self.detach()

    def detach(self) -> None:
        """Drop every event binding; later events from this instance go nowhere."""
        self.on_open = _noop
        self.on_message = _noop
        self.on_close = _noop
        self.on_error = _noop

    @property
    @abstractmethod
    def is_open(self) -> bool:
        ...

    @abstractmethod
    def open(self) -> None:
        ...

    @abstractmethod
    def send(self, data: Data) -> None:
        ...

    @abstractmethod
    def close(self, code: int = CLOSE_NORMAL, reason: str = "") -> None:
        ...


class WebSocketTransport(Transport):
    """Transport backed by the `websockets` asyncio client."""

    def __init__(self, url: str, *, open_timeout: float = 10.0) -> None:
        super().__init__(url)
        self.open_timeout = open_timeout
        self._ws: Optional[Any] = None
        self._task: Optional[asyncio.Task] = None
        self._closing = False
        self._send_tasks: Set[asyncio.Task] = set()

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._closing

    def open(self) -> None:
        if self._task is not None:
            raise TransportError("WebSocketTransport instances are single-use")
        self._task = asyncio.get_running_loop().create_task(self._run(), name="ws-transport")

    def send(self, data: Data) -> None:
        if not self.is_open:
            raise TransportError("WebSocket transport not connected")
        task = asyncio.get_running_loop().create_task(self._send(self._ws, data), name="ws-transport-send")
        self._send_tasks.add(task)
        task.add_done_callback(self._send_tasks.discard)

    def close(self, code: int = CLOSE_NORMAL, reason: str = "") -> None:
        if self._closing:
            return
        self._closing = True
        if self._ws is not None:
            ws = self._ws
            task = asyncio.get_running_loop().create_task(ws.close(code, reason), name="ws-transport-close")
            self._send_tasks.add(task)
            task.add_done_callback(self._send_tasks.discard)
        elif self._task is not None and not self._task.done():
            self._task.cancel()

    async def _send(self, ws: Any, data: Data) -> None:
        try:
            await ws.send(data)
            logger.debug("WebSocket send: %s", data)
        except ConnectionClosed as exc:
            logger.debug("Send on closed WebSocket dropped: %s", exc)
        except OSError as exc:
            logger.warning("WebSocket send failed: %s", exc)
            self.on_error(ErrorEvent(TransportError(f"Send failed: {exc}"), str(exc)))

    async def _run(self) -> None:
        close_event = CloseEvent(code=CLOSE_ABNORMAL, reason="", was_clean=False)
        try:
            logger.info("Connecting to WebSocket at %s", self.url)
            self._ws = await websockets.connect(self.url, ping_interval=None, open_timeout=self.open_timeout)
            self.on_open(OpenEvent(url=self.url))
            async for data in self._ws:
                self.on_message(data)
        except ConnectionClosedError as exc:
            logger.info("WebSocket closed abnormally: %s", exc)
        except (OSError, asyncio.TimeoutError, InvalidHandshake, InvalidURI) as exc:
            logger.warning("WebSocket connect to %s failed: %s", self.url, exc)
            self.on_error(ErrorEvent(exc, str(exc)))
        except Exception:
            logger.exception("WebSocket task for %s crashed", self.url)
            if self._ws is not None:
                self._closing = True
                await self._ws.close(CLOSE_INTERNAL_ERROR, "client error")
        finally:
            ws = self._ws
            if ws is not None:
                code = ws.close_code if ws.close_code is not None else CLOSE_ABNORMAL
                close_event = CloseEvent(code=code, reason=ws.close_reason or "", was_clean=code != CLOSE_ABNORMAL)
            self._ws = None
            self._closing = True
            self.on_close(close_event)


__all__ = ["Data", "Transport", "TransportError", "WebSocketTransport"]
