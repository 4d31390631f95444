from __future__ import annotations

import dataclasses
import logging
from enum import StrEnum
from typing import Any, Callable, Mapping, Optional, Union

from wsclient.config import ConnectionOptions, build_options, normalize_url
from wsprotocol.commands import MsgType, is_control
from wsprotocol.errors import ProtocolError
from wsprotocol.framing import coerce_frame, decode_envelope, encode_envelope

from .events import (
    CLOSE_ABNORMAL,
    CLOSE_GOING_AWAY,
    CLOSE_NORMAL,
    CLOSE_PROBE_TIMEOUT,
    CloseEvent,
    ErrorEvent,
    MessageEvent,
    OpenEvent,
)
from .heartbeat import HeartbeatEngine
from .reconnect import ReconnectScheduler
from .timers import LoopTimers, Timers
from .transport import Data, Transport, WebSocketTransport

logger = logging.getLogger(__name__)

TransportFactory = Callable[[str], Transport]


class ConnectionState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    RECONNECTING = "reconnecting"
    MANUALLY_CLOSED = "manually_closed"


def _noop(_event: Any) -> None:
    return None


class ConnectionController:
    """
    A logically persistent connection over single-use transports.

    Owns the live transport plus the heartbeat, probe and reconnect timers.
    Stale transports are detected by the heartbeat engine, closed, and
    replaced through the reconnect scheduler; only ``close()`` stops that
    cycle for good. All methods are synchronous and must run on the event
    loop thread.
    """

    def __init__(
        self,
        url: str,
        options: Union[ConnectionOptions, Mapping[str, Any], None] = None,
        *,
        transport_factory: Optional[TransportFactory] = None,
        timers: Optional[Timers] = None,
        registry: Optional[Any] = None,
        **overrides: Any,
    ) -> None:
        if isinstance(options, ConnectionOptions):
            options = dataclasses.asdict(options)
        self.options = build_options(options, **overrides)
        self.url = normalize_url(url)
        self._transport_factory: TransportFactory = transport_factory or WebSocketTransport
        self._timers: Timers = timers or LoopTimers()
        self._registry = registry
        self._transport: Optional[Transport] = None
        self._state = ConnectionState.IDLE
        self._level = logging.INFO if self.options.debug else logging.DEBUG

        self.heartbeat = HeartbeatEngine(self.options, self._timers, self.send, self._on_liveness_failure)
        self.reconnect = ReconnectScheduler(self.options, self._timers, self._reconnect_now)

        self.onopen: Callable[[OpenEvent], Any] = _noop
        self.onmessage: Callable[[MessageEvent], Any] = _noop
        self.onclose: Callable[[CloseEvent], Any] = _noop
        self.onerror: Callable[[ErrorEvent], Any] = _noop

        self._claim_registry_slot()
        if self.options.auto_connect:
            self.connect()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state == ConnectionState.OPEN

    @property
    def reconnect_attempts(self) -> int:
        return self.reconnect.attempt_count

    def connect(self) -> None:
        """Open a transport unless one is already connecting or open."""
        if self._state in (ConnectionState.CONNECTING, ConnectionState.OPEN):
            self._log("connect() ignored, already %s", self._state)
            return
        if self._state == ConnectionState.MANUALLY_CLOSED:
            self._claim_registry_slot()
        if self._state in (ConnectionState.IDLE, ConnectionState.MANUALLY_CLOSED) or not self.reconnect.pending:
            self.reconnect.reset()
        self.reconnect.cancel()
        self._open_transport()

    def send(self, payload: Any) -> bool:
        """
        Serialize and write `payload` when open; otherwise drop it.

        Mappings and pydantic models are validated and encoded per
        ``payload_encoding``. str/bytes are taken as already-serialized
        envelopes: they are not validated, only converted to the frame
        kind ``payload_encoding`` selects. Returns whether a frame was
        handed to the transport.
        """
        transport = self._transport
        if self._state != ConnectionState.OPEN or transport is None or not transport.is_open:
            self._log("Connection not open (%s), message not sent", self._state)
            return False
        if isinstance(payload, (str, bytes, bytearray)):
            frame = coerce_frame(payload, self.options.payload_encoding)
        else:
            frame = encode_envelope(payload, self.options.payload_encoding)
        transport.send(frame)
        self._log("Sent message: %s", frame)
        return True

    def close(self, code: int = CLOSE_NORMAL, reason: str = "") -> None:
        """Close for good: no reconnection happens afterwards. Idempotent."""
        if self._state == ConnectionState.MANUALLY_CLOSED:
            return
        self._state = ConnectionState.MANUALLY_CLOSED
        self.reconnect.disable()
        self.heartbeat.stop()
        if self._registry is not None:
            self._registry.evict(self)
        if self._transport is not None:
            # bindings stay so the real close event reaches onclose once
            self._transport.close(code, reason)
        self._log("Connection to %s closed by caller", self.url)

    def suspend(self) -> None:
        """
        Tear the transport down without scheduling a reconnect; ``connect()`` resumes.

        Any live transport, open or still connecting, yields one ``onclose``
        with code 1001 and reason "suspended". A transport that never opened
        therefore gets ``onclose`` without a preceding ``onopen``, the same
        as a failed connect. While ``RECONNECTING`` there is no transport and
        no ``onclose``.
        """
        if self._state in (ConnectionState.IDLE, ConnectionState.MANUALLY_CLOSED):
            return
        self._state = ConnectionState.IDLE
        self.reconnect.cancel()
        self.heartbeat.stop()
        if self._release_transport(CLOSE_GOING_AWAY, "suspended"):
            self._notify(self.onclose, CloseEvent(code=CLOSE_GOING_AWAY, reason="suspended", was_clean=True))
        self._log("Connection to %s suspended", self.url)

    def _claim_registry_slot(self) -> None:
        if self._registry is None or not self.options.singleton:
            return
        key = self._registry.key_for(self.url, self.options.singleton_scope)
        if not self._registry.claim(key, self):
            logger.warning("%s already has a live controller; this one stays unregistered", key or "global scope")

    def _open_transport(self) -> None:
        self._release_transport(CLOSE_NORMAL, "replaced")
        self._state = ConnectionState.CONNECTING
        transport = self._transport_factory(self.url)
        transport.on_open = lambda event: self._handle_open(transport, event)
        transport.on_message = lambda data: self._handle_message(transport, data)
        transport.on_close = lambda event: self._handle_close(transport, event)
        transport.on_error = lambda event: self._handle_error(transport, event)
        self._transport = transport
        self._log("Connecting to %s", self.url)
        transport.open()

    def _release_transport(self, code: int, reason: str) -> bool:
        transport = self._transport
        if transport is None:
            return False
        self._transport = None
        transport.detach()
        transport.close(code, reason)
        return True

    def _handle_open(self, transport: Transport, event: OpenEvent) -> None:
        if transport is not self._transport:
            return
        self._state = ConnectionState.OPEN
        self.reconnect.reset()
        self.heartbeat.start()
        self._log("Connection to %s established", self.url)
        self._notify(self.onopen, event)

    def _handle_message(self, transport: Transport, data: Data) -> None:
        if transport is not self._transport:
            return
        try:
            message = decode_envelope(data)
        except ProtocolError as exc:
            self._log("Dropping malformed frame: %s", exc)
            return
        self._log("Received message: %s", message)
        if not is_control(message["type"]):
            self._notify(self.onmessage, MessageEvent(data=data, message=message))
        elif message["type"] == MsgType.PONG:
            self.heartbeat.handle_pong()
        else:
            self.heartbeat.handle_ping()

    def _handle_close(self, transport: Transport, event: CloseEvent) -> None:
        if transport is not self._transport:
            return
        self._transport = None
        transport.detach()
        self.heartbeat.stop()
        if self._state == ConnectionState.MANUALLY_CLOSED:
            self._notify(self.onclose, event)
            return
        self._handle_unexpected_close(event)

    def _handle_error(self, transport: Transport, event: ErrorEvent) -> None:
        if transport is not self._transport:
            return
        self._log("Transport error: %s", event.message or event.error)
        self._notify(self.onerror, event)
        if self._transport is transport and transport.is_open and self._state == ConnectionState.OPEN:
            self._fail_transport(CloseEvent(code=CLOSE_ABNORMAL, reason="transport error", was_clean=False))

    def _on_liveness_failure(self) -> None:
        if self._state != ConnectionState.OPEN:
            return
        self._log("Heartbeat timed out, closing %s", self.url)
        self._fail_transport(CloseEvent(code=CLOSE_PROBE_TIMEOUT, reason="heartbeat timeout", was_clean=False))

    def _fail_transport(self, event: CloseEvent) -> None:
        self.heartbeat.stop()
        self._release_transport(event.code, event.reason)
        self._handle_unexpected_close(event)

    def _handle_unexpected_close(self, event: CloseEvent) -> None:
        self._state = ConnectionState.CLOSING
        self._log("Connection to %s lost (code=%s), will try to reconnect", self.url, event.code)
        self._notify(self.onclose, event)
        # onclose may have called close() or connect()
        if self._state != ConnectionState.CLOSING:
            return
        self._state = ConnectionState.RECONNECTING
        self.reconnect.schedule()

    def _reconnect_now(self) -> None:
        if self._state != ConnectionState.RECONNECTING:
            return
        self._open_transport()

    def _notify(self, callback: Callable[[Any], Any], event: Any) -> None:
        try:
            callback(event)
        except Exception as exc:
            logger.exception("Callback error for %s: %s", type(event).__name__, exc)

    def _log(self, msg: str, *args: Any) -> None:
        logger.log(self._level, msg, *args)


__all__ = ["ConnectionController", "ConnectionState", "TransportFactory"]
