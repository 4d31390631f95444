from .controller import ConnectionController, ConnectionState, TransportFactory
from .events import CloseEvent, ErrorEvent, MessageEvent, OpenEvent
from .heartbeat import HeartbeatEngine, PendingProbe
from .reconnect import ReconnectScheduler
from .registry import REGISTRY, ControllerRegistry, get_or_create
from .timers import LoopTimers, TimerSlot
from .transport import Transport, TransportError, WebSocketTransport
from .visibility import ManualVisibilitySource, VisibilityGate

__all__ = [
    "ConnectionController",
    "ConnectionState",
    "TransportFactory",
    "OpenEvent",
    "MessageEvent",
    "CloseEvent",
    "ErrorEvent",
    "HeartbeatEngine",
    "PendingProbe",
    "ReconnectScheduler",
    "REGISTRY",
    "ControllerRegistry",
    "get_or_create",
    "LoopTimers",
    "TimerSlot",
    "Transport",
    "TransportError",
    "WebSocketTransport",
    "ManualVisibilitySource",
    "VisibilityGate",
]
