from __future__ import annotations

from enum import IntEnum
from typing import Optional


class StatusCode(IntEnum):
    """HTTP-like classes of protocol failure."""

    BAD_REQUEST = 400
    PAYLOAD_TOO_LARGE = 413
    SERVICE_UNAVAILABLE = 503


class ErrorCode(IntEnum):
    """Which stage of framing or transport failed."""

    DECODE_FAILED = 1001
    TYPE_MISSING = 1002
    ENCODE_FAILED = 1003
    PAYLOAD_TOO_LARGE = 1004
    TRANSPORT_FAILED = 1005


class ProtocolError(Exception):
    """Raised by the envelope codec and transports; ``code`` names the failing stage."""

    def __init__(self, status: StatusCode, code: Optional[ErrorCode] = None, message: str = "") -> None:
        self.status = status
        self.code = code
        self.message = message
        label = code.name if code is not None else status.name
        super().__init__(f"{label}: {message}" if message else label)


__all__ = ["StatusCode", "ErrorCode", "ProtocolError"]
