from __future__ import annotations

from enum import StrEnum
from typing import Union


class MsgType(StrEnum):
    """
    Envelope types reserved by the heartbeat protocol.
    Any other `type` value is application payload.
    """

    PING = "ping"
    PONG = "pong"


CONTROL_TYPES = frozenset(t.value for t in MsgType)


def normalize_type(value: Union[str, MsgType]) -> str:
    """Convert enum/string into canonical type text."""
    return value.value if isinstance(value, MsgType) else str(value)


def is_control(value: Union[str, MsgType]) -> bool:
    """True for envelope types consumed by the heartbeat path."""
    return normalize_type(value) in CONTROL_TYPES


__all__ = ["MsgType", "CONTROL_TYPES", "normalize_type", "is_control"]
