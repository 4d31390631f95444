from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

# RFC 6455 close codes used by the engine
CLOSE_NORMAL = 1000
CLOSE_GOING_AWAY = 1001
CLOSE_ABNORMAL = 1006
CLOSE_INTERNAL_ERROR = 1011
CLOSE_PROBE_TIMEOUT = 4000


@dataclass
class OpenEvent:
    url: str


@dataclass
class MessageEvent:
    """An application frame; `message` is the decoded envelope."""

    data: Union[str, bytes]
    message: Dict[str, Any] = field(default_factory=dict)

    @property
    def type(self) -> str:
        return self.message.get("type", "")


@dataclass
class CloseEvent:
    code: int = CLOSE_ABNORMAL
    reason: str = ""
    was_clean: bool = False


@dataclass
class ErrorEvent:
    error: Optional[BaseException] = None
    message: str = ""


__all__ = [
    "CLOSE_NORMAL",
    "CLOSE_GOING_AWAY",
    "CLOSE_ABNORMAL",
    "CLOSE_PROBE_TIMEOUT",
    "OpenEvent",
    "MessageEvent",
    "CloseEvent",
    "ErrorEvent",
]
