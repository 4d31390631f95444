from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .commands import MsgType


class BaseMsg(BaseModel):
    """Base envelope: a `type` discriminator plus arbitrary extra fields."""

    model_config = ConfigDict(extra="allow")

    type: str = Field(..., min_length=1, description="Envelope discriminator such as ping / chat")


class PingMsg(BaseMsg):
    type: Literal["ping"] = MsgType.PING.value


class PongMsg(BaseMsg):
    type: Literal["pong"] = MsgType.PONG.value


__all__ = ["BaseMsg", "PingMsg", "PongMsg"]
