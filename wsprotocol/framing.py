from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Dict, Union

from pydantic import BaseModel

from .constants import ENCODING, MAX_PAYLOAD_SIZE, PAYLOAD_BINARY, PAYLOAD_TEXT
from .errors import ErrorCode, ProtocolError, StatusCode
from .validator import validate_msg

Frame = Union[str, bytes]


def _as_dict(payload: Any) -> Dict[str, Any]:
    if isinstance(payload, BaseModel):
        return payload.model_dump()
    if isinstance(payload, Mapping):
        return dict(payload)
    raise ProtocolError(
        StatusCode.BAD_REQUEST,
        ErrorCode.ENCODE_FAILED,
        f"Envelope must be a mapping or model, got {type(payload).__name__}",
    )


def encode_envelope(payload: Any, encoding: str = PAYLOAD_TEXT) -> Frame:
    """Encode an envelope into a text frame (JSON str) or binary frame (UTF-8 JSON bytes)."""
    msg = validate_msg(_as_dict(payload))
    try:
        json_str = json.dumps(msg, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.ENCODE_FAILED, f"Encode failed: {exc}") from exc

    data = json_str.encode(ENCODING)
    if len(data) > MAX_PAYLOAD_SIZE:
        raise ProtocolError(StatusCode.PAYLOAD_TOO_LARGE, ErrorCode.PAYLOAD_TOO_LARGE, "Payload too large for one frame")
    if encoding == PAYLOAD_BINARY:
        return data
    if encoding == PAYLOAD_TEXT:
        return json_str
    raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.ENCODE_FAILED, f"Unknown payload encoding {encoding!r}")


def decode_envelope(data: Frame) -> Dict[str, Any]:
    """Decode a text or binary frame into a validated envelope dict."""
    if len(data) > MAX_PAYLOAD_SIZE:
        raise ProtocolError(StatusCode.PAYLOAD_TOO_LARGE, ErrorCode.PAYLOAD_TOO_LARGE, "Incoming frame too large")
    try:
        json_str = data.decode(ENCODING) if isinstance(data, (bytes, bytearray)) else data
        msg = json.loads(json_str)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.DECODE_FAILED, f"Decode failed: {exc}") from exc
    return validate_msg(msg)


def coerce_frame(data: Frame, encoding: str = PAYLOAD_TEXT) -> Frame:
    """
    Convert an already-serialized frame to the kind `encoding` asks for.

    The content is not parsed or validated; only str <-> UTF-8 bytes.
    """
    if encoding == PAYLOAD_BINARY:
        return data.encode(ENCODING) if isinstance(data, str) else bytes(data)
    if encoding == PAYLOAD_TEXT:
        if isinstance(data, str):
            return data
        try:
            return bytes(data).decode(ENCODING)
        except UnicodeDecodeError as exc:
            raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.ENCODE_FAILED, f"Frame is not {ENCODING}: {exc}") from exc
    raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.ENCODE_FAILED, f"Unknown payload encoding {encoding!r}")


__all__ = ["Frame", "coerce_frame", "encode_envelope", "decode_envelope"]
