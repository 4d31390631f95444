"""
Envelope protocol shared by every connection: reserved control types,
message models, frame codec and validation utilities.
"""

from .commands import CONTROL_TYPES, MsgType, is_control, normalize_type
from .constants import ENCODING, MAX_PAYLOAD_SIZE, PAYLOAD_BINARY, PAYLOAD_ENCODINGS, PAYLOAD_TEXT
from .errors import ErrorCode, ProtocolError, StatusCode
from .framing import Frame, coerce_frame, decode_envelope, encode_envelope
from .messages import BaseMsg, PingMsg, PongMsg
from .validator import load_schema, validate_msg

__all__ = [
    "MsgType",
    "CONTROL_TYPES",
    "is_control",
    "normalize_type",
    "ENCODING",
    "MAX_PAYLOAD_SIZE",
    "PAYLOAD_TEXT",
    "PAYLOAD_BINARY",
    "PAYLOAD_ENCODINGS",
    "ErrorCode",
    "ProtocolError",
    "StatusCode",
    "Frame",
    "coerce_frame",
    "encode_envelope",
    "decode_envelope",
    "BaseMsg",
    "PingMsg",
    "PongMsg",
    "load_schema",
    "validate_msg",
]
