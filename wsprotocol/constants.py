"""Protocol-wide constants for the heartbeat envelope protocol."""

ENCODING = "utf-8"
PAYLOAD_TEXT = "text"
PAYLOAD_BINARY = "binary-envelope"
PAYLOAD_ENCODINGS = (PAYLOAD_TEXT, PAYLOAD_BINARY)
MAX_PAYLOAD_SIZE = 256 * 1024  # 256 KB upper bound per frame

__all__ = [
    "ENCODING",
    "PAYLOAD_TEXT",
    "PAYLOAD_BINARY",
    "PAYLOAD_ENCODINGS",
    "MAX_PAYLOAD_SIZE",
]
