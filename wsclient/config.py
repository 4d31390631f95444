from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from wsprotocol.constants import PAYLOAD_ENCODINGS, PAYLOAD_TEXT

# All durations are milliseconds.
DEFAULT_CONFIG: Dict[str, Any] = {
    "server_url": "ws://127.0.0.1:8080/ws",
    "heartbeat_interval": 30000,
    "reconnect_delay": 5000,
    "probe_timeout": 5000,
    "max_reconnect_attempts": 0,
    "max_reconnect_delay": None,
    "debug": False,
    "payload_encoding": PAYLOAD_TEXT,
    "heartbeat_initiator": "client",
    "auto_connect": True,
    "singleton": False,
    "singleton_scope": "url",
    "log_level": "INFO",
}

# Alternate option names accepted by build_options().
OPTION_ALIASES: Dict[str, str] = {
    "reconnect_interval": "reconnect_delay",
    "max_reconnect_interval": "max_reconnect_delay",
    "timeout": "probe_timeout",
}

HEARTBEAT_INITIATORS = ("client", "server")
SINGLETON_SCOPES = ("url", "global")

CLIENT_CONFIG: Dict[str, Any] = DEFAULT_CONFIG.copy()


class ConfigError(Exception):
    """Raised when configuration values are invalid."""

    pass


@dataclass(frozen=True)
class ConnectionOptions:
    """Validated, immutable per-controller options."""

    heartbeat_interval: int = 30000
    reconnect_delay: int = 5000
    probe_timeout: int = 5000
    max_reconnect_attempts: int = 0
    max_reconnect_delay: int = 5000
    debug: bool = False
    payload_encoding: str = PAYLOAD_TEXT
    heartbeat_initiator: str = "client"
    auto_connect: bool = True
    singleton: bool = False
    singleton_scope: str = "url"

    @property
    def backoff_enabled(self) -> bool:
        return self.max_reconnect_delay > self.reconnect_delay

    @property
    def peer_driven(self) -> bool:
        return self.heartbeat_initiator == "server"


def load_config(env_path: str = ".env") -> Dict[str, Any]:
    """Load client configuration from env file/environment variables."""
    if os.path.exists(env_path):
        load_dotenv(env_path)

    for key, default_value in DEFAULT_CONFIG.items():
        env_key = f"WSCLIENT_{key.upper()}"
        value = os.getenv(env_key, default_value)
        target_type = int if key == "max_reconnect_delay" else type(default_value)
        CLIENT_CONFIG[key] = None if value is None else _coerce_type(value, target_type)

    build_options(CLIENT_CONFIG)
    logging.getLogger().setLevel(CLIENT_CONFIG["log_level"])
    return CLIENT_CONFIG


def _coerce_type(value: Any, target_type: type) -> Any:
    if isinstance(value, target_type):
        return value
    try:
        if target_type is bool:
            return str(value).lower() in ("1", "true", "yes", "on")
        return target_type(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot convert {value} to {target_type}") from exc


def _resolve_aliases(values: Mapping[str, Any]) -> Dict[str, Any]:
    resolved: Dict[str, Any] = {}
    for key, value in values.items():
        canonical = OPTION_ALIASES.get(key, key)
        if canonical in resolved:
            raise ConfigError(f"Option {key} conflicts with {canonical}")
        resolved[canonical] = value
    return resolved


def _positive_ms(values: Dict[str, Any], key: str) -> float:
    value = values[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key} must be a number of milliseconds, got {value!r}")
    if value <= 0:
        raise ConfigError(f"{key} must be positive")
    return value


def build_options(config: Optional[Mapping[str, Any]] = None, **overrides: Any) -> ConnectionOptions:
    """Merge defaults, `config` and `overrides` into validated ConnectionOptions."""
    values = _resolve_aliases(DEFAULT_CONFIG)
    values.update(_resolve_aliases(config or {}))
    values.update(_resolve_aliases(overrides))
    # process-level keys that are not per-connection
    values.pop("server_url", None)
    values.pop("log_level", None)

    known = {name for name in ConnectionOptions.__dataclass_fields__}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown option(s): {', '.join(unknown)}")

    for key in ("heartbeat_interval", "reconnect_delay", "probe_timeout"):
        values[key] = _positive_ms(values, key)
    if values["max_reconnect_delay"] is None:
        values["max_reconnect_delay"] = values["reconnect_delay"]
    values["max_reconnect_delay"] = _positive_ms(values, "max_reconnect_delay")
    if values["max_reconnect_delay"] < values["reconnect_delay"]:
        raise ConfigError("max_reconnect_delay must be >= reconnect_delay")

    attempts = values["max_reconnect_attempts"]
    if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 0:
        raise ConfigError("max_reconnect_attempts must be a non-negative integer (0 = unlimited)")
    if values["payload_encoding"] not in PAYLOAD_ENCODINGS:
        raise ConfigError(f"payload_encoding must be one of {PAYLOAD_ENCODINGS}")
    if values["heartbeat_initiator"] not in HEARTBEAT_INITIATORS:
        raise ConfigError(f"heartbeat_initiator must be one of {HEARTBEAT_INITIATORS}")
    if values["singleton_scope"] not in SINGLETON_SCOPES:
        raise ConfigError(f"singleton_scope must be one of {SINGLETON_SCOPES}")
    for key in ("debug", "auto_connect", "singleton"):
        values[key] = bool(values[key])

    return ConnectionOptions(**values)


def normalize_url(url: str) -> str:
    """Rewrite http(s) URLs to the matching ws(s) scheme."""
    text = str(url).strip()
    scheme, sep, _ = text.partition("://")
    if not sep:
        raise ConfigError(f"URL {url!r} has no scheme")
    scheme = scheme.lower()
    if scheme in ("ws", "wss"):
        return text
    if scheme in ("http", "https"):
        return "ws" + text[len("http"):]
    raise ConfigError(f"Unsupported URL scheme {scheme!r}")


__all__ = [
    "CLIENT_CONFIG",
    "DEFAULT_CONFIG",
    "OPTION_ALIASES",
    "ConfigError",
    "ConnectionOptions",
    "build_options",
    "load_config",
    "normalize_url",
]
