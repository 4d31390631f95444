from __future__ import annotations

import logging
import os

import pytest

from wsclient import config
from wsclient.config import ConfigError, ConnectionOptions, build_options, load_config, normalize_url


@pytest.fixture
def isolated_env(monkeypatch):
    monkeypatch.setattr(os, "environ", dict(os.environ))
    saved = dict(config.CLIENT_CONFIG)
    level = logging.getLogger().level
    yield
    config.CLIENT_CONFIG.clear()
    config.CLIENT_CONFIG.update(saved)
    logging.getLogger().setLevel(level)


def test_defaults():
    options = build_options()
    assert options == ConnectionOptions()
    assert options.heartbeat_interval == 30000
    assert options.reconnect_delay == 5000
    assert options.probe_timeout == 5000
    assert options.max_reconnect_attempts == 0
    assert options.max_reconnect_delay == options.reconnect_delay
    assert not options.backoff_enabled
    assert options.payload_encoding == "text"


def test_aliases_and_backoff():
    options = build_options(reconnect_interval=1000, max_reconnect_interval=4000, timeout=250)
    assert options.reconnect_delay == 1000
    assert options.max_reconnect_delay == 4000
    assert options.probe_timeout == 250
    assert options.backoff_enabled


def test_overrides_win_over_config_mapping():
    options = build_options({"heartbeat_interval": 1000}, heartbeat_interval=2000, debug=True)
    assert options.heartbeat_interval == 2000
    assert options.debug is True


def test_alias_conflict_is_rejected():
    with pytest.raises(ConfigError):
        build_options({"timeout": 100, "probe_timeout": 200})


@pytest.mark.parametrize(
    "overrides",
    [
        {"heartbeat_interval": 0},
        {"probe_timeout": -1},
        {"reconnect_delay": "soon"},
        {"reconnect_delay": 5000, "max_reconnect_delay": 1000},
        {"max_reconnect_attempts": -1},
        {"max_reconnect_attempts": 1.5},
        {"payload_encoding": "msgpack"},
        {"heartbeat_initiator": "both"},
        {"singleton_scope": "thread"},
        {"heartbeat": 10},
    ],
)
def test_invalid_options_fail_fast(overrides):
    with pytest.raises(ConfigError):
        build_options(**overrides)


def test_options_are_immutable():
    options = build_options()
    with pytest.raises(AttributeError):
        options.heartbeat_interval = 1


@pytest.mark.parametrize(
    "url, expected",
    [
        ("http://example.test/ws", "ws://example.test/ws"),
        ("https://example.test/ws", "wss://example.test/ws"),
        ("ws://example.test", "ws://example.test"),
        ("wss://example.test:8443/a?b=1", "wss://example.test:8443/a?b=1"),
    ],
)
def test_normalize_url(url, expected):
    assert normalize_url(url) == expected


@pytest.mark.parametrize("url", ["ftp://example.test", "example.test/ws"])
def test_normalize_url_rejects_other_schemes(url):
    with pytest.raises(ConfigError):
        normalize_url(url)


def test_load_config_reads_env_file_and_environment(isolated_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("WSCLIENT_PROBE_TIMEOUT=1500\nWSCLIENT_DEBUG=true\n", encoding="utf-8")
    os.environ["WSCLIENT_HEARTBEAT_INTERVAL"] = "10000"
    os.environ["WSCLIENT_MAX_RECONNECT_DELAY"] = "20000"

    loaded = load_config(str(env_file))

    assert loaded["probe_timeout"] == 1500
    assert loaded["debug"] is True
    assert loaded["heartbeat_interval"] == 10000
    assert loaded["max_reconnect_delay"] == 20000
    assert loaded["max_reconnect_attempts"] == 0


def test_load_config_rejects_bad_values(isolated_env, tmp_path):
    os.environ["WSCLIENT_HEARTBEAT_INTERVAL"] = "abc"
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "missing.env"))

    os.environ["WSCLIENT_HEARTBEAT_INTERVAL"] = "0"
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "missing.env"))
