from __future__ import annotations

import gc

import pytest

from wsclient.core import ControllerRegistry, get_or_create


@pytest.fixture
def registry():
    return ControllerRegistry()


def _get(registry, transports, timers, url="ws://example.test/a", **options):
    return get_or_create(url, registry=registry, transport_factory=transports, timers=timers, **options)


def test_without_singleton_every_call_builds_a_controller(registry, transports, timers):
    first = _get(registry, transports, timers)
    second = _get(registry, transports, timers)
    assert first is not second
    assert len(registry) == 0


def test_singleton_per_url(registry, transports, timers):
    first = _get(registry, transports, timers, singleton=True)
    again = _get(registry, transports, timers, url="http://example.test/a", singleton=True)
    other = _get(registry, transports, timers, url="ws://example.test/b", singleton=True)
    assert first is again
    assert first is not other
    assert len(transports.created) == 2


def test_singleton_global_scope(registry, transports, timers):
    first = _get(registry, transports, timers, singleton=True, singleton_scope="global")
    other = _get(registry, transports, timers, url="ws://elsewhere.test", singleton=True, singleton_scope="global")
    assert first is other
    assert other.url == "ws://example.test/a"


def test_reuse_keeps_existing_callbacks(registry, transports, timers):
    first = _get(registry, transports, timers, singleton=True)
    handler = lambda event: None  # noqa: E731
    first.onmessage = handler
    again = _get(registry, transports, timers, singleton=True, heartbeat_interval=1000)
    assert again.onmessage is handler
    assert again.options.heartbeat_interval == 30000


def test_close_evicts_entry(registry, transports, timers):
    first = _get(registry, transports, timers, singleton=True)
    first.close()
    assert len(registry) == 0
    second = _get(registry, transports, timers, singleton=True)
    assert second is not first


def test_entries_are_weak(registry, transports, timers):
    controller = _get(registry, transports, timers, singleton=True, auto_connect=False)
    assert len(registry) == 1
    del controller
    gc.collect()
    assert len(registry) == 0


def test_reconnected_controller_takes_its_slot_back(registry, transports, timers):
    first = _get(registry, transports, timers, singleton=True)
    first.close()
    first.connect()
    again = _get(registry, transports, timers, singleton=True)
    assert again is first
    assert len(registry) == 1


def test_reconnect_after_close_leaves_a_newer_controller_registered(registry, transports, timers):
    first = _get(registry, transports, timers, singleton=True)
    first.close()
    second = _get(registry, transports, timers, singleton=True)
    first.connect()
    assert _get(registry, transports, timers, singleton=True) is second
