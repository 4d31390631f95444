from __future__ import annotations

from wsclient.config import build_options
from wsclient.core.heartbeat import HeartbeatEngine


class _Probe:
    def __init__(self, timers, connected=True, **options):
        self.sent = []
        self.failures = 0
        self.connected = connected
        self.engine = HeartbeatEngine(
            build_options(heartbeat_interval=1000, probe_timeout=500, **options),
            timers,
            self._send,
            self._fail,
        )

    def _send(self, message):
        if not self.connected:
            return False
        self.sent.append(message.model_dump()["type"])
        return True

    def _fail(self):
        self.failures += 1


def test_first_ping_on_first_interval_tick(timers):
    probe = _Probe(timers)
    probe.engine.start()
    assert probe.sent == []
    timers.advance(999)
    assert probe.sent == []
    timers.advance(1)
    assert probe.sent == ["ping"]
    assert probe.engine.pending is not None


def test_pong_cancels_pending_probe(timers):
    probe = _Probe(timers)
    probe.engine.start()
    timers.advance(1000)
    timers.advance(300)
    assert probe.engine.handle_pong() is True
    assert probe.engine.pending is None
    timers.advance(699)
    assert probe.failures == 0
    assert probe.sent == ["ping"]


def test_probes_repeat_every_interval_while_answered(timers):
    probe = _Probe(timers)
    probe.engine.start()
    for _ in range(3):
        timers.advance(1000)
        probe.engine.handle_pong()
    assert probe.sent == ["ping", "ping", "ping"]
    assert probe.failures == 0


def test_unsolicited_pong_is_ignored(timers):
    probe = _Probe(timers)
    probe.engine.start()
    assert probe.engine.handle_pong() is False
    assert probe.failures == 0


def test_probe_timeout_reports_failure_once_and_stops(timers):
    probe = _Probe(timers)
    probe.engine.start()
    timers.advance(1499)
    assert probe.failures == 0
    timers.advance(1)
    assert probe.failures == 1
    assert not probe.engine.running
    timers.advance(10000)
    assert probe.failures == 1
    assert probe.sent == ["ping"]
    assert timers.pending() == []


def test_stop_cancels_every_timer(timers):
    probe = _Probe(timers)
    probe.engine.start()
    timers.advance(1000)
    assert len(timers.pending()) == 2
    probe.engine.stop()
    assert timers.pending() == []
    assert probe.engine.pending is None


def test_no_probe_armed_when_ping_cannot_be_sent(timers):
    probe = _Probe(timers, connected=False)
    probe.engine.start()
    timers.advance(5000)
    assert probe.engine.pending is None
    assert probe.failures == 0


def test_ping_from_peer_is_answered(timers):
    probe = _Probe(timers)
    probe.engine.start()
    probe.engine.handle_ping()
    assert probe.sent == ["pong"]


def test_peer_driven_watchdog(timers):
    probe = _Probe(timers, heartbeat_initiator="server")
    probe.engine.start()
    timers.advance(1400)
    probe.engine.handle_ping()
    timers.advance(1400)
    probe.engine.handle_ping()
    assert probe.sent == ["pong", "pong"]
    assert probe.failures == 0
    timers.advance(1499)
    assert probe.failures == 0
    timers.advance(1)
    assert probe.failures == 1
    assert "ping" not in probe.sent
