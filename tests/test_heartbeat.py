from __future__ import annotations

from twitch_chat_tui.irc.heartbeat import KeepaliveMonitor


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_ping_due_after_silence_then_stalled():
    clock = FakeClock()
    monitor = KeepaliveMonitor(interval=30, pong_timeout=5, clock=clock)
    assert monitor.seconds_until_check() == 30
    assert not monitor.ping_due()

    clock.now += 30
    assert monitor.ping_due()
    assert not monitor.stalled()

    monitor.record_ping_sent()
    assert not monitor.ping_due()
    assert monitor.seconds_until_check() == 5

    clock.now += 5
    assert monitor.stalled()


def test_activity_clears_pending_ping():
    clock = FakeClock()
    monitor = KeepaliveMonitor(interval=10, pong_timeout=5, clock=clock)
    clock.now += 10
    monitor.record_ping_sent()
    clock.now += 2
    monitor.record_activity()
    assert not monitor.stalled()
    assert monitor.seconds_until_check() == 10


def test_reset_restarts_the_interval():
    clock = FakeClock()
    monitor = KeepaliveMonitor(interval=10, pong_timeout=5, clock=clock)
    clock.now += 50
    monitor.reset()
    assert monitor.seconds_until_check() == 10
    assert not monitor.ping_due()
