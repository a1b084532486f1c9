"""Keepalive tracking for an open connection."""

from __future__ import annotations

import time
from collections.abc import Callable

KEEPALIVE_PING = "PING :tmi.twitch.tv"


class KeepaliveMonitor:
    """Decides when to probe a silent server and when to give up on it.

    After ``interval`` seconds without any inbound line a client PING is due.
    If nothing arrives within ``pong_timeout`` seconds of that PING the link
    is stalled.
    """

    def __init__(
        self,
        interval: float,
        pong_timeout: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval = interval
        self.pong_timeout = pong_timeout
        self._clock = clock
        self.last_activity = clock()
        self.ping_sent_at: float | None = None

    def reset(self) -> None:
        self.last_activity = self._clock()
        self.ping_sent_at = None

    def record_activity(self) -> None:
        self.last_activity = self._clock()
        self.ping_sent_at = None

    def record_ping_sent(self) -> None:
        self.ping_sent_at = self._clock()

    def seconds_until_check(self) -> float:
        now = self._clock()
        if self.ping_sent_at is not None:
            return max(0.0, self.ping_sent_at + self.pong_timeout - now)
        return max(0.0, self.last_activity + self.interval - now)

    def ping_due(self) -> bool:
        return (
            self.ping_sent_at is None
            and self._clock() - self.last_activity >= self.interval
        )

    def stalled(self) -> bool:
        return (
            self.ping_sent_at is not None
            and self._clock() - self.ping_sent_at >= self.pong_timeout
        )
