"""Reconnect backoff policy.

delay(attempt) = min(max_delay, base * 2 ** (attempt - 1)) + uniform(0, jitter)

The exponential part is a tenacity wait strategy evaluated against a bare
retry state, so the policy stays a pure function of the attempt number
(plus the random jitter).
"""

from __future__ import annotations

from random import Random, SystemRandom

from tenacity import RetryCallState, wait_exponential

from ..constants import BACKOFF_BASE_DELAY, BACKOFF_JITTER, BACKOFF_MAX_DELAY


def _retry_state(attempt: int) -> RetryCallState:
    state = RetryCallState(retry_object=None, fn=None, args=(), kwargs={})
    state.attempt_number = attempt
    return state


class ReconnectPolicy:
    """Maps a 1-based attempt number to the seconds to wait before it."""

    def __init__(
        self,
        base_delay: float = BACKOFF_BASE_DELAY,
        max_delay: float = BACKOFF_MAX_DELAY,
        jitter: float = BACKOFF_JITTER,
        rng: Random | None = None,
    ) -> None:
        if base_delay <= 0 or max_delay < base_delay:
            raise ValueError("need 0 < base_delay <= max_delay")
        if jitter < 0:
            raise ValueError("jitter must be >= 0")
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self._exponential = wait_exponential(
            multiplier=base_delay, exp_base=2, max=max_delay
        )
        self._rng = rng or SystemRandom()

    def base_delay_for(self, attempt: int) -> float:
        """Delay before jitter; non-decreasing in attempt, capped at max_delay."""
        if attempt < 1:
            raise ValueError("attempt numbers start at 1")
        return float(self._exponential(_retry_state(attempt)))

    def delay(self, attempt: int) -> float:
        base = self.base_delay_for(attempt)
        if self.jitter == 0:
            return base
        return base + self._rng.uniform(0, self.jitter)
