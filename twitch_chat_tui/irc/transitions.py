"""Pure session transition function.

``transition(state, event)`` returns the next state and the effects the
driver must perform. No I/O happens here, so every path is unit-testable
without a transport.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from .models import CONNECTED_PHASES, Phase, SessionState


class EventKind(Enum):
    START = auto()
    CONNECTED = auto()
    CONNECT_FAILED = auto()
    CAPABILITIES_ACKED = auto()
    CAPABILITIES_REFUSED = auto()
    CAPABILITY_TIMEOUT = auto()
    JOIN_CONFIRMED = auto()
    JOIN_REJECTED = auto()
    JOIN_TIMEOUT = auto()
    LOGIN_REJECTED = auto()
    CONNECTION_LOST = auto()
    BACKOFF_ELAPSED = auto()
    SHUTDOWN = auto()


class EffectKind(Enum):
    OPEN_TRANSPORT = auto()
    SEND_HANDSHAKE = auto()
    SEND_JOIN = auto()
    CLOSE_TRANSPORT = auto()
    WAIT_BACKOFF = auto()
    REPORT_FATAL = auto()


@dataclass(frozen=True, slots=True)
class SessionEvent:
    kind: EventKind
    error: Exception | None = None


@dataclass(frozen=True, slots=True)
class Effect:
    kind: EffectKind
    attempt: int = 0
    error: Exception | None = None


OPEN = Effect(EffectKind.OPEN_TRANSPORT)
CLOSE = Effect(EffectKind.CLOSE_TRANSPORT)
SEND_HANDSHAKE = Effect(EffectKind.SEND_HANDSHAKE)
SEND_JOIN = Effect(EffectKind.SEND_JOIN)

# Failures that are retried after a backoff
RECOVERABLE_EVENTS = frozenset(
    {
        EventKind.CONNECT_FAILED,
        EventKind.CAPABILITY_TIMEOUT,
        EventKind.JOIN_TIMEOUT,
        EventKind.CONNECTION_LOST,
    }
)
# Server verdicts that retrying cannot change
FATAL_EVENTS = frozenset({EventKind.JOIN_REJECTED, EventKind.LOGIN_REJECTED})

_LIVE_PHASES = CONNECTED_PHASES | {Phase.CONNECTING}

# (phase, event) -> (next phase, effects); attempt is carried over unchanged
_FORWARD: dict[tuple[Phase, EventKind], tuple[Phase, tuple[Effect, ...]]] = {
    (Phase.DISCONNECTED, EventKind.START): (Phase.CONNECTING, (OPEN,)),
    (Phase.CONNECTING, EventKind.CONNECTED): (Phase.NEGOTIATING, (SEND_HANDSHAKE,)),
    (Phase.NEGOTIATING, EventKind.CAPABILITIES_ACKED): (Phase.JOINING, (SEND_JOIN,)),
    (Phase.NEGOTIATING, EventKind.CAPABILITIES_REFUSED): (Phase.JOINING, (SEND_JOIN,)),
    (Phase.RECONNECTING, EventKind.BACKOFF_ELAPSED): (Phase.CONNECTING, (OPEN,)),
}

Transition = tuple[SessionState, tuple[Effect, ...]]


def transition(state: SessionState, event: SessionEvent) -> Transition:
    phase = state.phase
    kind = event.kind

    if phase is Phase.TERMINATED:
        return state, ()

    if kind is EventKind.SHUTDOWN:
        return SessionState(Phase.TERMINATED, state.attempt), (CLOSE,)

    if kind in FATAL_EVENTS and phase in CONNECTED_PHASES:
        return (
            SessionState(Phase.TERMINATED, state.attempt, error=event.error),
            (CLOSE, Effect(EffectKind.REPORT_FATAL, error=event.error)),
        )

    if kind in RECOVERABLE_EVENTS and phase in _LIVE_PHASES:
        attempt = state.attempt + 1
        return (
            SessionState(Phase.RECONNECTING, attempt, error=event.error),
            (CLOSE, Effect(EffectKind.WAIT_BACKOFF, attempt=attempt)),
        )

    if kind is EventKind.JOIN_CONFIRMED and phase is Phase.JOINING:
        # Reaching Joined resets the failure count
        return SessionState(Phase.JOINED, 0), ()

    forward = _FORWARD.get((phase, kind))
    if forward is None:
        return state, ()
    next_phase, effects = forward
    return SessionState(next_phase, state.attempt), effects
