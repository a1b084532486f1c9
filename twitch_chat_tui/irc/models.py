"""Shared IRC data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto


@dataclass(frozen=True, slots=True)
class ParsedEvent:
    """One decoded protocol line.

    ``command`` is never empty. Word commands are upper-cased, numerics are
    kept as their three digits. ``params`` holds the middle parameters
    followed by the trailing one, if any.
    """

    command: str
    params: tuple[str, ...] = ()
    prefix: str | None = None
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def nick(self) -> str | None:
        if not self.prefix:
            return None
        return self.prefix.split("!", 1)[0].split("@", 1)[0]

    @property
    def trailing(self) -> str:
        return self.params[-1] if self.params else ""


class Phase(Enum):
    DISCONNECTED = auto()
    CONNECTING = auto()
    NEGOTIATING = auto()
    JOINING = auto()
    JOINED = auto()
    RECONNECTING = auto()
    TERMINATED = auto()


CONNECTED_PHASES = frozenset({Phase.NEGOTIATING, Phase.JOINING, Phase.JOINED})


@dataclass(frozen=True, slots=True)
class SessionState:
    """Tagged session state.

    ``attempt`` counts consecutive failed connection attempts; it is the
    N of Reconnecting(N) and is carried into the following Connecting phase.
    """

    phase: Phase = Phase.DISCONNECTED
    attempt: int = 0
    error: Exception | None = None

    @property
    def terminated(self) -> bool:
        return self.phase is Phase.TERMINATED

    def __str__(self) -> str:
        if self.phase is Phase.RECONNECTING:
            return f"RECONNECTING({self.attempt})"
        return self.phase.name


@dataclass(frozen=True, slots=True)
class SessionStatus:
    """What the status row shows; replaced whole on every phase change."""

    channel: str
    phase: Phase = Phase.DISCONNECTED
    attempt: int = 0
    retry_in: float | None = None
    message: str | None = None
