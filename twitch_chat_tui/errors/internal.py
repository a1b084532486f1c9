"""Centralized internal error hierarchy.

These exceptions give the session semantic categories for recovery. Raw
socket / websocket / pydantic errors are wrapped at the boundary where they
occur and never reach the state machine directly.

Classes:
  ChatError            – Base for all internal errors.
  ParseError           – A protocol line could not be parsed (line dropped).
  ConnectError         – The transport could not be opened (reconnect).
  ConnectionLost       – An open transport failed or stalled (reconnect).
  CapabilityTimeout    – Capability negotiation got no answer (reconnect).
  FatalSessionError    – Base for errors that end the session.
  JoinRejected         – The server refused the channel join.
  LoginRejected        – The server refused the supplied credentials.
  ConfigError          – The configuration could not be resolved.
"""

from __future__ import annotations

from collections.abc import Mapping


class ChatError(Exception):
    """Base class for all internal application errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class ParseError(ChatError):
    """Raised when a raw protocol line has no recognizable command token."""

    def __init__(self, message: str, *, raw: str = "") -> None:
        super().__init__(message, data={"raw": raw})
        self.raw = raw


class ConnectError(ChatError):
    """Raised when the transport cannot be opened."""


class ConnectionLost(ChatError):
    """Raised when an open transport fails, closes or stalls."""


class CapabilityTimeout(ConnectionLost):
    """Raised when the server does not answer the capability request in time.

    Subclasses ConnectionLost: recovery is identical to a dropped connection.
    """


class FatalSessionError(ChatError):
    """Base for server-reported failures that retrying cannot fix."""


class JoinRejected(FatalSessionError):
    """The server refused to join the configured channel."""

    def __init__(self, channel: str, reason: str) -> None:
        super().__init__(
            f"Cannot join #{channel}: {reason}",
            data={"channel": channel, "reason": reason},
        )
        self.channel = channel
        self.reason = reason


class LoginRejected(FatalSessionError):
    """The server refused the configured username/token."""


class ConfigError(ChatError):
    """Raised when the configuration cannot be loaded or validated."""


__all__ = [
    "ChatError",
    "ParseError",
    "ConnectError",
    "ConnectionLost",
    "CapabilityTimeout",
    "FatalSessionError",
    "JoinRejected",
    "LoginRejected",
    "ConfigError",
]
