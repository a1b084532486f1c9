from __future__ import annotations

from ..logging_config import log_structured_error
from .internal import (
    ChatError,
    ConfigError,
    ConnectError,
    ConnectionLost,
    FatalSessionError,
    ParseError,
)


def classify_error(error: BaseException) -> str:
    """Map an exception onto the category name used in structured logs."""
    if isinstance(error, ConnectError | ConnectionLost | OSError | ConnectionError):
        return "network"
    if isinstance(error, ParseError):
        return "parsing"
    if isinstance(error, FatalSessionError):
        return "session"
    if isinstance(error, ConfigError):
        return "config"
    if isinstance(error, ChatError):
        return "internal"
    return "unknown"


def log_error(
    message: str,
    error: BaseException,
    context: dict[str, object] | None = None,
    level: int | None = None,
) -> None:
    """Logs an error message with the associated exception details.

    The exception is categorised (network, parsing, session, config,
    internal) and routed through structured logging so repeated failures are
    aggregated per category.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
        level: Optional logging level override.
    """
    merged: dict[str, object] = {}
    if isinstance(error, ChatError):
        merged.update(error.data)
    if context:
        merged.update(context)
    kwargs = {} if level is None else {"level": level}
    log_structured_error(
        error_type=classify_error(error),
        message=f"{message}: {error}",
        exception=error,
        context=merged or None,
        **kwargs,
    )
