r"""
Logging configuration module for the Twitch chat TUI.

Provides a clean, configurable logging setup using colorlog library with
structured error logging and aggregation capabilities. While the chat view
owns the terminal the console handler is suspended and records only reach
the log file.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
import time
from collections import defaultdict
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import colorlog


class ErrorAggregator:
    """Aggregates error occurrences per category for the shutdown summary."""

    def __init__(self) -> None:
        self.errors: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.lock = threading.Lock()
        self.start_time = time.time()

    def record_error(
        self, error_type: str, message: str, context: dict[str, Any] | None = None
    ) -> None:
        """Record an error occurrence with context."""
        with self.lock:
            error_entry = {
                "timestamp": time.time(),
                "message": message,
                "context": context or {},
            }
            self.errors[error_type].append(error_entry)

            # Keep only recent errors (last 1000 per type)
            if len(self.errors[error_type]) > 1000:
                self.errors[error_type] = self.errors[error_type][-1000:]

    def get_error_summary(self) -> dict[str, Any]:
        """Get a summary of error patterns."""
        with self.lock:
            summary = {}
            current_time = time.time()
            runtime_hours = (current_time - self.start_time) / 3600

            for error_type, occurrences in self.errors.items():
                recent_count = len(
                    [e for e in occurrences if current_time - e["timestamp"] < 3600]
                )
                total_count = len(occurrences)
                summary[error_type] = {
                    "total_count": total_count,
                    "recent_count": recent_count,
                    "rate_per_hour": total_count / max(runtime_hours, 1),
                    "last_occurrence": occurrences[-1] if occurrences else None,
                }

            return summary

    def log_summary_report(self) -> None:
        """Log a summary report of error patterns."""
        summary = self.get_error_summary()
        if not summary:
            logging.info("No errors recorded in current session")
            return

        logging.warning("🚨 ERROR SUMMARY REPORT")
        for error_type, stats in summary.items():
            logging.warning(
                f"  {error_type}: {stats['total_count']} total, "
                f"{stats['recent_count']} in last hour"
            )
            if stats["last_occurrence"]:
                logging.warning(f"    Last: {stats['last_occurrence']['message']}")

    def clear(self) -> None:
        with self.lock:
            self.errors.clear()
            self.start_time = time.time()


# Global error aggregator instance
error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: BaseException | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log an error with structured context and aggregation.

    Args:
        error_type: Category of the error (e.g., 'network', 'parsing', 'config')
        message: Descriptive error message
        exception: The exception that occurred (optional)
        context: Additional context data for debugging
        level: Logging level (default: ERROR)
    """
    structured_message = f"[{error_type.upper()}] {message}"

    if exception:
        structured_message += f" | Exception: {type(exception).__name__}"

    if context:
        context_str = " | ".join(f"{k}={v}" for k, v in context.items())
        structured_message += f" | Context: {context_str}"

    logging.log(level, structured_message)
    error_aggregator.record_error(error_type, message, context)


class LoggerConfigurator:
    """Handles logging configuration cleanly using colorlog.

    Console output goes to stderr through a colorlog formatter; an optional
    log file receives every record with a plain formatter. The DEBUG
    environment variable ('true', '1' or 'yes') lowers the level to DEBUG.
    """

    def __init__(self, log_file: str | None = None) -> None:
        self.log_file = log_file
        self.console_handler: logging.Handler | None = None
        self.file_handler: logging.Handler | None = None

    @staticmethod
    def debug_enabled() -> bool:
        return os.environ.get("DEBUG", "").lower() in ("true", "1", "yes")

    def build_console_formatter(self) -> colorlog.ColoredFormatter:
        return colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "magenta",
            },
            secondary_log_colors={
                "message": {
                    "ERROR": "red",
                    "CRITICAL": "magenta",
                }
            },
            reset=True,
        )

    def configure(self) -> None:
        """Install the console and file handlers on the root logger."""
        log_level = logging.DEBUG if self.debug_enabled() else logging.INFO
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)

        self.console_handler = logging.StreamHandler(sys.stderr)
        self.console_handler.setFormatter(self.build_console_formatter())
        root_logger.addHandler(self.console_handler)

        if self.log_file:
            self.file_handler = logging.FileHandler(self.log_file, encoding="utf-8")
            self.file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
                )
            )
            root_logger.addHandler(self.file_handler)

        root_logger.setLevel(log_level)
        # Library chatter stays out of the chat log
        logging.getLogger("websockets").setLevel(logging.INFO)
        logging.getLogger("asyncio").setLevel(logging.WARNING)

    @contextmanager
    def suspend_console(self) -> Iterator[None]:
        """Detach the stderr handler while the chat view owns the terminal."""
        root_logger = logging.getLogger()
        handler = self.console_handler
        if handler is not None:
            root_logger.removeHandler(handler)
        try:
            yield
        finally:
            if handler is not None:
                root_logger.addHandler(handler)

    def shutdown(self) -> None:
        """Report and reset the error counts, then close the file handler."""
        try:
            logging.info("📊 Final error summary before shutdown:")
            error_aggregator.log_summary_report()
            error_aggregator.clear()
        finally:
            if self.file_handler is not None:
                logging.getLogger().removeHandler(self.file_handler)
                self.file_handler.close()
                self.file_handler = None
