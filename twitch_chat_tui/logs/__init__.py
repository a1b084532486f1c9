"""Structured event logging: the template catalog and ``ChatLogger``."""

from .event_catalog import EVENT_TEMPLATES, reload_event_templates  # noqa: F401
from .logger import ChatLogger, logger  # noqa: F401

__all__ = ["ChatLogger", "logger", "EVENT_TEMPLATES", "reload_event_templates"]
