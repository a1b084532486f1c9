"""Human-readable log templates keyed by ``(domain, action)``.

``event_templates.json`` holds one object per domain mapping action names to
``str.format`` templates. The catalog is updated in place on reload, so
``EVENT_TEMPLATES`` imported elsewhere always reflects the current file.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

TEMPLATES_PATH = Path(__file__).with_name("event_templates.json")
LOAD_ERROR_KEY = ("app", "load_error")

EVENT_TEMPLATES: dict[tuple[str, str], str] = {}


def flatten_templates(document: object) -> dict[tuple[str, str], str]:
    """Keep the string templates of a ``{domain: {action: template}}`` document."""
    if not isinstance(document, Mapping):
        return {}
    return {
        (domain, action): template
        for domain, actions in document.items()
        if isinstance(actions, Mapping)
        for action, template in actions.items()
        if isinstance(template, str)
    }


def load_event_templates(path: Path = TEMPLATES_PATH) -> dict[tuple[str, str], str]:
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {LOAD_ERROR_KEY: f"Event templates file {path.name} missing"}
    except (OSError, ValueError) as e:
        return {LOAD_ERROR_KEY: f"Failed to load event templates: {e}"[:200]}
    return flatten_templates(document)


def reload_event_templates(path: Path | None = None) -> None:
    templates = load_event_templates(path or TEMPLATES_PATH)
    EVENT_TEMPLATES.clear()
    EVENT_TEMPLATES.update(templates)


reload_event_templates()

__all__ = [
    "EVENT_TEMPLATES",
    "flatten_templates",
    "load_event_templates",
    "reload_event_templates",
]
