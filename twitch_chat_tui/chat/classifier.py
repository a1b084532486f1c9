"""Projects parsed protocol events onto display-ready chat line drafts."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from ..irc.models import ParsedEvent
from .colors import hash_color, parse_hex_color
from .models import BadgeKind, ChatLineDraft

if TYPE_CHECKING:  # pragma: no cover
    from ..config.model import ChatConfig

BADGES_TAG = "badges"
DISPLAY_NAME_TAG = "display-name"
COLOR_TAG = "color"

CHAT_COMMANDS = frozenset({"PRIVMSG"})

BADGE_KINDS: Mapping[str, BadgeKind] = {
    "subscriber": BadgeKind.SUBSCRIBER,
    "moderator": BadgeKind.MODERATOR,
    "vip": BadgeKind.VIP,
    "founder": BadgeKind.FOUNDER,
}

_ACTION_PREFIX = "\x01ACTION "
_CTCP_DELIM = "\x01"

REPLACEMENT_CHAR = "\ufffd"

# C0, DEL and C1 control codes; tabs become a plain space
_CONTROL_CHARS: dict[int, str] = {
    code: REPLACEMENT_CHAR for code in (*range(0x20), 0x7F, *range(0x80, 0xA0))
}
_CONTROL_CHARS[ord("\t")] = " "


def parse_badges(raw: str) -> frozenset[BadgeKind]:
    """Read a 'name/version,name/version' badge list.

    Unknown names become BadgeKind.OTHER; empty entries are skipped.
    """
    kinds: set[BadgeKind] = set()
    for entry in raw.split(","):
        name = entry.partition("/")[0].strip().lower()
        if name:
            kinds.add(BADGE_KINDS.get(name, BadgeKind.OTHER))
    return frozenset(kinds)


def split_action(body: str) -> tuple[str, bool]:
    """Strip the CTCP ACTION wrapper that /me messages arrive in."""
    if body.startswith(_ACTION_PREFIX):
        inner = body[len(_ACTION_PREFIX) :]
        if inner.endswith(_CTCP_DELIM):
            inner = inner[:-1]
        return inner, True
    return body, False


def sanitize_text(text: str) -> str:
    """Replace terminal control characters so chat text can only print glyphs."""
    return text.translate(_CONTROL_CHARS)


def classify(
    event: ParsedEvent,
    config: ChatConfig,
    clock: Callable[[], datetime] | None = None,
) -> ChatLineDraft | None:
    """Build a draft for chat messages in the configured channel, else None."""
    if event.command not in CHAT_COMMANDS or len(event.params) < 2:
        return None
    if event.params[0].lstrip("#").lower() != config.channel:
        return None
    login = event.nick
    if not login:
        return None

    tags = event.tags
    display_name = sanitize_text(tags.get(DISPLAY_NAME_TAG, "")).strip()
    if not display_name:
        display_name = sanitize_text(login)
    color = parse_hex_color(tags.get(COLOR_TAG)) or hash_color(login, config.palette)
    body, is_action = split_action(event.params[1])
    body = sanitize_text(body)
    received_at = clock() if clock else datetime.now(UTC)
    return ChatLineDraft(
        sender_login=login.lower(),
        sender_display_name=display_name,
        body=body,
        badges=parse_badges(tags.get(BADGES_TAG, "")),
        name_color=color,
        received_at=received_at,
        is_action=is_action,
    )
