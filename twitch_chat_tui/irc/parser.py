"""IRC message parsing utilities.

Decodes one raw protocol line (CRLF already stripped) into a ParsedEvent.
Handles the IRCv3 message-tag segment, including value escaping.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..errors.internal import ParseError
from .models import ParsedEvent

# IRCv3 tag value escapes: escaped char -> raw char
_UNESCAPES: dict[str, str] = {
    ":": ";",
    "s": " ",
    "\\": "\\",
    "r": "\r",
    "n": "\n",
}
_ESCAPES: dict[str, str] = {raw: f"\\{esc}" for esc, raw in _UNESCAPES.items()}


def parse_irc_message(raw_line: str) -> ParsedEvent:
    """Parse one protocol line.

    Raises:
        ParseError: the line has no command token.
    """
    line = raw_line.rstrip("\r\n")
    tags: dict[str, str] = {}
    prefix: str | None = None

    if line.startswith("@"):
        tags_part, _, line = line.partition(" ")
        tags = parse_tags(tags_part[1:])
        line = line.lstrip(" ")

    if line.startswith(":"):
        prefix, _, line = line[1:].partition(" ")
        line = line.lstrip(" ")

    trailing: str | None = None
    if line.startswith(":"):
        line, trailing = "", line[1:]
    elif " :" in line:
        line, trailing = line.split(" :", 1)

    parts = line.split()
    if not parts:
        raise ParseError("line has no command", raw=raw_line)

    command = parts[0].upper()
    params = parts[1:]
    if trailing is not None:
        params.append(trailing)
    return ParsedEvent(command=command, params=tuple(params), prefix=prefix, tags=tags)


def parse_tags(raw_tags: str) -> dict[str, str]:
    """Split a tag segment (without the leading '@') into a mapping.

    A key without '=' maps to "". When the wire repeats a key the last
    occurrence wins.
    """
    tags: dict[str, str] = {}
    for tag in raw_tags.split(";"):
        if not tag:
            continue
        key, _, value = tag.partition("=")
        tags[key] = unescape_tag_value(value)
    return tags


def unescape_tag_value(value: str) -> str:
    """Decode an escaped tag value. Total: every input decodes to something."""
    if "\\" not in value:
        return value
    out: list[str] = []
    chars = iter(value)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, None)
        if nxt is None:
            # A lone trailing backslash is dropped
            break
        out.append(_UNESCAPES.get(nxt, nxt))
    return "".join(out)


def escape_tag_value(value: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def serialize_tags(tags: Mapping[str, str]) -> str:
    """Build a tag segment, including the leading '@', from a mapping."""
    if not tags:
        return ""
    return "@" + ";".join(
        f"{key}={escape_tag_value(value)}" if value else key
        for key, value in tags.items()
    )
