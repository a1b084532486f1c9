"""Projects the chat snapshot into a fixed-size frame of styled rows."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from rich.cells import set_cell_size
from rich.style import Style
from rich.text import Text

from ..chat.models import BADGE_DISPLAY_ORDER, BadgeIcon, BadgeKind, ChatLine
from ..constants import INVERT_BELOW_BRIGHTNESS, RENDER_MIN_BODY_WIDTH
from ..irc.models import Phase, SessionStatus
from .wrap import wrap_text

# Background behind names too dark to read on a dark terminal
INVERTED_NAME_BACKGROUND = "grey70"
STATUS_STYLE = Style(reverse=True)

PHASE_LABELS: Mapping[Phase, str] = {
    Phase.DISCONNECTED: "disconnected",
    Phase.CONNECTING: "connecting…",
    Phase.NEGOTIATING: "authenticating…",
    Phase.JOINING: "joining…",
    Phase.JOINED: "live",
    Phase.RECONNECTING: "reconnecting…",
    Phase.TERMINATED: "closed",
}


@dataclass
class ViewportState:
    """Visible region of the chat pane. Owned by the render side only.

    ``scroll_offset`` counts wrapped rows back from the newest one; 0 follows
    the live tail.
    """

    width: int
    height: int
    scroll_offset: int = 0

    def clamp(self, total_rows: int) -> None:
        self.scroll_offset = max(0, min(self.scroll_offset, total_rows - self.height))

    def resize(self, width: int, height: int) -> None:
        self.width = max(1, width)
        self.height = max(0, height)


def format_status(status: SessionStatus, buffered: int | None = None) -> str:
    """Status row text, e.g. ``#bar reconnecting… attempt 2 (retry in 4.2s)``.

    ``buffered`` is the number of lines held in scrollback, shown when given.
    """
    text = f"#{status.channel} {PHASE_LABELS[status.phase]}"
    if status.phase is Phase.RECONNECTING:
        text += f" attempt {status.attempt}"
        if status.retry_in is not None:
            text += f" (retry in {status.retry_in:.1f}s)"
    if status.message:
        text += f": {status.message}"
    if buffered is not None:
        text += f"  [{buffered} buffered]"
    return text


class RenderPipeline:
    """Turns chat lines into wrapped, styled rows.

    The pipeline is stateless apart from its styling tables; the viewport is
    passed in on each call so a resize only changes the next frame.
    """

    def __init__(
        self,
        badge_icons: Mapping[BadgeKind, BadgeIcon],
        invert_below_brightness: int = INVERT_BELOW_BRIGHTNESS,
        min_body_width: int = RENDER_MIN_BODY_WIDTH,
    ) -> None:
        self.badge_icons = dict(badge_icons)
        self.invert_below_brightness = invert_below_brightness
        self.min_body_width = min_body_width

    def badge_prefix(self, badges: frozenset[BadgeKind]) -> str:
        """Icons for ``badges`` in display order, each padded to its cell width."""
        parts = []
        for kind in BADGE_DISPLAY_ORDER:
            icon = self.badge_icons.get(kind)
            if kind in badges and icon is not None and icon.width > 0:
                parts.append(set_cell_size(icon.symbol, icon.width))
        return "".join(parts)

    def name_style(self, line: ChatLine) -> Style:
        color = line.name_color
        if color is None:
            return Style(bold=True)
        background = None
        if color.luminance < self.invert_below_brightness:
            background = INVERTED_NAME_BACKGROUND
        return Style(color=color.hex, bgcolor=background, bold=True)

    def body_style(self, line: ChatLine) -> Style:
        if line.is_action and line.name_color is not None:
            return Style(color=line.name_color.hex, italic=True)
        if line.is_action:
            return Style(italic=True)
        return Style()

    def _header(self, line: ChatLine) -> Text:
        header = Text(self.badge_prefix(line.badges))
        header.append(line.sender_display_name, style=self.name_style(line))
        header.append(" " if line.is_action else ": ")
        return header

    def line_rows(self, line: ChatLine, width: int) -> list[Text]:
        """Wrap one chat line into rows no wider than ``width`` cells.

        Whitespace a row ends on at a wrap point is cropped at ``width``.
        """
        header = self._header(line)
        body_style = self.body_style(line)
        header_width = header.cell_len
        body_width = width - header_width

        if body_width >= self.min_body_width:
            chunks = wrap_text(line.body, body_width) or [""]
            first = header.copy()
            first.append(chunks[0], style=body_style)
            first.truncate(width, overflow="crop")
            rows = [first]
            indent = " " * header_width
            for chunk in chunks[1:]:
                row = Text(indent)
                row.append(chunk, style=body_style)
                row.truncate(width, overflow="crop")
                rows.append(row)
            return rows

        # Too narrow to share a row: header alone, body below at full width
        header.truncate(width, overflow="crop")
        rows = [header]
        for chunk in wrap_text(line.body, width):
            row = Text(chunk, style=body_style)
            row.truncate(width, overflow="crop")
            rows.append(row)
        return rows

    def visible_rows(
        self, snapshot: Sequence[ChatLine], viewport: ViewportState
    ) -> list[Text]:
        """The ``viewport.height`` rows on screen, bottom-anchored.

        Only the newest lines needed to fill the viewport (plus the scroll
        offset) are wrapped. ``viewport.scroll_offset`` is clamped in place.
        """
        height = viewport.height
        if height <= 0:
            return []
        needed = height + viewport.scroll_offset
        blocks: list[list[Text]] = []
        total = 0
        for line in reversed(snapshot):
            block = self.line_rows(line, viewport.width)
            blocks.append(block)
            total += len(block)
            if total >= needed:
                break
        rows = [row for block in reversed(blocks) for row in block]

        viewport.clamp(len(rows))
        end = len(rows) - viewport.scroll_offset
        window = rows[max(0, end - height) : end]
        blanks = [Text() for _ in range(height - len(window))]
        return blanks + window

    def status_row(self, status: SessionStatus, buffered: int) -> Text:
        return Text(format_status(status, buffered), style=STATUS_STYLE)

    def frame(
        self,
        snapshot: Sequence[ChatLine],
        status: SessionStatus,
        viewport: ViewportState,
    ) -> list[Text]:
        """``viewport.height`` chat rows plus the status row, each exactly
        ``viewport.width`` cells wide."""
        rows = self.visible_rows(snapshot, viewport)
        rows.append(self.status_row(status, len(snapshot)))
        for row in rows:
            row.truncate(viewport.width, overflow="crop", pad=True)
        return rows

