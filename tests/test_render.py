from __future__ import annotations

import pytest
from rich.cells import cell_len

from twitch_chat_tui.chat.classifier import classify
from twitch_chat_tui.chat.colors import RGBColor
from twitch_chat_tui.chat.models import BadgeKind, ChatLine
from twitch_chat_tui.irc.models import Phase, SessionStatus
from twitch_chat_tui.irc.parser import parse_irc_message
from twitch_chat_tui.ui.render import (
    INVERTED_NAME_BACKGROUND,
    RenderPipeline,
    ViewportState,
    format_status,
)

LONG_BODY = (
    "this message is long enough that it has to wrap over several rows "
    "of a narrow terminal window without losing a single character"
)


def _line(seq: int, body: str = "hello world", **kwargs) -> ChatLine:
    values = {
        "sender_login": "foo",
        "sender_display_name": "Foo",
        "name_color": RGBColor(255, 0, 0),
    }
    values.update(kwargs)
    return ChatLine(sequence_id=seq, body=body, **values)


@pytest.fixture
def pipeline(config) -> RenderPipeline:
    return RenderPipeline(config.badge_icons(), config.invert_below_brightness)


def _words(pipeline: RenderPipeline, line: ChatLine, width: int) -> list[str]:
    """Words of the body as painted in the wrapped rows of ``line``."""
    rows = pipeline.line_rows(line, width)
    header = len(pipeline.badge_prefix(line.badges)) + len(line.sender_display_name) + 2
    return " ".join(row.plain[header:] for row in rows).split()


def test_header_and_body_on_one_row(pipeline):
    line = _line(1, badges=frozenset({BadgeKind.SUBSCRIBER, BadgeKind.MODERATOR}))
    rows = pipeline.line_rows(line, 80)
    assert len(rows) == 1
    prefix = pipeline.badge_prefix(line.badges)
    assert rows[0].plain == f"{prefix}Foo: hello world"


def test_badges_in_stable_order_with_fixed_width(pipeline):
    prefix = pipeline.badge_prefix(
        frozenset({BadgeKind.SUBSCRIBER, BadgeKind.VIP, BadgeKind.FOUNDER})
    )
    icons = pipeline.badge_icons
    assert prefix.startswith(icons[BadgeKind.FOUNDER].symbol)
    assert prefix.index(icons[BadgeKind.VIP].symbol) < prefix.index(
        icons[BadgeKind.SUBSCRIBER].symbol
    )
    assert cell_len(prefix) == 6


def test_other_badge_has_no_icon(pipeline):
    assert pipeline.badge_prefix(frozenset({BadgeKind.OTHER})) == ""


def test_continuation_rows_are_indented(pipeline):
    line = _line(1, LONG_BODY)
    rows = pipeline.line_rows(line, 30)
    assert len(rows) > 2
    header = len("Foo: ")
    for row in rows[1:]:
        assert row.plain.startswith(" " * header)
    assert all(row.cell_len <= 30 for row in rows)
    assert _words(pipeline, line, 30) == LONG_BODY.split()


def test_narrow_viewport_puts_header_on_its_own_row(pipeline):
    line = _line(1, "abcdefghij", sender_display_name="VeryLongDisplayName")
    rows = pipeline.line_rows(line, 12)
    assert rows[0].plain == "VeryLongDisp"
    assert "".join(row.plain for row in rows[1:]) == "abcdefghij"
    assert all(row.cell_len <= 12 for row in rows)


def test_dark_names_get_light_background(pipeline):
    rows = pipeline.line_rows(_line(1, name_color=RGBColor(0, 0, 128)), 80)
    styles = [span.style for span in rows[0].spans]
    assert any(
        style.bgcolor is not None and style.bgcolor.name == INVERTED_NAME_BACKGROUND
        for style in styles
    )


def test_bright_names_keep_default_background(pipeline):
    rows = pipeline.line_rows(_line(1, name_color=RGBColor(255, 255, 0)), 80)
    assert all(span.style.bgcolor is None for span in rows[0].spans)


def test_action_lines_use_space_separator(pipeline):
    rows = pipeline.line_rows(_line(1, "waves", is_action=True), 80)
    assert rows[0].plain == "Foo waves"


def test_visible_rows_bottom_anchored(pipeline):
    viewport = ViewportState(width=40, height=5)
    rows = pipeline.visible_rows([_line(1, "one"), _line(2, "two")], viewport)
    assert len(rows) == 5
    assert [row.plain for row in rows[:3]] == ["", "", ""]
    assert rows[3].plain == "Foo: one"
    assert rows[4].plain == "Foo: two"


def test_visible_rows_show_newest(pipeline):
    snapshot = [_line(i, f"msg{i}") for i in range(1, 21)]
    viewport = ViewportState(width=40, height=3)
    rows = pipeline.visible_rows(snapshot, viewport)
    assert [row.plain for row in rows] == ["Foo: msg18", "Foo: msg19", "Foo: msg20"]


def test_scroll_offset_moves_back_and_clamps(pipeline):
    snapshot = [_line(i, f"msg{i}") for i in range(1, 11)]
    viewport = ViewportState(width=40, height=3, scroll_offset=2)
    rows = pipeline.visible_rows(snapshot, viewport)
    assert [row.plain for row in rows] == ["Foo: msg6", "Foo: msg7", "Foo: msg8"]

    viewport.scroll_offset = 100
    rows = pipeline.visible_rows(snapshot, viewport)
    assert viewport.scroll_offset == 7
    assert [row.plain for row in rows] == ["Foo: msg1", "Foo: msg2", "Foo: msg3"]


def test_frame_has_fixed_shape(pipeline):
    snapshot = [_line(1, LONG_BODY), _line(2, "short")]
    status = SessionStatus(channel="bar", phase=Phase.JOINED)
    viewport = ViewportState(width=25, height=6)
    frame = pipeline.frame(snapshot, status, viewport)
    assert len(frame) == 7
    assert all(row.cell_len == 25 for row in frame)
    assert frame[-1].plain.startswith("#bar live  [2 buffered]")


def test_zero_height_frame_is_status_only(pipeline):
    status = SessionStatus(channel="bar")
    frame = pipeline.frame([_line(1)], status, ViewportState(width=10, height=0))
    assert len(frame) == 1


def test_resize_rewraps_without_changing_order_or_content(pipeline):
    snapshot = [_line(i, f"{i} {LONG_BODY}") for i in range(1, 4)]
    status = SessionStatus(channel="bar", phase=Phase.JOINED)

    def shown(width: int) -> list[str]:
        viewport = ViewportState(width=width, height=200)
        frame = pipeline.frame(snapshot, status, viewport)
        return [row.plain for row in frame if row.plain.startswith("Foo: ")]

    wide, narrow = shown(80), shown(40)
    assert [row.split()[1] for row in wide] == ["1", "2", "3"]
    assert [row.split()[1] for row in narrow] == ["1", "2", "3"]
    for line in snapshot:
        assert _words(pipeline, line, 80) == line.body.split()
        assert _words(pipeline, line, 40) == line.body.split()
        assert len(pipeline.line_rows(line, 40)) > len(pipeline.line_rows(line, 80))


@pytest.mark.parametrize(
    ("status", "buffered", "expected"),
    [
        (SessionStatus(channel="bar", phase=Phase.JOINED), None, "#bar live"),
        (
            SessionStatus(channel="bar", phase=Phase.RECONNECTING, attempt=2, retry_in=4.21),
            None,
            "#bar reconnecting… attempt 2 (retry in 4.2s)",
        ),
        (
            SessionStatus(
                channel="bar", phase=Phase.TERMINATED, message="Cannot join #bar: banned"
            ),
            None,
            "#bar closed: Cannot join #bar: banned",
        ),
        (SessionStatus(channel="bar", phase=Phase.JOINED), 3, "#bar live  [3 buffered]"),
    ],
)
def test_format_status(status, buffered, expected):
    assert format_status(status, buffered) == expected


def test_no_blank_rows_when_words_end_on_the_limit(pipeline):
    line = _line(1, "abcdefgh ijklmnop qrstuvwx")
    rows = pipeline.line_rows(line, 13)
    assert [row.plain for row in rows] == [
        "Foo: abcdefgh",
        "     ijklmnop",
        "     qrstuvwx",
    ]
    assert all(row.cell_len <= 13 for row in rows)


def test_chat_escape_sequences_never_reach_the_rows(pipeline, config):
    raw = "@display-name=Fo\x1b[Ho :foo!foo@x PRIVMSG #bar :hi \x1b[2J\x1b[31mred"
    draft = classify(parse_irc_message(raw), config)
    assert draft is not None
    line = ChatLine.from_draft(draft, 1)
    rows = pipeline.line_rows(line, 80)
    assert len(rows) == 1
    assert "\x1b" not in rows[0].plain
    assert rows[0].cell_len == len("Fo?[Ho: hi ?[2J?[31mred")
