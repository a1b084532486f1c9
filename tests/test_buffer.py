from __future__ import annotations

import threading

import pytest

from twitch_chat_tui.chat.buffer import ScrollbackBuffer
from twitch_chat_tui.chat.models import ChatLineDraft


def _draft(body: str) -> ChatLineDraft:
    return ChatLineDraft(sender_login="foo", sender_display_name="Foo", body=body)


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        ScrollbackBuffer(0)


def test_ids_start_at_one_and_increase_without_gaps():
    buf = ScrollbackBuffer(10)
    lines = [buf.append(_draft(str(i))) for i in range(5)]
    assert [line.sequence_id for line in lines] == [1, 2, 3, 4, 5]
    assert [line.sequence_id for line in buf.snapshot()] == [1, 2, 3, 4, 5]
    assert buf.version == 5


def test_overflow_evicts_oldest_first():
    buf = ScrollbackBuffer(3)
    for i in range(7):
        buf.append(_draft(str(i)))
    snap = buf.snapshot()
    assert len(snap) == len(buf) == 3
    assert [line.body for line in snap] == ["4", "5", "6"]
    assert [line.sequence_id for line in snap] == [5, 6, 7]


def test_ids_never_reused_after_eviction():
    buf = ScrollbackBuffer(1)
    seen = {buf.append(_draft(str(i))).sequence_id for i in range(20)}
    assert len(seen) == 20


def test_snapshot_is_independent_copy():
    buf = ScrollbackBuffer(5)
    buf.append(_draft("a"))
    snap = buf.snapshot()
    buf.append(_draft("b"))
    assert len(snap) == 1
    assert len(buf.snapshot()) == 2


def test_draft_fields_carried_over():
    buf = ScrollbackBuffer(2)
    draft = ChatLineDraft(
        sender_login="foo", sender_display_name="Foo", body="x", is_action=True
    )
    line = buf.append(draft)
    assert line.sender_display_name == "Foo"
    assert line.is_action is True
    assert line.received_at == draft.received_at


def test_concurrent_reader_sees_strictly_increasing_ids():
    buf = ScrollbackBuffer(50)
    done = threading.Event()
    problems: list[str] = []

    def reader() -> None:
        while not done.is_set():
            ids = [line.sequence_id for line in buf.snapshot()]
            if ids != sorted(set(ids)):
                problems.append(repr(ids))
            if ids and ids[-1] - ids[0] != len(ids) - 1:
                problems.append(f"gap in {ids!r}")

    thread = threading.Thread(target=reader)
    thread.start()
    for i in range(2000):
        buf.append(_draft(str(i)))
    done.set()
    thread.join()
    assert problems == []
    assert buf.version == 2000
