"""Bounded scrollback shared between the network side and the renderer."""

from __future__ import annotations

import threading
from collections import deque

from .models import ChatLine, ChatLineDraft


class ScrollbackBuffer:
    """Capacity-bounded, ordered chat lines.

    One writer (the session) appends, one reader (the render loop) takes
    snapshots. The lock only covers the O(1) append and the snapshot copy,
    so neither side ever waits on the other's I/O. Sequence ids start at 1,
    increase by one per append and are never reused after eviction.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._lines: deque[ChatLine] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self._next_id = 1

    def append(self, draft: ChatLineDraft) -> ChatLine:
        with self._lock:
            line = ChatLine.from_draft(draft, self._next_id)
            self._next_id += 1
            # deque(maxlen) drops the oldest entry
            self._lines.append(line)
        return line

    def snapshot(self) -> tuple[ChatLine, ...]:
        """Point-in-time copy, oldest first."""
        with self._lock:
            return tuple(self._lines)

    @property
    def version(self) -> int:
        """Number of appends so far; changes whenever the contents change."""
        return self._next_id - 1

    def __len__(self) -> int:
        return len(self._lines)
