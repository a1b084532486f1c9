"""Display-width aware word wrapping."""

from __future__ import annotations

from rich.cells import get_character_cell_size


def _is_space(char: str) -> bool:
    return char.isspace()


def wrap_text(text: str, width: int) -> list[str]:
    """Split ``text`` into rows of at most ``width`` terminal cells.

    Rows break after the last whitespace that fits; a word longer than the
    row is broken mid-word. The whitespace run at a break stays at the end
    of the row it follows and is not counted against ``width``, so no row is
    blank and joining the rows gives back ``text`` exactly. Callers painting
    a row crop that trailing whitespace.
    A single character wider than ``width`` still gets a row of its own.

    Raises:
        ValueError: ``width`` is below 1.
    """
    if width < 1:
        raise ValueError("width must be >= 1")
    rows: list[str] = []
    start = 0
    length = len(text)
    while start < length:
        cells = 0
        end = start
        last_break = -1
        in_word = False
        while end < length:
            char = text[end]
            size = get_character_cell_size(char)
            if cells + size > width:
                break
            cells += size
            if not _is_space(char):
                in_word = True
            elif in_word:
                last_break = end + 1
            end += 1
        if end < length and not _is_space(text[end]) and last_break > start:
            # keep the word whole; it starts the next row
            end = last_break
        if end == start:
            end = start + 1
        while end < length and _is_space(text[end]):
            end += 1
        rows.append(text[start:end])
        start = end
    return rows
