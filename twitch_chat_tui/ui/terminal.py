"""Terminal surface: alternate screen, size queries and buffered frame writes."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.control import Control
from rich.text import Text


class TerminalSurface:
    """Thin wrapper over a rich Console used as a fixed grid of rows.

    ``paint`` writes a whole frame inside one console buffer, so the
    terminal receives it as a single write and never shows a half-drawn
    frame.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(highlight=False)
        self.active = False

    def enter(self) -> None:
        if self.active:
            return
        self.console.set_alt_screen(True)
        self.console.show_cursor(False)
        self.active = True

    def exit(self) -> None:
        if not self.active:
            return
        self.console.show_cursor(True)
        self.console.set_alt_screen(False)
        self.active = False

    def size(self) -> tuple[int, int]:
        """Current (width, height) in cells."""
        width, height = self.console.size
        return width, height

    def paint(self, rows: Sequence[Text]) -> None:
        """Draw ``rows`` from the top-left corner, one terminal row each."""
        with self.console:
            for y, row in enumerate(rows):
                self.console.control(Control.move_to(0, y))
                self.console.print(row, end="", no_wrap=True, overflow="crop")
