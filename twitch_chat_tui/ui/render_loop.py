"""Render thread: repaints the terminal when the chat or the screen changes."""

from __future__ import annotations

import logging
import threading

from ..chat.buffer import ScrollbackBuffer
from ..constants import RENDER_JOIN_TIMEOUT_SECONDS, RENDER_TICK_SECONDS
from ..irc.models import SessionStatus
from ..logs.logger import logger
from .render import RenderPipeline, ViewportState
from .terminal import TerminalSurface


class RenderLoop(threading.Thread):
    """Owns the terminal while the app runs.

    Every ``tick`` seconds the loop polls the terminal size and repaints
    only when the buffer version, the session status, the size or the scroll
    offset changed since the last frame. ``update_status`` may be called
    from any thread; the status object is replaced whole.
    """

    def __init__(
        self,
        buffer: ScrollbackBuffer,
        pipeline: RenderPipeline,
        surface: TerminalSurface,
        status: SessionStatus,
        tick: float = RENDER_TICK_SECONDS,
    ) -> None:
        super().__init__(name="render-loop", daemon=True)
        self.buffer = buffer
        self.pipeline = pipeline
        self.surface = surface
        self.tick = tick
        self._status = status
        self._stop_event = threading.Event()
        width, height = surface.size()
        self.viewport = ViewportState(width=max(1, width), height=max(0, height - 1))
        self._last_key: tuple[object, ...] | None = None
        self.frames_painted = 0

    @property
    def status(self) -> SessionStatus:
        return self._status

    def update_status(self, status: SessionStatus) -> None:
        self._status = status

    def render_once(self) -> bool:
        """Repaint if anything visible changed. Returns True when painted."""
        width, height = self.surface.size()
        # Last terminal row is the status row
        self.viewport.resize(width, height - 1)
        status = self._status
        key = (
            self.buffer.version,
            status,
            self.viewport.width,
            self.viewport.height,
            self.viewport.scroll_offset,
        )
        if key == self._last_key:
            return False
        frame = self.pipeline.frame(self.buffer.snapshot(), status, self.viewport)
        self.surface.paint(frame)
        # Offset may have been clamped while building the frame
        self._last_key = key[:-1] + (self.viewport.scroll_offset,)
        self.frames_painted += 1
        return True

    def run(self) -> None:
        logger.log_event("render", "started", level=logging.DEBUG, tick=self.tick)
        while not self._stop_event.is_set():
            try:
                self.render_once()
            except Exception as e:  # noqa: BLE001
                logger.log_event(
                    "render", "frame_error", level=logging.ERROR, error=str(e), exc_info=True
                )
            self._stop_event.wait(self.tick)
        logger.log_event(
            "render", "stopped", level=logging.DEBUG, frames=self.frames_painted
        )

    def stop(self, timeout: float = RENDER_JOIN_TIMEOUT_SECONDS) -> None:
        self._stop_event.set()
        if self.is_alive():
            self.join(timeout)
