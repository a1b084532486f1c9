"""Application wiring: one session feeding one terminal view."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from rich.text import Text

from .chat.buffer import ScrollbackBuffer
from .config.model import ChatConfig
from .irc.models import SessionStatus
from .irc.session import ChatSession
from .irc.transport import Transport, build_transport
from .logging_config import LoggerConfigurator
from .logs.logger import logger
from .ui.render import RenderPipeline
from .ui.render_loop import RenderLoop
from .ui.terminal import TerminalSurface

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ChatApp:
    """Runs the session on the event loop and the render loop on its thread.

    ``run`` returns the process exit code: 0 after a requested shutdown, 1
    after a fatal session error.
    """

    def __init__(
        self,
        config: ChatConfig,
        surface: TerminalSurface | None = None,
        transport: Transport | None = None,
        configurator: LoggerConfigurator | None = None,
    ) -> None:
        self.config = config
        self.surface = surface or TerminalSurface()
        self.configurator = configurator
        self.buffer = ScrollbackBuffer(config.messages_buffer_size)
        self.pipeline = RenderPipeline(
            config.badge_icons(), config.invert_below_brightness
        )
        self.render_loop = RenderLoop(
            self.buffer,
            self.pipeline,
            self.surface,
            SessionStatus(channel=config.channel),
            tick=config.tick_interval,
        )
        self.session = ChatSession(
            config,
            transport or build_transport(config),
            self.buffer,
            on_status=self.render_loop.update_status,
        )

    def request_shutdown(self, signum: int | None = None) -> None:
        if signum is not None:
            logger.log_event("app", "signal", level=logging.WARNING, signal=signum)
        self.session.request_shutdown()

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> list[int]:
        installed = []
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_shutdown, int(sig))
            except (NotImplementedError, RuntimeError):
                # No loop signal support here; Ctrl-C still raises KeyboardInterrupt
                logger.log_event(
                    "app", "signal_unsupported", level=logging.DEBUG, signal=int(sig)
                )
                continue
            installed.append(sig)
        return installed

    def _quiet_console(self) -> contextlib.AbstractContextManager[None]:
        if self.configurator is None:
            return contextlib.nullcontext()
        return self.configurator.suspend_console()

    async def run(self) -> int:
        loop = asyncio.get_running_loop()
        installed = self._install_signal_handlers(loop)
        logger.log_event("app", "start", channel=self.config.channel)
        try:
            with self._quiet_console():
                self.surface.enter()
                self.render_loop.start()
                try:
                    await self.session.run()
                finally:
                    self.render_loop.stop()
                    self.surface.exit()
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)

        error = self.session.fatal_error
        if error is not None:
            self.surface.console.print(Text(str(error), style="bold red"))
            logger.log_event(
                "app", "exit_fatal", level=logging.ERROR, channel=self.config.channel
            )
            return 1
        logger.log_event("app", "exit_clean", channel=self.config.channel)
        return 0
