from __future__ import annotations

import asyncio
import io
import os
import signal
import sys

import pytest
from rich.console import Console

from tests.fixtures.fake_transport import FakeConnection, FakeTransport, twitch_server
from twitch_chat_tui.app import ChatApp
from twitch_chat_tui.irc.models import Phase, SessionStatus
from twitch_chat_tui.ui.terminal import TerminalSurface


def _surface() -> TerminalSurface:
    console = Console(
        file=io.StringIO(),
        width=40,
        height=10,
        force_terminal=True,
        color_system=None,
        legacy_windows=False,
    )
    return TerminalSurface(console)


def _feeding_responder(lines: list[str]):
    def responder(conn: FakeConnection, line: str) -> None:
        twitch_server(conn, line)
        if line.startswith("JOIN"):
            conn.feed(*lines)

    return responder


def _when_joined(app: ChatApp, action) -> None:
    update = app.session.on_status

    def on_status(status: SessionStatus) -> None:
        update(status)
        if status.phase is Phase.JOINED:
            asyncio.get_running_loop().call_later(0.05, action)

    app.session.on_status = on_status


@pytest.fixture
def fast_config(config):
    return config.model_copy(update={"tick_interval": 0.01})


@pytest.mark.asyncio
async def test_clean_shutdown_returns_zero(fast_config):
    surface = _surface()
    transport = FakeTransport(
        responder=_feeding_responder(["@display-name=Foo :foo!foo@x PRIVMSG #bar :hi"])
    )
    app = ChatApp(fast_config, surface=surface, transport=transport)
    _when_joined(app, app.request_shutdown)

    code = await asyncio.wait_for(app.run(), 5.0)

    assert code == 0
    assert not surface.active
    assert not app.render_loop.is_alive()
    assert len(app.buffer) == 1
    assert app.render_loop.status.phase is Phase.TERMINATED
    assert "Foo: hi" in surface.console.file.getvalue()


@pytest.mark.asyncio
@pytest.mark.skipif(sys.platform == "win32", reason="loop signal handlers are POSIX only")
async def test_sigterm_triggers_graceful_shutdown(fast_config):
    transport = FakeTransport(responder=twitch_server)
    app = ChatApp(fast_config, surface=_surface(), transport=transport)
    _when_joined(app, lambda: os.kill(os.getpid(), signal.SIGTERM))

    code = await asyncio.wait_for(app.run(), 5.0)

    assert code == 0
    assert transport.connections[0].closed


@pytest.mark.asyncio
async def test_fatal_error_is_printed_and_returns_one(fast_config):
    def responder(conn: FakeConnection, line: str) -> None:
        if line.startswith("JOIN"):
            conn.feed("@msg-id=tos_ban :tmi.twitch.tv NOTICE #bar :banned")
        else:
            twitch_server(conn, line)

    surface = _surface()
    app = ChatApp(fast_config, surface=surface, transport=FakeTransport(responder=responder))

    code = await asyncio.wait_for(app.run(), 5.0)

    assert code == 1
    output = surface.console.file.getvalue()
    assert output.rindex("Cannot join #bar: banned") > output.rindex("\x1b[?1049l")
