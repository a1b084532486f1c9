"""Line transports for Twitch IRC.

The session only sees the Transport/Connection protocols: connect, read one
line, write one line, close. Socket and websocket errors are wrapped into
ConnectError / ConnectionLost here.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from collections import deque
from typing import TYPE_CHECKING, Protocol

import websockets

from ..errors.internal import ConnectError, ConnectionLost
from ..logs.logger import logger

if TYPE_CHECKING:  # pragma: no cover
    from ..config.model import ChatConfig

# Twitch lines top out well below this, tags included
STREAM_LIMIT = 64 * 1024


class Connection(Protocol):
    async def read_line(self) -> str: ...

    async def write_line(self, line: str) -> None: ...

    async def close(self) -> None: ...


class Transport(Protocol):
    async def connect(self) -> Connection: ...


def _check_line(line: str) -> None:
    if "\r" in line or "\n" in line:
        raise ValueError("protocol lines must not contain CR or LF")


class TcpConnection:
    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer

    async def read_line(self) -> str:
        try:
            data = await self.reader.readline()
        except (OSError, ValueError) as e:
            # ValueError: line longer than the stream limit
            raise ConnectionLost(f"read failed: {e}") from e
        if not data.endswith(b"\n"):
            raise ConnectionLost("connection closed by server")
        return data.decode("utf-8", errors="replace").rstrip("\r\n")

    async def write_line(self, line: str) -> None:
        _check_line(line)
        try:
            self.writer.write(f"{line}\r\n".encode())
            await self.writer.drain()
        except (OSError, RuntimeError) as e:
            raise ConnectionLost(f"write failed: {e}") from e

    async def close(self) -> None:
        if self.writer.is_closing():
            return
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError as e:
            logger.log_event(
                "irc", "close_error", level=logging.DEBUG, error=str(e)
            )


class TcpTransport:
    """Plain asyncio streams, TLS unless disabled."""

    def __init__(
        self,
        host: str,
        port: int,
        tls: bool = True,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.tls = tls
        self.ssl_context = ssl_context

    async def connect(self) -> TcpConnection:
        context: ssl.SSLContext | None = None
        if self.tls:
            context = self.ssl_context or ssl.create_default_context()
        try:
            reader, writer = await asyncio.open_connection(
                self.host, self.port, ssl=context, limit=STREAM_LIMIT
            )
        except OSError as e:
            raise ConnectError(
                f"cannot reach {self.host}:{self.port}: {e}",
                data={"host": self.host, "port": self.port},
            ) from e
        return TcpConnection(reader, writer)

    def __str__(self) -> str:
        scheme = "ircs" if self.tls else "irc"
        return f"{scheme}://{self.host}:{self.port}"


class WebSocketConnection:
    """One websocket frame may carry several CRLF-separated lines."""

    def __init__(self, ws: websockets.ClientConnection) -> None:
        self.ws = ws
        self._pending: deque[str] = deque()

    async def read_line(self) -> str:
        while not self._pending:
            try:
                frame = await self.ws.recv()
            except websockets.ConnectionClosed as e:
                raise ConnectionLost(f"websocket closed: {e}") from e
            except OSError as e:
                raise ConnectionLost(f"read failed: {e}") from e
            if isinstance(frame, bytes):
                frame = frame.decode("utf-8", errors="replace")
            self._pending.extend(line for line in frame.split("\r\n") if line)
        return self._pending.popleft()

    async def write_line(self, line: str) -> None:
        _check_line(line)
        try:
            await self.ws.send(line)
        except websockets.ConnectionClosed as e:
            raise ConnectionLost(f"websocket closed: {e}") from e
        except OSError as e:
            raise ConnectionLost(f"write failed: {e}") from e

    async def close(self) -> None:
        try:
            await self.ws.close()
        except (OSError, websockets.WebSocketException) as e:
            logger.log_event(
                "irc", "close_error", level=logging.DEBUG, error=str(e)
            )


class WebSocketTransport:
    def __init__(self, url: str) -> None:
        self.url = url

    async def connect(self) -> WebSocketConnection:
        try:
            ws = await websockets.connect(self.url, ping_interval=None)
        except (OSError, websockets.WebSocketException) as e:
            raise ConnectError(
                f"cannot open {self.url}: {e}", data={"url": self.url}
            ) from e
        return WebSocketConnection(ws)

    def __str__(self) -> str:
        return self.url


def build_transport(config: ChatConfig) -> TcpTransport | WebSocketTransport:
    if config.transport == "websocket":
        return WebSocketTransport(config.websocket_url)
    return TcpTransport(config.host, config.port, tls=config.tls)
