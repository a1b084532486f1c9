"""Session driver: runs the transition function against a real transport.

The driver owns the connection. It turns transport activity into
SessionEvents, feeds them to ``transition`` and performs the effects that
come back. Chat lines go through the parser and classifier into the
scrollback buffer; keepalive traffic is answered here and never reaches the
buffer.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from random import SystemRandom
from typing import TypeVar

from ..chat.buffer import ScrollbackBuffer
from ..chat.classifier import classify
from ..config.model import ChatConfig
from ..constants import ANONYMOUS_NICK_PREFIX, ANONYMOUS_PASS
from ..errors.handling import log_error
from ..errors.internal import (
    CapabilityTimeout,
    ConnectError,
    ConnectionLost,
    JoinRejected,
    LoginRejected,
    ParseError,
)
from ..logs.logger import logger
from .backoff import ReconnectPolicy
from .heartbeat import KEEPALIVE_PING, KeepaliveMonitor
from .models import ParsedEvent, Phase, SessionState, SessionStatus
from .parser import parse_irc_message
from .transitions import Effect, EffectKind, EventKind, SessionEvent, transition
from .transport import Connection, Transport

T = TypeVar("T")

CAPABILITIES = ("twitch.tv/tags", "twitch.tv/commands")

# Numerics a server may answer a JOIN with when the channel is unusable
JOIN_FAILURE_NUMERICS = frozenset({"403", "405", "471", "473", "474", "475"})
# NOTICE msg-ids that mean the channel cannot be joined
JOIN_FAILURE_NOTICES = frozenset(
    {
        "msg_channel_suspended",
        "msg_channel_blocked",
        "tos_ban",
        "invalid_channel",
    }
)
LOGIN_FAILURE_TEXTS = ("login authentication failed", "improperly formatted auth")

StatusCallback = Callable[[SessionStatus], None]


class SessionStopped(Exception):
    """Shutdown was requested while waiting."""


class ChatSession:
    """One logical connection to one channel, reconnecting until stopped."""

    def __init__(
        self,
        config: ChatConfig,
        transport: Transport,
        buffer: ScrollbackBuffer,
        policy: ReconnectPolicy | None = None,
        on_status: StatusCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.transport = transport
        self.buffer = buffer
        self.policy = policy or ReconnectPolicy(
            config.backoff_base_delay, config.backoff_max_delay, config.backoff_jitter
        )
        self.on_status = on_status
        self._clock = clock
        self.state = SessionState()
        self.connection: Connection | None = None
        self.keepalive = KeepaliveMonitor(
            config.keepalive_interval, config.capability_timeout, clock=clock
        )
        self._deadline: float | None = None
        self._stop_event = asyncio.Event()
        self.nick = config.username or (
            f"{ANONYMOUS_NICK_PREFIX}{SystemRandom().randint(10_000, 99_999)}"
        )
        self.fatal_error: Exception | None = None

    # ------------------------------------------------------------------ control

    def request_shutdown(self) -> None:
        """Ask the session to terminate; interrupts any pending wait."""
        if not self._stop_event.is_set():
            logger.log_event("session", "shutdown_requested", channel=self.config.channel)
        self._stop_event.set()

    async def run(self) -> SessionState:
        """Drive the session until it terminates. Returns the final state."""
        event: SessionEvent | None = SessionEvent(EventKind.START)
        try:
            while event is not None:
                effects = self._apply(event)
                event = await self._perform(effects)
        finally:
            await self._close_connection()
        return self.state

    # --------------------------------------------------------------- transitions

    def _apply(self, event: SessionEvent) -> tuple[Effect, ...]:
        old = self.state
        new, effects = transition(old, event)
        self.state = new
        if new.phase is not old.phase or new.attempt != old.attempt:
            logger.log_event(
                "session",
                "state_change",
                level=logging.DEBUG,
                channel=self.config.channel,
                old_state=str(old),
                new_state=str(new),
                event=event.kind.name,
            )
            self._enter_phase(new)
        return effects

    def _enter_phase(self, state: SessionState) -> None:
        now = self._clock()
        if state.phase is Phase.NEGOTIATING:
            self._deadline = now + self.config.capability_timeout
        elif state.phase is Phase.JOINING:
            self._deadline = now + self.config.join_timeout
        else:
            self._deadline = None
        if state.phase is Phase.JOINED:
            logger.log_event("session", "joined", channel=self.config.channel)
        message = str(state.error) if state.terminated and state.error else None
        self._publish(
            SessionStatus(
                channel=self.config.channel,
                phase=state.phase,
                attempt=state.attempt,
                message=message,
            )
        )

    def _publish(self, status: SessionStatus) -> None:
        if self.on_status is not None:
            self.on_status(status)

    # ------------------------------------------------------------------- effects

    async def _perform(self, effects: Sequence[Effect]) -> SessionEvent | None:
        """Carry out effects; return the next event, or None once terminated."""
        for effect in effects:
            kind = effect.kind
            if kind is EffectKind.CLOSE_TRANSPORT:
                await self._close_connection()
            elif kind is EffectKind.REPORT_FATAL:
                self._report_fatal(effect.error)
            elif kind is EffectKind.OPEN_TRANSPORT:
                return await self._open()
            elif kind is EffectKind.WAIT_BACKOFF:
                return await self._backoff(effect.attempt)
            elif kind is EffectKind.SEND_HANDSHAKE:
                lost = await self._send(self._handshake_lines())
                if lost is not None:
                    return lost
                logger.log_event(
                    "irc", "handshake_sent", level=logging.DEBUG, nick=self.nick
                )
            elif kind is EffectKind.SEND_JOIN:
                lost = await self._send([f"JOIN #{self.config.channel}"])
                if lost is not None:
                    return lost
                logger.log_event("irc", "join_sent", channel=self.config.channel)
        if self.state.terminated:
            return None
        return await self._next_event()

    def _handshake_lines(self) -> list[str]:
        password = self.config.token or ANONYMOUS_PASS
        return [
            f"CAP REQ :{' '.join(CAPABILITIES)}",
            f"PASS {password}",
            f"NICK {self.nick}",
        ]

    def _report_fatal(self, error: Exception | None) -> None:
        self.fatal_error = error
        logger.log_event(
            "session",
            "fatal",
            level=logging.ERROR,
            channel=self.config.channel,
            error=str(error),
        )

    async def _open(self) -> SessionEvent:
        logger.log_event(
            "irc",
            "connect_start",
            channel=self.config.channel,
            transport=str(self.transport),
            attempt=self.state.attempt,
        )
        try:
            self.connection = await self._until_stopped(
                self.transport.connect(), self.config.connect_timeout
            )
        except SessionStopped:
            return SessionEvent(EventKind.SHUTDOWN)
        except TimeoutError:
            error = ConnectError(
                f"connect timed out after {self.config.connect_timeout}s"
            )
            log_error("Connect failed", error, level=logging.WARNING)
            return SessionEvent(EventKind.CONNECT_FAILED, error)
        except ConnectError as e:
            log_error("Connect failed", e, level=logging.WARNING)
            return SessionEvent(EventKind.CONNECT_FAILED, e)
        self.keepalive.reset()
        logger.log_event("irc", "connected", level=logging.DEBUG, channel=self.config.channel)
        return SessionEvent(EventKind.CONNECTED)

    async def _backoff(self, attempt: int) -> SessionEvent:
        delay = self.policy.delay(attempt)
        self._publish(
            SessionStatus(
                channel=self.config.channel,
                phase=Phase.RECONNECTING,
                attempt=attempt,
                retry_in=delay,
            )
        )
        logger.log_event(
            "session",
            "reconnect_wait",
            level=logging.WARNING,
            channel=self.config.channel,
            attempt=attempt,
            delay=round(delay, 2),
        )
        try:
            await self._until_stopped(asyncio.sleep(delay), None)
        except SessionStopped:
            return SessionEvent(EventKind.SHUTDOWN)
        return SessionEvent(EventKind.BACKOFF_ELAPSED)

    async def _send(self, lines: Sequence[str]) -> SessionEvent | None:
        """Write lines; on failure return the CONNECTION_LOST event."""
        if self.connection is None:
            return SessionEvent(EventKind.CONNECTION_LOST, ConnectionLost("not connected"))
        try:
            for line in lines:
                await asyncio.wait_for(
                    self.connection.write_line(line), timeout=self.config.connect_timeout
                )
        except TimeoutError:
            error = ConnectionLost("write timed out")
            log_error("Send failed", error, level=logging.WARNING)
            return SessionEvent(EventKind.CONNECTION_LOST, error)
        except ConnectionLost as e:
            log_error("Send failed", e, level=logging.WARNING)
            return SessionEvent(EventKind.CONNECTION_LOST, e)
        return None

    async def _close_connection(self) -> None:
        connection, self.connection = self.connection, None
        if connection is not None:
            await connection.close()
            logger.log_event(
                "irc", "disconnected", level=logging.DEBUG, channel=self.config.channel
            )

    # --------------------------------------------------------------------- input

    async def _until_stopped(self, aw: Awaitable[T], timeout: float | None) -> T:
        """Await ``aw`` unless shutdown is requested or ``timeout`` passes first.

        Raises:
            SessionStopped: shutdown was requested first.
            TimeoutError: the timeout passed first.
        """
        if self._stop_event.is_set():
            if asyncio.iscoroutine(aw):
                aw.close()
            raise SessionStopped
        task = asyncio.ensure_future(aw)
        stop = asyncio.ensure_future(self._stop_event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, stop}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            stop.cancel()
            if not task.done():
                task.cancel()
        if task in done:
            return task.result()
        if stop in done:
            raise SessionStopped
        raise TimeoutError

    def _read_timeout(self) -> float:
        timeout = self.keepalive.seconds_until_check()
        if self._deadline is not None:
            timeout = min(timeout, max(0.0, self._deadline - self._clock()))
        return timeout

    async def _next_event(self) -> SessionEvent:
        """Read lines until one of them (or a timeout) produces an event."""
        while True:
            if self.connection is None:
                return SessionEvent(
                    EventKind.CONNECTION_LOST, ConnectionLost("not connected")
                )
            try:
                line = await self._until_stopped(
                    self.connection.read_line(), self._read_timeout()
                )
            except SessionStopped:
                return SessionEvent(EventKind.SHUTDOWN)
            except TimeoutError:
                event = await self._on_read_timeout()
            except ConnectionLost as e:
                log_error("Connection lost", e, level=logging.WARNING)
                return SessionEvent(EventKind.CONNECTION_LOST, e)
            else:
                self.keepalive.record_activity()
                event = await self.handle_line(line)
            if event is not None:
                return event

    async def _on_read_timeout(self) -> SessionEvent | None:
        if self._deadline is not None and self._clock() >= self._deadline:
            if self.state.phase is Phase.NEGOTIATING:
                error = CapabilityTimeout(
                    f"no capability acknowledgment within {self.config.capability_timeout}s"
                )
                log_error("Capability negotiation failed", error, level=logging.WARNING)
                return SessionEvent(EventKind.CAPABILITY_TIMEOUT, error)
            if self.state.phase is Phase.JOINING:
                error = ConnectionLost(
                    f"join not confirmed within {self.config.join_timeout}s"
                )
                log_error("Join failed", error, level=logging.WARNING)
                return SessionEvent(EventKind.JOIN_TIMEOUT, error)
        if self.keepalive.stalled():
            error = ConnectionLost("server stopped answering PING")
            log_error("Connection stalled", error, level=logging.WARNING)
            return SessionEvent(EventKind.CONNECTION_LOST, error)
        if self.keepalive.ping_due():
            lost = await self._send([KEEPALIVE_PING])
            if lost is not None:
                return lost
            self.keepalive.record_ping_sent()
            logger.log_event("irc", "keepalive_ping", level=logging.DEBUG)
        return None

    async def handle_line(self, line: str) -> SessionEvent | None:
        """Process one inbound line; return an event when it changes the session."""
        if not line.strip():
            return None
        try:
            event = parse_irc_message(line)
        except ParseError as e:
            log_error("Dropped unparseable line", e, level=logging.WARNING)
            return None
        return await self.handle_event(event)

    async def handle_event(self, event: ParsedEvent) -> SessionEvent | None:
        command = event.command
        phase = self.state.phase

        if command == "PING":
            reply = f"PONG :{event.trailing}" if event.params else "PONG"
            return await self._send([reply])
        if command == "PRIVMSG":
            if phase in (Phase.JOINING, Phase.JOINED):
                draft = classify(event, self.config)
                if draft is not None:
                    self.buffer.append(draft)
            return None
        if command == "RECONNECT":
            logger.log_event("irc", "server_reconnect", level=logging.WARNING)
            return SessionEvent(
                EventKind.CONNECTION_LOST, ConnectionLost("server requested reconnect")
            )
        if command == "CAP":
            return self._on_cap(event)
        if command == "NOTICE":
            return self._on_notice(event)
        if command in JOIN_FAILURE_NUMERICS and phase is Phase.JOINING:
            return SessionEvent(
                EventKind.JOIN_REJECTED,
                JoinRejected(self.config.channel, event.trailing or f"error {command}"),
            )
        if command in ("366", "ROOMSTATE") and self._names_channel(event):
            return SessionEvent(EventKind.JOIN_CONFIRMED)
        return None

    def _names_channel(self, event: ParsedEvent) -> bool:
        target = f"#{self.config.channel}"
        return any(p.lower() == target for p in event.params)

    def _on_cap(self, event: ParsedEvent) -> SessionEvent | None:
        if len(event.params) < 2 or self.state.phase is not Phase.NEGOTIATING:
            return None
        subcommand = event.params[1].upper()
        if subcommand == "ACK":
            logger.log_event(
                "irc", "capabilities_acked", level=logging.DEBUG, caps=event.trailing
            )
            return SessionEvent(EventKind.CAPABILITIES_ACKED)
        if subcommand == "NAK":
            logger.log_event(
                "irc", "capabilities_refused", level=logging.WARNING, caps=event.trailing
            )
            return SessionEvent(EventKind.CAPABILITIES_REFUSED)
        return None

    def _on_notice(self, event: ParsedEvent) -> SessionEvent | None:
        text = event.trailing
        msg_id = event.tags.get("msg-id", "")
        phase = self.state.phase
        if phase in (Phase.NEGOTIATING, Phase.JOINING) and any(
            marker in text.lower() for marker in LOGIN_FAILURE_TEXTS
        ):
            return SessionEvent(EventKind.LOGIN_REJECTED, LoginRejected(text))
        if phase is Phase.JOINING and msg_id in JOIN_FAILURE_NOTICES:
            return SessionEvent(
                EventKind.JOIN_REJECTED, JoinRejected(self.config.channel, text or msg_id)
            )
        logger.log_event(
            "irc", "notice", channel=self.config.channel, msg_id=msg_id, text=text
        )
        return None
