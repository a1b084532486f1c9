from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..chat.colors import DEFAULT_PALETTE, parse_hex_color
from ..chat.models import BadgeIcon, BadgeKind
from ..constants import (
    BACKOFF_BASE_DELAY,
    BACKOFF_JITTER,
    BACKOFF_MAX_DELAY,
    DEFAULT_LOG_FILE,
    INVERT_BELOW_BRIGHTNESS,
    IRC_CAPABILITY_TIMEOUT,
    IRC_CONNECT_TIMEOUT,
    IRC_JOIN_TIMEOUT,
    IRC_KEEPALIVE_INTERVAL,
    RENDER_TICK_SECONDS,
    SCROLLBACK_CAPACITY,
    TWITCH_IRC_HOST,
    TWITCH_IRC_TLS_PORT,
    TWITCH_IRC_WS_URL,
)

_CHANNEL_RE = re.compile(r"^[a-z0-9_]{1,25}$")


class ChatConfig(BaseModel):
    """Fully resolved settings for one chat session.

    Attributes:
        channel: Channel to read, lowercase without '#'.
        username: Login name when a token is supplied.
        token: OAuth token ('oauth:' prefix added when missing). Without it
            the session logs in anonymously.
        *_symbol / *_symbol_width: Badge glyph and the terminal cells it takes.
        invert_below_brightness: Name colors darker than this (0-255) get a
            light background.
        messages_buffer_size: Scrollback capacity in chat lines.
        palette: '#RRGGBB' colors for senders without an explicit color.
        transport: 'tcp' (TLS socket) or 'websocket'.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    channel: str = "stuck_overflow"
    username: str | None = None
    token: str | None = None

    mod_symbol: str = "🗡 "
    mod_symbol_width: int = Field(default=2, ge=0)
    vip_symbol: str = "💎"
    vip_symbol_width: int = Field(default=2, ge=0)
    subscriber_symbol: str = "🌟"
    subscriber_symbol_width: int = Field(default=2, ge=0)
    founder_symbol: str = "🥇"
    founder_symbol_width: int = Field(default=2, ge=0)

    invert_below_brightness: int = Field(default=INVERT_BELOW_BRIGHTNESS, ge=0, le=255)
    messages_buffer_size: int = Field(default=SCROLLBACK_CAPACITY, gt=0)
    palette: tuple[str, ...] = DEFAULT_PALETTE

    transport: Literal["tcp", "websocket"] = "tcp"
    host: str = TWITCH_IRC_HOST
    port: int = Field(default=TWITCH_IRC_TLS_PORT, gt=0, lt=65536)
    tls: bool = True
    websocket_url: str = TWITCH_IRC_WS_URL

    connect_timeout: float = Field(default=IRC_CONNECT_TIMEOUT, gt=0)
    capability_timeout: float = Field(default=IRC_CAPABILITY_TIMEOUT, gt=0)
    join_timeout: float = Field(default=IRC_JOIN_TIMEOUT, gt=0)
    keepalive_interval: float = Field(default=IRC_KEEPALIVE_INTERVAL, gt=0)

    backoff_base_delay: float = Field(default=BACKOFF_BASE_DELAY, gt=0)
    backoff_max_delay: float = Field(default=BACKOFF_MAX_DELAY, gt=0)
    backoff_jitter: float = Field(default=BACKOFF_JITTER, ge=0)

    tick_interval: float = Field(default=RENDER_TICK_SECONDS, gt=0)
    log_file: str | None = DEFAULT_LOG_FILE

    @field_validator("channel", mode="before")
    @classmethod
    def validate_channel(cls, v: Any) -> str:
        """Strip whitespace and a leading '#', lowercase, check the login charset."""
        if not isinstance(v, str):
            raise ValueError("channel must be a string")
        channel = v.strip().lstrip("#").lower()
        if not _CHANNEL_RE.match(channel):
            raise ValueError(f"invalid channel name: {v!r}")
        return channel

    @field_validator("username", mode="before")
    @classmethod
    def validate_username(cls, v: Any) -> str | None:
        if v is None:
            return None
        username = str(v).strip().lower()
        return username or None

    @field_validator("token", mode="before")
    @classmethod
    def validate_token(cls, v: Any) -> str | None:
        if v is None:
            return None
        token = str(v).strip()
        if not token:
            return None
        return token if token.startswith("oauth:") else f"oauth:{token}"

    @field_validator("palette", mode="before")
    @classmethod
    def validate_palette(cls, v: Any) -> tuple[str, ...]:
        """Accept a list or a comma-separated string of '#RRGGBB' colors."""
        if isinstance(v, str):
            v = [part for part in v.split(",") if part.strip()]
        if not isinstance(v, list | tuple) or not v:
            raise ValueError("palette must be a non-empty list of colors")
        colors = []
        for entry in v:
            color = parse_hex_color(str(entry))
            if color is None:
                raise ValueError(f"invalid palette color: {entry!r}")
            colors.append(color.hex)
        return tuple(colors)

    @field_validator("log_file", mode="before")
    @classmethod
    def validate_log_file(cls, v: Any) -> str | None:
        """An empty value disables the log file."""
        if v is None:
            return None
        path = str(v).strip()
        return path or None

    @model_validator(mode="after")
    def validate_identity(self) -> ChatConfig:
        if self.token and not self.username:
            raise ValueError("a token needs a username")
        return self

    @model_validator(mode="after")
    def validate_backoff(self) -> ChatConfig:
        if self.backoff_max_delay < self.backoff_base_delay:
            raise ValueError("backoff_max_delay must be >= backoff_base_delay")
        return self

    @property
    def is_anonymous(self) -> bool:
        return self.token is None

    def badge_icons(self) -> dict[BadgeKind, BadgeIcon]:
        """Icon lookup for the badge kinds that are rendered."""
        return {
            BadgeKind.FOUNDER: BadgeIcon(self.founder_symbol, self.founder_symbol_width),
            BadgeKind.MODERATOR: BadgeIcon(self.mod_symbol, self.mod_symbol_width),
            BadgeKind.VIP: BadgeIcon(self.vip_symbol, self.vip_symbol_width),
            BadgeKind.SUBSCRIBER: BadgeIcon(
                self.subscriber_symbol, self.subscriber_symbol_width
            ),
        }

    def redacted(self) -> dict[str, Any]:
        """Settings safe to log."""
        data = self.model_dump(exclude={"palette"})
        if data.get("token"):
            data["token"] = "oauth:***"
        return data
