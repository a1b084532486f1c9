"""Display-ready chat line models."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import UTC, datetime
from enum import Enum

from .colors import RGBColor


class BadgeKind(Enum):
    SUBSCRIBER = "subscriber"
    MODERATOR = "moderator"
    VIP = "vip"
    FOUNDER = "founder"
    OTHER = "other"


# Icon order in the row prefix; stable so badges never reorder between frames.
BADGE_DISPLAY_ORDER: tuple[BadgeKind, ...] = (
    BadgeKind.FOUNDER,
    BadgeKind.MODERATOR,
    BadgeKind.VIP,
    BadgeKind.SUBSCRIBER,
)


@dataclass(frozen=True, slots=True)
class BadgeIcon:
    symbol: str
    width: int = 2


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class ChatLineDraft:
    """A classified chat message that has not been given a sequence id yet."""

    sender_login: str
    sender_display_name: str
    body: str
    badges: frozenset[BadgeKind] = frozenset()
    name_color: RGBColor | None = None
    received_at: datetime = field(default_factory=_utcnow)
    is_action: bool = False


@dataclass(frozen=True, slots=True)
class ChatLine:
    """A buffered chat message. ``sequence_id`` is the only ordering key."""

    sequence_id: int
    sender_login: str
    sender_display_name: str
    body: str
    badges: frozenset[BadgeKind] = frozenset()
    name_color: RGBColor | None = None
    received_at: datetime = field(default_factory=_utcnow)
    is_action: bool = False

    @classmethod
    def from_draft(cls, draft: ChatLineDraft, sequence_id: int) -> ChatLine:
        values = {f.name: getattr(draft, f.name) for f in fields(draft)}
        return cls(sequence_id=sequence_id, **values)
