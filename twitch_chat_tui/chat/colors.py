"""Color utilities for Twitch name colors."""

from __future__ import annotations

import hashlib
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

__all__ = [
    "RGBColor",
    "TWITCH_PRESET_COLORS",
    "DEFAULT_PALETTE",
    "parse_hex_color",
    "hash_color",
]

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")

# Chat clients assign one of these to users who never picked a color.
TWITCH_PRESET_COLORS: Mapping[str, str] = {
    "blue": "#0000FF",
    "blue_violet": "#8A2BE2",
    "cadet_blue": "#5F9EA0",
    "chocolate": "#D2691E",
    "coral": "#FF7F50",
    "dodger_blue": "#1E90FF",
    "firebrick": "#B22222",
    "golden_rod": "#DAA520",
    "green": "#008000",
    "hot_pink": "#FF69B4",
    "orange_red": "#FF4500",
    "red": "#FF0000",
    "sea_green": "#2E8B57",
    "spring_green": "#00FF7F",
    "yellow_green": "#9ACD32",
}

DEFAULT_PALETTE: tuple[str, ...] = tuple(TWITCH_PRESET_COLORS.values())


@dataclass(frozen=True, slots=True)
class RGBColor:
    r: int
    g: int
    b: int

    @property
    def hex(self) -> str:
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"

    @property
    def luminance(self) -> float:
        """Relative luminance on a 0-255 scale (Rec. 709 weights)."""
        return 0.2126 * self.r + 0.7152 * self.g + 0.0722 * self.b

    def __str__(self) -> str:
        return self.hex


def parse_hex_color(value: str | None) -> RGBColor | None:
    """Parse '#RRGGBB' (leading '#' optional). Anything else gives None."""
    if not value:
        return None
    match = _HEX_RE.match(value.strip())
    if not match:
        return None
    digits = match.group(1)
    return RGBColor(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def _palette_colors(palette: Sequence[str]) -> list[RGBColor]:
    return [c for c in map(parse_hex_color, palette) if c is not None]


def hash_color(login: str, palette: Sequence[str] = DEFAULT_PALETTE) -> RGBColor:
    """Pick a stable palette color for a sender.

    The same login maps to the same color in every run.
    """
    colors = _palette_colors(palette) or _palette_colors(DEFAULT_PALETTE)
    digest = hashlib.sha1(login.lower().encode("utf-8")).digest()
    return colors[int.from_bytes(digest[:4], "big") % len(colors)]
