"""Terminal reader for a single Twitch channel's chat."""

__version__ = "0.3.0"
