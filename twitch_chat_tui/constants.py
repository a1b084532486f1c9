"""
Configuration constants for the Twitch chat TUI

This module contains the defaults used throughout the application.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Attempts to parse the environment variable as a float. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Endpoint
TWITCH_IRC_HOST = os.getenv("TWITCH_IRC_HOST", "irc.chat.twitch.tv")
TWITCH_IRC_TLS_PORT = _get_env_int("TWITCH_IRC_TLS_PORT", 6697)  # TLS port
TWITCH_IRC_WS_URL = os.getenv("TWITCH_IRC_WS_URL", "wss://irc-ws.chat.twitch.tv:443")

# Anonymous login (server accepts any pass for justinfan nicks)
ANONYMOUS_NICK_PREFIX = "justinfan"
ANONYMOUS_PASS = "SCHMOOPIIE"

# Session timeouts
IRC_CONNECT_TIMEOUT = _get_env_float(
    "IRC_CONNECT_TIMEOUT", 10.0
)  # Seconds to open the transport
IRC_CAPABILITY_TIMEOUT = _get_env_float(
    "IRC_CAPABILITY_TIMEOUT", 10.0
)  # Seconds to wait for CAP ACK, also the PONG grace period
IRC_JOIN_TIMEOUT = _get_env_float(
    "IRC_JOIN_TIMEOUT", 10.0
)  # Seconds to wait for join confirmation
IRC_KEEPALIVE_INTERVAL = _get_env_float(
    "IRC_KEEPALIVE_INTERVAL", 330.0
)  # Silence before the client sends its own PING (server pings every ~5 min)

# Reconnect backoff
BACKOFF_BASE_DELAY = _get_env_float("BACKOFF_BASE_DELAY", 1.0)  # First retry delay
BACKOFF_MAX_DELAY = _get_env_float("BACKOFF_MAX_DELAY", 60.0)  # Delay ceiling
BACKOFF_JITTER = _get_env_float(
    "BACKOFF_JITTER", 1.0
)  # Upper bound of the random seconds added to each delay

# Chat buffer / rendering
SCROLLBACK_CAPACITY = _get_env_int(
    "SCROLLBACK_CAPACITY", 500
)  # Chat lines kept for display and scrollback
RENDER_TICK_SECONDS = _get_env_float(
    "RENDER_TICK_SECONDS", 0.2
)  # Render loop period
RENDER_MIN_BODY_WIDTH = _get_env_int(
    "RENDER_MIN_BODY_WIDTH", 8
)  # Below this the header gets its own row
RENDER_JOIN_TIMEOUT_SECONDS = _get_env_float(
    "RENDER_JOIN_TIMEOUT_SECONDS", 2.0
)  # Wait for the render thread on shutdown
INVERT_BELOW_BRIGHTNESS = _get_env_int(
    "INVERT_BELOW_BRIGHTNESS", 30
)  # Name colors darker than this get a light background

# Files
DEFAULT_CONFIG_FILE = "twitch-chat-tui.toml"
DEFAULT_LOG_FILE = "twitch-chat-tui.log"
ENV_PREFIX = "TWITCH_"
