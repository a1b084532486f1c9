#!/usr/bin/env python3
"""
Main entry point for the Twitch chat TUI
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from . import __version__
from .app import ChatApp
from .config import ChatConfig, load_config
from .errors.handling import log_error
from .errors.internal import ConfigError
from .logging_config import LoggerConfigurator
from .logs.logger import logger

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="twitch-chat-tui",
        description="Read one Twitch channel's chat in the terminal.",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="TOML config file (default: $TWITCH_CONF_FILE or twitch-chat-tui.toml)",
    )
    parser.add_argument(
        "--health-check",
        action="store_true",
        help="validate the configuration and exit",
    )
    parser.add_argument("--version", action="version", version=__version__)
    return parser


def health_check(config_file: str | None) -> int:
    """Validate the configuration without connecting. Returns 0 or 1."""
    logger.log_event("app", "health_check")
    try:
        config = load_config(config_file)
    except ConfigError as e:
        log_error("Health check failed", e)
        return EXIT_FATAL
    logger.log_event("app", "health_ok", channel=config.channel)
    return EXIT_OK


async def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, load the configuration and run the chat view.

    Returns:
        0 after a requested shutdown, 1 after a fatal session error, 2 when
        the configuration is invalid.
    """
    args = build_parser().parse_args(argv)
    configurator = LoggerConfigurator()
    configurator.configure()

    if args.health_check:
        return health_check(args.config)

    try:
        config: ChatConfig = load_config(args.config)
    except ConfigError as e:
        log_error("Configuration error", e)
        return EXIT_CONFIG

    if config.log_file:
        configurator.log_file = config.log_file
        configurator.configure()
    logger.log_event(
        "app", "config_summary", level=logging.DEBUG, **config.redacted()
    )

    app = ChatApp(config, configurator=configurator)
    try:
        return await app.run()
    except asyncio.CancelledError:
        raise
    except Exception as e:
        log_error("Main application error", e)
        return EXIT_FATAL
    finally:
        configurator.shutdown()


def run() -> None:
    """Synchronous entry point used by the console script."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(EXIT_OK)


if __name__ == "__main__":
    run()
