"""Configuration loading: defaults, then the TOML file, then TWITCH_* env vars."""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..constants import DEFAULT_CONFIG_FILE, ENV_PREFIX
from ..errors.internal import ConfigError
from ..logs.logger import logger
from .model import ChatConfig


def resolve_config_path(
    config_file: str | Path | None = None, environ: Mapping[str, str] | None = None
) -> Path:
    env = os.environ if environ is None else environ
    return Path(config_file or env.get("TWITCH_CONF_FILE", DEFAULT_CONFIG_FILE))


def read_config_file(path: Path) -> dict[str, Any]:
    """Read the TOML file; a missing file yields no overrides."""
    if not path.exists():
        logger.log_event("config", "file_missing", level=logging.DEBUG, path=str(path))
        return {}
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(
            f"Cannot read config file {path}: {e}", data={"path": str(path)}
        ) from e
    logger.log_event(
        "config", "file_loaded", level=logging.DEBUG, path=str(path), keys=len(data)
    )
    return data


def read_env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect TWITCH_<FIELD> variables that name a ChatConfig field."""
    env = os.environ if environ is None else environ
    overrides: dict[str, str] = {}
    for key, value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field = key[len(ENV_PREFIX) :].lower()
        if field in ChatConfig.model_fields:
            overrides[field] = value
    return overrides


def load_config(
    config_file: str | Path | None = None, environ: Mapping[str, str] | None = None
) -> ChatConfig:
    """Resolve the session configuration.

    Raises:
        ConfigError: unreadable file or values that fail validation.
    """
    path = resolve_config_path(config_file, environ)
    data = read_config_file(path)
    data.update(read_env_overrides(environ))
    try:
        config = ChatConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration: {e}", data={"path": str(path)}
        ) from e
    logger.log_event(
        "config",
        "resolved",
        channel=config.channel,
        anonymous=config.is_anonymous,
        transport=config.transport,
    )
    return config
