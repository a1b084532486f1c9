from __future__ import annotations

import os

import pytest

from tests.fixtures.fake_transport import RecordingPolicy
from twitch_chat_tui.config.model import ChatConfig

# Keep debug formatting out of assertions on log text
os.environ.setdefault("DEBUG", "false")


@pytest.fixture
def config() -> ChatConfig:
    return ChatConfig(channel="bar", log_file=None)


@pytest.fixture
def policy() -> RecordingPolicy:
    return RecordingPolicy()
