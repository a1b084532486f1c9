"""Tests for configuration model validation and loading."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from twitch_chat_tui.chat.models import BadgeKind
from twitch_chat_tui.config import ChatConfig, load_config
from twitch_chat_tui.config.loader import read_env_overrides, resolve_config_path
from twitch_chat_tui.errors.internal import ConfigError


class TestChatConfig:
    def test_defaults(self):
        config = ChatConfig()
        assert config.channel == "stuck_overflow"
        assert config.is_anonymous
        assert config.messages_buffer_size == 500
        assert config.invert_below_brightness == 30
        assert config.tick_interval == pytest.approx(0.2)
        assert config.transport == "tcp"

    @pytest.mark.parametrize("raw", ["#Bar", "  bar ", "BAR"])
    def test_channel_normalised(self, raw):
        assert ChatConfig(channel=raw).channel == "bar"

    @pytest.mark.parametrize("raw", ["", "#", "has space", "x" * 26, "dash-ed"])
    def test_invalid_channel_rejected(self, raw):
        with pytest.raises(ValidationError):
            ChatConfig(channel=raw)

    def test_token_gets_oauth_prefix(self):
        config = ChatConfig(username="Me", token="abc123")
        assert config.token == "oauth:abc123"
        assert config.username == "me"
        assert not config.is_anonymous

    def test_token_requires_username(self):
        with pytest.raises(ValidationError):
            ChatConfig(token="oauth:abc")

    def test_blank_token_means_anonymous(self):
        assert ChatConfig(token="  ").is_anonymous

    def test_palette_from_string(self):
        config = ChatConfig(palette="#ff0000, 00FF00")
        assert config.palette == ("#FF0000", "#00FF00")

    def test_bad_palette_rejected(self):
        with pytest.raises(ValidationError):
            ChatConfig(palette=["#FF0000", "purple"])

    def test_backoff_bounds(self):
        with pytest.raises(ValidationError):
            ChatConfig(backoff_base_delay=10, backoff_max_delay=5)

    @pytest.mark.parametrize(
        "field", ["messages_buffer_size", "connect_timeout", "tick_interval"]
    )
    def test_non_positive_values_rejected(self, field):
        with pytest.raises(ValidationError):
            ChatConfig(**{field: 0})

    def test_badge_icons_table(self):
        icons = ChatConfig(vip_symbol="V", vip_symbol_width=1).badge_icons()
        assert set(icons) == {
            BadgeKind.FOUNDER,
            BadgeKind.MODERATOR,
            BadgeKind.VIP,
            BadgeKind.SUBSCRIBER,
        }
        assert icons[BadgeKind.VIP].symbol == "V"
        assert icons[BadgeKind.VIP].width == 1

    def test_redacted_hides_token(self):
        data = ChatConfig(username="me", token="secret").redacted()
        assert data["token"] == "oauth:***"
        assert "secret" not in str(data)

    def test_config_is_frozen(self):
        config = ChatConfig()
        with pytest.raises(ValidationError):
            config.channel = "other"  # type: ignore[misc]


class TestLoadConfig:
    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.toml", environ={})
        assert config == ChatConfig()

    def test_file_values_applied(self, tmp_path):
        path = tmp_path / "chat.toml"
        path.write_text(
            'channel = "#SomeChannel"\n'
            "messages_buffer_size = 42\n"
            'mod_symbol = "M"\n'
            "mod_symbol_width = 1\n",
            encoding="utf-8",
        )
        config = load_config(path, environ={})
        assert config.channel == "somechannel"
        assert config.messages_buffer_size == 42
        assert config.mod_symbol == "M"

    def test_environment_overrides_file(self, tmp_path):
        path = tmp_path / "chat.toml"
        path.write_text('channel = "fromfile"\n', encoding="utf-8")
        environ = {
            "TWITCH_CHANNEL": "fromenv",
            "TWITCH_MESSAGES_BUFFER_SIZE": "7",
            "TWITCH_TLS": "false",
            "TWITCH_UNRELATED": "ignored",
        }
        config = load_config(path, environ=environ)
        assert config.channel == "fromenv"
        assert config.messages_buffer_size == 7
        assert config.tls is False

    def test_conf_file_env_var_selects_file(self, tmp_path):
        path = tmp_path / "other.toml"
        path.write_text('channel = "viaenv"\n', encoding="utf-8")
        config = load_config(environ={"TWITCH_CONF_FILE": str(path)})
        assert config.channel == "viaenv"

    def test_invalid_toml_raises_config_error(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("channel = \n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path, environ={})

    def test_invalid_value_raises_config_error(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text('channel = "no spaces allowed"\n', encoding="utf-8")
        with pytest.raises(ConfigError) as exc:
            load_config(path, environ={})
        assert exc.value.data["path"] == str(path)


def test_read_env_overrides_only_known_fields():
    overrides = read_env_overrides(
        {"TWITCH_PORT": "6667", "TWITCH_NOPE": "x", "PATH": "/bin", "TWITCH_CONF_FILE": "a"}
    )
    assert overrides == {"port": "6667"}


def test_resolve_config_path_precedence(tmp_path):
    assert resolve_config_path("explicit.toml", {"TWITCH_CONF_FILE": "env.toml"}).name == (
        "explicit.toml"
    )
    assert resolve_config_path(None, {"TWITCH_CONF_FILE": "env.toml"}).name == "env.toml"
    assert resolve_config_path(None, {}).name == "twitch-chat-tui.toml"
