from __future__ import annotations

import pytest
from dotenv import dotenv_values

from cm4_stock_monitor import config
from cm4_stock_monitor.exceptions import ConfigError


@pytest.fixture
def slack_only(monkeypatch):
    monkeypatch.setattr(config, "ENABLE_DISCORD_BOT", False)
    monkeypatch.setattr(config, "ENABLE_SLACK_BOT", True)
    monkeypatch.setattr(config, "SLACK_BOT_TOKEN", "xoxb-1")
    monkeypatch.setattr(config, "QUIET_HOURS_START_UTC", 1)
    monkeypatch.setattr(config, "QUIET_HOURS_END_UTC", 11)


def test_valid_config_passes(slack_only) -> None:
    config.validate()


def test_no_backend_is_fatal(slack_only, monkeypatch) -> None:
    monkeypatch.setattr(config, "ENABLE_SLACK_BOT", False)
    with pytest.raises(ConfigError):
        config.validate()


def test_discord_needs_token_and_server(slack_only, monkeypatch) -> None:
    monkeypatch.setattr(config, "ENABLE_DISCORD_BOT", True)
    monkeypatch.setattr(config, "DISCORD_BOT_TOKEN", "tok")
    monkeypatch.setattr(config, "DISCORD_SERVER_ID", None)
    with pytest.raises(ConfigError):
        config.validate()


def test_bad_quiet_hours_rejected(slack_only, monkeypatch) -> None:
    monkeypatch.setattr(config, "QUIET_HOURS_END_UTC", 30)
    with pytest.raises(ConfigError):
        config.validate()


@pytest.mark.parametrize(
    "raw, expected",
    [(None, True), ("true", True), ("YES", True), ("1", True), ("false", False), ("0", False), ("", False)],
)
def test_parse_bool(raw, expected) -> None:
    assert config._parse_bool(raw, True) is expected


def test_parse_int_falls_back_on_garbage() -> None:
    assert config._parse_int("abc", 30) == 30
    assert config._parse_int("45", 30) == 45


def test_persist_channel_name_updates_env_file(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(config, "DISCORD_CHANNEL_NAME", "old")
    env_file = tmp_path / ".env"
    env_file.write_text("ENABLE_DISCORD_BOT=true\nDISCORD_CHANNEL_NAME=old\n")

    config.persist_channel_name("cm4-stock-notifications", env_file)

    values = dotenv_values(env_file)
    assert values["DISCORD_CHANNEL_NAME"] == "cm4-stock-notifications"
    assert values["ENABLE_DISCORD_BOT"] == "true"
    assert config.DISCORD_CHANNEL_NAME == "cm4-stock-notifications"
