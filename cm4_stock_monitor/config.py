"""Configuration loader.

Reads environment variables and `.env` to configure the service.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv, set_key

from .exceptions import ConfigError

# Load variables from a .env file if present (project root).
ENV_FILE: Path = Path(
    os.environ.get("CM4_ENV_FILE") or Path(__file__).resolve().parents[1] / ".env"
)
load_dotenv(dotenv_path=ENV_FILE)


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(name, default)


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes")


def _parse_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


# ---- Backends ----------------------------------------------------------------

ENABLE_DISCORD_BOT: bool = _parse_bool(_get_env("ENABLE_DISCORD_BOT"), False)
ENABLE_SLACK_BOT: bool = _parse_bool(_get_env("ENABLE_SLACK_BOT"), False)

DISCORD_BOT_TOKEN: Optional[str] = _get_env("DISCORD_BOT_TOKEN")
DISCORD_SERVER_ID: Optional[str] = _get_env("DISCORD_SERVER_ID")

# Name of the text channel to post in. Rewritten by provisioning when the
# configured channel cannot be found and a new one is created.
DEFAULT_CHANNEL_NAME = "cm4-stock-notifications"
DISCORD_CHANNEL_NAME: str = _get_env("DISCORD_CHANNEL_NAME", DEFAULT_CHANNEL_NAME) or DEFAULT_CHANNEL_NAME

SLACK_BOT_TOKEN: Optional[str] = _get_env("SLACK_BOT_TOKEN")

# Slack destination channel per variant (keyed by variant key).
SLACK_CHANNELS: dict[str, Optional[str]] = {
    "1GB": _get_env("SLACK_CHANNEL_1GB"),
    "2GB-no-mmc": _get_env("SLACK_CHANNEL_2GB_NO_MMC"),
    "2GB-8GB-mmc": _get_env("SLACK_CHANNEL_2GB_8GB_MMC"),
    "2GB-16GB-mmc": _get_env("SLACK_CHANNEL_2GB_16GB_MMC"),
    "4GB-32GB-mmc": _get_env("SLACK_CHANNEL_4GB"),
}

# ---- Watched variants --------------------------------------------------------

WATCH_FLAGS: dict[str, bool] = {
    "1GB": _parse_bool(_get_env("WATCH_1GB_MODEL"), True),
    "2GB-no-mmc": _parse_bool(_get_env("WATCH_2GB_NO_MMC_MODEL"), True),
    "2GB-8GB-mmc": _parse_bool(_get_env("WATCH_2GB_8GB_MMC_MODEL"), True),
    "2GB-16GB-mmc": _parse_bool(_get_env("WATCH_2GB_16GB_MMC_MODEL"), True),
    "4GB-32GB-mmc": _parse_bool(_get_env("WATCH_4GB_MODEL"), True),
}

# ---- Polling -----------------------------------------------------------------

PRODUCT_URL: str = _get_env("PRODUCT_URL", "https://www.adafruit.com/product/4791") or ""

UPDATE_INTERVAL_SECONDS: int = max(1, _parse_int(_get_env("UPDATE_INTERVAL_SECONDS"), 30))

# Timeout applied to every outbound HTTP call (seconds).
HTTP_TIMEOUT_SECONDS: int = max(1, _parse_int(_get_env("HTTP_TIMEOUT_SECONDS"), 15))

# Sleep mode: skip sampling while the UTC hour is in [start, end).
# The default window is 8pm-6am US Central, outside the store's restock hours.
ENABLE_SLEEP_MODE: bool = _parse_bool(_get_env("ENABLE_SLEEP_MODE"), False)
QUIET_HOURS_START_UTC: int = _parse_int(_get_env("QUIET_HOURS_START_UTC"), 1)
QUIET_HOURS_END_UTC: int = _parse_int(_get_env("QUIET_HOURS_END_UTC"), 11)

# Logging level: DEBUG, INFO, WARNING, ERROR.
LOG_LEVEL: str = _get_env("LOG_LEVEL", "INFO") or "INFO"


# ---- Validation --------------------------------------------------------------

def validate() -> None:
    """Validate required configuration parameters."""
    if not (ENABLE_DISCORD_BOT or ENABLE_SLACK_BOT):
        raise ConfigError(
            "At least one bot must be enabled. Set ENABLE_DISCORD_BOT and/or "
            "ENABLE_SLACK_BOT. See .env.example for details."
        )
    if ENABLE_DISCORD_BOT and not (DISCORD_BOT_TOKEN and DISCORD_SERVER_ID):
        raise ConfigError("DISCORD_BOT_TOKEN and DISCORD_SERVER_ID must be set when the Discord bot is enabled.")
    if ENABLE_SLACK_BOT and not SLACK_BOT_TOKEN:
        raise ConfigError("SLACK_BOT_TOKEN must be set when the Slack bot is enabled.")
    for hour in (QUIET_HOURS_START_UTC, QUIET_HOURS_END_UTC):
        if not 0 <= hour <= 24:
            raise ConfigError(f"Quiet hours must be within 0-24, got {hour}")


def persist_channel_name(name: str, env_file: Optional[Path] = None) -> None:
    """Write the notification channel name back to the `.env` file."""
    global DISCORD_CHANNEL_NAME
    path = Path(env_file or ENV_FILE)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(exist_ok=True)
    set_key(str(path), "DISCORD_CHANNEL_NAME", name, quote_mode="never")
    DISCORD_CHANNEL_NAME = name


__all__ = [
    "ENV_FILE",
    "ENABLE_DISCORD_BOT",
    "ENABLE_SLACK_BOT",
    "DISCORD_BOT_TOKEN",
    "DISCORD_SERVER_ID",
    "DEFAULT_CHANNEL_NAME",
    "DISCORD_CHANNEL_NAME",
    "SLACK_BOT_TOKEN",
    "SLACK_CHANNELS",
    "WATCH_FLAGS",
    "PRODUCT_URL",
    "UPDATE_INTERVAL_SECONDS",
    "HTTP_TIMEOUT_SECONDS",
    "ENABLE_SLEEP_MODE",
    "QUIET_HOURS_START_UTC",
    "QUIET_HOURS_END_UTC",
    "LOG_LEVEL",
    "validate",
    "persist_channel_name",
]
