"""One-time Discord server setup.

Makes sure every watched variant has a mention role and that the
notification channel exists. Failures are logged and left for the operator
to fix by hand; they never stop the monitor.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional

import requests

from . import config
from .exceptions import DeliveryError
from .notifier import GUILD_TEXT, DiscordClient, find_role
from .variants import VARIANTS, watched_variants

logger = logging.getLogger(__name__)


def ensure_roles(client: DiscordClient, guild_id: str, watch_flags: Optional[Mapping[str, bool]] = None) -> list[str]:
    """Create any missing variant roles. Returns the names that were created."""
    created: list[str] = []
    try:
        roles = client.get_roles(guild_id)
    except (DeliveryError, requests.RequestException):
        logger.exception("Could not list roles for guild %s; skipping role setup", guild_id)
        return created

    for variant in watched_variants(VARIANTS, watch_flags):
        if find_role(roles, variant.role_name):
            continue
        try:
            client.create_role(guild_id, variant.role_name, variant.role_color)
            created.append(variant.role_name)
            logger.info("Created role: %s", variant.role_name)
        except (DeliveryError, requests.RequestException):
            logger.exception("Error creating role: %s", variant.role_name)
    return created


def ensure_channel(
    client: DiscordClient,
    guild_id: str,
    *,
    bot_user_id: Optional[str],
    channel_name: Optional[str] = None,
    persist: Callable[[str], None] = config.persist_channel_name,
) -> Optional[str]:
    """Make sure the notification channel exists, creating it if needed.

    Returns the channel name to post in, or None if setup failed.
    """
    channel_name = channel_name or config.DISCORD_CHANNEL_NAME
    try:
        channels = client.get_channels(guild_id)
    except (DeliveryError, requests.RequestException):
        logger.exception("Could not list channels for guild %s; skipping channel setup", guild_id)
        return None

    names = {c.get("name") for c in channels if c.get("type") == GUILD_TEXT}
    if channel_name in names:
        return channel_name

    new_name = config.DEFAULT_CHANNEL_NAME
    if new_name not in names:
        try:
            channel = client.create_text_channel(guild_id, new_name, allow_member_id=bot_user_id)
        except (DeliveryError, requests.RequestException):
            logger.exception(
                "Error creating default notification channel; either set the correct one in your "
                "config or fix what is preventing me from doing it (likely a permissions issue)"
            )
            return None
        new_name = channel.get("name") or new_name
        logger.info("You didn't provide a channel name or it wasn't found in the server, so I created one for you!")
        logger.info("The new channel is named: %s", new_name)

    try:
        persist(new_name)
    except OSError:
        logger.exception("Could not save channel name %s to the config file", new_name)
    return new_name


def setup_discord_server(
    client: DiscordClient,
    guild: dict,
    *,
    bot_user_id: Optional[str],
    watch_flags: Optional[Mapping[str, bool]] = None,
    channel_name: Optional[str] = None,
    persist: Callable[[str], None] = config.persist_channel_name,
) -> Optional[str]:
    guild_id = str(guild["id"])
    ensure_roles(client, guild_id, watch_flags)
    name = ensure_channel(
        client,
        guild_id,
        bot_user_id=bot_user_id,
        channel_name=channel_name,
        persist=persist,
    )
    logger.info("Discord server setup complete for %s", guild.get("name") or guild_id)
    return name


__all__ = ["ensure_roles", "ensure_channel", "setup_discord_server"]
