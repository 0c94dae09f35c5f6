"""Discord bot notifier.

Talks to the Discord REST API with a bot token. A stock alert is one embed
listing every variant that came into stock, followed by a plain message
mentioning the matching variant roles.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Sequence

import requests

from . import config
from .exceptions import DeliveryError, GuildNotFoundError
from .utils import get_http_session, rate_limited_request
from .variants import Variant

logger = logging.getLogger(__name__)

API_BASE = "https://discord.com/api/v10"

GUILD_TEXT = 0

# Permission bits (https://discord.com/developers/docs/topics/permissions)
VIEW_CHANNEL = 1 << 10
SEND_MESSAGES = 1 << 11
EMBED_LINKS = 1 << 14

EMBED_TITLE = "Adafruit Raspberry Pi 4 IN STOCK!"
EMBED_DESCRIPTION = "The following models are in stock:\n"
EMBED_COLOR = 0x00FF00
EMBED_THUMBNAIL = "https://cdn-shop.adafruit.com/970x728/4292-06.jpg"
EMBED_FOOTER_TEXT = "CM4 Stock Monitor"
EMBED_FOOTER_ICON = "https://github.githubassets.com/images/modules/logos_page/GitHub-Mark.png"


@rate_limited_request
def _request(session: requests.Session, url: str, **kwargs: Any) -> requests.Response:
    method = kwargs.pop("method", "GET")
    return session.request(method, url, **kwargs)


class DiscordClient:
    """Minimal Discord REST client for the handful of calls the bot needs."""

    def __init__(
        self,
        token: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.token = (token or config.DISCORD_BOT_TOKEN or "").strip()
        self.timeout = timeout if timeout is not None else config.HTTP_TIMEOUT_SECONDS
        self._owns_session = session is None
        self.session = session or get_http_session()
        self.session.headers.update({"Authorization": f"Bot {self.token}"})

    def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        resp = _request(self.session, API_BASE + path, method=method, timeout=self.timeout, **kwargs)
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    def get_current_user(self) -> dict:
        return self._call("GET", "/users/@me")

    def get_guild(self, guild_id: str) -> dict:
        try:
            return self._call("GET", f"/guilds/{guild_id}")
        except DeliveryError as e:
            raise GuildNotFoundError(f"Could not look up guild with ID {guild_id}: {e}") from e

    def get_roles(self, guild_id: str) -> List[dict]:
        return self._call("GET", f"/guilds/{guild_id}/roles") or []

    def get_channels(self, guild_id: str) -> List[dict]:
        return self._call("GET", f"/guilds/{guild_id}/channels") or []

    def create_role(self, guild_id: str, name: str, color: int) -> dict:
        return self._call("POST", f"/guilds/{guild_id}/roles", json={"name": name, "color": color})

    def create_text_channel(self, guild_id: str, name: str, *, allow_member_id: Optional[str] = None) -> dict:
        payload: dict = {"name": name, "type": GUILD_TEXT}
        if allow_member_id:
            payload["permission_overwrites"] = [
                {
                    "id": allow_member_id,
                    "type": 1,  # member
                    "allow": str(VIEW_CHANNEL | SEND_MESSAGES | EMBED_LINKS),
                    "deny": "0",
                }
            ]
        return self._call("POST", f"/guilds/{guild_id}/channels", json=payload)

    def send_message(self, channel_id: str, payload: dict) -> dict:
        return self._call("POST", f"/channels/{channel_id}/messages", json=payload)

    def close(self) -> None:
        if self._owns_session:
            self.session.close()


def find_text_channel(channels: Iterable[dict], name: str) -> Optional[dict]:
    for channel in channels:
        if channel.get("type") == GUILD_TEXT and channel.get("name") == str(name):
            return channel
    return None


def find_role(roles: Iterable[dict], name: str) -> Optional[dict]:
    return next((r for r in roles if r.get("name") == name), None)


def build_stock_embed(variants: Sequence[Variant], *, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    return {
        "title": EMBED_TITLE,
        "description": EMBED_DESCRIPTION,
        "color": EMBED_COLOR,
        "thumbnail": {"url": EMBED_THUMBNAIL},
        "timestamp": now.isoformat(),
        "footer": {"text": EMBED_FOOTER_TEXT, "icon_url": EMBED_FOOTER_ICON},
        "fields": [
            {"name": v.label, "value": f"[BUY IT!]({v.product_url})", "inline": True}
            for v in variants
        ],
    }


def build_mention_message(variants: Sequence[Variant], roles: Iterable[dict]) -> str:
    """Space-separated role mentions for the variants whose role exists."""
    roles = list(roles)
    mentions: List[str] = []
    for v in variants:
        role = find_role(roles, v.role_name)
        if role is None:
            logger.error("No %s role found!", v.role_name)
            continue
        mentions.append(f"<@&{role['id']}>")
    return " ".join(mentions)


def send_stock_alert(
    variants: Sequence[Variant],
    *,
    client: Optional[DiscordClient] = None,
    guild_id: Optional[str] = None,
    channel_name: Optional[str] = None,
) -> bool:
    """Post one embed plus one mention message for the in-stock variants.

    Returns True if every message was accepted.
    """
    if not variants:
        return True
    guild_id = guild_id or config.DISCORD_SERVER_ID
    channel_name = channel_name or config.DISCORD_CHANNEL_NAME

    close_client = False
    if client is None:
        client = DiscordClient()
        close_client = True

    try:
        logger.info("Sending stock status to Discord...")
        channel = find_text_channel(client.get_channels(guild_id), channel_name)
        if channel is None:
            logger.error(
                'No text channel found in server with name: "%s". Did you delete/rename it? Check your config!',
                channel_name,
            )
            return False

        try:
            roles = client.get_roles(guild_id)
        except (DeliveryError, requests.RequestException):
            logger.exception("Could not fetch roles for guild %s; sending without mentions", guild_id)
            roles = []

        ok = True
        try:
            client.send_message(channel["id"], {"embeds": [build_stock_embed(variants)]})
            logger.info("Successfully sent notification EMBED to Discord!")
        except (DeliveryError, requests.RequestException) as e:
            ok = False
            logger.error("Error sending EMBED message to channel %s: %s", channel_name, e)

        mention_message = build_mention_message(variants, roles)
        if mention_message:
            try:
                client.send_message(
                    channel["id"],
                    {"content": mention_message, "allowed_mentions": {"parse": ["roles"]}},
                )
                logger.info("Successfully sent MENTION message to Discord!")
            except (DeliveryError, requests.RequestException) as e:
                ok = False
                logger.error("Error sending MENTION message to channel %s: %s", channel_name, e)
        return ok
    finally:
        if close_client:
            client.close()


__all__ = [
    "DiscordClient",
    "find_text_channel",
    "find_role",
    "build_stock_embed",
    "build_mention_message",
    "send_stock_alert",
]
