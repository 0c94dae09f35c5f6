"""Slack notifier via chat.postMessage.

Unlike the Discord alert, every in-stock variant is posted as its own
message to that variant's channel.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

import requests

from . import config
from .exceptions import DeliveryError
from .utils import get_http_session, rate_limited_request
from .variants import Variant

logger = logging.getLogger(__name__)

POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"


@rate_limited_request
def _post(session: requests.Session, url: str, **kwargs: Any) -> requests.Response:
    return session.post(url, **kwargs)


def build_slack_payload(variant: Variant, channel: str) -> dict:
    text = (
        f"@channel The {variant.slack_label} model is in stock on Adafruit! "
        f"<{variant.product_url}|BUY IT>"
    )
    return {
        "channel": channel,
        "username": variant.slack_username,
        "link_names": True,
        "text": text,
    }


def post_message(session: requests.Session, payload: dict, *, token: str, timeout: float) -> None:
    resp = _post(
        session,
        POST_MESSAGE_URL,
        json=payload,
        headers={"Authorization": f"Bearer {token}"},
        timeout=timeout,
    )
    # Slack reports most failures as HTTP 200 with ok=false.
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if not body.get("ok", False):
        raise DeliveryError(
            f"Slack rejected message: {body.get('error') or 'unknown error'}",
            status_code=resp.status_code,
            endpoint=POST_MESSAGE_URL,
        )


def send_stock_alert(
    variants: Sequence[Variant],
    *,
    channels: Optional[Mapping[str, Optional[str]]] = None,
    token: Optional[str] = None,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> bool:
    """Post one message per variant. Returns True if all were accepted."""
    if not variants:
        return True
    channels = channels if channels is not None else config.SLACK_CHANNELS
    token = token or config.SLACK_BOT_TOKEN or ""
    timeout = timeout if timeout is not None else config.HTTP_TIMEOUT_SECONDS

    close_session = False
    if session is None:
        session = get_http_session()
        close_session = True

    logger.info("Sending stock status to Slack...")
    ok = True
    try:
        for variant in variants:
            channel = channels.get(variant.key)
            if not channel:
                ok = False
                logger.error("No Slack channel configured for %s; skipping", variant.display_name)
                continue
            try:
                post_message(session, build_slack_payload(variant, channel), token=token, timeout=timeout)
                logger.info("Successfully sent %s stock status to Slack!", variant.display_name)
            except (DeliveryError, requests.RequestException) as e:
                ok = False
                logger.error("Error sending %s stock status to Slack: %s", variant.display_name, e)
    finally:
        if close_session:
            session.close()
    return ok


__all__ = ["build_slack_payload", "post_message", "send_stock_alert"]
