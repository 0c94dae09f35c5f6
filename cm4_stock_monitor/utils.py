"""Helper utilities.

This module centralises common helper functions such as creating a
configured HTTP session, honouring chat API rate limits and evaluating
the quiet-hours window.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import requests
from requests import Response
from tenacity import (RetryCallState, after_log, retry,
                      retry_if_exception_type, stop_after_attempt)

from .exceptions import DeliveryError

logger = logging.getLogger(__name__)

# Upper bound on a single rate-limit pause (seconds).
MAX_RETRY_AFTER = 30.0


def get_http_session() -> requests.Session:
    """Return a new HTTP session with sensible defaults.

    The session sets a realistic User‑Agent header. Caller is
    responsible for closing the session.
    """
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": "Mozilla/5.0 (compatible; CM4StockMonitor/1.0; +https://github.com/)",
            "Accept": "text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8",
        }
    )
    return session


class RateLimitedError(DeliveryError):
    """Raised when a chat API answers 429 Too Many Requests."""

    def __init__(self, message: str, *, retry_after: float = 1.0, endpoint: str = "") -> None:
        self.retry_after = retry_after
        super().__init__(message, status_code=429, endpoint=endpoint)


def _retry_after_seconds(resp: Response) -> float:
    raw = resp.headers.get("Retry-After")
    try:
        value = float(raw) if raw is not None else 1.0
    except ValueError:
        value = 1.0
    return max(0.0, min(value, MAX_RETRY_AFTER))


def _wait_retry_after(retry_state: RetryCallState) -> float:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    return float(getattr(exc, "retry_after", 1.0))


def rate_limited_request(method: Callable[..., Response]) -> Callable[..., Response]:
    """Decorator that raises for failed chat API calls and waits out 429s.

    The decorated function must accept a `requests.Session` as its first
    argument, followed by URL and optional kwargs, and return a
    `requests.Response`. Only rate-limit responses are retried, for at
    most 3 attempts, sleeping for the server-provided `Retry-After`.
    Any other status >= 400 raises `DeliveryError` immediately.
    """

    @retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=_wait_retry_after,
        retry=retry_if_exception_type(RateLimitedError),
        after=after_log(logger, logging.WARNING),
    )
    def wrapper(session: requests.Session, url: str, **kwargs: Any) -> Response:
        response = method(session, url, **kwargs)
        if response.status_code == 429:
            raise RateLimitedError(
                f"Rate limited by {url}",
                retry_after=_retry_after_seconds(response),
                endpoint=url,
            )
        if response.status_code >= 400:
            raise DeliveryError(
                f"{url} returned status {response.status_code}: {response.text[:300]}",
                status_code=response.status_code,
                endpoint=url,
            )
        return response

    return wrapper


def in_quiet_hours(hour: int, start: int, end: int) -> bool:
    """Return True if `hour` (UTC, 0-23) falls in the [start, end) window.

    A window with start > end wraps past midnight; start == end is empty.
    """
    if start == end:
        return False
    if start < end:
        return start <= hour < end
    return hour >= start or hour < end


__all__ = [
    "get_http_session",
    "rate_limited_request",
    "RateLimitedError",
    "in_quiet_hours",
]
