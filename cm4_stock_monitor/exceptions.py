"""Exception hierarchy for the stock monitor."""

from __future__ import annotations


class MonitorError(Exception):
    """Base exception for all monitor errors."""


class ConfigError(MonitorError):
    """Invalid or missing configuration. Fatal at startup."""


class GuildNotFoundError(ConfigError):
    """The configured Discord server could not be resolved."""


class StockCheckError(MonitorError):
    """The product page could not be fetched or no longer matches the expected layout."""


class DeliveryError(MonitorError):
    """A chat backend rejected or failed to accept a message."""

    def __init__(self, message: str, *, status_code: int | None = None, endpoint: str = "") -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


__all__ = [
    "MonitorError",
    "ConfigError",
    "GuildNotFoundError",
    "StockCheckError",
    "DeliveryError",
]
