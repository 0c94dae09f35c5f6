"""Static table of the Compute Module 4 variants listed on the product page.

Order matters: the i-th entry corresponds to the i-th stock indicator on the page.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional


@dataclass(frozen=True)
class Variant:
    key: str
    label: str             # field name in the Discord embed
    product_url: str       # "BUY IT!" link
    role_name: str         # Discord role mentioned for this variant
    role_color: int        # colour used when the role is created
    slack_username: str
    slack_label: str       # model name used in the Slack message text

    @property
    def display_name(self) -> str:
        return f"CM4 {self.slack_label}"


VARIANTS: tuple[Variant, ...] = (
    Variant(
        key="1GB",
        label="1GB Model",
        product_url="https://www.adafruit.com/product/4782",
        role_name="CM4 1GB",
        role_color=0xE74C3C,
        slack_username="CM4 1GB (NO MMC, NO WIFI) IN STOCK",
        slack_label="1GB (No MMC, No WiFi)",
    ),
    Variant(
        key="2GB-no-mmc",
        label="2GB (No MMC) Model",
        product_url="https://www.adafruit.com/product/4788",
        role_name="CM4 2GB (No MMC)",
        role_color=0x2ECC71,
        slack_username="CM4 2GB (NO MMC) IN STOCK",
        slack_label="2GB (No MMC)",
    ),
    Variant(
        key="2GB-8GB-mmc",
        label="2GB (8GB MMC) Model",
        product_url="https://www.adafruit.com/product/4790",
        role_name="CM4 2GB (8GB MMC)",
        role_color=0x3498DB,
        slack_username="CM4 2GB (8GB MMC) IN STOCK",
        slack_label="2GB (8GB MMC)",
    ),
    Variant(
        key="2GB-16GB-mmc",
        label="2GB (16GB MMC) Model",
        product_url="https://www.adafruit.com/product/4791",
        role_name="CM4 2GB (16GB MMC)",
        role_color=0x9B59B6,
        slack_username="CM4 2GB (16GB MMC) IN STOCK",
        slack_label="2GB (16GB MMC)",
    ),
    Variant(
        key="4GB-32GB-mmc",
        label="4GB Model",
        product_url="https://www.adafruit.com/product/4982",
        role_name="CM4 4GB",
        role_color=0xF1C40F,
        slack_username="CM4 4GB (32GB MMC) IN STOCK",
        slack_label="4GB (32GB MMC)",
    ),
)

VARIANT_KEYS: tuple[str, ...] = tuple(v.key for v in VARIANTS)

_BY_KEY = {v.key: v for v in VARIANTS}


def get_variant(key: str) -> Variant:
    try:
        return _BY_KEY[key]
    except KeyError:
        raise KeyError(f"Unknown variant: {key!r}") from None


def watched_variants(
    variants: Iterable[Variant],
    watch_flags: Optional[Mapping[str, bool]] = None,
) -> List[Variant]:
    """Keep only the variants enabled for watching (defaults to config.WATCH_FLAGS)."""
    if watch_flags is None:
        from . import config
        watch_flags = config.WATCH_FLAGS
    return [v for v in variants if watch_flags.get(v.key, False)]


__all__ = ["Variant", "VARIANTS", "VARIANT_KEYS", "get_variant", "watched_variants"]
