"""Product page sampler.

Downloads the Compute Module 4 product page and reads the per-variant stock
indicators out of the variant button list.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

import requests
from bs4 import BeautifulSoup

from . import config
from .exceptions import StockCheckError
from .utils import get_http_session
from .variants import VARIANTS, Variant

logger = logging.getLogger(__name__)

# The ordered list of variant buttons; one <li> per variant, in page order.
STOCK_LIST_SELECTOR = "div.mobile-button-row:nth-child(1) > div:nth-child(1) > ol:nth-child(2)"

OUT_OF_STOCK_PHRASE = "out of stock"


def _browser_headers() -> dict:
    return {
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }


def _is_in_stock(text: str) -> bool:
    # An in-stock button shows the price instead of "Out of Stock".
    normalized = " ".join((text or "").split()).lower()
    return OUT_OF_STOCK_PHRASE not in normalized


def parse_stock_reading(html: str, variants: Sequence[Variant] = VARIANTS) -> Dict[str, bool]:
    """Map each variant key to True if the page lists it as available.

    Raises StockCheckError if the page no longer has the expected layout.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    stock_list = soup.select_one(STOCK_LIST_SELECTOR)
    if stock_list is None:
        raise StockCheckError("Stock list not found on product page; has the layout changed?")

    items = stock_list.find_all("li")
    if len(items) < len(variants):
        raise StockCheckError(
            f"Expected {len(variants)} stock entries on product page, found {len(items)}"
        )

    return {v.key: _is_in_stock(items[idx].get_text()) for idx, v in enumerate(variants)}


def fetch_stock_reading(
    url: Optional[str] = None,
    session: Optional[requests.Session] = None,
    *,
    timeout: Optional[float] = None,
    variants: Sequence[Variant] = VARIANTS,
) -> Dict[str, bool]:
    """Download the product page once and parse it.

    No retries: a failed fetch is reported as StockCheckError and the caller
    simply tries again on its next tick.
    """
    url = url or config.PRODUCT_URL
    timeout = timeout if timeout is not None else config.HTTP_TIMEOUT_SECONDS

    close_session = False
    if session is None:
        session = get_http_session()
        close_session = True

    try:
        try:
            resp = session.get(url, headers=_browser_headers(), timeout=timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise StockCheckError(f"Request for {url} failed: {e}") from e

        if resp.status_code != 200:
            raise StockCheckError(f"Product page returned HTTP {resp.status_code} for {url}")

        reading = parse_stock_reading(resp.text, variants)
        logger.debug("Stock reading: %s", reading)
        return reading
    finally:
        if close_session:
            session.close()


__all__ = [
    "STOCK_LIST_SELECTOR",
    "parse_stock_reading",
    "fetch_stock_reading",
]
