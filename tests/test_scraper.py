from __future__ import annotations

import pytest
import requests

from conftest import FakeResponse, FakeSession

from cm4_stock_monitor.exceptions import StockCheckError
from cm4_stock_monitor.scraper import fetch_stock_reading, parse_stock_reading

OUT = "<li><a>Out of Stock</a></li>"


def _page(*items: str) -> str:
    return f"""
<html><body>
<div id="buttons">
  <div class="mobile-button-row">
    <div>
      <span>Choose a model</span>
      <ol>
        {''.join(items)}
      </ol>
    </div>
  </div>
  <div class="mobile-button-row"><div><span></span><ol><li>decoy $10.00</li></ol></div></div>
</div>
</body></html>
"""


def test_parse_reads_each_variant_in_page_order() -> None:
    html = _page(
        OUT,
        "<li>2GB $65.00</li>",
        "<li>OUT OF\n   STOCK</li>",
        "<li><span>$80.00</span> Add to cart</li>",
        OUT,
    )
    assert parse_stock_reading(html) == {
        "1GB": False,
        "2GB-no-mmc": True,
        "2GB-8GB-mmc": False,
        "2GB-16GB-mmc": True,
        "4GB-32GB-mmc": False,
    }


def test_parse_fails_when_list_missing() -> None:
    with pytest.raises(StockCheckError):
        parse_stock_reading("<html><body><p>Maintenance</p></body></html>")


def test_parse_fails_when_too_few_entries() -> None:
    with pytest.raises(StockCheckError):
        parse_stock_reading(_page(OUT, OUT, OUT))


def test_fetch_returns_reading() -> None:
    html = _page(*(["<li>$45.00</li>"] + [OUT] * 4))
    session = FakeSession(lambda m, u, kw: FakeResponse(200, text=html))

    result = fetch_stock_reading("https://example.test/product", session=session, timeout=3)

    assert result["1GB"] is True
    assert not any(v for k, v in result.items() if k != "1GB")
    method, url, kwargs = session.calls[0]
    assert (method, url, kwargs["timeout"]) == ("GET", "https://example.test/product", 3)
    assert len(session.calls) == 1


def test_fetch_non_200_is_a_stock_check_error() -> None:
    session = FakeSession(lambda m, u, kw: FakeResponse(503, text="busy"))
    with pytest.raises(StockCheckError):
        fetch_stock_reading("https://example.test/product", session=session)
    assert len(session.calls) == 1


def test_fetch_network_error_is_a_stock_check_error() -> None:
    session = FakeSession(lambda m, u, kw: requests.ConnectionError("down"))
    with pytest.raises(StockCheckError):
        fetch_stock_reading("https://example.test/product", session=session)
