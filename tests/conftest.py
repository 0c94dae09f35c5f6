from __future__ import annotations

import json
from typing import Any, Callable, List, Optional

from cm4_stock_monitor.variants import VARIANTS, get_variant


class FakeResponse:
    def __init__(self, status_code: int = 200, *, json_body: Any = None, text: str = "", headers: Optional[dict] = None) -> None:
        self.status_code = status_code
        self.headers = headers or {}
        self._json = json_body
        if json_body is not None and not text:
            text = json.dumps(json_body)
        self.text = text
        self.content = text.encode("utf-8")

    def json(self) -> Any:
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


class FakeSession:
    """Stands in for requests.Session; `handler(method, url, kwargs)` builds each response."""

    def __init__(self, handler: Callable[[str, str, dict], FakeResponse]) -> None:
        self.handler = handler
        self.headers: dict = {}
        self.calls: List[tuple] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        result = self.handler(method, url, kwargs)
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request("POST", url, **kwargs)

    def close(self) -> None:
        self.closed = True


def reading(*in_stock: str) -> dict:
    """All variants out of stock except the given keys."""
    result = {v.key: False for v in VARIANTS}
    for key in in_stock:
        result[get_variant(key).key] = True
    return result
