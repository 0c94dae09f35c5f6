from __future__ import annotations

from conftest import FakeResponse, FakeSession

from cm4_stock_monitor import slack
from cm4_stock_monitor.variants import get_variant

CHANNELS = {"1GB": "C1", "2GB-no-mmc": "C2", "4GB-32GB-mmc": "C4"}


def _ok(method, url, kwargs):
    return FakeResponse(200, json_body={"ok": True})


def test_payload_shape() -> None:
    payload = slack.build_slack_payload(get_variant("2GB-no-mmc"), "C2")

    assert payload["channel"] == "C2"
    assert payload["username"] == "CM4 2GB (NO MMC) IN STOCK"
    assert payload["link_names"] is True
    assert payload["text"].startswith("@channel The 2GB (No MMC) model is in stock")
    assert "<https://www.adafruit.com/product/4788|BUY IT>" in payload["text"]


def test_one_post_per_variant_with_bearer_token() -> None:
    session = FakeSession(_ok)

    ok = slack.send_stock_alert(
        [get_variant("1GB"), get_variant("4GB-32GB-mmc")],
        channels=CHANNELS,
        token="xoxb-1",
        session=session,
    )

    assert ok
    assert [kw["json"]["channel"] for _, _, kw in session.calls] == ["C1", "C4"]
    assert all(url == slack.POST_MESSAGE_URL for _, url, _ in session.calls)
    assert session.calls[0][2]["headers"]["Authorization"] == "Bearer xoxb-1"


def test_failed_variant_does_not_block_others() -> None:
    def handler(method, url, kwargs):
        if kwargs["json"]["channel"] == "C1":
            return FakeResponse(200, json_body={"ok": False, "error": "channel_not_found"})
        return FakeResponse(200, json_body={"ok": True})

    session = FakeSession(handler)

    ok = slack.send_stock_alert(
        [get_variant("1GB"), get_variant("2GB-no-mmc")],
        channels=CHANNELS,
        token="t",
        session=session,
    )

    assert not ok
    assert len(session.calls) == 2


def test_variant_without_channel_is_skipped() -> None:
    session = FakeSession(_ok)

    ok = slack.send_stock_alert([get_variant("2GB-16GB-mmc")], channels=CHANNELS, token="t", session=session)

    assert not ok
    assert session.calls == []
