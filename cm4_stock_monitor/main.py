from __future__ import annotations

import functools
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, List, Mapping, Optional

import requests

from . import config, notifier, slack
from .detector import EdgeDetector
from .dispatcher import Backend, Dispatcher
from .exceptions import ConfigError, DeliveryError, GuildNotFoundError, StockCheckError
from .provisioning import setup_discord_server
from .scraper import fetch_stock_reading
from .utils import in_quiet_hours
from .variants import Variant

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StockMonitor:
    """One sample -> detect -> dispatch pipeline per tick."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        *,
        detector: Optional[EdgeDetector] = None,
        sample: Callable[[], Mapping[str, bool]] = fetch_stock_reading,
        clock: Callable[[], datetime] = _utc_now,
        sleep_mode: Optional[bool] = None,
        quiet_hours: Optional[tuple[int, int]] = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.detector = detector or EdgeDetector()
        self.sample = sample
        self.clock = clock
        self.sleep_mode = config.ENABLE_SLEEP_MODE if sleep_mode is None else sleep_mode
        self.quiet_hours = quiet_hours or (config.QUIET_HOURS_START_UTC, config.QUIET_HOURS_END_UTC)
        self.sleeping = False
        self._tick_lock = threading.Lock()

    def _should_sleep(self) -> bool:
        """Track sleep mode, logging only when it switches on or off."""
        if not self.sleep_mode:
            return False
        hour = self.clock().astimezone(timezone.utc).hour
        if in_quiet_hours(hour, *self.quiet_hours):
            if not self.sleeping:
                self.sleeping = True
                logger.info("Sleeping mode is now active, we'll not check stock status outside of Adafruit's hours!")
            return True
        if self.sleeping:
            self.sleeping = False
            logger.info("Sleeping mode is now disabled, I'm actively checking stock status again!")
        return False

    def check_stock_status(self) -> List[Variant]:
        """Run one tick. Returns the variants that just came into stock."""
        if not self._tick_lock.acquire(blocking=False):
            logger.warning("Previous stock check is still running; skipping this tick.")
            return []
        try:
            if self._should_sleep():
                return []

            try:
                reading = self.sample()
            except StockCheckError as e:
                logger.error("An error occurred during the status refresh: %s", e)
                return []

            events = self.detector.advance(reading)
            if events:
                logger.info("WE GOT STOCK! : %s", ", ".join(v.display_name for v in events))
                self.dispatcher.dispatch(events)
            return events
        finally:
            self._tick_lock.release()

    def run_forever(self, interval: Optional[float] = None, stop_event: Optional[threading.Event] = None) -> None:
        """Tick now, then every `interval` seconds until `stop_event` is set.

        The interval is measured from the start of each tick; a slow tick
        delays the next one and missed ticks are not made up.
        """
        interval = interval if interval is not None else config.UPDATE_INTERVAL_SECONDS
        stop_event = stop_event or threading.Event()
        while not stop_event.is_set():
            started = time.monotonic()
            try:
                self.check_stock_status()
            except Exception:
                logger.exception("Unexpected error during stock check")
            elapsed = time.monotonic() - started
            stop_event.wait(max(0.0, interval - elapsed))


def _connect_discord(client: notifier.DiscordClient) -> dict:
    """Log in and resolve the configured guild. Raises GuildNotFoundError."""
    user = client.get_current_user()
    guild = client.get_guild(str(config.DISCORD_SERVER_ID))
    logger.info("Logged in as %s in server %s", user.get("username"), guild.get("name"))
    setup_name = setup_discord_server(client, guild, bot_user_id=user.get("id"))
    return {"guild": guild, "channel_name": setup_name or config.DISCORD_CHANNEL_NAME}


def main() -> int:
    """Initialise and run the monitoring loop."""
    setup_logging()

    try:
        config.validate()
    except ConfigError as e:
        logger.error("%s Exiting...", e)
        return 1

    backends: dict[str, Backend] = {}
    discord_client: Optional[notifier.DiscordClient] = None

    if config.ENABLE_DISCORD_BOT:
        discord_client = notifier.DiscordClient()
        try:
            setup = _connect_discord(discord_client)
        except (GuildNotFoundError, DeliveryError, requests.RequestException) as e:
            logger.error("Discord setup failed, check DISCORD_BOT_TOKEN and DISCORD_SERVER_ID: %s", e)
            discord_client.close()
            return 1
        backends["discord"] = functools.partial(
            notifier.send_stock_alert,
            client=discord_client,
            guild_id=str(setup["guild"]["id"]),
            channel_name=setup["channel_name"],
        )

    if config.ENABLE_SLACK_BOT:
        backends["slack"] = slack.send_stock_alert

    monitor = StockMonitor(Dispatcher(backends, config.WATCH_FLAGS))
    logger.info(
        "I'm watching for stock updates now! I'll check Adafruit every %d seconds...",
        config.UPDATE_INTERVAL_SECONDS,
    )
    try:
        monitor.run_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down.")
    finally:
        if discord_client is not None:
            discord_client.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
