"""
Process-lifetime cache of the USD -> BRL rate.

The rate is one immutable ExchangeRate object; refresh() swaps it with a
single assignment, so readers on other threads see either the old or the
new value, never a mix. A failed refresh keeps whatever was there.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from core.constants import DEFAULT_BRL_RATE, EXCHANGE_RATE_REFRESH_INTERVAL, THREAD_JOIN_TIMEOUT
from core.models import ExchangeRate

logger = logging.getLogger(__name__)

RateFetcher = Callable[[], Decimal]


class ExchangeRateCache:
    """
    Holds the latest known rate and refreshes it on a timer.

    Args:
        fetcher: Callable returning the current rate (raises on failure).
        default: Rate served until the first successful refresh.
        interval: Seconds between background refreshes.
    """

    def __init__(
        self,
        fetcher: RateFetcher,
        default: Decimal = DEFAULT_BRL_RATE,
        interval: float = EXCHANGE_RATE_REFRESH_INTERVAL,
    ) -> None:
        self._fetcher = fetcher
        self._rate = ExchangeRate(value=Decimal(default), last_updated=datetime.now(timezone.utc))
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def get(self) -> ExchangeRate:
        return self._rate

    def refresh(self) -> bool:
        """
        Fetch and install a new rate.

        Returns:
            True if the rate was replaced, False if the previous one was kept.
        """
        try:
            value = Decimal(self._fetcher())
            new_rate = ExchangeRate(value=value, last_updated=datetime.now(timezone.utc))
        except Exception as e:
            logger.warning(f"Exchange rate refresh failed, keeping {self._rate.value}: {e}")
            return False

        self._rate = new_rate
        logger.info(f"Exchange rate updated: {new_rate.value}")
        return True

    # ------------------------------------------------------------------ #
    # Background refresh
    # ------------------------------------------------------------------ #

    def _refresh_loop(self) -> None:
        logger.info("Exchange rate refresher started (every %ss)", self.interval)
        while not self._stop_event.wait(self.interval):
            self.refresh()
        logger.info("Exchange rate refresher stopped")

    def start(self) -> bool:
        """
        Refresh once now, then keep refreshing on a daemon thread.

        Returns:
            True if started, False if already running.
        """
        if self._thread is not None and self._thread.is_alive():
            logger.warning("Exchange rate refresher already running")
            return False

        self.refresh()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._refresh_loop,
            daemon=True,
            name="ExchangeRateRefresher",
        )
        self._thread.start()
        return True

    def stop(self) -> None:
        """Stop the background refresher."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=THREAD_JOIN_TIMEOUT)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
