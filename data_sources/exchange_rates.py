"""
AwesomeAPI client for the USD -> BRL quote.

Reference: https://docs.awesomeapi.com.br/api-de-moedas
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

import requests

from core.constants import API_TIMEOUT_DEFAULT
from data_sources.base_api import APIError, BaseAPIClient

logger = logging.getLogger(__name__)


class AwesomeApiClient(BaseAPIClient):
    """Fetches the latest bid for a currency pair."""

    PAIR = "USD-BRL"

    def __init__(self, session: Optional[requests.Session] = None):
        super().__init__(
            base_url="https://economia.awesomeapi.com.br",
            timeout=API_TIMEOUT_DEFAULT,
            session=session,
        )

    def get_usd_brl(self) -> Decimal:
        """
        Returns:
            Latest USD -> BRL bid.

        Raises:
            APIError: On transport failure or an unexpected payload.
        """
        data = self.get(f"last/{self.PAIR}")
        key = self.PAIR.replace("-", "")
        try:
            bid = Decimal(str(data[key]["bid"]))
        except (KeyError, TypeError, InvalidOperation) as e:
            raise APIError(f"Unexpected {self.PAIR} payload: {e}", payload=data) from e
        if bid <= 0:
            raise APIError(f"Non-positive {self.PAIR} bid: {bid}", payload=data)
        logger.debug(f"{self.PAIR} bid: {bid}")
        return bid
