"""Yahoo Finance client for real market quotes."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from typing import Any

from .errors import ProviderError, QuoteNotFound
from .interface import QuoteFetcher
from .models import Quote

logger = logging.getLogger(__name__)

# Multi-symbol quote endpoint: one request per batch
QUOTE_URL = "https://query1.finance.yahoo.com/v7/finance/quote"

# Keys that tell a real quote apart from the stub Yahoo returns for unknown symbols
_QUOTE_KEYS = ("regularMarketPrice", "shortName", "longName")


def _has_quote(info: dict[str, Any] | None) -> bool:
    return bool(info) and any(info.get(key) is not None for key in _QUOTE_KEYS)


class YahooQuoteFetcher(QuoteFetcher):
    """QuoteFetcher backed by the ``yfinance`` package.

    yfinance is synchronous, so every call runs in a worker thread to keep
    the event loop free. One ``fetch`` call is one upstream request for one
    batch of symbols; batching and pacing are the BatchFetcher's job.
    """

    async def fetch(self, symbols: Sequence[str]) -> list[Quote]:
        if not symbols:
            return []
        captured_at = time.time()
        try:
            infos = await asyncio.to_thread(self._fetch_infos, list(symbols))
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"Yahoo quote request failed: {e}") from e
        return [Quote.from_raw(info, captured_at=captured_at) for info in infos]

    async def fetch_one(self, symbol: str) -> Quote:
        try:
            info = await asyncio.to_thread(self._fetch_info, symbol)
        except Exception as e:
            # Yahoo answers unknown symbols with an HTTP 404
            raise QuoteNotFound(symbol, str(e)) from e
        if not _has_quote(info):
            raise QuoteNotFound(symbol)
        info.setdefault("symbol", symbol)
        return Quote.from_raw(info, keep_raw=True)

    # --- Internal ---

    def _fetch_infos(self, symbols: list[str]) -> list[dict[str, Any]]:
        """Synchronous batch lookup. Runs in a thread.

        The whole batch goes out as a single v7 quote request over
        yfinance's shared session (which carries the cookie and crumb).
        Yahoo leaves unknown symbols out of the response.
        """
        from yfinance.data import YfData

        payload = YfData().get_raw_json(QUOTE_URL, params={"symbols": ",".join(symbols), "formatted": "false"})
        response = (payload or {}).get("quoteResponse") or {}
        if response.get("error"):
            raise ProviderError(f"Yahoo quote request failed: {response['error']}")
        return [dict(info) for info in response.get("result") or [] if _has_quote(info)]

    def _fetch_info(self, symbol: str) -> dict[str, Any]:
        """Synchronous single lookup. Runs in a thread."""
        import yfinance as yf

        return dict(yf.Ticker(symbol).info or {})
