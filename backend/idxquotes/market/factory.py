"""Factory for creating quote fetchers."""

from __future__ import annotations

import logging

from .interface import QuoteFetcher

logger = logging.getLogger(__name__)


def create_quote_fetcher(provider: str = "yahoo") -> QuoteFetcher:
    """Create the quote fetcher for the configured provider.

    - "yahoo"     → YahooQuoteFetcher (real market data via yfinance)
    - "simulator" → SimulatedQuoteFetcher (GBM simulation, no network)
    """
    if provider == "simulator":
        from .simulator import SimulatedQuoteFetcher

        logger.info("Quote provider: GBM Simulator")
        return SimulatedQuoteFetcher()
    if provider == "yahoo":
        from .yahoo_client import YahooQuoteFetcher

        logger.info("Quote provider: Yahoo Finance")
        return YahooQuoteFetcher()
    raise ValueError(f"Unknown quote provider: {provider!r}")
