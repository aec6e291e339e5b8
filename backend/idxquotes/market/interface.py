"""Abstract interface for upstream quote providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Protocol

from .models import Quote


class QuoteFetcher(ABC):
    """Contract for quote providers.

    A fetcher only talks to the provider; it holds no cache and no schedule.
    The BatchFetcher decides how many symbols go into each call and the
    RefreshScheduler decides when calls happen.

    Usage:
        fetcher = create_quote_fetcher(config)
        quotes = await fetcher.fetch(["BBCA.JK", "BBRI.JK"])
        quote = await fetcher.fetch_one("TLKM.JK")
    """

    @abstractmethod
    async def fetch(self, symbols: Sequence[str]) -> list[Quote]:
        """Fetch quotes for one batch of symbols, in provider order.

        Symbols the provider does not know are omitted from the result.
        Raises ProviderError if the call as a whole fails.
        """

    @abstractmethod
    async def fetch_one(self, symbol: str) -> Quote:
        """Fetch a single fresh quote, keeping the raw provider payload.

        Raises QuoteNotFound if the provider rejects the symbol and
        ProviderError for any other failure.
        """


class UniverseSource(Protocol):
    """Anything that can produce the ordered instrument universe.

    ``load`` raises SourceUnavailable when the backing list cannot be read.
    """

    def load(self) -> list[str]: ...
