"""Read-side facade used by the HTTP layer."""

from __future__ import annotations

import asyncio
import logging
import time

from .errors import ProviderError
from .interface import QuoteFetcher
from .models import Quote, Snapshot, isoformat, to_provider_symbol
from .scheduler import RefreshScheduler
from .summary import MarketSummary, summarize

logger = logging.getLogger(__name__)


class QuoteService:
    """Query operations over the quote subsystem.

    Only ``get_all`` and ``get_summary`` go through the scheduler (and so may
    trigger a refresh). ``get_one`` is always a live provider call and never
    reads or writes the cache. ``get_health`` touches nothing.
    """

    def __init__(
        self,
        scheduler: RefreshScheduler,
        fetcher: QuoteFetcher,
        symbol_suffix: str = ".JK",
        lookup_timeout: float = 10.0,
    ) -> None:
        self._scheduler = scheduler
        self._fetcher = fetcher
        self._suffix = symbol_suffix
        self._lookup_timeout = lookup_timeout
        self._started = time.monotonic()

    @property
    def scheduler(self) -> RefreshScheduler:
        return self._scheduler

    async def get_all(self) -> Snapshot:
        return await self._scheduler.current_snapshot()

    async def get_summary(self) -> MarketSummary:
        return summarize(await self.get_all())

    async def get_one(self, symbol: str) -> Quote:
        """Live single-instrument lookup.

        ``bbca`` becomes ``BBCA.JK``; symbols that already carry an exchange
        suffix are passed through. Raises ProviderError (QuoteNotFound for
        unknown symbols) on failure or timeout.
        """
        symbol = self.normalize_symbol(symbol)
        try:
            return await asyncio.wait_for(self._fetcher.fetch_one(symbol), self._lookup_timeout)
        except TimeoutError as e:
            logger.warning("Lookup for %s exceeded %.1fs", symbol, self._lookup_timeout)
            raise ProviderError(f"Quote lookup for {symbol} timed out after {self._lookup_timeout:g}s") from e

    def get_health(self) -> dict:
        """Liveness plus the refresher's last known state.

        ``uptime`` counts seconds since this service was constructed, which
        is app startup rather than interpreter start. Reads only in-memory
        state, so it never triggers a fetch.
        """
        scheduler = self._scheduler
        cache = scheduler.cache
        age = cache.age()
        return {
            "status": "OK",
            "timestamp": isoformat(time.time()),
            "uptime": round(time.monotonic() - self._started, 3),
            "refresh": {
                "mode": scheduler.mode.value,
                "state": scheduler.state.value,
                "lastOutcome": scheduler.last_outcome.value if scheduler.last_outcome else None,
                "lastError": scheduler.last_error,
                "lastUpdate": isoformat(cache.last_update),
                "ageSeconds": round(age, 3) if age is not None else None,
                "cacheVersion": cache.version,
                "count": len(cache),
            },
        }

    def normalize_symbol(self, symbol: str) -> str:
        return to_provider_symbol(symbol, self._suffix)
