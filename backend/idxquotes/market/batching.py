"""Batch fetch orchestration over a large symbol universe."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from .errors import BatchFailure
from .interface import QuoteFetcher
from .models import Quote

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50
DEFAULT_BATCH_DELAY = 0.1  # seconds between batches


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Aggregated outcome of one fetch cycle."""

    quotes: tuple[Quote, ...] = ()
    batches: int = 0
    failures: tuple[BatchFailure, ...] = field(default_factory=tuple)

    @property
    def failed_batches(self) -> int:
        return len(self.failures)

    @property
    def all_failed(self) -> bool:
        """True when there was work to do and every batch of it failed."""
        return self.batches > 0 and self.failed_batches == self.batches


def partition(symbols: Sequence[str], batch_size: int) -> list[tuple[str, ...]]:
    """Split symbols into contiguous batches of at most ``batch_size``, keeping order."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    return [tuple(symbols[i : i + batch_size]) for i in range(0, len(symbols), batch_size)]


class BatchFetcher:
    """Fetches a whole universe through a QuoteFetcher, one bounded batch at a time.

    Batches run sequentially with a pacing delay between them (not after the
    last) to bound the request rate against the provider. A failed batch is
    logged and skipped; it is never retried within the cycle and never
    aborts the remaining batches. Results come back in batch order, then
    provider order within each batch.
    """

    def __init__(
        self,
        fetcher: QuoteFetcher,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._fetcher = fetcher
        self._batch_size = batch_size
        self._delay = batch_delay

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def fetch_all(self, symbols: Sequence[str]) -> BatchResult:
        """Run one fetch cycle over ``symbols``."""
        if not symbols:
            return BatchResult()

        batches = partition(symbols, self._batch_size)
        quotes: list[Quote] = []
        failures: list[BatchFailure] = []

        for index, batch in enumerate(batches):
            try:
                fetched = await self._fetcher.fetch(batch)
                quotes.extend(fetched)
                logger.debug(
                    "Batch %d/%d: %d/%d quotes",
                    index + 1,
                    len(batches),
                    len(fetched),
                    len(batch),
                )
            except Exception as e:
                # Isolated: keep what we have, move on to the next batch
                logger.warning(
                    "Batch %d/%d failed (%s..%s): %s",
                    index + 1,
                    len(batches),
                    batch[0],
                    batch[-1],
                    e,
                )
                failures.append(BatchFailure(index=index, symbols=batch, error=str(e)))

            if index < len(batches) - 1:
                await asyncio.sleep(self._delay)

        return BatchResult(quotes=tuple(quotes), batches=len(batches), failures=tuple(failures))
