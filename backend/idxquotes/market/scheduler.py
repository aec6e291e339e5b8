"""Refresh scheduling for the quote cache.

Two execution modes, chosen once at startup:

    persistent  A background task refreshes the cache immediately and then
                on a fixed interval. Reads are served from the cache and only
                trigger a (time-bounded) refresh when the cache is empty or
                stale. If that refresh is slow or fails, the read falls back
                to whatever is cached.

    on_demand   For short-lived invocations (serverless). No background task
                and no reuse across requests: every read runs its own fetch
                under a timeout, and failure surfaces to the caller because
                there is nothing durable to fall back to.

Each refresh attempt goes IDLE -> FETCHING -> SUCCEEDED | FAILED | TIMED_OUT
and always ends back in IDLE. Only SUCCEEDED writes the cache.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from enum import Enum

from .batching import BatchFetcher
from .cache import QuoteCache
from .errors import ProviderError, RefreshTimeout, SourceUnavailable
from .interface import UniverseSource
from .models import Snapshot

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = 60.0
DEFAULT_STALE_AFTER = 300.0
DEFAULT_READ_TIMEOUT = 10.0
DEFAULT_ON_DEMAND_TIMEOUT = 20.0


class ExecutionMode(str, Enum):
    PERSISTENT = "persistent"
    ON_DEMAND = "on_demand"


class RefreshState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"


class RefreshOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class RefreshScheduler:
    """Sole writer of the QuoteCache.

    At most one refresh runs at a time. A trigger that arrives while one is
    in flight joins it instead of starting another. Callers that stop waiting
    (timeout) do not cancel the fetch: it runs to completion and, if it
    succeeds, still replaces the cache.
    """

    def __init__(
        self,
        cache: QuoteCache,
        batch_fetcher: BatchFetcher,
        universe_loader: UniverseSource,
        mode: ExecutionMode = ExecutionMode.PERSISTENT,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        stale_after: float = DEFAULT_STALE_AFTER,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        on_demand_timeout: float = DEFAULT_ON_DEMAND_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cache = cache
        self._batch_fetcher = batch_fetcher
        self._universe = universe_loader
        self._mode = ExecutionMode(mode)
        self._interval = refresh_interval
        self._stale_after = stale_after
        self._read_timeout = read_timeout
        self._on_demand_timeout = on_demand_timeout
        self._clock = clock

        self._task: asyncio.Task | None = None  # background loop (persistent mode)
        self._inflight: asyncio.Task | None = None  # current refresh attempt
        self._state = RefreshState.IDLE
        self.last_outcome: RefreshOutcome | None = None
        self.last_error: str | None = None

    @property
    def mode(self) -> ExecutionMode:
        return self._mode

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def cache(self) -> QuoteCache:
        return self._cache

    # --- Lifecycle ---

    async def start(self) -> None:
        """Start the background refresh loop (persistent mode only)."""
        if self._mode is ExecutionMode.ON_DEMAND:
            logger.info("Quote refresher in on-demand mode: no background refresh")
            return
        if self._task and not self._task.done():
            return
        self._task = asyncio.create_task(self._refresh_loop(), name="quote-refresher")
        logger.info("Quote refresher started: %.1fs interval, stale after %.1fs", self._interval, self._stale_after)

    async def stop(self) -> None:
        """Cancel the background loop and any in-flight refresh. Safe to call repeatedly."""
        for task in (self._task, self._inflight):
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._task = None
        self._inflight = None
        self._state = RefreshState.IDLE
        logger.info("Quote refresher stopped")

    # --- Refresh ---

    def trigger(self) -> asyncio.Task:
        """Start a refresh, or return the one already in flight."""
        if self._inflight is not None and not self._inflight.done():
            logger.debug("Refresh already in flight; joining it")
            return self._inflight
        self._inflight = asyncio.create_task(self._refresh_once(), name="quote-refresh")
        return self._inflight

    async def refresh(self, timeout: float | None = None) -> RefreshOutcome:
        """Trigger a refresh and wait for it, at most ``timeout`` seconds.

        Never raises for fetch problems; the outcome says what happened.
        """
        task = self.trigger()
        if timeout is None:
            return await asyncio.shield(task)
        try:
            return await asyncio.wait_for(asyncio.shield(task), timeout)
        except TimeoutError:
            logger.warning("Quote refresh still running after %.1fs; not waiting for it", timeout)
            return RefreshOutcome.TIMED_OUT

    def is_stale(self, snapshot: Snapshot | None = None) -> bool:
        """True when the snapshot is empty or older than the staleness threshold."""
        snapshot = snapshot if snapshot is not None else self._cache.read()
        if snapshot.is_empty:
            return True
        age = snapshot.age(self._clock())
        return age is None or age > self._stale_after

    async def current_snapshot(self) -> Snapshot:
        """Snapshot to answer a read with, according to the execution mode."""
        if self._mode is ExecutionMode.ON_DEMAND:
            return await self._fetch_on_demand()

        snapshot = self._cache.read()
        if self.is_stale(snapshot):
            outcome = await self.refresh(timeout=self._read_timeout)
            if outcome is not RefreshOutcome.SUCCEEDED:
                logger.info("Serving cached quotes after %s refresh (%d quotes)", outcome.value, len(snapshot))
            snapshot = self._cache.read()
        return snapshot

    # --- Internal ---

    async def _refresh_loop(self) -> None:
        """Refresh now, then every interval, regardless of request traffic."""
        while True:
            try:
                await self.refresh()
            except Exception:
                logger.exception("Scheduled quote refresh failed")
            await asyncio.sleep(self._interval)

    async def _refresh_once(self) -> RefreshOutcome:
        self._state = RefreshState.FETCHING
        started = time.monotonic()
        try:
            snapshot = await self._fetch_snapshot()
        except Exception as e:
            logger.error("Quote refresh failed, keeping previous snapshot: %s", e)
            self.last_outcome = RefreshOutcome.FAILED
            self.last_error = str(e)
            return RefreshOutcome.FAILED
        finally:
            self._state = RefreshState.IDLE

        self._cache.replace(snapshot)
        self.last_outcome = RefreshOutcome.SUCCEEDED
        self.last_error = None
        logger.info(
            "Quote cache refreshed: %d quotes in %.1fs (%d/%d batches failed)",
            len(snapshot),
            time.monotonic() - started,
            snapshot.failed_batches,
            snapshot.batches,
        )
        return RefreshOutcome.SUCCEEDED

    async def _fetch_snapshot(self) -> Snapshot:
        """Load the universe and fetch it into a new, complete Snapshot.

        Raises ProviderError if every batch failed, so a dead provider never
        replaces good data with an empty snapshot.
        """
        try:
            symbols = self._universe.load()
        except SourceUnavailable as e:
            logger.warning("Instrument universe unavailable, using an empty one: %s", e)
            symbols = []

        result = await self._batch_fetcher.fetch_all(symbols)
        if result.all_failed:
            raise ProviderError(f"All {result.batches} batches failed: {result.failures[0].error}")
        return Snapshot(
            quotes=result.quotes,
            as_of=self._clock(),
            batches=result.batches,
            failed_batches=result.failed_batches,
        )

    async def _fetch_on_demand(self) -> Snapshot:
        try:
            return await asyncio.wait_for(self._fetch_snapshot(), self._on_demand_timeout)
        except TimeoutError as e:
            logger.warning("On-demand quote fetch exceeded %.1fs", self._on_demand_timeout)
            raise RefreshTimeout(self._on_demand_timeout) from e
