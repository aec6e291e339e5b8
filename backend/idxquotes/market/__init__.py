"""Quote subsystem for the IDX stock API.

Public API:
    Quote, Snapshot        - Immutable quote and fetch-cycle dataclasses
    QuoteCache             - Thread-safe holder of the live Snapshot
    QuoteFetcher           - Abstract interface for quote providers
    BatchFetcher           - Batched, paced, failure-isolated universe fetch
    RefreshScheduler       - Persistent / on-demand refresh orchestration
    QuoteService           - Read-side facade (all, one, summary, health)
    summarize              - Pure market summary over a Snapshot
    create_quote_fetcher   - Factory that selects Yahoo or the simulator
    create_quotes_router   - FastAPI router factory for the HTTP endpoints
"""

from .batching import BatchFetcher, BatchResult
from .cache import QuoteCache
from .errors import (
    BatchFailure,
    ProviderError,
    QuoteNotFound,
    QuoteServiceError,
    RefreshTimeout,
    SourceUnavailable,
)
from .factory import create_quote_fetcher
from .interface import QuoteFetcher, UniverseSource
from .models import Quote, Snapshot
from .routes import create_quotes_router
from .scheduler import ExecutionMode, RefreshOutcome, RefreshScheduler, RefreshState
from .service import QuoteService
from .summary import MarketSummary, summarize

__all__ = [
    "BatchFailure",
    "BatchFetcher",
    "BatchResult",
    "ExecutionMode",
    "MarketSummary",
    "ProviderError",
    "Quote",
    "QuoteCache",
    "QuoteFetcher",
    "QuoteNotFound",
    "QuoteService",
    "QuoteServiceError",
    "RefreshOutcome",
    "RefreshScheduler",
    "RefreshState",
    "RefreshTimeout",
    "Snapshot",
    "SourceUnavailable",
    "UniverseSource",
    "create_quote_fetcher",
    "create_quotes_router",
    "summarize",
]
