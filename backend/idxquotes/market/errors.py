"""Error taxonomy for the quote subsystem."""

from __future__ import annotations

from dataclasses import dataclass


class QuoteServiceError(Exception):
    """Base class for every error raised by the quote subsystem."""


class SourceUnavailable(QuoteServiceError):
    """The instrument universe list is missing or unreadable."""


class ProviderError(QuoteServiceError):
    """The upstream quote provider failed (network, auth, parse)."""


class QuoteNotFound(ProviderError):
    """The provider has no quote for the requested symbol."""

    def __init__(self, symbol: str, message: str | None = None) -> None:
        self.symbol = symbol
        super().__init__(message or f"No quote found for {symbol}")


class RefreshTimeout(QuoteServiceError):
    """A fetch did not complete within its time bound."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Quote refresh timed out after {timeout:g}s")


@dataclass(frozen=True, slots=True)
class BatchFailure:
    """Record of one batch that failed within a multi-batch fetch cycle.

    Never raised: the orchestrator logs it, keeps going, and reports it on
    the result so callers can surface partial-success metadata.
    """

    index: int
    symbols: tuple[str, ...]
    error: str
