"""Data models for market quotes."""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

UNKNOWN_NAME = "N/A"
DEFAULT_CURRENCY = "IDR"


def _number(raw: Mapping[str, Any], key: str) -> float:
    # Providers omit fields or send null for illiquid instruments
    value = raw.get(key)
    if not value:
        return 0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def to_provider_symbol(code: str, suffix: str) -> str:
    """Upper-case an exchange code and add the provider suffix unless it has one."""
    code = code.strip().upper()
    if not code or "." in code or not suffix:
        return code
    return f"{code}{suffix}"


def isoformat(timestamp: float | None) -> str | None:
    """Render Unix seconds as an ISO-8601 UTC string (None passes through)."""
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class Quote:
    """Immutable snapshot of one instrument's quote at capture time."""

    symbol: str
    name: str = UNKNOWN_NAME
    price: float = 0
    change: float = 0
    change_percent: float = 0
    volume: float = 0
    market_cap: float = 0
    currency: str = DEFAULT_CURRENCY
    day_high: float = 0
    day_low: float = 0
    open: float = 0
    previous_close: float = 0
    last_updated: float = field(default_factory=time.time)  # Unix seconds
    # Full provider payload, kept only for single-instrument lookups
    raw: Mapping[str, Any] | None = field(default=None, compare=False, repr=False)

    @classmethod
    def from_raw(
        cls,
        raw: Mapping[str, Any],
        captured_at: float | None = None,
        keep_raw: bool = False,
    ) -> Quote:
        """Build a Quote from a Yahoo-style quote mapping.

        Missing or falsy numeric fields become 0, a missing name becomes
        ``"N/A"`` and a missing currency becomes ``"IDR"``.
        """
        return cls(
            symbol=str(raw.get("symbol") or ""),
            name=raw.get("shortName") or raw.get("longName") or UNKNOWN_NAME,
            price=_number(raw, "regularMarketPrice"),
            change=_number(raw, "regularMarketChange"),
            change_percent=_number(raw, "regularMarketChangePercent"),
            volume=_number(raw, "regularMarketVolume"),
            market_cap=_number(raw, "marketCap"),
            currency=raw.get("currency") or DEFAULT_CURRENCY,
            day_high=_number(raw, "regularMarketDayHigh"),
            day_low=_number(raw, "regularMarketDayLow"),
            open=_number(raw, "regularMarketOpen"),
            previous_close=_number(raw, "regularMarketPreviousClose"),
            last_updated=captured_at if captured_at is not None else time.time(),
            raw=dict(raw) if keep_raw else None,
        )

    def to_dict(self, include_raw: bool = False) -> dict:
        """Serialize for JSON responses."""
        data = {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "change": self.change,
            "changePercent": self.change_percent,
            "volume": self.volume,
            "marketCap": self.market_cap,
            "currency": self.currency,
            "lastUpdated": isoformat(self.last_updated),
            "dayHigh": self.day_high,
            "dayLow": self.day_low,
            "open": self.open,
            "previousClose": self.previous_close,
        }
        if include_raw:
            data["fullData"] = dict(self.raw) if self.raw is not None else None
        return data


@dataclass(frozen=True, slots=True)
class Snapshot:
    """One consistent fetch cycle: ordered quotes plus their as-of time.

    ``batches`` and ``failed_batches`` describe how the cycle went, so a
    snapshot assembled from a partially failed cycle is visibly partial.
    """

    quotes: tuple[Quote, ...] = ()
    as_of: float | None = None  # Unix seconds; None before the first success
    batches: int = 0
    failed_batches: int = 0

    @classmethod
    def empty(cls) -> Snapshot:
        return cls()

    @property
    def partial(self) -> bool:
        return self.failed_batches > 0

    @property
    def is_empty(self) -> bool:
        return not self.quotes

    def age(self, now: float | None = None) -> float | None:
        """Seconds since ``as_of``, or None if the snapshot was never filled."""
        if self.as_of is None:
            return None
        return (now if now is not None else time.time()) - self.as_of

    def __len__(self) -> int:
        return len(self.quotes)
