"""Market summary reduction over a quote snapshot."""

from __future__ import annotations

from dataclasses import dataclass

from .models import Quote, Snapshot, isoformat

TOP_N = 5


@dataclass(frozen=True, slots=True)
class MarketSummary:
    """Aggregate view of one snapshot. Derived on every read, never cached."""

    total: int
    gainers: int
    losers: int
    unchanged: int
    total_market_cap: float
    top_gainers: tuple[Quote, ...]
    top_losers: tuple[Quote, ...]
    most_active: tuple[Quote, ...]
    as_of: float | None

    def to_dict(self) -> dict:
        return {
            "totalStocks": self.total,
            "totalMarketCap": self.total_market_cap,
            "gainers": self.gainers,
            "losers": self.losers,
            "unchanged": self.unchanged,
            "topGainers": [q.to_dict() for q in self.top_gainers],
            "topLosers": [q.to_dict() for q in self.top_losers],
            "mostActive": [q.to_dict() for q in self.most_active],
            "lastUpdate": isoformat(self.as_of),
        }


def summarize(snapshot: Snapshot, top_n: int = TOP_N) -> MarketSummary:
    """Reduce a snapshot to counts, total market cap and top-N rankings.

    Gainers/losers are classified by absolute change and ranked by percentage
    change. ``sorted`` is stable (also with ``reverse=True``), so ties keep
    snapshot order.
    """
    quotes = snapshot.quotes
    rising = [q for q in quotes if q.change > 0]
    falling = [q for q in quotes if q.change < 0]

    return MarketSummary(
        total=len(quotes),
        gainers=len(rising),
        losers=len(falling),
        unchanged=sum(1 for q in quotes if q.change == 0),
        total_market_cap=sum(q.market_cap for q in quotes),
        top_gainers=tuple(sorted(rising, key=lambda q: q.change_percent, reverse=True)[:top_n]),
        top_losers=tuple(sorted(falling, key=lambda q: q.change_percent)[:top_n]),
        most_active=tuple(sorted(quotes, key=lambda q: q.volume, reverse=True)[:top_n]),
        as_of=snapshot.as_of,
    )
