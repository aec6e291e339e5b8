"""GBM-based quote simulator for running without an upstream provider."""

from __future__ import annotations

import logging
import math
import random
import time
from collections.abc import Sequence

import numpy as np

from .errors import QuoteNotFound
from .interface import QuoteFetcher
from .models import Quote

logger = logging.getLogger(__name__)

MARKET_CORR = 0.3  # Every pair of instruments shares one market factor


class GBMSimulator:
    """Geometric Brownian Motion simulator for correlated stock prices.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    Where:
        S(t)   = current price
        mu     = annualized drift (expected return)
        sigma  = annualized volatility
        dt     = time step as fraction of a trading year
        Z      = correlated standard normal random variable

    One step corresponds to one refresh cycle (a minute by default), so a
    trading session of steps produces realistic intraday moves.
    """

    # IDX session: 245 trading days * 5 hours/day * 3600 seconds/hour
    TRADING_SECONDS_PER_YEAR = 245 * 5 * 3600
    DEFAULT_DT = 60.0 / TRADING_SECONDS_PER_YEAR

    def __init__(
        self,
        symbols: Sequence[str] = (),
        dt: float = DEFAULT_DT,
        sigma: float = 0.3,
        mu: float = 0.05,
    ) -> None:
        self._dt = dt
        self._sigma = sigma
        self._mu = mu

        self._symbols: list[str] = []
        self._prices: dict[str, float] = {}
        self._opens: dict[str, float] = {}
        self._cholesky: np.ndarray | None = None

        for symbol in symbols:
            self._add_symbol_internal(symbol)
        self._rebuild_cholesky()

    # --- Public API ---

    def step(self) -> dict[str, float]:
        """Advance all symbols by one time step. Returns {symbol: new_price}."""
        n = len(self._symbols)
        if n == 0:
            return {}

        z = np.random.standard_normal(n)
        if self._cholesky is not None:
            z = self._cholesky @ z

        drift = (self._mu - 0.5 * self._sigma**2) * self._dt
        scale = self._sigma * math.sqrt(self._dt)
        result: dict[str, float] = {}
        for i, symbol in enumerate(self._symbols):
            self._prices[symbol] *= math.exp(drift + scale * z[i])
            # IDX prices trade in whole rupiah
            result[symbol] = float(max(1, round(self._prices[symbol])))
        return result

    def add_symbols(self, symbols: Sequence[str]) -> None:
        """Track new symbols. Rebuilds the correlation matrix once."""
        added = False
        for symbol in symbols:
            if symbol not in self._prices:
                self._add_symbol_internal(symbol)
                added = True
        if added:
            self._rebuild_cholesky()

    def get_price(self, symbol: str) -> float | None:
        return self._prices.get(symbol)

    def get_open(self, symbol: str) -> float | None:
        return self._opens.get(symbol)

    # --- Internals ---

    def _add_symbol_internal(self, symbol: str) -> None:
        self._symbols.append(symbol)
        price = float(round(random.uniform(50.0, 10_000.0)))
        self._prices[symbol] = price
        self._opens[symbol] = price

    def _rebuild_cholesky(self) -> None:
        n = len(self._symbols)
        if n <= 1:
            self._cholesky = None
            return
        corr = np.full((n, n), MARKET_CORR)
        np.fill_diagonal(corr, 1.0)
        self._cholesky = np.linalg.cholesky(corr)


class SimulatedQuoteFetcher(QuoteFetcher):
    """QuoteFetcher that answers every request from a GBMSimulator.

    The simulation advances one step per refresh cycle: a cycle is over as
    soon as a symbol that was already served is requested again. Previous
    close is the price a symbol was first seen at. Single lookups only know
    symbols a batch fetch has already tracked.
    """

    def __init__(self, simulator: GBMSimulator | None = None) -> None:
        self._sim = simulator or GBMSimulator()
        self._shares: dict[str, int] = {}
        self._served: set[str] = set()  # symbols returned since the last step

    async def fetch(self, symbols: Sequence[str]) -> list[Quote]:
        self._sim.add_symbols(symbols)
        if self._served.intersection(symbols):
            self._sim.step()
            self._served.clear()
        self._served.update(symbols)
        captured_at = time.time()
        return [self._to_quote(symbol, self._price(symbol), captured_at) for symbol in symbols]

    async def fetch_one(self, symbol: str) -> Quote:
        if self._sim.get_price(symbol) is None:
            raise QuoteNotFound(symbol)
        raw = {"symbol": symbol, "simulated": True}
        return self._to_quote(symbol, self._price(symbol), time.time(), raw=raw)

    def _price(self, symbol: str) -> float:
        # IDX prices trade in whole rupiah
        return float(max(1, round(self._sim.get_price(symbol))))

    def _to_quote(self, symbol: str, price: float, captured_at: float, raw: dict | None = None) -> Quote:
        previous_close = self._sim.get_open(symbol) or price
        change = price - previous_close
        shares = self._shares.setdefault(symbol, random.randint(100_000_000, 50_000_000_000))
        return Quote(
            symbol=symbol,
            name=f"{symbol.split('.')[0]} (simulated)",
            price=price,
            change=change,
            change_percent=round(change / previous_close * 100, 4) if previous_close else 0,
            volume=float(random.randint(0, 5_000_000)),
            market_cap=price * shares,
            currency="IDR",
            day_high=max(price, previous_close),
            day_low=min(price, previous_close),
            open=previous_close,
            previous_close=previous_close,
            last_updated=captured_at,
            raw=raw,
        )
