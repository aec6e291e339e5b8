"""Tests for GBMSimulator and SimulatedQuoteFetcher."""

from unittest.mock import patch

import pytest

from idxquotes.market.errors import QuoteNotFound
from idxquotes.market.simulator import GBMSimulator, SimulatedQuoteFetcher


class TestGBMSimulator:
    """Unit tests for the GBM price simulator."""

    def test_step_returns_all_symbols(self):
        """Test that step() returns prices for all symbols."""
        sim = GBMSimulator(symbols=["BBCA.JK", "TLKM.JK"])
        assert set(sim.step()) == {"BBCA.JK", "TLKM.JK"}

    def test_prices_are_positive_whole_rupiah(self):
        """GBM prices stay positive and are quoted in whole rupiah."""
        sim = GBMSimulator(symbols=["BBCA.JK"])
        for _ in range(5_000):
            price = sim.step()["BBCA.JK"]
            assert price >= 1
            assert price == int(price)

    def test_empty_step(self):
        """Test stepping with no symbols."""
        assert GBMSimulator().step() == {}

    def test_add_symbols_is_idempotent(self):
        """Test that adding a tracked symbol again is a no-op."""
        sim = GBMSimulator(symbols=["BBCA.JK"])
        price = sim.get_price("BBCA.JK")
        sim.add_symbols(["BBCA.JK"])
        assert sim.get_price("BBCA.JK") == price
        assert len(sim.step()) == 1

    def test_open_is_first_price(self):
        """Test that the open price is fixed at the first seen price."""
        sim = GBMSimulator(symbols=["BBCA.JK"])
        opening = sim.get_open("BBCA.JK")
        for _ in range(100):
            sim.step()
        assert sim.get_open("BBCA.JK") == opening

    def test_cholesky_rebuilds_on_add(self):
        """Test that the correlation matrix exists once there are two symbols."""
        sim = GBMSimulator(symbols=["BBCA.JK"])
        assert sim._cholesky is None
        sim.add_symbols(["TLKM.JK"])
        assert sim._cholesky is not None
        assert sim._cholesky.shape == (2, 2)

    def test_unknown_symbol(self):
        """Test that untracked symbols have no price."""
        assert GBMSimulator().get_price("NOPE.JK") is None

    def test_default_dt_is_reasonable(self):
        """Test that default dt is a small fraction of a year."""
        assert 0 < GBMSimulator.DEFAULT_DT < 0.001


@pytest.mark.asyncio
class TestSimulatedQuoteFetcher:
    """Tests for the simulator-backed fetcher."""

    async def test_fetch_returns_requested_order(self):
        """Test that quotes come back one per symbol, in request order."""
        fetcher = SimulatedQuoteFetcher()
        quotes = await fetcher.fetch(["TLKM.JK", "BBCA.JK"])
        assert [q.symbol for q in quotes] == ["TLKM.JK", "BBCA.JK"]

    async def test_change_is_relative_to_previous_close(self):
        """Test that change and percent are consistent with previous close."""
        fetcher = SimulatedQuoteFetcher()
        for _ in range(20):
            (quote,) = await fetcher.fetch(["BBCA.JK"])
        assert quote.change == quote.price - quote.previous_close
        assert quote.change_percent == pytest.approx(quote.change / quote.previous_close * 100, abs=1e-3)
        assert quote.market_cap > 0
        assert quote.currency == "IDR"

    async def test_fetch_one_has_raw(self):
        """Test that single lookups of tracked symbols carry a raw payload."""
        fetcher = SimulatedQuoteFetcher()
        await fetcher.fetch(["BBCA.JK"])
        quote = await fetcher.fetch_one("BBCA.JK")
        assert quote.symbol == "BBCA.JK"
        assert quote.raw == {"symbol": "BBCA.JK", "simulated": True}

    async def test_fetch_one_untracked_is_not_found(self):
        """Test that lookups of unknown symbols fail without tracking them."""
        sim = GBMSimulator()
        fetcher = SimulatedQuoteFetcher(sim)
        for i in range(300):
            with pytest.raises(QuoteNotFound):
                await fetcher.fetch_one(f"JUNK{i}.JK")
        assert sim.step() == {}
        assert sim._cholesky is None

    async def test_one_step_per_cycle_across_batches(self):
        """Test that a cycle split into batches moves each symbol once."""
        sim = GBMSimulator()
        fetcher = SimulatedQuoteFetcher(sim)

        with patch.object(sim, "step", wraps=sim.step) as mock_step:
            await fetcher.fetch(["BBCA.JK", "BBRI.JK"])
            await fetcher.fetch(["TLKM.JK"])
            assert mock_step.call_count == 0

            # Next cycle starts over at the first batch
            await fetcher.fetch(["BBCA.JK", "BBRI.JK"])
            await fetcher.fetch(["TLKM.JK"])
            assert mock_step.call_count == 1
