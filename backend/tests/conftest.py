"""Pytest configuration and fixtures."""

import pytest


@pytest.fixture
def event_loop_policy():
    """Use the default event loop policy for all async tests."""
    import asyncio

    return asyncio.DefaultEventLoopPolicy()


@pytest.fixture
def universe_symbols():
    """120 symbols: three batches at the default batch size of 50."""
    return [f"S{i:03d}.JK" for i in range(120)]


@pytest.fixture
def stockcode_csv(tmp_path):
    """A stock code list in the exchange's CSV layout."""
    path = tmp_path / "stockcode.csv"
    path.write_text("No,Code,Name\n1,BBCA,Bank Central Asia Tbk.\n2, bbri ,Bank Rakyat Indonesia\n3,,\n4,TLKM,Telkom\n")
    return path
