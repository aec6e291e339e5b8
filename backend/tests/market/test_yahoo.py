"""Tests for YahooQuoteFetcher (mocked)."""

from unittest.mock import MagicMock, patch

import pytest

from idxquotes.market.errors import ProviderError, QuoteNotFound
from idxquotes.market.yahoo_client import YahooQuoteFetcher


def _info(symbol: str, price: float, **extra) -> dict:
    """Create a Yahoo quote payload."""
    return {"symbol": symbol, "shortName": symbol.split(".")[0], "regularMarketPrice": price, **extra}


def _response(results: list) -> dict:
    """Wrap payloads the way the v7 quote endpoint does."""
    return {"quoteResponse": {"result": results, "error": None}}


@pytest.mark.asyncio
class TestYahooQuoteFetcher:
    """Unit tests for YahooQuoteFetcher with mocked yfinance."""

    async def test_fetch_builds_quotes(self):
        """Test that a batch lookup maps payloads to quotes in provider order."""
        fetcher = YahooQuoteFetcher()
        infos = [_info("BBRI.JK", 4210), _info("BBCA.JK", 9875, regularMarketChange=125)]

        with patch.object(fetcher, "_fetch_infos", return_value=infos) as mock_fetch:
            quotes = await fetcher.fetch(["BBCA.JK", "BBRI.JK"])

        mock_fetch.assert_called_once_with(["BBCA.JK", "BBRI.JK"])
        assert [q.symbol for q in quotes] == ["BBRI.JK", "BBCA.JK"]
        assert quotes[1].change == 125
        assert quotes[0].last_updated == quotes[1].last_updated

    async def test_fetch_empty_skips_provider(self):
        """Test that an empty batch does not call Yahoo."""
        fetcher = YahooQuoteFetcher()
        with patch.object(fetcher, "_fetch_infos") as mock_fetch:
            assert await fetcher.fetch([]) == []
            mock_fetch.assert_not_called()

    async def test_fetch_error_becomes_provider_error(self):
        """Test that any client failure is raised as ProviderError."""
        fetcher = YahooQuoteFetcher()
        with patch.object(fetcher, "_fetch_infos", side_effect=ConnectionError("network error")):
            with pytest.raises(ProviderError, match="network error"):
                await fetcher.fetch(["BBCA.JK"])

    async def test_fetch_one(self):
        """Test that a single lookup keeps the raw payload."""
        fetcher = YahooQuoteFetcher()
        info = _info("TLKM.JK", 3050, longName="PT Telkom Indonesia (Persero) Tbk")

        with patch.object(fetcher, "_fetch_info", return_value=info):
            quote = await fetcher.fetch_one("TLKM.JK")

        assert quote.price == 3050
        assert quote.raw["longName"] == "PT Telkom Indonesia (Persero) Tbk"

    async def test_fetch_one_unknown_symbol(self):
        """Test that a stub payload without quote fields is not found."""
        fetcher = YahooQuoteFetcher()
        with patch.object(fetcher, "_fetch_info", return_value={"trailingPegRatio": None}):
            with pytest.raises(QuoteNotFound):
                await fetcher.fetch_one("NOPE.JK")

    async def test_fetch_one_rejected_symbol(self):
        """Test that a provider error on lookup is reported as not found."""
        fetcher = YahooQuoteFetcher()
        with patch.object(fetcher, "_fetch_info", side_effect=RuntimeError("HTTP Error 404")):
            with pytest.raises(QuoteNotFound, match="404"):
                await fetcher.fetch_one("NOPE.JK")


class TestFetchInfos:
    """The synchronous batch quote request."""

    def test_one_request_per_batch(self):
        """Test that a full batch goes out as a single quote request."""
        symbols = [f"S{i:02d}.JK" for i in range(50)]
        data = MagicMock()
        data.get_raw_json.return_value = _response([_info(s, 100) for s in symbols])

        with patch("yfinance.data.YfData", return_value=data):
            infos = YahooQuoteFetcher()._fetch_infos(symbols)

        data.get_raw_json.assert_called_once()
        url = data.get_raw_json.call_args.args[0]
        params = data.get_raw_json.call_args.kwargs["params"]
        assert url.endswith("/v7/finance/quote")
        assert params["symbols"] == ",".join(symbols)
        assert len(infos) == 50

    def test_unknown_symbols_are_dropped(self):
        """Test that stub entries without a quote are left out of the batch."""
        data = MagicMock()
        data.get_raw_json.return_value = _response([_info("BBCA.JK", 9875), {"symbol": "EMPTY.JK"}])

        with patch("yfinance.data.YfData", return_value=data):
            infos = YahooQuoteFetcher()._fetch_infos(["BBCA.JK", "NOPE.JK", "EMPTY.JK"])

        assert [info["symbol"] for info in infos] == ["BBCA.JK"]

    def test_error_response_raises(self):
        """Test that an error in the quote response fails the batch."""
        data = MagicMock()
        data.get_raw_json.return_value = {"quoteResponse": {"result": None, "error": "Invalid Crumb"}}

        with patch("yfinance.data.YfData", return_value=data):
            with pytest.raises(ProviderError, match="Invalid Crumb"):
                YahooQuoteFetcher()._fetch_infos(["BBCA.JK"])

    @pytest.mark.asyncio
    async def test_http_failure_fails_batch(self):
        """Test that a failed request surfaces from fetch as ProviderError."""
        data = MagicMock()
        data.get_raw_json.side_effect = RuntimeError("429 Too Many Requests")

        with patch("yfinance.data.YfData", return_value=data):
            with pytest.raises(ProviderError, match="429"):
                await YahooQuoteFetcher().fetch(["BBCA.JK"])
