"""HTTP endpoints for stock quotes."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from .errors import ProviderError, RefreshTimeout
from .models import isoformat
from .service import QuoteService

logger = logging.getLogger(__name__)


def _failure(status_code: int, message: str, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, "error": error})


def create_quotes_router(service: QuoteService) -> APIRouter:
    """Create the quotes router bound to a QuoteService.

    This factory pattern lets us inject the service without globals.
    """
    router = APIRouter(tags=["quotes"])

    @router.get("/")
    async def index() -> dict:
        return {
            "message": "IDX Stock Market API",
            "endpoints": {
                "allStocks": "/api/stocks",
                "singleStock": "/api/stocks/:symbol",
                "marketSummary": "/api/summary",
                "health": "/api/health",
            },
            "documentation": "Use the endpoints above to get IDX stock data",
        }

    @router.get("/api/stocks")
    async def all_stocks():
        """All cached quotes, with partial-success metadata for the cycle."""
        try:
            snapshot = await service.get_all()
        except RefreshTimeout as e:
            return _failure(504, "Stock data is temporarily unavailable", str(e))
        except ProviderError as e:
            return _failure(503, "Stock data is temporarily unavailable", str(e))
        return {
            "success": True,
            "count": len(snapshot),
            "data": [q.to_dict() for q in snapshot.quotes],
            "lastUpdate": isoformat(snapshot.as_of),
            "partial": snapshot.partial,
            "failedBatches": snapshot.failed_batches,
            "timestamp": isoformat(time.time()),
        }

    @router.get("/api/stocks/{symbol}")
    async def single_stock(symbol: str):
        """Live lookup of one stock; bypasses the cache."""
        try:
            quote = await service.get_one(symbol)
        except ProviderError as e:
            logger.info("Lookup for %s failed: %s", symbol, e)
            return _failure(404, "Stock not found", str(e))
        return {"success": True, "data": quote.to_dict(include_raw=True)}

    @router.get("/api/summary")
    async def market_summary():
        try:
            summary = await service.get_summary()
        except RefreshTimeout as e:
            return _failure(504, "Stock data is temporarily unavailable", str(e))
        except ProviderError as e:
            return _failure(503, "Stock data is temporarily unavailable", str(e))
        data = summary.to_dict()
        data["timestamp"] = isoformat(time.time())
        return {"success": True, "data": data}

    @router.get("/api/health")
    async def health() -> dict:
        return service.get_health()

    return router
