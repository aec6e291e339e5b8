"""FastAPI application wiring and the ``idxquotes`` entry point."""

from __future__ import annotations

import argparse
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import QuoteServiceConfig, load_config
from .market import (
    BatchFetcher,
    QuoteCache,
    QuoteFetcher,
    QuoteService,
    RefreshScheduler,
    create_quote_fetcher,
    create_quotes_router,
)
from .universe import UniverseLoader

logger = logging.getLogger(__name__)


def create_app(
    config: QuoteServiceConfig | None = None,
    fetcher: QuoteFetcher | None = None,
    universe_loader: UniverseLoader | None = None,
) -> FastAPI:
    """Build the app. The refresher starts and stops with the app lifespan."""
    config = config or load_config()
    fetcher = fetcher or create_quote_fetcher(config.provider)
    universe_loader = universe_loader or UniverseLoader(config.universe_path, suffix=config.symbol_suffix)

    scheduler = RefreshScheduler(
        cache=QuoteCache(),
        batch_fetcher=BatchFetcher(fetcher, batch_size=config.batch_size, batch_delay=config.batch_delay),
        universe_loader=universe_loader,
        mode=config.mode,
        refresh_interval=config.refresh_interval,
        stale_after=config.stale_after,
        read_timeout=config.read_timeout,
        on_demand_timeout=config.on_demand_timeout,
    )
    service = QuoteService(
        scheduler,
        fetcher,
        symbol_suffix=config.symbol_suffix,
        lookup_timeout=config.read_timeout,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Execution mode: %s", config.mode.value)
        await scheduler.start()
        yield
        await scheduler.stop()

    app = FastAPI(title="IDX Stock Market API", version="0.1.0", lifespan=lifespan)
    app.state.config = config
    app.state.service = service
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.include_router(create_quotes_router(service))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"success": False, "message": "Endpoint not found"})
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Internal server error",
                "error": str(exc) if config.debug else "Internal server error",
            },
        )

    return app


def run(argv: list[str] | None = None) -> None:
    """Serve the API with uvicorn. Host and port default to HOST/PORT."""
    config = load_config()
    parser = argparse.ArgumentParser(prog="idxquotes", description="IDX stock quote API")
    parser.add_argument("--host", default=config.host)
    parser.add_argument("--port", type=int, default=config.port)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    import uvicorn

    logger.info("Serving IDX stock API on http://%s:%d/api/stocks", args.host, args.port)
    uvicorn.run(create_app(config), host=args.host, port=args.port)


if __name__ == "__main__":
    run()
