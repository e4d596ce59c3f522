"""
Rental listings aggregator API.

Run with ``uvicorn main:app``. Sources are configured from the environment
(see ``listings.config``); a local ``.env`` is loaded if present.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from dependencies import get_aggregator
from exceptions import RentalSearchError
from listings.adapters import build_registry
from listings.aggregator import ListingAggregator
from listings.config import AggregatorConfig
from observability.health import run_health_checks
from observability.logging import setup_logging
from observability.metrics import metrics_registry
from observability.middleware import ObservabilityMiddleware
from routes import search_router

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env", override=False)

logger = logging.getLogger(__name__)


def build_aggregator(config: Optional[AggregatorConfig] = None) -> ListingAggregator:
    config = config or AggregatorConfig.from_env()
    return ListingAggregator(build_registry(config), config=config)


def create_app(aggregator: Optional[ListingAggregator] = None) -> FastAPI:
    """Build the API. Pass ``aggregator`` to skip environment-driven setup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = aggregator is None
        app.state.aggregator = aggregator if aggregator is not None else build_aggregator()
        logger.info(
            "Listing aggregator ready",
            extra={"sources": app.state.aggregator.get_available_sources()},
        )
        try:
            yield
        finally:
            if owned:
                await app.state.aggregator.close()

    app = FastAPI(
        title="Rental Listings Aggregator",
        description="Fan-out search across rental listing sources",
        version="0.1.0",
        lifespan=lifespan,
    )
    # Available before lifespan runs (tests that skip startup)
    app.state.aggregator = aggregator

    app.add_middleware(ObservabilityMiddleware)
    app.include_router(search_router)

    @app.exception_handler(RentalSearchError)
    async def rental_search_error_handler(request: Request, exc: RentalSearchError):
        if exc.status_code >= 500:
            logger.error("Request failed: %s", exc.message, extra={"path": request.url.path})
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.get("/health")
    async def health_check(aggregator: ListingAggregator = Depends(get_aggregator)):
        """Per-source health. Returns 503 when no enabled source is usable."""
        report = run_health_checks(aggregator.list_source_statuses())
        status_code = 503 if report["status"] == "unhealthy" else 200
        return JSONResponse(status_code=status_code, content=report)

    @app.get("/metrics")
    async def metrics():
        return Response(content=generate_latest(metrics_registry), media_type=CONTENT_TYPE_LATEST)

    return app


setup_logging()
app = create_app()
