"""
Listing search and operational endpoints.

Thin wrappers over ``ListingAggregator``; all behaviour lives in the
``listings`` package.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from dependencies import get_aggregator
from listings.aggregator import ListingAggregator
from listings.models import CacheStats, SearchFilters, SearchResponse, SourceStatus

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["listings"])


@router.post("/search", response_model=SearchResponse)
async def search_listings(
    filters: SearchFilters,
    timeout_seconds: Optional[float] = Query(None, gt=0, le=120),
    early_stop_threshold: Optional[int] = Query(None, gt=0, le=500),
    aggregator: ListingAggregator = Depends(get_aggregator),
):
    """Search every enabled source and return ranked, de-duplicated listings."""
    return await aggregator.search(
        filters,
        timeout_seconds=timeout_seconds,
        early_stop_threshold=early_stop_threshold,
    )


@router.get("/sources", response_model=List[SourceStatus])
async def list_sources(aggregator: ListingAggregator = Depends(get_aggregator)):
    return aggregator.list_source_statuses()


@router.get("/sources/{name}", response_model=SourceStatus)
async def get_source(name: str, aggregator: ListingAggregator = Depends(get_aggregator)):
    return aggregator.get_source_status(name)


@router.post("/sources/{name}/enable", response_model=SourceStatus)
async def enable_source(name: str, aggregator: ListingAggregator = Depends(get_aggregator)):
    aggregator.enable_source(name)
    return aggregator.get_source_status(name)


@router.post("/sources/{name}/disable", response_model=SourceStatus)
async def disable_source(name: str, aggregator: ListingAggregator = Depends(get_aggregator)):
    aggregator.disable_source(name)
    return aggregator.get_source_status(name)


@router.get("/cache/stats", response_model=CacheStats)
async def cache_stats(aggregator: ListingAggregator = Depends(get_aggregator)):
    return aggregator.get_cache_stats()


@router.delete("/cache", status_code=204)
async def clear_cache(aggregator: ListingAggregator = Depends(get_aggregator)):
    aggregator.clear_cache()
