"""Rental listings aggregation: sources, ranking and caching."""

from listings.adapters import SourceAdapter, build_registry
from listings.aggregator import ListingAggregator
from listings.cache import ListingCache
from listings.config import AggregatorConfig
from listings.constants import SourcePriority
from listings.models import (
    AdapterHealth,
    ResultSummary,
    SearchFilters,
    SearchResponse,
    SourceStatus,
    StandardListing,
)
from listings.registry import ServiceRegistry

__all__ = [
    "AdapterHealth",
    "AggregatorConfig",
    "ListingAggregator",
    "ListingCache",
    "ResultSummary",
    "SearchFilters",
    "SearchResponse",
    "ServiceRegistry",
    "SourceAdapter",
    "SourcePriority",
    "SourceStatus",
    "StandardListing",
    "build_registry",
]
