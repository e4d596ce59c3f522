"""
Prometheus metrics for the listings aggregator.

Provides RED metrics for the HTTP surface plus search, source and cache metrics.
"""

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    REGISTRY,
)

# Use the default registry
metrics_registry = REGISTRY

# HTTP Metrics (RED - Rate, Errors, Duration)
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=metrics_registry,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=metrics_registry,
)

# Search Metrics
listing_searches_total = Counter(
    "listing_searches_total",
    "Total aggregated listing searches",
    ["cache"],  # hit, miss
    registry=metrics_registry,
)

listing_search_duration_seconds = Histogram(
    "listing_search_duration_seconds",
    "End-to-end aggregated search duration in seconds",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
    registry=metrics_registry,
)

listing_search_results_count = Histogram(
    "listing_search_results_count",
    "Number of listings returned per search",
    buckets=[0, 1, 5, 10, 20, 50, 100, 200],
    registry=metrics_registry,
)

listing_searches_early_stopped_total = Counter(
    "listing_searches_early_stopped_total",
    "Searches that skipped lower-priority sources after reaching the threshold",
    registry=metrics_registry,
)

# Source Metrics
source_requests_total = Counter(
    "listing_source_requests_total",
    "Total calls made to listing sources",
    ["source", "status"],  # status: ok, error, timeout
    registry=metrics_registry,
)

source_duration_seconds = Histogram(
    "listing_source_duration_seconds",
    "Listing source call duration in seconds",
    ["source"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
    registry=metrics_registry,
)

# Cache Metrics
cache_hits_total = Counter(
    "listing_cache_hits_total",
    "Total listing cache hits",
    registry=metrics_registry,
)

cache_misses_total = Counter(
    "listing_cache_misses_total",
    "Total listing cache misses",
    registry=metrics_registry,
)

cache_evictions_total = Counter(
    "listing_cache_evictions_total",
    "Listing cache entries removed before being read again",
    ["reason"],  # capacity, expired, corrupt
    registry=metrics_registry,
)

cache_entries = Gauge(
    "listing_cache_entries",
    "Current number of cached searches",
    registry=metrics_registry,
)
