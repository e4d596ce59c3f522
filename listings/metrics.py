"""Per-search observability.

Each aggregated search gets its own ``SearchMetrics`` record; when the search
finishes the collector emits one structured log line and updates the
Prometheus series in ``observability.metrics``. Records are never shared, so
concurrent searches cannot overwrite each other.

Metrics tracked:
- source outcomes (status, result count, latency) per search
- result counts through the pipeline (raw, unique, returned)
- cache hits and early stops
- end-to-end latency
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from listings.models import AdapterRunSnapshot
from observability.metrics import (
    listing_search_duration_seconds,
    listing_search_results_count,
    listing_searches_early_stopped_total,
    listing_searches_total,
    source_duration_seconds,
    source_requests_total,
)

logger = logging.getLogger("listings.metrics")


@dataclass
class SourceMetrics:
    """Metrics for a single source call."""
    source: str
    status: str  # ok, error, timeout
    result_count: int
    latency_ms: float
    error_message: Optional[str] = None


@dataclass
class SearchMetrics:
    """Aggregated metrics for a single search operation."""
    fingerprint: str = ""
    location: str = ""
    cache_hit: bool = False
    raw_results: int = 0
    unique_results: int = 0
    returned_results: int = 0
    sources_called: int = 0
    sources_succeeded: int = 0
    sources_failed: int = 0
    sources_skipped: List[str] = field(default_factory=list)
    total_latency_ms: float = 0.0
    source_metrics: List[SourceMetrics] = field(default_factory=list)

    def record_source(self, snapshot: AdapterRunSnapshot) -> None:
        self.source_metrics.append(
            SourceMetrics(
                source=snapshot.source,
                status=snapshot.status,
                result_count=snapshot.result_count,
                latency_ms=float(snapshot.latency_ms or 0),
                error_message=snapshot.message,
            )
        )
        self.sources_called += 1
        if snapshot.status == "ok":
            self.sources_succeeded += 1
        else:
            self.sources_failed += 1

    def record_results(self, raw: int, unique: int, returned: int) -> None:
        self.raw_results = raw
        self.unique_results = unique
        self.returned_results = returned

    def record_early_stop(self, skipped: List[str]) -> None:
        self.sources_skipped = list(skipped)

    def success_rate(self) -> float:
        if self.sources_called == 0:
            return 0.0
        return self.sources_succeeded / self.sources_called

    def has_results(self) -> bool:
        return self.returned_results > 0


class SearchMetricsCollector:
    """Opens a ``SearchMetrics`` record per search and reports it on exit."""

    @contextmanager
    def track_search(self, fingerprint: str = "", location: str = "") -> Iterator[SearchMetrics]:
        metrics = SearchMetrics(fingerprint=fingerprint, location=location)
        started = time.monotonic()
        try:
            yield metrics
        finally:
            metrics.total_latency_ms = (time.monotonic() - started) * 1000
            self._export(metrics)
            self._log_metrics(metrics)

    def _export(self, m: SearchMetrics) -> None:
        listing_searches_total.labels(cache="hit" if m.cache_hit else "miss").inc()
        listing_search_duration_seconds.observe(m.total_latency_ms / 1000)
        listing_search_results_count.observe(m.returned_results)
        if m.sources_skipped:
            listing_searches_early_stopped_total.inc()
        for sm in m.source_metrics:
            source_requests_total.labels(source=sm.source, status=sm.status).inc()
            source_duration_seconds.labels(source=sm.source).observe(sm.latency_ms / 1000)

    def _log_metrics(self, m: SearchMetrics) -> None:
        """Log the collected metrics in structured format."""
        source_summary = [
            {
                "source": sm.source,
                "status": sm.status,
                "results": sm.result_count,
                "latency_ms": round(sm.latency_ms, 1),
            }
            for sm in m.source_metrics
        ]

        log_data = {
            "event": "search_complete",
            "fingerprint": m.fingerprint[:12],
            "location": m.location,
            "cache_hit": m.cache_hit,
            "results": {
                "raw": m.raw_results,
                "unique": m.unique_results,
                "returned": m.returned_results,
            },
            "sources": {
                "called": m.sources_called,
                "succeeded": m.sources_succeeded,
                "failed": m.sources_failed,
                "skipped": m.sources_skipped,
                "success_rate": round(m.success_rate(), 2),
                "details": source_summary,
            },
            "latency_ms": round(m.total_latency_ms, 1),
            "success": m.has_results(),
        }

        if m.sources_failed == m.sources_called and m.sources_called > 0:
            logger.error("Search failed - all sources failed", extra=log_data)
        elif m.sources_failed > 0:
            logger.warning("Search completed with source failures", extra=log_data)
        elif not m.has_results():
            logger.warning("Search completed but no results", extra=log_data)
        else:
            logger.info("Search completed successfully", extra=log_data)
