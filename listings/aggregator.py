"""Aggregated rental listing search.

``ListingAggregator.search`` fans a query out to every enabled source,
one priority group at a time, then merges, de-duplicates, scores, ranks and
filters the results. Upstream failures never abort a search: each one is
reported as an ``"<source>: <message>"`` string in the summary.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from typing import Any, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from exceptions import ValidationError
from listings.cache import ListingCache
from listings.config import AggregatorConfig
from listings.dedupe import dedupe_listings
from listings.executors import run_adapter_with_status
from listings.filters import apply_filters
from listings.fingerprint import fingerprint_filters
from listings.metrics import SearchMetricsCollector
from listings.models import (
    AdapterRunSnapshot,
    CacheStats,
    ResultSummary,
    SearchFilters,
    SearchResponse,
    SourceStatus,
    StandardListing,
)
from listings.registry import RegisteredSource, ServiceRegistry
from listings.scorer import rank_listings, score_listings

logger = logging.getLogger(__name__)

FiltersInput = Union[SearchFilters, Mapping[str, Any]]


def coerce_filters(filters: FiltersInput) -> SearchFilters:
    if isinstance(filters, SearchFilters):
        return filters
    try:
        return SearchFilters.model_validate(dict(filters))
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid search filters",
            detail={"errors": e.errors(include_url=False, include_context=False)},
        ) from e


def _format_error(snapshot: AdapterRunSnapshot) -> str:
    return f"{snapshot.source}: {snapshot.message or snapshot.status}"


class ListingAggregator:
    """Coordinates sources, cache and ranking for listing searches.

    Construct one per process (or per test) and close it on shutdown::

        async with ListingAggregator(build_registry(config), config=config) as aggregator:
            response = await aggregator.search({"location": "Manchester"})
    """

    def __init__(
        self,
        registry: ServiceRegistry,
        *,
        cache: Optional[ListingCache] = None,
        config: Optional[AggregatorConfig] = None,
        metrics: Optional[SearchMetricsCollector] = None,
    ):
        self.registry = registry
        self.config = config if config is not None else AggregatorConfig()
        self.cache = cache if cache is not None else ListingCache(
            ttl_seconds=self.config.cache_ttl_seconds,
            max_entries=self.config.cache_max_entries,
        )
        self.metrics = metrics if metrics is not None else SearchMetricsCollector()
        self._closed = False

    async def search(
        self,
        filters: FiltersInput,
        *,
        timeout_seconds: Optional[float] = None,
        early_stop_threshold: Optional[int] = None,
    ) -> SearchResponse:
        filters = coerce_filters(filters)
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValidationError("timeout_seconds must be positive")
        if early_stop_threshold is not None and early_stop_threshold <= 0:
            raise ValidationError("early_stop_threshold must be positive")

        default_timeout = timeout_seconds or self.config.adapter_timeout_seconds
        threshold = early_stop_threshold or self.config.early_stop_threshold
        started = time.monotonic()
        # early stop and a per-call timeout change which sources answer
        fingerprint = fingerprint_filters(
            filters, early_stop_threshold=threshold, timeout_seconds=timeout_seconds
        )

        with self.metrics.track_search(fingerprint=fingerprint, location=filters.location) as m:
            entry = self.cache.get_entry(fingerprint)
            if entry is not None:
                cached = list(entry.listings)
                m.cache_hit = True
                m.record_results(len(cached), len(cached), len(cached))
                return SearchResponse(
                    listings=cached,
                    summary=ResultSummary(
                        total_found=len(cached),
                        source_breakdown=dict(Counter(listing.source for listing in cached)),
                        search_time_ms=(time.monotonic() - started) * 1000,
                        errors=list(entry.errors),
                        cache_hit=True,
                        fingerprint=fingerprint,
                    ),
                )

            raw, statuses, queried, skipped = await self._fan_out(
                filters,
                default_timeout=default_timeout,
                # per-call override beats per-source timeouts
                force_timeout=timeout_seconds is not None,
                threshold=threshold,
            )
            for snapshot in statuses:
                m.record_source(snapshot)
            if skipped:
                m.record_early_stop(skipped)

            unique = dedupe_listings(raw)
            ranked = rank_listings(score_listings(unique))
            listings = apply_filters(ranked, filters)
            m.record_results(len(raw), len(unique), len(listings))

            errors = [_format_error(s) for s in statuses if s.status != "ok"]
            self.cache.set(fingerprint, listings, errors=errors)
            breakdown = {s.source: s.result_count for s in statuses}

            return SearchResponse(
                listings=listings,
                summary=ResultSummary(
                    total_found=len(listings),
                    source_breakdown=breakdown,
                    search_time_ms=(time.monotonic() - started) * 1000,
                    errors=errors,
                    cache_hit=False,
                    fingerprint=fingerprint,
                    sources_queried=queried,
                    sources_skipped=skipped,
                    adapter_statuses=statuses,
                ),
            )

    async def _fan_out(
        self,
        filters: SearchFilters,
        *,
        default_timeout: float,
        force_timeout: bool,
        threshold: int,
    ) -> Tuple[List[StandardListing], List[AdapterRunSnapshot], List[str], List[str]]:
        raw: List[StandardListing] = []
        statuses: List[AdapterRunSnapshot] = []
        queried: List[str] = []
        skipped: List[str] = []
        cap = self.config.max_results_per_source

        groups = self.registry.priority_groups()
        if not groups:
            logger.warning("No enabled listing sources; returning no results")

        for index, (priority, members) in enumerate(groups):
            if len(raw) >= threshold:
                skipped = [entry.name for _, rest in groups[index:] for entry in rest]
                logger.info(
                    "Early stop: %d listings before priority %d, skipping %s",
                    len(raw), priority, ", ".join(skipped),
                )
                break

            outcomes = await asyncio.gather(
                *(
                    self._run_source(entry, filters, default_timeout, force_timeout)
                    for entry in members
                )
            )
            for entry, (results, snapshot) in zip(members, outcomes):
                queried.append(entry.name)
                if len(results) > cap:
                    logger.debug("%s returned %d listings, keeping %d", entry.name, len(results), cap)
                    results = results[:cap]
                    snapshot = snapshot.model_copy(update={"result_count": cap})
                statuses.append(snapshot)
                raw.extend(results)

        return raw, statuses, queried, skipped

    async def _run_source(
        self,
        entry: RegisteredSource,
        filters: SearchFilters,
        default_timeout: float,
        force_timeout: bool,
    ) -> Tuple[List[StandardListing], AdapterRunSnapshot]:
        timeout = default_timeout
        if entry.timeout_seconds is not None and not force_timeout:
            timeout = entry.timeout_seconds
        results, snapshot = await run_adapter_with_status(
            entry.name, entry.adapter, filters, timeout_seconds=timeout
        )
        self.registry.record_outcome(entry.name, snapshot.status == "ok", float(snapshot.latency_ms or 0))
        return results, snapshot

    def enable_source(self, name: str) -> None:
        self.registry.enable(name)

    def disable_source(self, name: str) -> None:
        self.registry.disable(name)

    def get_available_sources(self) -> List[str]:
        return [entry.name for entry in self.registry.list_enabled()]

    def get_source_status(self, name: str) -> SourceStatus:
        return self.registry.status(name)

    def list_source_statuses(self) -> List[SourceStatus]:
        return self.registry.statuses()

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Listing cache cleared")

    def get_cache_stats(self) -> CacheStats:
        return self.cache.stats()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for adapter in self.registry.adapters():
            try:
                await adapter.aclose()
            except Exception:
                logger.warning("Failed to close %r", adapter, exc_info=True)

    async def __aenter__(self) -> "ListingAggregator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
