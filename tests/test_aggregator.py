"""Tests for the aggregated search pipeline."""

import asyncio

import pytest

from exceptions import UnknownSourceError, ValidationError
from listings.aggregator import ListingAggregator
from listings.cache import ListingCache
from listings.config import AggregatorConfig
from listings.constants import SourcePriority
from listings.models import Bills, SearchFilters
from listings.registry import ServiceRegistry


def build_aggregator(*entries, **config_overrides):
    """entries: (adapter, priority) or (adapter, priority, timeout_seconds)."""
    registry = ServiceRegistry()
    for entry in entries:
        adapter, priority, *rest = entry
        registry.register(adapter.name, adapter, priority, timeout_seconds=rest[0] if rest else None)
    config = AggregatorConfig(**config_overrides)
    return ListingAggregator(registry, config=config)


def listings_for(make_listing, source, count, start_price=500):
    return [
        make_listing(source=source, listing_id=str(i), price=start_price + i, location=f"{i} High Street")
        for i in range(count)
    ]


class TestSearchBasics:
    @pytest.mark.asyncio
    async def test_accepts_plain_dict(self, make_adapter, make_listing):
        adapter = make_adapter("a", [make_listing(source="a")])
        aggregator = build_aggregator((adapter, 1))
        response = await aggregator.search({"location": "Manchester"})
        assert response.summary.total_found == 1
        assert adapter.calls[0].location == "Manchester"

    @pytest.mark.asyncio
    async def test_invalid_filters_raise_validation_error(self):
        aggregator = build_aggregator()
        with pytest.raises(ValidationError) as exc_info:
            await aggregator.search({"location": ""})
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_no_sources_returns_empty_result(self):
        response = await build_aggregator().search({"location": "Leeds"})
        assert response.listings == []
        assert response.summary.errors == []

    @pytest.mark.asyncio
    async def test_results_are_scored_and_ranked(self, make_adapter, make_listing):
        plain = make_listing(source="a", listing_id="plain", price=1200, location="A street")
        good = make_listing(
            source="a", listing_id="good", price=550, location="B street",
            images=("1", "2", "3", "4"), furnished=True,
        )
        aggregator = build_aggregator((make_adapter("a", [plain, good]), 1))
        response = await aggregator.search({"location": "Leeds"})

        assert [item.id for item in response.listings] == ["a-good", "a-plain"]
        assert response.listings[0].quality_score == 70
        assert response.listings[0].suitability_score == 80

    @pytest.mark.asyncio
    async def test_ids_are_unique_across_sources(self, make_adapter, make_listing):
        a = make_adapter("a", [make_listing(source="a", listing_id="1", price=500)])
        b = make_adapter("b", [make_listing(source="b", listing_id="1", price=600)])
        response = await build_aggregator((a, 1), (b, 1)).search({"location": "x"})
        ids = [item.id for item in response.listings]
        assert sorted(ids) == ["a-1", "b-1"]


class TestPriceBounds:
    @pytest.mark.asyncio
    async def test_every_listing_respects_bounds(self, make_adapter, make_listing):
        items = [make_listing(source="a", listing_id=str(p), price=p, location=str(p)) for p in range(300, 1500, 50)]
        aggregator = build_aggregator((make_adapter("a", items), 1))
        response = await aggregator.search({"location": "x", "min_price": 500, "max_price": 800})

        assert response.listings
        assert all(500 <= item.price <= 800 for item in response.listings)
        assert len(response.listings) == 7


class TestManchesterScenario:
    @pytest.mark.asyncio
    async def test_filtered_and_ranked(self, make_adapter, make_listing):
        x = make_adapter("x", [
            make_listing(source="x", listing_id="600", price=600, location="Rusholme", bedrooms=1),
            make_listing(source="x", listing_id="900", price=900, location="Didsbury", bedrooms=1),
        ])
        y = make_adapter("y", [
            make_listing(
                source="y", listing_id="700", price=700, location="Withington", bedrooms=1,
                bills=Bills(included=True),
            ),
        ])
        aggregator = build_aggregator((x, 1), (y, 1))
        response = await aggregator.search({"location": "Manchester", "max_price": 800, "bedrooms": 1})

        assert [item.price for item in response.listings] == [700, 600]
        assert response.listings[0].suitability_score == 75
        assert response.listings[1].suitability_score == 70
        assert response.summary.source_breakdown == {"x": 2, "y": 1}
        assert response.summary.total_found == 2


class TestFailureHandling:
    @pytest.mark.asyncio
    async def test_partial_failure(self, make_adapter, make_listing, adapter_error):
        good = make_adapter("good", [make_listing(source="good")])
        bad = make_adapter("bad", error=adapter_error("bad", "HTTP 502"))
        aggregator = build_aggregator((good, 1), (bad, 1))

        response = await aggregator.search({"location": "x"})

        assert [item.source for item in response.listings] == ["good"]
        assert response.summary.errors == ["bad: HTTP 502"]
        assert aggregator.registry.health("bad").failed_requests == 1
        assert aggregator.registry.health("good").successful_requests == 1

    @pytest.mark.asyncio
    async def test_all_sources_fail(self, make_adapter, adapter_error):
        a = make_adapter("a", error=adapter_error("a", "down"))
        b = make_adapter("b", error=RuntimeError("boom"))
        response = await build_aggregator((a, 1), (b, 2)).search({"location": "x"})

        assert response.listings == []
        assert response.summary.total_found == 0
        assert response.summary.errors[0] == "a: down"
        assert response.summary.errors[1].startswith("b: Search failed:")

    @pytest.mark.asyncio
    async def test_malformed_adapter_output_does_not_abort_search(self, make_adapter, make_listing):
        bad = make_adapter("bad", [{"id": "x", "price": 500}])
        good = make_adapter("good", [
            make_listing(source="good"),
            make_listing(source="good", listing_id="2", price=640, location="Headingley"),
        ])
        aggregator = build_aggregator((bad, 1), (good, 1))

        response = await aggregator.search({"location": "Leeds"})

        assert response.summary.total_found == 2
        assert response.summary.errors == ["bad: Adapter returned malformed listings (1 of 1)"]
        assert aggregator.registry.health("bad").failed_requests == 1

    @pytest.mark.asyncio
    async def test_timeout_does_not_affect_siblings(self, make_adapter, make_listing):
        slow = make_adapter("slow", [make_listing(source="slow")], delay=1.0)
        fast = make_adapter("fast", [make_listing(source="fast", price=650)])
        aggregator = build_aggregator((slow, 1), (fast, 1))

        response = await aggregator.search({"location": "x"}, timeout_seconds=0.05)

        assert [item.source for item in response.listings] == ["fast"]
        assert response.summary.errors == ["slow: Search timed out after 0.05s"]
        statuses = {s.source: s.status for s in response.summary.adapter_statuses}
        assert statuses == {"slow": "timeout", "fast": "ok"}

    @pytest.mark.asyncio
    async def test_per_source_timeout(self, make_adapter, make_listing):
        slow = make_adapter("slow", [make_listing(source="slow")], delay=0.2)
        aggregator = build_aggregator((slow, 1, 0.01))
        response = await aggregator.search({"location": "x"})
        assert response.summary.errors == ["slow: Search timed out after 0.01s"]


class TestPriorityAndEarlyStop:
    @pytest.mark.asyncio
    async def test_early_stop_skips_lower_priority(self, make_adapter, make_listing):
        primary = make_adapter("primary", listings_for(make_listing, "primary", 50))
        backup = make_adapter("backup", listings_for(make_listing, "backup", 5, start_price=2000))
        aggregator = build_aggregator((primary, SourcePriority.PRIMARY), (backup, SourcePriority.BACKUP))

        response = await aggregator.search({"location": "x"})

        assert backup.calls == []
        assert response.summary.sources_queried == ["primary"]
        assert response.summary.sources_skipped == ["backup"]
        assert aggregator.registry.health("backup").total_requests == 0

    @pytest.mark.asyncio
    async def test_below_threshold_continues(self, make_adapter, make_listing):
        primary = make_adapter("primary", listings_for(make_listing, "primary", 49))
        backup = make_adapter("backup", listings_for(make_listing, "backup", 5, start_price=2000))
        aggregator = build_aggregator((primary, 1), (backup, 3))

        response = await aggregator.search({"location": "x"})

        assert len(backup.calls) == 1
        assert response.summary.sources_skipped == []
        assert response.summary.total_found == 54

    @pytest.mark.asyncio
    async def test_threshold_override_per_call(self, make_adapter, make_listing):
        primary = make_adapter("primary", listings_for(make_listing, "primary", 3))
        backup = make_adapter("backup", listings_for(make_listing, "backup", 3, start_price=2000))
        aggregator = build_aggregator((primary, 1), (backup, 2))

        response = await aggregator.search({"location": "x"}, early_stop_threshold=3)
        assert backup.calls == []
        assert response.summary.sources_skipped == ["backup"]

    @pytest.mark.asyncio
    async def test_duplicates_resolve_to_higher_priority(self, make_adapter, make_listing):
        shared = dict(price=650, location="10 Oxford Road", bedrooms=2)
        high = make_adapter("high", [make_listing(source="high", listing_id="h", **shared)])
        low = make_adapter("low", [make_listing(source="low", listing_id="l", images=("a",), **shared)])
        aggregator = build_aggregator((low, 2), (high, 1))

        response = await aggregator.search({"location": "x"})

        assert [item.id for item in response.listings] == ["high-h"]

    @pytest.mark.asyncio
    async def test_results_capped_per_source(self, make_adapter, make_listing):
        adapter = make_adapter("big", listings_for(make_listing, "big", 20))
        aggregator = build_aggregator((adapter, 1), max_results_per_source=5)
        response = await aggregator.search({"location": "x"})
        assert response.summary.total_found == 5
        assert response.summary.source_breakdown == {"big": 5}

    @pytest.mark.asyncio
    async def test_group_members_run_concurrently(self, make_adapter, make_listing):
        started = asyncio.Event()
        arrivals = []

        async def rendezvous():
            arrivals.append(1)
            if len(arrivals) == 2:
                started.set()
            # Each member waits for the other; sequential execution would time out
            await asyncio.wait_for(started.wait(), timeout=1.0)

        a = make_adapter("a", [make_listing(source="a", price=500)], before_return=rendezvous)
        b = make_adapter("b", [make_listing(source="b", price=600)], before_return=rendezvous)
        response = await build_aggregator((a, 1), (b, 1)).search({"location": "x"})

        assert response.summary.errors == []
        assert response.summary.total_found == 2


class TestSourceControl:
    @pytest.mark.asyncio
    async def test_disabled_source_is_never_invoked(self, make_adapter, make_listing):
        a = make_adapter("a", [make_listing(source="a")])
        b = make_adapter("b", [make_listing(source="b", price=900)])
        aggregator = build_aggregator((a, 1), (b, 1))

        aggregator.disable_source("b")
        response = await aggregator.search({"location": "x"})

        assert b.calls == []
        assert aggregator.get_available_sources() == ["a"]
        assert response.summary.sources_queried == ["a"]

    @pytest.mark.asyncio
    async def test_unknown_source(self):
        aggregator = build_aggregator()
        with pytest.raises(UnknownSourceError):
            aggregator.enable_source("nope")
        with pytest.raises(UnknownSourceError):
            aggregator.get_source_status("nope")

    @pytest.mark.asyncio
    async def test_close_releases_adapters(self, make_adapter):
        a = make_adapter("a")
        async with build_aggregator((a, 1)):
            pass
        assert a.closed is True


class TestCaching:
    @pytest.mark.asyncio
    async def test_repeat_search_is_a_cache_hit(self, make_adapter, make_listing):
        adapter = make_adapter("a", [make_listing(source="a"), make_listing(source="a", listing_id="2", price=640)])
        aggregator = build_aggregator((adapter, 1))

        first = await aggregator.search({"location": "Leeds"})
        second = await aggregator.search({"location": " leeds "})

        assert len(adapter.calls) == 1
        assert first.summary.cache_hit is False
        assert second.summary.cache_hit is True
        assert [i.id for i in second.listings] == [i.id for i in first.listings]
        assert second.summary.fingerprint == first.summary.fingerprint
        assert second.summary.source_breakdown == {"a": 2}

    @pytest.mark.asyncio
    async def test_clear_cache_forces_refetch(self, make_adapter, make_listing):
        adapter = make_adapter("a", [make_listing(source="a")])
        aggregator = build_aggregator((adapter, 1))
        await aggregator.search({"location": "Leeds"})
        aggregator.clear_cache()
        await aggregator.search({"location": "Leeds"})
        assert len(adapter.calls) == 2
        stats = aggregator.get_cache_stats()
        assert stats.misses == 2
        assert stats.size == 1

    @pytest.mark.asyncio
    async def test_expired_entry_refetches(self, make_adapter, make_listing):
        now = [0.0]
        adapter = make_adapter("a", [make_listing(source="a")])
        registry = ServiceRegistry()
        registry.register("a", adapter, 1)
        aggregator = ListingAggregator(registry, cache=ListingCache(ttl_seconds=300, clock=lambda: now[0]))

        await aggregator.search({"location": "Leeds"})
        now[0] = 301.0
        response = await aggregator.search({"location": "Leeds"})

        assert len(adapter.calls) == 2
        assert response.summary.cache_hit is False

    @pytest.mark.asyncio
    async def test_failed_search_results_are_cached(self, make_adapter, adapter_error):
        adapter = make_adapter("a", error=adapter_error("a", "down"))
        aggregator = build_aggregator((adapter, 1))
        await aggregator.search({"location": "x"})
        second = await aggregator.search({"location": "x"})
        assert second.summary.cache_hit is True
        assert len(adapter.calls) == 1

    def test_injected_cache_is_used(self):
        cache = ListingCache(ttl_seconds=5, max_entries=3)
        aggregator = ListingAggregator(ServiceRegistry(), cache=cache)
        assert aggregator.cache is cache
        assert aggregator.get_cache_stats().max_size == 3

    @pytest.mark.asyncio
    async def test_cached_failures_keep_their_errors(self, make_adapter, adapter_error):
        adapter = make_adapter("a", error=adapter_error("a", "down"))
        aggregator = build_aggregator((adapter, 1))
        await aggregator.search({"location": "x"})
        second = await aggregator.search({"location": "x"})
        assert second.summary.cache_hit is True
        assert second.summary.errors == ["a: down"]

    @pytest.mark.asyncio
    async def test_run_options_are_part_of_cache_key(self, make_adapter, make_listing):
        primary = make_adapter("primary", listings_for(make_listing, "primary", 3))
        backup = make_adapter("backup", listings_for(make_listing, "backup", 3, start_price=2000))
        aggregator = build_aggregator((primary, 1), (backup, 2))

        first = await aggregator.search({"location": "x"}, early_stop_threshold=2)
        second = await aggregator.search({"location": "x"}, early_stop_threshold=100)
        third = await aggregator.search({"location": "x"}, early_stop_threshold=100)

        assert first.summary.sources_skipped == ["backup"]
        assert second.summary.cache_hit is False
        assert len(backup.calls) == 1
        assert second.summary.total_found == 6
        assert third.summary.cache_hit is True


class TestConcurrentSearches:
    @pytest.mark.asyncio
    async def test_overlapping_searches_keep_exact_health_counts(self, make_adapter, make_listing, adapter_error):
        ok = make_adapter("ok", [make_listing(source="ok")], delay=0.01)
        bad = make_adapter("bad", error=adapter_error("bad", "nope"), delay=0.01)
        aggregator = build_aggregator((ok, 1), (bad, 1))

        # distinct locations so no search is served from cache
        responses = await asyncio.gather(
            *(aggregator.search(SearchFilters(location=f"Town {i}")) for i in range(20))
        )

        assert all(r.summary.errors == ["bad: nope"] for r in responses)
        ok_health = aggregator.registry.health("ok")
        bad_health = aggregator.registry.health("bad")
        assert ok_health.total_requests == 20
        assert ok_health.successful_requests == 20
        assert bad_health.total_requests == 20
        assert bad_health.failed_requests == 20
        assert bad_health.error_rate == 1.0
        assert aggregator.get_source_status("bad").healthy is False
