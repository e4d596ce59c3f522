"""Source adapters and the static registration list."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from listings.adapters.apify import ApifyActorAdapter
from listings.adapters.base import SourceAdapter
from listings.adapters.http_feed import JsonFeedAdapter
from listings.adapters.mock import SampleListingsAdapter
from listings.config import AggregatorConfig
from listings.constants import SourcePriority

if TYPE_CHECKING:
    from listings.registry import ServiceRegistry

logger = logging.getLogger(__name__)


def build_registry(config: Optional[AggregatorConfig] = None) -> "ServiceRegistry":
    """Register every known source in priority order.

    Sources without credentials are still registered (disabled) so they show
    up in status listings.
    """
    from listings.registry import ServiceRegistry

    config = config or AggregatorConfig.from_env()
    registry = ServiceRegistry()

    registry.register(
        "zoopla",
        JsonFeedAdapter("zoopla", config.zoopla_feed_url, api_key=config.feed_api_key,
                        site_url="https://www.zoopla.co.uk"),
        SourcePriority.PRIMARY,
    )
    registry.register(
        "openrent",
        JsonFeedAdapter("openrent", config.openrent_feed_url, api_key=config.feed_api_key,
                        site_url="https://www.openrent.co.uk"),
        SourcePriority.PRIMARY,
    )
    registry.register(
        "spareroom",
        ApifyActorAdapter("spareroom", "dtrungtin/spareroom-scraper", config.apify_api_token,
                          site_url="https://www.spareroom.co.uk",
                          max_items=config.max_results_per_source),
        SourcePriority.SECONDARY,
        # actor runs are slow; give them longer than feed calls
        timeout_seconds=max(config.adapter_timeout_seconds, 60.0),
    )
    registry.register(
        "rightmove",
        ApifyActorAdapter("rightmove", "XoodS5Tyd3a9NLxlv", config.apify_api_token,
                          site_url="https://www.rightmove.co.uk",
                          max_items=config.max_results_per_source),
        SourcePriority.SECONDARY,
        timeout_seconds=max(config.adapter_timeout_seconds, 60.0),
    )
    registry.register(
        "gumtree",
        JsonFeedAdapter("gumtree", config.gumtree_feed_url, api_key=config.feed_api_key,
                        site_url="https://www.gumtree.com"),
        SourcePriority.BACKUP,
    )
    registry.register(
        "onthemarket",
        JsonFeedAdapter("onthemarket", config.onthemarket_feed_url, api_key=config.feed_api_key,
                        site_url="https://www.onthemarket.com"),
        SourcePriority.BACKUP,
    )

    use_samples = config.use_sample_sources
    if use_samples == "true" or (use_samples == "auto" and not registry.list_enabled()):
        registry.register("sample", SampleListingsAdapter("sample"), SourcePriority.FALLBACK)
        logger.info("Sample listings source registered (LISTINGS_USE_SAMPLE_SOURCES=%s)", use_samples)

    return registry


__all__ = [
    "ApifyActorAdapter",
    "JsonFeedAdapter",
    "SampleListingsAdapter",
    "SourceAdapter",
    "build_registry",
]
