"""Aggregator configuration loaded from environment variables."""

from __future__ import annotations

import logging
import os
from typing import Literal, Optional

from pydantic import BaseModel, Field

from listings.constants import (
    DEFAULT_ADAPTER_TIMEOUT_SECONDS,
    DEFAULT_CACHE_MAX_ENTRIES,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_EARLY_STOP_THRESHOLD,
    DEFAULT_MAX_RESULTS_PER_SOURCE,
)

logger = logging.getLogger(__name__)

SampleSourceMode = Literal["auto", "true", "false"]


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default
    if value <= minimum:
        logger.warning("%s must be greater than %s, using default %s", name, minimum, default)
        return default
    return value


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default
    if value <= minimum:
        logger.warning("%s must be greater than %s, using default %s", name, minimum, default)
        return default
    return value


def _env_str(name: str) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or None


def _sample_mode() -> SampleSourceMode:
    raw = (os.getenv("LISTINGS_USE_SAMPLE_SOURCES", "auto") or "").strip().lower()
    if raw in ("1", "true", "yes", "always"):
        return "true"
    if raw in ("0", "false", "no", "never"):
        return "false"
    return "auto"


class AggregatorConfig(BaseModel):
    adapter_timeout_seconds: float = Field(DEFAULT_ADAPTER_TIMEOUT_SECONDS, gt=0)
    early_stop_threshold: int = Field(DEFAULT_EARLY_STOP_THRESHOLD, gt=0)
    max_results_per_source: int = Field(DEFAULT_MAX_RESULTS_PER_SOURCE, gt=0)
    cache_ttl_seconds: float = Field(DEFAULT_CACHE_TTL_SECONDS, gt=0)
    cache_max_entries: int = Field(DEFAULT_CACHE_MAX_ENTRIES, gt=0)
    use_sample_sources: SampleSourceMode = "auto"

    # Source credentials
    openrent_feed_url: Optional[str] = None
    zoopla_feed_url: Optional[str] = None
    gumtree_feed_url: Optional[str] = None
    onthemarket_feed_url: Optional[str] = None
    feed_api_key: Optional[str] = Field(None, repr=False)
    apify_api_token: Optional[str] = Field(None, repr=False)

    @classmethod
    def from_env(cls) -> "AggregatorConfig":
        return cls(
            adapter_timeout_seconds=_env_float(
                "LISTINGS_ADAPTER_TIMEOUT_SECONDS", DEFAULT_ADAPTER_TIMEOUT_SECONDS
            ),
            early_stop_threshold=_env_int(
                "LISTINGS_EARLY_STOP_THRESHOLD", DEFAULT_EARLY_STOP_THRESHOLD
            ),
            max_results_per_source=_env_int(
                "LISTINGS_MAX_RESULTS_PER_SOURCE", DEFAULT_MAX_RESULTS_PER_SOURCE
            ),
            cache_ttl_seconds=_env_float("LISTINGS_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS),
            cache_max_entries=_env_int("LISTINGS_CACHE_MAX_ENTRIES", DEFAULT_CACHE_MAX_ENTRIES),
            use_sample_sources=_sample_mode(),
            openrent_feed_url=_env_str("OPENRENT_FEED_URL"),
            zoopla_feed_url=_env_str("ZOOPLA_FEED_URL"),
            gumtree_feed_url=_env_str("GUMTREE_FEED_URL"),
            onthemarket_feed_url=_env_str("ONTHEMARKET_FEED_URL"),
            feed_api_key=_env_str("LISTINGS_FEED_API_KEY"),
            apify_api_token=_env_str("APIFY_API_TOKEN"),
        )
