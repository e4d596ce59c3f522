"""JSON listings feed adapter over httpx."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from exceptions import AdapterError
from listings.adapters.base import SourceAdapter
from listings.models import SearchFilters, StandardListing
from listings.normalizers import normalize_items_for_source

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})


def build_feed_params(filters: SearchFilters) -> Dict[str, Any]:
    """Translate the filters a typical feed understands into query params."""
    params: Dict[str, Any] = {"location": filters.location}
    if filters.min_price is not None:
        params["min_price"] = int(filters.min_price)
    if filters.max_price is not None:
        params["max_price"] = int(filters.max_price)
    if filters.bedrooms is not None:
        params["min_bedrooms"] = filters.bedrooms
    if filters.property_type:
        params["property_type"] = filters.property_type
    if filters.furnished is not None:
        params["furnished"] = "true" if filters.furnished else "false"
    if filters.radius is not None:
        params["radius"] = filters.radius
    return params


def extract_items(payload: Any) -> Optional[List[Dict[str, Any]]]:
    """Pull the item list out of a feed payload, or None if the shape is unknown."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("listings", "results", "properties", "data"):
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return None


class JsonFeedAdapter(SourceAdapter):
    """Queries a JSON listings endpoint and normalizes its items.

    The endpoint is expected to answer ``GET <feed_url>?location=...`` with
    either a bare list or ``{"listings": [...]}``.
    """

    def __init__(
        self,
        name: str,
        feed_url: Optional[str],
        *,
        api_key: Optional[str] = None,
        site_url: Optional[str] = None,
        request_timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.name = name
        self.feed_url = (feed_url or "").strip()
        self.api_key = api_key
        self.site_url = site_url
        self.request_timeout = request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def is_available(self) -> bool:
        return self.feed_url.startswith(("http://", "https://"))

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
            self._client = httpx.AsyncClient(
                timeout=self.request_timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def search(self, filters: SearchFilters) -> List[StandardListing]:
        client = self._get_client()
        try:
            response = await client.get(self.feed_url, params=build_feed_params(filters))
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            raise AdapterError(
                self.name,
                f"Feed returned HTTP {code}",
                retryable=code in RETRYABLE_STATUS_CODES,
                detail={"status_code": code},
            ) from e
        except httpx.TimeoutException as e:
            raise AdapterError(self.name, "Feed request timed out", retryable=True) from e
        except httpx.HTTPError as e:
            raise AdapterError(
                self.name, f"Feed request failed: {type(e).__name__}", retryable=True
            ) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise AdapterError(self.name, "Feed returned a non-JSON body") from e

        items = extract_items(payload)
        if items is None:
            raise AdapterError(self.name, "Feed payload has no listings array")
        if not items:
            return []

        listings = normalize_items_for_source(self.name, items, base_url=self.site_url)
        logger.debug("%s returned %d items (%d usable)", self.name, len(items), len(listings))
        return listings

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
