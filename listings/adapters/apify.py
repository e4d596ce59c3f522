"""Apify actor adapter for sources that are only reachable through scrapers."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from exceptions import AdapterError
from listings.adapters.base import SourceAdapter
from listings.adapters.http_feed import RETRYABLE_STATUS_CODES
from listings.models import SearchFilters, StandardListing
from listings.normalizers import normalize_items_for_source

logger = logging.getLogger(__name__)

APIFY_BASE_URL = "https://api.apify.com/v2"


class ApifyActorAdapter(SourceAdapter):
    """Runs an Apify actor synchronously and normalizes its dataset items.

    Scraper actors return an empty dataset both when nothing matched and when
    the target site blocked the run, so these adapters do not report
    failures reliably.
    """

    reports_failures = False

    def __init__(
        self,
        name: str,
        actor_id: str,
        api_token: Optional[str],
        *,
        site_url: Optional[str] = None,
        max_items: int = 50,
        request_timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.name = name
        self.actor_id = actor_id
        self.api_token = (api_token or "").strip()
        self.site_url = site_url
        self.max_items = max_items
        self.request_timeout = request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def is_available(self) -> bool:
        return bool(self.api_token and self.actor_id)

    @property
    def run_url(self) -> str:
        actor = self.actor_id.replace("/", "~")
        return f"{APIFY_BASE_URL}/acts/{actor}/run-sync-get-dataset-items"

    def build_input(self, filters: SearchFilters) -> Dict[str, Any]:
        run_input: Dict[str, Any] = {
            "location": filters.location,
            "maxItems": self.max_items,
        }
        if filters.min_price is not None:
            run_input["minPrice"] = int(filters.min_price)
        if filters.max_price is not None:
            run_input["maxPrice"] = int(filters.max_price)
        if filters.bedrooms is not None:
            run_input["minBedrooms"] = filters.bedrooms
        if filters.radius is not None:
            run_input["radius"] = filters.radius
        return run_input

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.request_timeout, transport=self._transport
            )
        return self._client

    async def search(self, filters: SearchFilters) -> List[StandardListing]:
        client = self._get_client()
        try:
            response = await client.post(
                self.run_url,
                params={"token": self.api_token},
                json=self.build_input(filters),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            message = "Apify token rejected" if code in (401, 403) else f"Apify run returned HTTP {code}"
            raise AdapterError(
                self.name,
                message,
                retryable=code in RETRYABLE_STATUS_CODES,
                detail={"status_code": code, "actor": self.actor_id},
            ) from e
        except httpx.TimeoutException as e:
            raise AdapterError(self.name, "Apify run timed out", retryable=True) from e
        except httpx.HTTPError as e:
            raise AdapterError(
                self.name, f"Apify request failed: {type(e).__name__}", retryable=True
            ) from e

        try:
            items = response.json()
        except ValueError as e:
            raise AdapterError(self.name, "Apify returned a non-JSON body") from e
        if not isinstance(items, list):
            raise AdapterError(self.name, "Apify dataset payload is not a list")
        if not items:
            return []

        return normalize_items_for_source(self.name, items, base_url=self.site_url)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
