import asyncio
import os
import sys
from typing import Callable, List, Optional

import pytest

# Add parent directory to path to allow importing the app modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from exceptions import AdapterError  # noqa: E402
from listings.adapters.base import SourceAdapter  # noqa: E402
from listings.models import SearchFilters, StandardListing  # noqa: E402


class StubAdapter(SourceAdapter):
    """Scriptable adapter: returns canned listings, raises, or sleeps."""

    def __init__(
        self,
        name: str,
        listings: Optional[List[StandardListing]] = None,
        *,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        available: bool = True,
        before_return: Optional[Callable] = None,
    ):
        self.name = name
        self.listings = listings or []
        self.error = error
        self.delay = delay
        self.available = available
        self.before_return = before_return
        self.calls: List[SearchFilters] = []
        self.closed = False

    def is_available(self) -> bool:
        return self.available

    async def search(self, filters: SearchFilters) -> List[StandardListing]:
        self.calls.append(filters)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.before_return is not None:
            await self.before_return()
        if self.error is not None:
            raise self.error
        return list(self.listings)

    async def aclose(self) -> None:
        self.closed = True


def build_listing(source: str = "stub", listing_id: str = "1", **overrides) -> StandardListing:
    data = {
        "id": listing_id,
        "source": source,
        "title": f"Listing {listing_id}",
        "price": 700.0,
        "location": "Fallowfield, Manchester",
        "bedrooms": 1,
    }
    data.update(overrides)
    return StandardListing(**data)


@pytest.fixture
def make_listing():
    return build_listing


@pytest.fixture
def make_adapter():
    return StubAdapter


@pytest.fixture
def adapter_error():
    def _make(source: str, message: str = "upstream exploded", retryable: bool = False):
        return AdapterError(source, message, retryable=retryable)
    return _make
