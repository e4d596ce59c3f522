"""Source adapter contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional

from listings.models import AdapterHealth, SearchFilters, StandardListing

if TYPE_CHECKING:
    from listings.registry import AdapterHealthTracker


class SourceAdapter(ABC):
    """One upstream listing source behind a fixed contract.

    ``search`` returns an empty list when the source has nothing for the
    query and raises ``AdapterError`` only on a genuine failure (timeout,
    auth failure, malformed upstream response). Filter fields the source
    cannot honour are ignored; the aggregator re-applies constraints.

    Adapters whose upstream cannot tell "no results" from "failed" set
    ``reports_failures = False`` so operators know an empty answer from
    them is not evidence of an empty market.
    """

    name: str = "unknown"
    reports_failures: bool = True

    _health: Optional["AdapterHealthTracker"] = None

    def is_available(self) -> bool:
        """Local precondition check (credentials, config). Must not do I/O."""
        return True

    @abstractmethod
    async def search(self, filters: SearchFilters) -> List[StandardListing]:
        ...

    def attach_health(self, tracker: "AdapterHealthTracker") -> None:
        self._health = tracker

    def get_status(self) -> AdapterHealth:
        if self._health is None:
            return AdapterHealth()
        return self._health.snapshot()

    async def aclose(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
