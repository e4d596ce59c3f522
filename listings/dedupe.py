"""Duplicate removal across sources."""

from __future__ import annotations

from typing import Iterable, List, Set, Tuple

from listings.models import StandardListing

DedupeKey = Tuple[str, float, int]


def dedupe_key(listing: StandardListing) -> DedupeKey:
    """Same place, same rent, same bedroom count: treated as one property.

    Distinct properties that share all three collapse into one; that is an
    accepted loss.
    """
    return (listing.location.strip().lower(), float(listing.price), listing.bedrooms)


def dedupe_listings(listings: Iterable[StandardListing]) -> List[StandardListing]:
    """Keep the first occurrence of each key, preserving discovery order.

    Callers pass listings in priority order, so the higher-priority source
    wins. A repeated id is dropped as well so ids stay unique.
    """
    seen_keys: Set[DedupeKey] = set()
    seen_ids: Set[str] = set()
    unique: List[StandardListing] = []
    for listing in listings:
        key = dedupe_key(listing)
        if key in seen_keys or listing.id in seen_ids:
            continue
        seen_keys.add(key)
        seen_ids.add(listing.id)
        unique.append(listing)
    return unique
