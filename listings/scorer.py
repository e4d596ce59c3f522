"""Heuristic listing scoring.

Both scores start at 50 and are clamped to [0, 100]:

* quality reflects how complete the advert is (photos, description,
  verified contact, listed features);
* suitability reflects fit for a student tenant (rent level, bills,
  furnishing, transport and campus mentions).
"""

from __future__ import annotations

from typing import Iterable, List

from listings.constants import SUITABILITY_KEYWORDS
from listings.models import StandardListing, clamp_score

BASE_SCORE = 50


def score_quality(listing: StandardListing) -> int:
    score = BASE_SCORE

    image_count = len(listing.images)
    if image_count >= 1:
        score += 10
    if image_count > 3:
        score += 10

    if len(listing.description) > 100:
        score += 10

    if listing.contact is not None and listing.contact.verified:
        score += 15

    score += min(15, 2 * (len(listing.features) + len(listing.amenities)))

    return clamp_score(score)


def _mentions_keyword(listing: StandardListing) -> bool:
    texts = [*listing.features, *listing.amenities, listing.description]
    haystack = " ".join(texts).lower()
    return any(keyword in haystack for keyword in SUITABILITY_KEYWORDS)


def score_suitability(listing: StandardListing) -> int:
    score = BASE_SCORE

    if listing.price <= 600:
        score += 20
    elif listing.price <= 800:
        score += 10
    elif listing.price <= 1000:
        score += 5

    if listing.bills.included:
        score += 15
    if listing.furnished:
        score += 10
    if _mentions_keyword(listing):
        score += 15

    return clamp_score(score)


def score_listing(listing: StandardListing) -> StandardListing:
    """Return a copy of ``listing`` with both scores filled in."""
    return listing.model_copy(
        update={
            "quality_score": score_quality(listing),
            "suitability_score": score_suitability(listing),
        }
    )


def score_listings(listings: Iterable[StandardListing]) -> List[StandardListing]:
    return [score_listing(listing) for listing in listings]


def rank_listings(listings: Iterable[StandardListing]) -> List[StandardListing]:
    """Sort by combined score, highest first. Ties keep their input order."""
    return sorted(listings, key=lambda listing: -listing.combined_score)
