"""Explicit constraint filtering applied after scoring.

Adapters may ignore filter fields their upstream cannot honour, so every
hard constraint is re-checked here on the merged result set.
"""

import logging
from typing import Iterable, List

from listings.constants import STUDENT_SUITABILITY_THRESHOLD
from listings.models import SearchFilters, StandardListing

logger = logging.getLogger(__name__)


def should_include_listing(listing: StandardListing, filters: SearchFilters) -> bool:
    """True when ``listing`` satisfies every constraint set on ``filters``.

    Unset filter fields constrain nothing. Prices are compared as advertised,
    whatever their period.
    """
    if filters.min_price is not None and listing.price < filters.min_price:
        return False
    if filters.max_price is not None and listing.price > filters.max_price:
        return False

    if filters.bedrooms is not None and listing.bedrooms < filters.bedrooms:
        return False
    if filters.bathrooms is not None and listing.bathrooms < filters.bathrooms:
        return False

    if filters.furnished is not None and listing.furnished != filters.furnished:
        return False
    if filters.bills_included is not None and listing.bills.included != filters.bills_included:
        return False

    if filters.property_type is not None and listing.property_type != filters.property_type:
        return False

    if filters.student_friendly and listing.suitability_score < STUDENT_SUITABILITY_THRESHOLD:
        return False

    return True


def apply_filters(listings: Iterable[StandardListing], filters: SearchFilters) -> List[StandardListing]:
    listings = list(listings)
    kept = [listing for listing in listings if should_include_listing(listing, filters)]
    dropped = len(listings) - len(kept)
    if dropped:
        logger.debug("Constraint filter dropped %d of %d listings", dropped, len(listings))
    return kept
