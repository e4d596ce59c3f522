"""Raw payload normalizers for listing sources.

Every adapter hands its raw items to ``normalize_items_for_source`` so the
aggregator only ever sees ``StandardListing`` instances.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from listings.models import Bills, Contact, Coordinates, StandardListing
from listings.utils.parsing import (
    parse_bills_included,
    parse_date,
    parse_furnished,
    parse_int,
    parse_number,
    parse_price,
    parse_property_type,
    parse_string_list,
)
from listings.utils.url import canonicalize_url

logger = logging.getLogger(__name__)


def _first(item: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = item.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def _coordinates(item: Dict[str, Any]) -> Optional[Coordinates]:
    raw = item.get("coordinates") or item.get("location_coordinates") or {}
    if not isinstance(raw, dict):
        raw = {}
    lat = parse_number(raw.get("lat", raw.get("latitude", item.get("latitude"))))
    lng = parse_number(raw.get("lng", raw.get("longitude", item.get("longitude"))))
    if lat is None or lng is None:
        return None
    try:
        return Coordinates(lat=lat, lng=lng)
    except PydanticValidationError:
        return None


def _bills(item: Dict[str, Any]) -> Bills:
    raw = item.get("bills")
    if isinstance(raw, dict):
        return Bills(
            included=parse_bills_included(raw.get("included")),
            details=tuple(parse_string_list(raw.get("details"))),
            estimated_monthly=parse_number(raw.get("estimated_monthly", raw.get("estimatedMonthly"))),
        )
    flag = _first(item, "bills_included", "billsIncluded", "bills")
    return Bills(included=parse_bills_included(flag))


def _text(value: Any) -> Optional[str]:
    return str(value).strip() if value is not None else None


def _contact(item: Dict[str, Any]) -> Optional[Contact]:
    raw = _first(item, "contact", "landlord", "agent", "advertiser")
    if isinstance(raw, str):
        return Contact(name=raw)
    if not isinstance(raw, dict):
        return None
    name = _first(raw, "name", "displayName", "company")
    if not name:
        return None
    rating = parse_number(raw.get("rating"))
    if rating is not None and not 0 <= rating <= 5:
        rating = None
    return Contact(
        name=str(name),
        phone=_text(_first(raw, "phone", "telephone")),
        email=_text(_first(raw, "email")),
        verified=bool(raw.get("verified", False)),
        rating=rating,
    )


def normalize_listing(
    item: Dict[str, Any],
    source: str,
    *,
    base_url: Optional[str] = None,
) -> Optional[StandardListing]:
    """Map one loosely-typed upstream item onto ``StandardListing``.

    Returns None when the item lacks an id, a title or a usable price.
    """
    if not isinstance(item, dict):
        return None

    raw_id = _first(item, "id", "listing_id", "listingId", "propertyId")
    title = _first(item, "title", "name", "headline")
    price, period = parse_price(
        _first(item, "price", "rent", "monthly_rent"),
        _first(item, "price_period", "pricePeriod", "frequency"),
    )
    if raw_id is None or not title or price is None:
        return None

    location = _first(item, "location", "address", "displayAddress", "area") or ""
    if isinstance(location, dict):
        location = _first(location, "display", "address", "town") or ""

    try:
        return StandardListing(
            id=str(raw_id),
            source=source,
            source_url=canonicalize_url(
                str(_first(item, "url", "source_url", "link") or ""), base_url=base_url
            ),
            title=str(title).strip(),
            description=str(_first(item, "description", "summary") or "").strip(),
            price=price,
            price_period=period,
            location=str(location).strip(),
            postcode=_text(_first(item, "postcode", "postCode")),
            coordinates=_coordinates(item),
            property_type=parse_property_type(_first(item, "property_type", "propertyType", "type")),
            bedrooms=parse_int(_first(item, "bedrooms", "beds")),
            bathrooms=parse_int(_first(item, "bathrooms", "baths")),
            furnished=parse_furnished(_first(item, "furnished", "furnishing")),
            features=tuple(parse_string_list(item.get("features"))),
            amenities=tuple(parse_string_list(item.get("amenities"))),
            available=bool(item.get("available", True)),
            available_from=parse_date(_first(item, "available_from", "availableFrom")),
            bills=_bills(item),
            images=tuple(parse_string_list(_first(item, "images", "photos"))),
            contact=_contact(item),
        )
    except PydanticValidationError as exc:
        logger.debug("Dropping invalid %s item %s: %s", source, raw_id, exc.errors()[:1])
        return None


def normalize_generic_items(
    items: Iterable[Dict[str, Any]],
    source: str,
    *,
    base_url: Optional[str] = None,
) -> List[StandardListing]:
    listings: List[StandardListing] = []
    skipped = 0
    for item in items:
        listing = normalize_listing(item, source, base_url=base_url)
        if listing is None:
            skipped += 1
            continue
        listings.append(listing)
    if skipped:
        logger.debug("Skipped %d unusable %s items", skipped, source)
    return listings


def normalize_items_for_source(
    source: str,
    items: Iterable[Dict[str, Any]],
    *,
    base_url: Optional[str] = None,
) -> List[StandardListing]:
    normalizer = NORMALIZER_REGISTRY.get(source)
    if not normalizer:
        return normalize_generic_items(items, source, base_url=base_url)
    return normalizer(items)


from listings.normalizers.spareroom import normalize_spareroom_items

NORMALIZER_REGISTRY: Dict[str, Callable[[Iterable[Dict[str, Any]]], List[StandardListing]]] = {
    "spareroom": normalize_spareroom_items,
}

__all__ = [
    "normalize_listing",
    "normalize_generic_items",
    "normalize_items_for_source",
    "normalize_spareroom_items",
    "NORMALIZER_REGISTRY",
]
