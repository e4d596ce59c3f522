"""SpareRoom (Apify actor) result normalizer."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from listings.models import StandardListing

SPAREROOM_BASE_URL = "https://www.spareroom.co.uk"


def _fill(mapped: Dict[str, Any], key: str, fallback: Any) -> None:
    if mapped.get(key) is None:
        mapped[key] = fallback


def _to_generic(item: Dict[str, Any]) -> Dict[str, Any]:
    # The actor reports rooms, not bedrooms, and prices rooms weekly or monthly
    mapped = dict(item)
    _fill(mapped, "id", item.get("advertId") or item.get("adId"))
    _fill(mapped, "location", item.get("neighbourhood") or item.get("area"))
    _fill(mapped, "bedrooms", item.get("roomsAvailable") or 1)
    _fill(mapped, "property_type", "room")
    _fill(mapped, "price_period", item.get("pricePer") or item.get("priceFrequency"))
    if "billsIncluded" not in item and "bills" not in item:
        mapped["bills_included"] = item.get("billsInc")
    return mapped


def normalize_spareroom_items(items: Iterable[Dict[str, Any]]) -> List[StandardListing]:
    from listings.normalizers import normalize_generic_items

    mapped = [_to_generic(item) for item in items if isinstance(item, dict)]
    return normalize_generic_items(mapped, "spareroom", base_url=SPAREROOM_BASE_URL)
