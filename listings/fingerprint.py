"""Stable cache keys for search filters."""

from __future__ import annotations

import hashlib
import json
from datetime import date
from typing import Any, Dict

from listings.models import SearchFilters


def _normalize_value(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def canonical_filters(filters: SearchFilters) -> Dict[str, Any]:
    """Filters reduced to the fields that affect results, in canonical form.

    Unset fields are dropped and location is lower-cased, so
    ``{"location": "Leeds"}`` and ``{"location": " leeds ", "bedrooms": None}``
    share a key.
    """
    data = filters.model_dump(exclude_none=True)
    data["location"] = data["location"].lower()
    return {key: _normalize_value(value) for key, value in data.items()}


def fingerprint_filters(filters: SearchFilters, **options: Any) -> str:
    """sha256 of the canonical filters plus any run options that change results.

    Options left as None are ignored, so ``fingerprint_filters(f)`` and
    ``fingerprint_filters(f, timeout_seconds=None)`` agree.
    """
    data: Dict[str, Any] = canonical_filters(filters)
    run_options = {key: _normalize_value(value) for key, value in options.items() if value is not None}
    if run_options:
        data["_options"] = run_options
    payload = json.dumps(data, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
