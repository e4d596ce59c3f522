"""Tolerant parsers for the loosely typed fields upstream sources return."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, List, Optional, Tuple

_NUMBER_PATTERN = re.compile(r"(\d[\d,]*\.?\d*)")
_WEEKLY_PATTERN = re.compile(r"(\bpw\b|p/w|week)", re.IGNORECASE)

_PROPERTY_TYPE_MAP = {
    "flat": "flat",
    "apartment": "flat",
    "maisonette": "flat",
    "penthouse": "flat",
    "house": "house",
    "terraced": "house",
    "semi-detached": "house",
    "detached": "house",
    "bungalow": "house",
    "cottage": "house",
    "studio": "studio",
    "studio flat": "studio",
    "shared": "shared",
    "flatshare": "shared",
    "flat share": "shared",
    "house share": "shared",
    "houseshare": "shared",
    "room": "room",
    "double room": "room",
    "single room": "room",
    "ensuite": "room",
}


def parse_number(value: Any) -> Optional[float]:
    """Extract the first numeric component ("£1,250 pcm" -> 1250.0)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _NUMBER_PATTERN.search(value)
        if not match:
            return None
        try:
            return float(match.group(1).replace(",", ""))
        except ValueError:
            return None
    return None


def parse_price(value: Any, period_hint: Any = None) -> Tuple[Optional[float], str]:
    """Parse a rent figure and its period.

    Returns ``(amount, period)`` where period is "weekly" or "monthly".
    Dict payloads such as ``{"amount": 150, "frequency": "weekly"}`` are
    accepted as well as plain strings and numbers.
    """
    raw_text = ""
    if isinstance(value, dict):
        period_hint = period_hint or value.get("frequency") or value.get("period")
        raw_text = str(value.get("display") or value.get("raw") or "")
        value = value.get("amount", value.get("value", raw_text))
    elif isinstance(value, str):
        raw_text = value

    amount = parse_number(value)
    hint = f"{period_hint or ''} {raw_text}"
    period = "weekly" if _WEEKLY_PATTERN.search(hint) else "monthly"
    return amount, period


def parse_int(value: Any, default: int = 0) -> int:
    number = parse_number(value)
    if number is None:
        return default
    return max(0, int(number))


def parse_furnished(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if not lowered or lowered.startswith("un") or "not furnished" in lowered:
            return False
        return "furnished" in lowered or lowered in ("yes", "true", "y")
    return False


def parse_bills_included(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if "not included" in lowered or "excluded" in lowered:
            return False
        return "included" in lowered or "inclusive" in lowered or lowered in ("yes", "true")
    return False


def parse_property_type(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    if lowered in _PROPERTY_TYPE_MAP:
        return _PROPERTY_TYPE_MAP[lowered]
    # longest label first so "flat share" beats "flat"
    for label in sorted(_PROPERTY_TYPE_MAP, key=len, reverse=True):
        if label in lowered:
            return _PROPERTY_TYPE_MAP[label]
    return None


def parse_date(value: Any) -> Optional[date]:
    """Parse ISO dates; free text such as "Available now" yields None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
        for fmt in ("%d/%m/%Y", "%d-%m-%Y", "%d %B %Y", "%d %b %Y"):
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
    return None


def parse_string_list(value: Any) -> List[str]:
    """Accept a list of strings, a list of {"url"|"name": ...} dicts, or a CSV string."""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        out: List[str] = []
        for item in value:
            if isinstance(item, str) and item.strip():
                out.append(item.strip())
            elif isinstance(item, dict):
                candidate = item.get("url") or item.get("src") or item.get("name")
                if isinstance(candidate, str) and candidate.strip():
                    out.append(candidate.strip())
        return list(dict.fromkeys(out))
    return []

