"""Canonical links for listings."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlencode

import httpx

TRACKING_PARAMS = frozenset(
    {
        "gclid",
        "fbclid",
        "msclkid",
        "mc_cid",
        "mc_eid",
        "ref",
        "search_identifier",
        "featured",
    }
)
TRACKING_PREFIXES = ("utm_", "ga_", "icid")

_REPEATED_SLASHES = re.compile(r"/{2,}")


def _is_tracking(key: str) -> bool:
    lowered = key.lower()
    return lowered in TRACKING_PARAMS or lowered.startswith(TRACKING_PREFIXES)


def canonicalize_url(raw_url: Optional[str], *, base_url: Optional[str] = None) -> str:
    """Stable https link for a listing, or "" when none can be built.

    Site-relative links ("/rooms/9") are resolved against ``base_url``.
    Tracking parameters and fragments are dropped and the query is sorted,
    so the same advert linked from two campaigns compares equal.
    """
    raw = (raw_url or "").strip()
    if not raw:
        return ""
    if raw.startswith("//"):
        raw = f"https:{raw}"
    elif raw.startswith("/"):
        if not base_url:
            return ""
        raw = str(httpx.URL(base_url).join(raw))
    elif "://" not in raw:
        raw = f"https://{raw}"

    try:
        url = httpx.URL(raw)
    except httpx.InvalidURL:
        return ""
    if url.scheme not in ("http", "https") or not url.host:
        return ""

    path = _REPEATED_SLASHES.sub("/", url.path).rstrip("/") or "/"
    params = sorted(
        ((key, value) for key, value in url.params.multi_items() if not _is_tracking(key)),
        key=lambda pair: (pair[0].lower(), pair[1]),
    )
    query = urlencode(params)

    netloc = url.netloc.decode("ascii")
    return f"https://{netloc}{path}" + (f"?{query}" if query else "")
