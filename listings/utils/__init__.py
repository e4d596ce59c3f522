"""Utility helpers for canonical URLs, raw-field parsing and redaction."""

from .url import canonicalize_url
from .parsing import (
    parse_bills_included,
    parse_date,
    parse_furnished,
    parse_int,
    parse_number,
    parse_price,
    parse_property_type,
    parse_string_list,
)
from .redaction import redact_secrets

__all__ = [
    "canonicalize_url",
    "parse_bills_included",
    "parse_date",
    "parse_furnished",
    "parse_int",
    "parse_number",
    "parse_price",
    "parse_property_type",
    "parse_string_list",
    "redact_secrets",
]
