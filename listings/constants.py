"""Shared constants for the listings module."""

from enum import IntEnum


class SourcePriority(IntEnum):
    """Priority tiers. Lower values are fetched first."""

    PRIMARY = 1
    SECONDARY = 2
    BACKUP = 3
    FALLBACK = 4


DEFAULT_ADAPTER_TIMEOUT_SECONDS = 30.0
DEFAULT_EARLY_STOP_THRESHOLD = 50
DEFAULT_MAX_RESULTS_PER_SOURCE = 50
DEFAULT_CACHE_TTL_SECONDS = 300.0
DEFAULT_CACHE_MAX_ENTRIES = 100

SCORE_MIN = 0
SCORE_MAX = 100

# Student-friendly listings must reach this suitability score
STUDENT_SUITABILITY_THRESHOLD = 70

# Matched case-insensitively against features, amenities and description
SUITABILITY_KEYWORDS = (
    "university",
    "student",
    "transport",
    "bus",
    "train",
)

# A source is reported unhealthy once half of its calls fail
UNHEALTHY_ERROR_RATE = 0.5
