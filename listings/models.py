"""Typed models for the listings aggregation pipeline."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from listings.constants import SCORE_MAX, SCORE_MIN

PropertyType = Literal["flat", "house", "studio", "shared", "room"]
PricePeriod = Literal["weekly", "monthly"]
AdapterRunStatus = Literal["ok", "error", "timeout"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clamp_score(value: Any) -> int:
    """Clamp a score into [0, 100]. Non-numeric input scores 0."""
    try:
        numeric = int(round(float(value)))
    except (TypeError, ValueError):
        return SCORE_MIN
    return max(SCORE_MIN, min(SCORE_MAX, numeric))


class SearchFilters(BaseModel):
    """A single search request. Only ``location`` is required."""

    location: str = Field(..., description="Town, area or postcode to search")
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    bedrooms: Optional[int] = Field(None, ge=0, description="Minimum bedrooms")
    bathrooms: Optional[int] = Field(None, ge=0, description="Minimum bathrooms")
    property_type: Optional[PropertyType] = None
    furnished: Optional[bool] = None
    bills_included: Optional[bool] = None
    available_from: Optional[date] = None
    radius: Optional[float] = Field(None, ge=0, description="Search radius in miles")
    student_friendly: Optional[bool] = None

    @field_validator("location", mode="before")
    @classmethod
    def _clean_location(cls, value: Any) -> str:
        cleaned = " ".join(str(value or "").split())
        if not cleaned:
            raise ValueError("location is required")
        return cleaned

    @model_validator(mode="after")
    def _order_price_bounds(self) -> "SearchFilters":
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            self.min_price, self.max_price = self.max_price, self.min_price
        return self


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Bills(BaseModel):
    model_config = ConfigDict(frozen=True)

    included: bool = False
    details: Tuple[str, ...] = ()
    estimated_monthly: Optional[float] = Field(None, ge=0)


class Contact(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    verified: bool = False
    rating: Optional[float] = Field(None, ge=0, le=5)


class StandardListing(BaseModel):
    """Canonical listing every adapter must produce.

    Instances are frozen: once a listing is scored and cached it is shared
    between callers, so updates go through ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    source: str
    source_url: str = ""
    title: str
    description: str = ""
    price: float = Field(..., ge=0)
    price_period: PricePeriod = "monthly"
    location: str
    postcode: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    property_type: Optional[PropertyType] = None
    bedrooms: int = Field(0, ge=0)
    bathrooms: int = Field(0, ge=0)
    furnished: bool = False
    features: Tuple[str, ...] = ()
    amenities: Tuple[str, ...] = ()
    available: bool = True
    available_from: Optional[date] = None
    bills: Bills = Field(default_factory=Bills)
    images: Tuple[str, ...] = ()
    contact: Optional[Contact] = None
    quality_score: int = 0
    suitability_score: int = 0
    last_updated: datetime = Field(default_factory=_utcnow)

    @field_validator("quality_score", "suitability_score", mode="before")
    @classmethod
    def _clamp_scores(cls, value: Any) -> int:
        return clamp_score(value)

    @model_validator(mode="before")
    @classmethod
    def _prefix_id(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        source = data.get("source")
        raw_id = data.get("id")
        if source and raw_id is not None:
            prefix = f"{source}-"
            raw_id = str(raw_id)
            if not raw_id.startswith(prefix):
                data = {**data, "id": f"{prefix}{raw_id}"}
        return data

    @property
    def combined_score(self) -> int:
        return self.quality_score + self.suitability_score


class AdapterHealth(BaseModel):
    """Rolling health metrics for a single source."""

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    average_response_time_ms: float = 0.0
    error_rate: float = 0.0
    last_request_time: Optional[datetime] = None


class SourceStatus(BaseModel):
    name: str
    priority: int
    enabled: bool
    available: bool
    healthy: bool
    reports_failures: bool = True
    timeout_seconds: Optional[float] = None
    health: AdapterHealth = Field(default_factory=AdapterHealth)


class AdapterRunSnapshot(BaseModel):
    """Outcome of one adapter invocation inside one search."""

    source: str
    status: AdapterRunStatus
    result_count: int = 0
    latency_ms: Optional[int] = None
    message: Optional[str] = None
    retryable: bool = False


class ResultSummary(BaseModel):
    total_found: int = 0
    source_breakdown: Dict[str, int] = Field(default_factory=dict)
    search_time_ms: float = 0.0
    errors: List[str] = Field(default_factory=list)
    cache_hit: bool = False
    fingerprint: str = ""
    sources_queried: List[str] = Field(default_factory=list)
    sources_skipped: List[str] = Field(default_factory=list)
    adapter_statuses: List[AdapterRunSnapshot] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """Full search payload returned to callers."""

    listings: List[StandardListing] = Field(default_factory=list)
    summary: ResultSummary = Field(default_factory=ResultSummary)


class CacheStats(BaseModel):
    size: int = 0
    max_size: int = 0
    ttl_seconds: float = 0.0
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    hit_rate: float = 0.0
