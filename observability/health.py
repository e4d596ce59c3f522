"""
Health check utilities for listing sources.

The service has no database; its dependencies are the upstream sources, so
health is derived from each source's rolling success metrics rather than by
pinging upstream APIs (which would spend scraper credits).
"""

from typing import Any, Dict, Iterable, Optional
from datetime import datetime, timezone

from listings.models import SourceStatus

from .logging import get_logger

logger = get_logger(__name__)


class HealthCheckResult:
    """Result of a health check."""

    def __init__(self, name: str, status: str, details: Optional[Dict[str, Any]] = None, error: Optional[str] = None):
        self.name = name
        self.status = status  # "ok", "degraded", "error"
        self.details = details or {}
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "status": self.status,
            "details": self.details,
        }
        if self.error:
            result["error"] = self.error
        return result

    @property
    def is_healthy(self) -> bool:
        return self.status == "ok"


def check_source(status: SourceStatus) -> HealthCheckResult:
    """Classify one source from its registry status."""
    health = status.health
    details = {
        "priority": status.priority,
        "enabled": status.enabled,
        "total_requests": health.total_requests,
        "error_rate": round(health.error_rate, 3),
        "average_response_time_ms": round(health.average_response_time_ms, 1),
    }

    if not status.available:
        return HealthCheckResult(
            name=status.name,
            status="degraded",
            details={**details, "message": "Source not configured"},
        )
    if not status.enabled:
        return HealthCheckResult(name=status.name, status="ok", details={**details, "message": "Disabled"})
    if not status.healthy:
        return HealthCheckResult(
            name=status.name,
            status="error",
            details=details,
            error=f"Error rate {health.error_rate:.0%} over {health.total_requests} requests",
        )
    return HealthCheckResult(name=status.name, status="ok", details=details)


def run_health_checks(statuses: Iterable[SourceStatus]) -> Dict[str, Any]:
    """
    Run source health checks and return aggregated results.

    Overall status is "unhealthy" only when no enabled source is usable;
    individual failing sources make the service "degraded".
    """
    checks = {status.name: check_source(status) for status in statuses}
    active = [
        check for check in checks.values()
        if check.details.get("enabled") and check.status != "degraded"
    ]

    if not active or all(check.status == "error" for check in active):
        overall_status = "unhealthy"
    elif any(check.status == "error" for check in active):
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    if overall_status != "healthy":
        logger.warning("Health check reported %s", overall_status)

    return {
        "status": overall_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {name: check.to_dict() for name, check in checks.items()},
    }
