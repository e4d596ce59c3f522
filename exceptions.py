"""
Custom exception hierarchy for the rental listings aggregator.

This module provides a standardized exception hierarchy for consistent error
handling throughout the application. All exceptions inherit from a base
RentalSearchError class for easy catching and logging.

Exception Hierarchy:
    RentalSearchError (base)
    ├── ValidationError
    ├── ResourceNotFoundError
    │   └── UnknownSourceError
    ├── ConfigurationError
    ├── CacheCorruptionError
    └── ExternalServiceError
        └── AdapterError

Usage:
    from exceptions import AdapterError, UnknownSourceError

    # Raised by an adapter on a genuine upstream failure
    raise AdapterError("openrent", "Feed returned HTTP 503", retryable=True)

    # Catch specific exceptions
    try:
        registry.enable("nope")
    except UnknownSourceError as e:
        logger.error(f"Unknown source: {e}")
"""

from typing import Optional, Dict, Any


class RentalSearchError(Exception):
    """
    Base exception for all aggregator errors.

    Attributes:
        message: Human-readable error message
        detail: Optional dict with additional error context
        status_code: Suggested HTTP status code (for API errors)
    """

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for JSON serialization."""
        result = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.detail:
            result["detail"] = self.detail
        return result


class ValidationError(RentalSearchError):
    """
    Raised when input validation fails.

    Examples:
        raise ValidationError("location is required")
    """

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message, detail=detail, status_code=400)


class ResourceNotFoundError(RentalSearchError):
    """Raised when a requested resource doesn't exist."""

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message, detail=detail, status_code=404)


class UnknownSourceError(ResourceNotFoundError):
    """
    Raised when an operation names a source that was never registered.

    Examples:
        raise UnknownSourceError("rightmove")
    """

    def __init__(self, source: str):
        super().__init__(f"Source {source} not found", detail={"source": source})
        self.source = source


class ConfigurationError(RentalSearchError):
    """
    Raised when an adapter is missing the configuration it needs.

    Adapters surface this condition through ``is_available()`` returning
    False; the aggregator never sees it raised during a search.
    """

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
    ):
        if source and detail is None:
            detail = {"source": source}
        elif source and detail:
            detail["source"] = source

        super().__init__(message, detail=detail, status_code=500)


class CacheCorruptionError(RentalSearchError):
    """Raised when a cached entry is malformed. Callers treat it as a miss."""

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message, detail=detail, status_code=500)


class ExternalServiceError(RentalSearchError):
    """
    Base exception for external service failures.

    This is a parent class for specific service errors (listing sources, etc.)
    """

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
        service_name: Optional[str] = None,
    ):
        if service_name and detail is None:
            detail = {"service": service_name}
        elif service_name and detail:
            detail["service"] = service_name

        super().__init__(message, detail=detail, status_code=502)


class AdapterError(ExternalServiceError):
    """
    Raised by a source adapter on a genuine upstream failure.

    "No results" is never an error: adapters return an empty list instead.

    Examples:
        raise AdapterError("spareroom", "Apify run timed out", retryable=True)
        raise AdapterError("openrent", "Malformed feed payload")
    """

    def __init__(
        self,
        source: str,
        message: str,
        *,
        retryable: bool = False,
        detail: Optional[Dict[str, Any]] = None,
    ):
        detail = dict(detail or {})
        detail["source"] = source
        detail["retryable"] = retryable
        super().__init__(message, detail=detail, service_name="listing_source")
        self.source = source
        self.retryable = retryable
