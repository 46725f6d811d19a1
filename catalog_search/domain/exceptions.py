"""
Custom exceptions for the catalog search domain.

These exceptions represent domain-level errors and are independent
of the calling surface (HTTP, background jobs, etc.).

Extraction, metric and ranking functions never raise for unusual text:
"no match" is data, not an error. These exceptions cover contract
violations at the boundaries (bad limits, failing collaborators).
"""

from typing import Any, Optional


class CatalogSearchException(Exception):
    """Base exception for all catalog search errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(CatalogSearchException):
    """Raised when input validation fails."""

    def __init__(self, field: str, value: Any, reason: str):
        message = f"Validation failed for {field}: {reason}"
        super().__init__(
            message=message,
            details={"field": field, "value": str(value), "reason": reason},
        )


class CacheException(CatalogSearchException):
    """Raised when a cache operation fails, e.g. the compute function raised."""

    def __init__(self, operation: str, reason: Optional[str] = None):
        message = f"Cache {operation} failed"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message, details={"operation": operation, "reason": reason}
        )


class CatalogNotLoadedException(CatalogSearchException):
    """Raised when no catalog snapshot exists for a region/language pair."""

    def __init__(self, region: str, language: str):
        message = f"No catalog loaded for region '{region}' and language '{language}'"
        super().__init__(
            message=message, details={"region": region, "language": language}
        )
