"""Exception taxonomy surfaced by the HTTP layer."""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base error carrying the HTTP status and JSON envelope to return."""

    status_code: int = 500
    error: str = "Internal server error"
    default_message: str | None = None

    def __init__(self, message: str | None = None, *, status: int | None = None):
        message = message or self.default_message
        super().__init__(message or self.error)
        self.message = message
        self.upstream_status = status

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.message:
            payload["message"] = self.message
        if self.upstream_status is not None:
            payload["status"] = self.upstream_status
        return payload


class InputValidationError(ServiceError):
    """Malformed or out-of-range caller input."""

    status_code = 400

    def __init__(self, error: str):
        super().__init__(None)
        self.error = error


class ConfigurationError(ServiceError):
    """A required credential is missing; raised before any network call."""

    status_code = 500
    error = "TMDB API configuration error"


class UpstreamNotFound(ServiceError):
    status_code = 404
    error = "Content not found"
    default_message = "The requested content was not found"

    def __init__(self, message: str | None = None):
        super().__init__(message, status=404)


class UpstreamRateLimited(ServiceError):
    status_code = 429
    error = "Too many requests"
    default_message = "Rate limit exceeded, please retry later"

    def __init__(self, message: str | None = None):
        super().__init__(message, status=429)


class UpstreamUnavailable(ServiceError):
    """Upstream 5xx (``status`` set) or a transport failure (no status)."""

    status_code = 503
    error = "Service temporarily unavailable"
    default_message = "TMDB is temporarily unavailable"

    def __init__(self, message: str | None = None, *, status: int | None = None):
        super().__init__(message, status=status)
        if status is None:
            self.error = "Network error"


class UpstreamError(ServiceError):
    """Any other non-ok upstream status, passed through unchanged."""

    error = "TMDB API error"
    default_message = "TMDB request failed"

    def __init__(self, message: str | None, *, status: int):
        super().__init__(message, status=status)
        self.status_code = status


class GeocodingError(ServiceError):
    status_code = 500
    error = "Failed to determine country from coordinates"
