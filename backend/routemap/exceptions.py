"""
Route Map Backend: Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for the failure modes of the proxy.
How:   Each exception carries a message and optional context dict. Global
       exception handlers (registered in main.py) turn them into
       `{"error": message}` JSON responses with the right HTTP status.
Who:   Raised by services and route dependencies; caught by global handlers.

Exception Hierarchy:
    RouteMapError (base)
    ├── ValidationError        → 400 Bad Request (missing field, bad JSON body)
    ├── NotFoundError          → 404 Not Found (mutation target missing)
    ├── ConfigurationError     → 500 (required environment value missing)
    ├── UpstreamError          → 500 (backing store unreachable or rejected)
    └── ExternalServiceError   → 502 / 500 / 404 (Overpass, postal boundary,
                                  share template; status chosen by failure mode)

Auxiliary lookups (vendor and camp resolution) catch UpstreamError themselves
and degrade; it only reaches a handler when a primary store call fails.
"""

from typing import Any, Dict, Optional


class RouteMapError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (returned as `error`)
        context:  Additional debug info (logged, not returned to the client)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(RouteMapError):
    """
    Raised when client input fails validation.

    HTTP: 400 Bad Request

    The message is the whole contract: `"<field> is required"` for missing
    parameters, `"Invalid JSON body"` for unparseable bodies.
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field

    @classmethod
    def required(cls, field: str) -> "ValidationError":
        """Shorthand for the `"<field> is required"` message."""
        return cls(message=f"{field} is required", field=field)


class NotFoundError(RouteMapError):
    """
    Raised when a record addressed by a mutation does not exist.

    HTTP: 404 Not Found
    When: PATCH by id (or by camp + code for soft delete) matched no row.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConfigurationError(RouteMapError):
    """
    Raised when a required environment value is missing at call time.

    HTTP: 500 Internal Server Error
    """

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=f"Missing ENV: {name}", context=context)
        self.name = name


class UpstreamError(RouteMapError):
    """
    Raised when the backing store is unreachable or rejects a request.

    HTTP: 500 Internal Server Error

    The message is the store's own error message when one can be extracted
    from the response body (`message` or `error` key), otherwise
    `HTTP <status>`. Transport failures carry the httpx error text.
    """

    def __init__(
        self,
        message: str = "Upstream request failed",
        status: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status is not None:
            ctx["status"] = status
        super().__init__(message=message, context=ctx)
        self.status = status


class ExternalServiceError(RouteMapError):
    """
    Raised when a third-party service (Overpass, postal boundary API, share
    template host) fails or answers with an unexpected payload.

    HTTP: chosen by failure mode
        502: transport failure or non-2xx answer
        500: payload does not match the expected schema
        404: well-formed answer with an empty result set

    `details` is returned to the client next to `error`, so it must only
    hold values that are safe to expose (status codes, the queried key).
    """

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.status_code = status_code
        self.details = details or {}
