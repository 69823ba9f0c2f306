"""
Virtual Fridge Backend — Custom Exception Hierarchy
=====================================================

What:  Application-specific exceptions for every error scenario the API reports.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers (registered in main.py) turn them into JSON
       responses with the right HTTP status code.
Who:   Raised by services, dependencies and middleware; caught by handlers.

Exception Hierarchy:
    VirtualFridgeError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── ConfigurationError       → 500 Internal Server Error
    ├── FileStorageError         → 500 Internal Server Error
    ├── DatabaseError            → 500 Internal Server Error
    ├── ExternalServiceError     → status per instance (OpenFoodFacts, TheMealDB)
    ├── LLMServiceError          → status per instance (Gemini)
    └── CircuitBreakerOpenError  → 503 Service Unavailable
"""

from typing import Any, Dict, Optional


class VirtualFridgeError(Exception):
    """
    Base exception for all Virtual Fridge application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where the handler says so)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(VirtualFridgeError):
    """
    Raised when client input fails a business rule.

    Schema-level problems (missing fields, wrong types) are reported by
    FastAPI's RequestValidationError instead; this one covers rules the
    schemas cannot express, such as an unknown hobby or a non-produce photo.
    """

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


class AuthenticationError(VirtualFridgeError):
    """
    Raised when a request cannot be tied to a valid user.

    The `error` label is part of the response body; the mobile client
    distinguishes "Token expired" (re-login) from "Access denied"
    (never logged in).
    """

    def __init__(
        self,
        message: str = "No token provided",
        error: str = "Access denied",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.error = error


class NotFoundError(VirtualFridgeError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    this exception so routes stay free of status-code logic.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID {resource_id} not found."
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(VirtualFridgeError):
    """Raised when creating something that already exists (e.g. a second sign-up)."""

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConfigurationError(VirtualFridgeError):
    """
    Raised when a required setting (JWT secret, API key) is missing at use time.

    The response never names the missing setting; the log line does.
    """

    def __init__(
        self,
        message: str = "Server configuration is incomplete",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(VirtualFridgeError):
    """Raised when reading, writing or deleting an uploaded image fails."""

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ExternalServiceError(VirtualFridgeError):
    """
    Raised when a third-party HTTP API (OpenFoodFacts, TheMealDB) fails.

    The status code travels with the exception: TheMealDB outages surface as
    503, a failed product lookup as a plain 500.
    """

    def __init__(
        self,
        message: str = "External service is unavailable",
        service: str = "external",
        status_code: int = 503,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["service"] = service
        super().__init__(message=message, context=ctx)
        self.service = service
        self.status_code = status_code


class LLMServiceError(VirtualFridgeError):
    """
    Raised when a Gemini call fails after all retries or returns garbage.

    Recipe generation reports 502 (bad upstream), produce vision reports
    500 ("AI service unavailable"); the default is 503.
    """

    def __init__(
        self,
        message: str = "AI service is temporarily unavailable",
        retry_after: Optional[int] = None,
        status_code: int = 503,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
        self.status_code = status_code


class CircuitBreakerOpenError(VirtualFridgeError):
    """
    Raised when the Gemini circuit breaker is OPEN.

    CLOSED → (threshold failures) → OPEN → (recovery timeout) → HALF_OPEN
    → success closes it again, failure re-opens it.
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"AI service is temporarily unavailable due to repeated failures. "
            f"The service will automatically retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class DatabaseError(VirtualFridgeError):
    """
    Raised when database operations fail unexpectedly.

    The client always gets a generic message; details stay in the log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(VirtualFridgeError):
    """Raised when a client exceeds the per-IP request rate limit."""

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
