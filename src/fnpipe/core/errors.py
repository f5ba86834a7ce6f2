"""
Structured error types for the fnpipe request pipeline.

Every failure inside a pipeline propagates by raising. The error
translator middleware is the only place that turns an exception back
into a response, and it does so by looking at the types defined here.

Manifesto:
    - **Typed taxonomy:** Parse, validation, auth, not-found, upstream and
      internal failures are distinct classes, never string matching
    - **HTTP-aware:** Recognized errors carry ``status_code``, ``code`` and
      optional ``details`` so the translator needs no lookup tables
    - **No leaks:** Unclassified exceptions (and ``InternalError``) are never
      shown to the caller; only their class and message reach the logs
    - **Programming errors are loud:** Misusing the pipeline (double
      ``send``, mutating a finalized builder) raises immediately

Architecture:
    ::

        FnpipeError (category, context, cause)
        │
        ├── HttpError (status_code, code, details, expose)
        │     ├── ParseError            400  PARSE_ERROR
        │     ├── ValidationError       400  VALIDATION_FAILED
        │     ├── AuthenticationError   401  UNAUTHENTICATED
        │     ├── AuthorizationError    403  FORBIDDEN
        │     ├── NotFoundError         404  NOT_FOUND
        │     ├── UpstreamError         502  UPSTREAM_FAILED
        │     └── InternalError         500  INTERNAL (expose=False)
        │
        ├── ResponseAlreadySentError
        ├── HandlerFinalizedError
        ├── InvalidMiddlewareError
        └── ServiceNotRegisteredError

Examples:
    >>> err = ValidationError("Validation error", issues=[
    ...     {"path": ["password"], "code": "invalid_type", "message": "Required"}
    ... ])
    >>> err.status_code
    400
    >>> err.details[0]["path"]
    ['password']

Tags:
    error-handling, exception-hierarchy, http-status, fnpipe

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories used for logging and routing."""

    PARSE = "PARSE"
    VALIDATION = "VALIDATION"
    AUTH = "AUTH"
    NOT_FOUND = "NOT_FOUND"
    UPSTREAM = "UPSTREAM"
    CONFIG = "CONFIG"
    PROGRAMMING = "PROGRAMMING"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


class FnpipeError(Exception):
    """
    Base exception for all fnpipe errors.

    Carries a category for log routing, a free-form ``context`` dict for
    structured logging, and an optional chained ``cause``.

    Subclasses set ``default_category``; callers may override per
    instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> FnpipeError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NotFoundError("Weather data not found").with_context(weather_id=wid)
        """
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.context:
            result["context"] = dict(self.context)
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# HTTP-MAPPED ERRORS (recognized by the error translator)
# =============================================================================


class HttpError(FnpipeError):
    """
    Error with a caller-visible HTTP status.

    ``expose`` controls whether ``message`` and ``details`` may be shown to
    the caller. Subclasses fix ``default_status`` and ``default_code``;
    a bare ``HttpError`` can be raised with any status for one-off cases.
    """

    default_status: int = 500
    default_code: str = "INTERNAL"
    expose: bool = True

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        details: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.status_code = status_code or self.default_status
        self.code = code or self.default_code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["status_code"] = self.status_code
        result["code"] = self.code
        if self.details is not None:
            result["details"] = self.details
        return result


class ParseError(HttpError):
    """Request body could not be parsed."""

    default_category = ErrorCategory.PARSE
    default_status = 400
    default_code = "PARSE_ERROR"


class ValidationError(HttpError):
    """
    Schema or field-level validation failure.

    ``issues`` is a list of ``{"path": [...], "code": str, "message": str}``
    dicts and doubles as the caller-visible ``details``.
    """

    default_category = ErrorCategory.VALIDATION
    default_status = 400
    default_code = "VALIDATION_FAILED"

    def __init__(
        self,
        message: str = "Validation error",
        *,
        issues: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ):
        self.issues = list(issues or [])
        kwargs.setdefault("details", self.issues or None)
        super().__init__(message, **kwargs)


class AuthenticationError(HttpError):
    """Missing or invalid credentials."""

    default_category = ErrorCategory.AUTH
    default_status = 401
    default_code = "UNAUTHENTICATED"


class AuthorizationError(HttpError):
    """Identity is valid but lacks the required rights."""

    default_category = ErrorCategory.AUTH
    default_status = 403
    default_code = "FORBIDDEN"


class NotFoundError(HttpError):
    """Referenced entity does not exist."""

    default_category = ErrorCategory.NOT_FOUND
    default_status = 404
    default_code = "NOT_FOUND"


class UpstreamError(HttpError):
    """A collaborator service failed."""

    default_category = ErrorCategory.UPSTREAM
    default_status = 502
    default_code = "UPSTREAM_FAILED"

    def __init__(self, message: str, *, retryable: bool = True, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.retryable = retryable


class InternalError(HttpError):
    """Unclassified failure. The message is logged, never returned."""

    default_category = ErrorCategory.INTERNAL
    default_status = 500
    default_code = "INTERNAL"
    expose = False


# =============================================================================
# PROGRAMMING ERRORS (misuse of the pipeline API)
# =============================================================================


class ResponseAlreadySentError(FnpipeError):
    """``Response.send`` was called more than once for one request."""

    default_category = ErrorCategory.PROGRAMMING


class HandlerFinalizedError(FnpipeError):
    """A builder was extended after ``handle()`` finalized it."""

    default_category = ErrorCategory.PROGRAMMING


class InvalidMiddlewareError(FnpipeError):
    """A value registered with ``use()`` exposes no lifecycle hook."""

    default_category = ErrorCategory.PROGRAMMING


class ServiceNotRegisteredError(FnpipeError):
    """Container lookup for a key nobody registered."""

    default_category = ErrorCategory.CONFIG

    def __init__(self, key: Any):
        self.key = key
        name = getattr(key, "__name__", None) or repr(key)
        super().__init__(f"Service not registered: {name}")


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_recognized(error: BaseException) -> bool:
    """True when *error* may surface its message and details to the caller."""
    return isinstance(error, HttpError) and error.expose


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, FnpipeError):
        return error.category
    if isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


def describe_error(error: BaseException) -> dict[str, Any]:
    """Structured log fields for *error*."""
    if isinstance(error, FnpipeError):
        return error.to_dict()
    return {"error_type": type(error).__name__, "message": str(error)}


__all__ = [
    "ErrorCategory",
    # Base
    "FnpipeError",
    "HttpError",
    # Taxonomy
    "ParseError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "UpstreamError",
    "InternalError",
    # Programming errors
    "ResponseAlreadySentError",
    "HandlerFinalizedError",
    "InvalidMiddlewareError",
    "ServiceNotRegisteredError",
    # Utilities
    "is_recognized",
    "categorize_error",
    "describe_error",
]
