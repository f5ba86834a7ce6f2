"""fnpipe core -- errors, logging, settings, container and timestamps.

Architecture::

    errors.py        Error taxonomy (HttpError kinds, programming errors)
    logging.py       structlog configuration and helpers
    settings.py      pydantic-settings configuration (API keys, JWT)
    container.py     Process-wide service registry
    timestamps.py    UTC / ISO 8601 helpers
"""

from fnpipe.core.container import Container, get_container
from fnpipe.core.errors import (
    AuthenticationError,
    AuthorizationError,
    FnpipeError,
    HttpError,
    InternalError,
    NotFoundError,
    ParseError,
    UpstreamError,
    ValidationError,
)
from fnpipe.core.logging import configure_logging, get_logger
from fnpipe.core.settings import ApiKeyCategory, FnpipeSettings, get_settings

__all__ = [
    "Container",
    "get_container",
    "FnpipeError",
    "HttpError",
    "ParseError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "UpstreamError",
    "InternalError",
    "configure_logging",
    "get_logger",
    "ApiKeyCategory",
    "FnpipeSettings",
    "get_settings",
]
