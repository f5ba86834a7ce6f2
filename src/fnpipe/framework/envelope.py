"""
Response envelopes.

Every response body a pipeline writes uses one of two shapes::

    {"success": true,  "data": <payload>, "timestamp": "<ISO-8601>"}
    {"success": false, "error": "<message>", "details": <optional>, "timestamp": "<ISO-8601>"}

Older handler generations also emitted ``{success, payload, timestamp}`` and
a bare ``{error, details}``; those shapes are not produced anywhere.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from fnpipe.core.timestamps import iso_timestamp
from fnpipe.framework.context import RESPONSE_BODY_KEY, Response

GENERIC_ERROR_MESSAGE = "Internal Server Error"


class SuccessEnvelope(BaseModel):
    """Envelope for 2xx responses."""

    success: Literal[True] = True
    data: Any = Field(default=None, description="Payload staged by the handler")
    timestamp: str = Field(default_factory=iso_timestamp, description="ISO 8601 UTC")


class ErrorEnvelope(BaseModel):
    """Envelope for 4xx/5xx responses."""

    success: Literal[False] = False
    error: str = Field(description="Caller-visible error message")
    details: Any = Field(default=None, description="Structured detail, e.g. field issues")
    timestamp: str = Field(default_factory=iso_timestamp, description="ISO 8601 UTC")


def success_envelope(data: Any = None) -> dict[str, Any]:
    """Serialize *data* inside the success envelope."""
    return SuccessEnvelope(data=data).model_dump(mode="json")


def write_success(response: Response) -> None:
    """Send the staged payload in the success envelope.

    Uses the status already set on *response* (200 unless the handler
    changed it). ``204 No Content`` is sent without a body.
    """
    status_code = response.status_code or 200
    if status_code == 204:
        response.send(204, None)
        return
    response.send(status_code, success_envelope(response.locals.get(RESPONSE_BODY_KEY)))


def error_envelope(message: str = GENERIC_ERROR_MESSAGE, details: Any = None) -> dict[str, Any]:
    """Serialize an error envelope; ``details`` is omitted when absent."""
    body = ErrorEnvelope(error=message, details=details).model_dump(mode="json")
    if details is None:
        body.pop("details")
    return body
