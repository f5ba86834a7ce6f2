"""
Per-request state threaded through a pipeline.

A :class:`Context` is created by the transport adapter for every inbound
request and discarded once the response is written. Middleware and the
terminal handler communicate only through it, which is what lets one
pipeline instance serve concurrent requests safely.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from starlette.datastructures import Headers, MutableHeaders

from fnpipe.core.errors import ResponseAlreadySentError

#: ``Response.locals`` key where handlers stage the payload for the envelope.
RESPONSE_BODY_KEY = "response_body"


class PipelinePhase(str, Enum):
    """Executor state for one request."""

    PENDING = "pending"
    BEFORE = "before"
    HANDLING = "handling"
    AFTER = "after"
    ERROR = "error"
    DONE = "done"


@dataclass
class Request:
    """Inbound request data.

    Attributes:
        method: Upper-cased HTTP method.
        headers: Case-insensitive header mapping.
        path_params: Route parameters.
        query: Query-string parameters.
        body: Raw body as delivered by the transport.
        url: Full request URL, when known.
        parsed_body: Structured body, set by the body parser.
        validated_body: Schema-conformant body, set by the validator.
    """

    method: str = "GET"
    headers: Headers = field(default_factory=Headers)
    path_params: dict[str, Any] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    body: Any = None
    url: str | None = None
    parsed_body: Any = None
    validated_body: Any = None

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        if not isinstance(self.headers, Headers):
            self.headers = Headers(headers=dict(self.headers or {}))


@dataclass
class Response:
    """Outbound response sink with a single guarded terminal write."""

    status_code: int = 200
    headers: MutableHeaders = field(default_factory=MutableHeaders)
    locals: dict[str, Any] = field(default_factory=dict)
    body: Any = None
    sent: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def send(self, status_code: int, body: Any = None) -> None:
        """Write the response. Raises on any second call."""
        with self._lock:
            if self.sent:
                raise ResponseAlreadySentError(
                    f"Response already sent with status {self.status_code}"
                )
            self.status_code = status_code
            self.body = body
            self.sent = True

    def set_status(self, status_code: int) -> Response:
        self.status_code = status_code
        return self

    def set_header(self, name: str, value: str) -> Response:
        self.headers[name] = value
        return self

    def stage(self, body: Any, status_code: int | None = None) -> Response:
        """Stage *body* for the response envelope."""
        self.locals[RESPONSE_BODY_KEY] = body
        if status_code is not None:
            self.status_code = status_code
        return self


@dataclass
class Context:
    """Unit of request state threaded through the pipeline.

    ``user`` is set only by an authentication middleware and ``container``
    only by the dependency-injection middleware; both stay ``None`` until
    then. ``business_data`` carries auxiliary facts that do not belong in
    the response body.
    """

    request: Request = field(default_factory=Request)
    response: Response = field(default_factory=Response)
    user: Any = None
    container: Any = None
    business_data: dict[str, Any] = field(default_factory=dict)
    request_id: str = ""
    phase: PipelinePhase = PipelinePhase.PENDING
    error: BaseException | None = None

    def __post_init__(self) -> None:
        if not self.request_id:
            self.request_id = self.request.headers.get("x-request-id") or str(uuid.uuid4())

    @classmethod
    def from_request(
        cls,
        method: str = "GET",
        *,
        headers: Mapping[str, str] | None = None,
        path_params: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
        body: Any = None,
        url: str | None = None,
    ) -> Context:
        """Build a fresh context from raw request parts."""
        return cls(
            request=Request(
                method=method,
                headers=Headers(headers=dict(headers or {})),
                path_params=dict(path_params or {}),
                query=dict(query or {}),
                body=body,
                url=url,
            )
        )
