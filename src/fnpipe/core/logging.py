"""
fnpipe logging - structured events for pipelines and middleware.

Manifesto:
    A failed request must leave a trace that can be found by its
    ``request_id``. structlog is configured once at process start; the
    executor binds ``request_id`` and ``pipeline`` into contextvars for the
    duration of a run, so every event emitted by a middleware, a handler
    or a collaborator carries them without passing loggers around.

Architecture:
    ::

        configure_logging(level="INFO", json_format=True, service="fnpipe")
            ↓
        TimeStamper(utc, iso)          optional
        merge_contextvars              request_id, pipeline, ...
        add_log_level, add_logger_name
        ServiceTag(service)            service.name
        format_exc_info                JSON only; console renders tracebacks
        JSONRenderer | ConsoleRenderer

Examples:
    >>> from fnpipe.core.logging import configure_logging, get_logger
    >>> configure_logging(level="INFO", json_format=True, service="fnpipe")
    >>> logger = get_logger(__name__)
    >>> logger.info("request_completed", status_code=200, duration_ms=3.2)

Tags:
    logging, structlog, observability, json-logging, fnpipe

Doc-Types:
    - API Reference
    - Observability Guide
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger


class ServiceTag:
    """Processor stamping ``service.name`` on every event."""

    def __init__(self, service: str) -> None:
        self.service = service

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service.name", self.service)
        return event_dict


def _processors(service: str, json_format: bool, add_timestamp: bool) -> list[Processor]:
    chain: list[Processor] = []
    if add_timestamp:
        chain.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    chain += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        ServiceTag(service),
    ]
    if json_format:
        chain += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return chain


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "fnpipe",
    add_timestamp: bool = True,
) -> None:
    """Configure structlog (and stdlib logging) for the process.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines when True, console when False, and JSON
            whenever stdout is not a terminal when None
        service: Value of ``service.name`` on every event
        add_timestamp: Stamp events with an ISO 8601 UTC time
    """
    if json_format is None:
        json_format = not sys.stdout.isatty()
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    structlog.configure(
        processors=_processors(service, json_format, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    # Third-party libraries (uvicorn, httpx) log through stdlib.
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    """Structured logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


class LogContext:
    """Bind fields for a block and restore the previous values on exit.

    Works as both a sync and an async context manager::

        async with LogContext(request_id="abc123", pipeline="login"):
            logger.info("request_started")
    """

    def __init__(self, **fields: Any) -> None:
        self._fields = fields
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> LogContext:
        self._tokens = structlog.contextvars.bind_contextvars(**self._fields)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, *exc_info: Any) -> None:
        self.__exit__(*exc_info)


__all__ = [
    "ServiceTag",
    "configure_logging",
    "get_logger",
    "LogContext",
]
