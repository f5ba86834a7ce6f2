"""
Pipeline builder and executor.

``Handler`` accumulates an ordered list of middleware and is finalized by
``handle(fn)`` into an immutable, awaitable :class:`Pipeline`::

    login = (
        Handler()
        .use(DependencyInjectionMiddleware())
        .use(BodyParserMiddleware())
        .use(BodyValidationMiddleware(LoginRequest))
        .use(ErrorHandlerMiddleware())
        .use(ResponseWrapperMiddleware())
        .handle(do_login)
    )
    await login(context)

Execution is a flat state machine rather than nested closures::

    BEFORE ──► HANDLING ──► AFTER ──► DONE
       │           │          │
       └───────────┴──────────┴──► ERROR ──► DONE

- ``before`` hooks run in registration order; the first failure skips the
  rest and the handler.
- ``after`` hooks run in registration order (not reversed) and only when
  the handler succeeded, so the envelope sees the fully staged payload.
- On error, ``on_error`` hooks run in registration order until one of them
  writes the response. If none does, a generic 500 envelope is written.

Pipelines hold no per-request state, so one instance serves concurrent
requests; each request brings its own :class:`Context`.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Union

from fnpipe.core.errors import HandlerFinalizedError, describe_error
from fnpipe.core.logging import LogContext, get_logger
from fnpipe.framework.context import Context, PipelinePhase
from fnpipe.framework.envelope import GENERIC_ERROR_MESSAGE, error_envelope, write_success
from fnpipe.framework.middleware import Middleware, as_middleware, invoke

logger = get_logger(__name__)

HandlerFunction = Callable[[Context], Union[Awaitable[None], None]]


@dataclass(frozen=True)
class Pipeline:
    """An immutable middleware chain plus its terminal handler."""

    middlewares: tuple[Middleware, ...]
    handler: HandlerFunction
    name: str = "pipeline"

    async def __call__(self, context: Context) -> Context:
        return await self.execute(context)

    async def execute(self, context: Context) -> Context:
        """Run the chain against *context*; exactly one response is written."""
        started = time.perf_counter()
        async with LogContext(request_id=context.request_id, pipeline=self.name):
            try:
                context.phase = PipelinePhase.BEFORE
                for middleware in self.middlewares:
                    if middleware.before is not None:
                        await invoke(middleware.before, context)

                context.phase = PipelinePhase.HANDLING
                await invoke(self.handler, context)

                context.phase = PipelinePhase.AFTER
                for middleware in self.middlewares:
                    if middleware.after is not None:
                        await invoke(middleware.after, context)

                if not context.response.sent:
                    # No envelope middleware wrote; the success shape still applies.
                    write_success(context.response)
            except Exception as exc:
                await self._handle_error(exc, context)

            context.phase = PipelinePhase.DONE
            logger.info(
                "request_completed",
                method=context.request.method,
                status_code=context.response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        return context

    async def _handle_error(self, error: Exception, context: Context) -> None:
        failed_phase = context.phase
        context.phase = PipelinePhase.ERROR
        context.error = error

        already_sent = context.response.sent
        logger.error(
            "error_after_response_sent" if already_sent else "pipeline_error",
            phase=failed_phase.value,
            exc_info=error,
            **describe_error(error),
        )
        if already_sent:
            return

        for middleware in self.middlewares:
            if middleware.on_error is None:
                continue
            try:
                await invoke(middleware.on_error, error, context)
            except Exception as hook_error:
                logger.error(
                    "on_error_hook_failed",
                    middleware=middleware.name,
                    error_type=type(hook_error).__name__,
                    exc_info=hook_error,
                )
            if context.response.sent:
                return

        logger.warning("error_unhandled_by_middleware", phase=failed_phase.value)
        context.response.send(500, error_envelope(GENERIC_ERROR_MESSAGE))


class Handler:
    """Fluent, append-only pipeline builder.

    ``use`` never mutates the receiver; it returns a new builder, so a
    partially built chain can be shared as a prefix. ``handle`` finalizes
    the receiver: further ``use`` calls raise, while further ``handle``
    calls branch into additional independent pipelines.
    """

    def __init__(self, middlewares: tuple[Middleware, ...] = (), name: str | None = None) -> None:
        self._middlewares = middlewares
        self._name = name
        self._finalized = False

    @classmethod
    def start(cls, middleware: Any, name: str | None = None) -> Handler:
        """Start a chain with its first middleware."""
        return cls(name=name).use(middleware)

    @property
    def middlewares(self) -> tuple[Middleware, ...]:
        return self._middlewares

    @property
    def finalized(self) -> bool:
        return self._finalized

    def use(self, middleware: Any) -> Handler:
        """Return a new builder with *middleware* appended."""
        if self._finalized:
            raise HandlerFinalizedError(
                "Handler was finalized by handle(); branch from an unfinalized prefix instead"
            )
        return Handler(self._middlewares + (as_middleware(middleware),), name=self._name)

    def named(self, name: str) -> Handler:
        """Return a new builder whose pipelines carry *name* in logs."""
        if self._finalized:
            raise HandlerFinalizedError("Handler was finalized by handle()")
        return Handler(self._middlewares, name=name)

    def handle(self, handler: HandlerFunction, name: str | None = None) -> Pipeline:
        """Finalize the chain with its terminal *handler*."""
        self._finalized = True
        return Pipeline(
            middlewares=self._middlewares,
            handler=handler,
            name=name or self._name or getattr(handler, "__name__", "pipeline"),
        )

    def __len__(self) -> int:
        return len(self._middlewares)

    def __repr__(self) -> str:
        names = ", ".join(m.name for m in self._middlewares)
        return f"Handler([{names}], finalized={self._finalized})"
