"""
HTTP transport adapter and FastAPI application factory.

``endpoint(pipeline)`` turns a :class:`Pipeline` into a starlette
endpoint: the inbound request becomes a fresh :class:`Context`, the
pipeline runs, and whatever it wrote becomes the HTTP response.
``create_app()`` mounts the example pipelines.

Manifesto:
    The app factory is the single composition root. Pipelines never see
    starlette objects; only this module translates between the two.

Tags:
    fnpipe, api, app-factory, transport, FastAPI

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from fnpipe.api.deps import build_container, build_pipelines, get_settings
from fnpipe.core.container import Container
from fnpipe.core.logging import configure_logging, get_logger
from fnpipe.core.settings import FnpipeSettings
from fnpipe.framework.context import Context
from fnpipe.framework.envelope import error_envelope
from fnpipe.framework.handler import Pipeline

logger = get_logger(__name__)

TIMEOUT_MESSAGE = "Request timed out"

Endpoint = Callable[[Request], Awaitable[Response]]


async def context_from_request(request: Request) -> Context:
    """Build a fresh :class:`Context` from a starlette request."""
    return Context.from_request(
        request.method,
        headers=request.headers,
        path_params=request.path_params,
        query=dict(request.query_params),
        body=await request.body(),
        url=str(request.url),
    )


def to_response(context: Context) -> Response:
    """Render what the pipeline wrote as a starlette response."""
    response = context.response
    headers = dict(response.headers)
    if response.body is None:
        return Response(status_code=response.status_code, headers=headers)
    return JSONResponse(response.body, status_code=response.status_code, headers=headers)


def endpoint(pipeline: Pipeline, timeout: float | None = None) -> Endpoint:
    """Wrap *pipeline* as a starlette endpoint.

    With *timeout* set, a pipeline still running after that many seconds
    is cancelled and a 504 is returned unless a response was already
    written.
    """

    async def run(request: Request) -> Response:
        context = await context_from_request(request)
        try:
            await asyncio.wait_for(pipeline(context), timeout)
        except TimeoutError:
            logger.warning(
                "request_timed_out",
                pipeline=pipeline.name,
                request_id=context.request_id,
                timeout=timeout,
            )
            if not context.response.sent:
                context.response.send(504, error_envelope(TIMEOUT_MESSAGE))
        return to_response(context)

    run.__name__ = pipeline.name
    return run


CORS_METHODS = ["GET", "POST", "PUT"]
CORS_HEADERS = ["Content-Type", "Authorization", "x-api-key"]

# (path, method, pipeline name)
ROUTES: tuple[tuple[str, str, str], ...] = (
    ("/login", "POST", "login"),
    ("/otp/request", "POST", "request_otp"),
    ("/otp/verify", "POST", "verify_otp"),
    ("/messages", "GET", "member_history"),
    ("/messages", "POST", "member_message"),
    ("/guest/messages", "POST", "guest_message"),
    ("/weather", "POST", "create_weather"),
    ("/weather/{id}", "GET", "get_weather"),
    ("/weather/{id}", "PUT", "update_weather"),
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup / shutdown logging."""
    logger.info("fnpipe starting", version=app.version, routes=len(ROUTES))
    yield
    logger.info("fnpipe shutting down")


def create_app(
    settings: FnpipeSettings | None = None,
    *,
    container: Container | None = None,
) -> FastAPI:
    """Build a FastAPI application serving the example pipelines.

    Parameters
    ----------
    settings : FnpipeSettings | None
        Override settings (useful for testing). When ``None`` the cached
        singleton from :func:`get_settings` is used.
    container : Container | None
        Container to register services in. Defaults to the process-wide
        container.
    """
    from fnpipe import __version__

    settings = settings or get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=None if settings.log_format is None else settings.log_format == "json",
        service=settings.service_name,
    )

    container = build_container(settings, container)
    pipelines = build_pipelines(settings, container)

    app = FastAPI(title=settings.service_name, version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.container = container
    app.state.pipelines = pipelines

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
        max_age=settings.cors_max_age,
    )

    for path, method, name in ROUTES:
        app.add_api_route(
            path,
            endpoint(pipelines[name], settings.request_timeout),
            methods=[method],
            name=name,
        )
    return app
