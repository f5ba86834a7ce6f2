"""Request pipeline framework: context, middleware contract, builder, executor."""

from fnpipe.framework.context import RESPONSE_BODY_KEY, Context, PipelinePhase, Request, Response
from fnpipe.framework.envelope import error_envelope, success_envelope
from fnpipe.framework.handler import Handler, Pipeline
from fnpipe.framework.middleware import Middleware, as_middleware

__all__ = [
    "RESPONSE_BODY_KEY",
    "Context",
    "PipelinePhase",
    "Request",
    "Response",
    "Handler",
    "Pipeline",
    "Middleware",
    "as_middleware",
    "error_envelope",
    "success_envelope",
]
