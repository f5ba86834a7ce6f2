"""Standard middleware set.

Manifesto:
    Cross-cutting concerns (DI, parsing, validation, auth, errors,
    envelopes) belong in middleware so handlers stay focused on business
    logic. Every middleware here holds only construction parameters and
    keeps all per-request state on the ``Context`` it is given.

Tags:
    fnpipe, api, middleware, cross-cutting, pipeline

Doc-Types:
    api-reference
"""

from fnpipe.api.middleware.auth import ApiKeyMiddleware, BasicAuthMiddleware, BearerAuthMiddleware
from fnpipe.api.middleware.body_parser import BodyParserMiddleware
from fnpipe.api.middleware.dependency_injection import DependencyInjectionMiddleware
from fnpipe.api.middleware.errors import ErrorHandlerMiddleware, translate_error
from fnpipe.api.middleware.params import (
    HeaderVariablesMiddleware,
    PathParametersMiddleware,
    QueryParametersMiddleware,
)
from fnpipe.api.middleware.response import DateHeaderMiddleware, ResponseWrapperMiddleware
from fnpipe.api.middleware.validation import BodyValidationMiddleware, SchemaValidator

__all__ = [
    "ApiKeyMiddleware",
    "BasicAuthMiddleware",
    "BearerAuthMiddleware",
    "BodyParserMiddleware",
    "BodyValidationMiddleware",
    "SchemaValidator",
    "DateHeaderMiddleware",
    "DependencyInjectionMiddleware",
    "ErrorHandlerMiddleware",
    "HeaderVariablesMiddleware",
    "PathParametersMiddleware",
    "QueryParametersMiddleware",
    "ResponseWrapperMiddleware",
    "translate_error",
]
