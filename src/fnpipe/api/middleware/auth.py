"""
Authentication middleware: Bearer tokens, Basic credentials, API keys.

All three only inspect headers in ``before`` and raise
:class:`AuthenticationError` on failure; the error translator turns that
into a 401 envelope. Only the Bearer middleware sets ``context.user``.

Manifesto:
    Credentials are checked before any body parsing or business work.
    Token and credential verification are delegated to collaborators so
    the middleware itself holds nothing but construction parameters.

Tags:
    fnpipe, api, middleware, authentication, bearer, basic, API-key

Doc-Types:
    api-reference
"""

from __future__ import annotations

import base64
import binascii
import hmac
import inspect
from collections.abc import Callable, Mapping
from typing import Any

from fnpipe.auth.principal import principal_from_payload
from fnpipe.auth.tokens import TokenVerifier
from fnpipe.core.errors import AuthenticationError
from fnpipe.core.logging import get_logger
from fnpipe.core.settings import ApiKeyCategory, FnpipeSettings
from fnpipe.framework.context import Context

logger = get_logger(__name__)

API_KEY_HEADER = "x-api-key"


def _credentials(context: Context, scheme: str) -> str | None:
    """Return the credentials after ``<scheme> `` or ``None``."""
    header = context.request.headers.get("authorization")
    if not header:
        return None
    prefix, _, value = header.partition(" ")
    if prefix.lower() != scheme.lower() or not value.strip():
        return None
    return value.strip()


class BearerAuthMiddleware:
    """Require ``Authorization: Bearer <token>`` and resolve the principal.

    Parameters
    ----------
    verifier:
        Token collaborator; ``verify_token`` must raise on an invalid or
        expired token.
    principal_mapper:
        Maps the verified payload onto ``context.user``. Defaults to
        :func:`principal_from_payload`.
    """

    def __init__(
        self,
        verifier: TokenVerifier,
        principal_mapper: Callable[[Mapping[str, Any]], Any] | None = None,
    ) -> None:
        self._verifier = verifier
        self._mapper = principal_mapper or principal_from_payload

    async def before(self, context: Context) -> None:
        token = _credentials(context, "Bearer")
        if token is None:
            raise AuthenticationError("Missing or invalid bearer token")

        try:
            payload = await self._verifier.verify_token(token)
        except Exception as exc:
            logger.info("bearer_token_rejected", error_type=type(exc).__name__)
            raise AuthenticationError("Invalid or expired token", cause=exc) from exc

        try:
            context.user = self._mapper(payload)
        except (ValueError, TypeError) as exc:
            logger.info("bearer_claims_rejected", error_type=type(exc).__name__)
            raise AuthenticationError("Invalid or expired token", cause=exc) from exc


class BasicAuthMiddleware:
    """Require ``Authorization: Basic <base64 user:password>``.

    Credential checking is delegated to *verify_credentials* (sync or
    async, returning truthy on success). Without one, only the header
    format is enforced.
    """

    def __init__(self, verify_credentials: Callable[[str, str], Any] | None = None) -> None:
        self._verify = verify_credentials

    async def before(self, context: Context) -> None:
        encoded = _credentials(context, "Basic")
        if encoded is None:
            raise AuthenticationError("Missing or invalid basic auth")

        try:
            decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise AuthenticationError("Missing or invalid basic auth", cause=exc) from exc

        username, sep, password = decoded.partition(":")
        if not sep:
            raise AuthenticationError("Missing or invalid basic auth")

        if self._verify is None:
            return

        result = self._verify(username, password)
        if inspect.isawaitable(result):
            result = await result
        if not result:
            raise AuthenticationError("Invalid credentials")


class ApiKeyMiddleware:
    """Require header ``x-api-key`` matching the key for *category*.

    Settings are passed in explicitly; nothing is read from the
    environment at request time.
    """

    def __init__(self, settings: FnpipeSettings, category: ApiKeyCategory | str) -> None:
        self._category = ApiKeyCategory(category)
        self._expected = settings.api_key_for(self._category)

    def before(self, context: Context) -> None:
        provided = context.request.headers.get(API_KEY_HEADER)
        if not provided:
            raise AuthenticationError("API key is required")
        if not self._expected or not hmac.compare_digest(provided.encode(), self._expected.encode()):
            logger.info("api_key_rejected", category=self._category.value)
            raise AuthenticationError("Invalid API key")
