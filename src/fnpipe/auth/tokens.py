"""
JWT issuing and verification.

``JwtTokenService`` is the token collaborator used by the Bearer
authentication middleware (through the :class:`TokenVerifier` protocol)
and by the login service to issue tokens.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import Any, Protocol, runtime_checkable

import jwt

from fnpipe.core.errors import ErrorCategory, FnpipeError
from fnpipe.core.logging import get_logger
from fnpipe.core.settings import FnpipeSettings
from fnpipe.core.timestamps import utc_now

logger = get_logger(__name__)

_REGISTERED_CLAIMS = ("exp", "iat", "nbf")


class TokenError(FnpipeError):
    """Token could not be issued or verified."""

    default_category = ErrorCategory.AUTH


@runtime_checkable
class TokenVerifier(Protocol):
    """Port consumed by the Bearer authentication middleware."""

    async def verify_token(self, token: str) -> dict[str, Any]: ...


class JwtTokenService:
    """HMAC-signed JWT issuing and verification backed by PyJWT."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_minutes: int = 1440,
    ) -> None:
        if not secret:
            raise TokenError("JWT secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._expires = timedelta(minutes=expires_minutes)

    @classmethod
    def from_settings(cls, settings: FnpipeSettings) -> JwtTokenService:
        return cls(
            secret=settings.jwt_secret or "",
            algorithm=settings.jwt_algorithm,
            expires_minutes=settings.jwt_expires_minutes,
        )

    @staticmethod
    def generate_secret(length: int = 64) -> str:
        """Generate a random hex secret suitable for ``FNPIPE_JWT_SECRET``."""
        return secrets.token_hex(length)

    def generate_token(
        self, payload: dict[str, Any], expires_minutes: int | None = None
    ) -> str:
        """Sign *payload* with ``iat`` and ``exp`` claims added."""
        now = utc_now()
        lifetime = timedelta(minutes=expires_minutes) if expires_minutes is not None else self._expires
        claims = dict(payload)
        claims["iat"] = int(now.timestamp())
        claims["exp"] = int((now + lifetime).timestamp())
        try:
            return jwt.encode(claims, self._secret, algorithm=self._algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise TokenError("Failed to generate token", cause=exc) from exc

    async def verify_token(self, token: str) -> dict[str, Any]:
        """Verify signature and expiry, returning the decoded claims."""
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError as exc:
            logger.warning("token_expired")
            raise TokenError("Token has expired", cause=exc) from exc
        except jwt.InvalidTokenError as exc:
            logger.warning("token_invalid", reason=str(exc))
            raise TokenError("Token verification failed", cause=exc) from exc

    def decode_token(self, token: str) -> dict[str, Any] | None:
        """Decode without verifying; ``None`` when *token* is not a JWT."""
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            return None

    async def refresh_token(self, token: str, expires_minutes: int | None = None) -> str:
        """Re-issue a still-valid token with a fresh lifetime."""
        claims = await self.verify_token(token)
        payload = {k: v for k, v in claims.items() if k not in _REGISTERED_CLAIMS}
        return self.generate_token(payload, expires_minutes=expires_minutes)

    def is_token_expired(self, token: str) -> bool:
        claims = self.decode_token(token)
        if not claims or "exp" not in claims:
            return True
        return utc_now().timestamp() >= claims["exp"]
