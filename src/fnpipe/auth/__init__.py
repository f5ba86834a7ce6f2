"""Token verification and principal mapping collaborators."""

from fnpipe.auth.principal import Principal, principal_from_payload
from fnpipe.auth.tokens import JwtTokenService, TokenError, TokenVerifier

__all__ = [
    "Principal",
    "principal_from_payload",
    "JwtTokenService",
    "TokenError",
    "TokenVerifier",
]
