"""
Login and one-time-password endpoints.

All three pipelines share one prefix (DI, error translation, envelope,
Basic auth, body parsing) and branch only in the schema they validate
and the handler they end with.
"""

from __future__ import annotations

import secrets
import threading
import time
from collections.abc import Callable
from typing import Annotated

from pydantic import BaseModel, StringConstraints

from fnpipe.api.middleware import (
    BasicAuthMiddleware,
    BodyParserMiddleware,
    BodyValidationMiddleware,
    DependencyInjectionMiddleware,
    ErrorHandlerMiddleware,
    ResponseWrapperMiddleware,
)
from fnpipe.auth.tokens import JwtTokenService
from fnpipe.core.container import Container
from fnpipe.core.errors import AuthenticationError
from fnpipe.core.logging import get_logger
from fnpipe.framework.context import Context
from fnpipe.framework.handler import Handler, Pipeline

logger = get_logger(__name__)

OTP_TTL_SECONDS = 300.0

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

Email = Annotated[str, StringConstraints(strip_whitespace=True, pattern=EMAIL_PATTERN)]


# ── Schemas ──────────────────────────────────────────────────────────────


class LoginRequest(BaseModel):
    email: Email
    password: str
    channel: str


class LoginResponse(BaseModel):
    user: str | None = None
    token: str | None = None


class SendOtpRequest(BaseModel):
    email: Email


class VerifyOtpRequest(BaseModel):
    email: str
    verification: str


class VerifyOtpResponse(BaseModel):
    email: str | None = None
    token: str | None = None


# ── Service ──────────────────────────────────────────────────────────────


def _six_digit_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


class LoginService:
    """Mock identity service: accepts any password, issues real tokens.

    OTP codes are kept in memory until verified or until *otp_ttl* seconds
    pass. *otp_generator* and *clock* can be replaced in tests.
    """

    def __init__(
        self,
        tokens: JwtTokenService,
        otp_generator: Callable[[], str] = _six_digit_code,
        otp_ttl: float = OTP_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._tokens = tokens
        self._otp_generator = otp_generator
        self._otp_ttl = otp_ttl
        self._clock = clock
        # email -> (code, expires_at)
        self._pending: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    async def login(self, request: LoginRequest) -> LoginResponse:
        logger.info("login_attempt", email=request.email, channel=request.channel)
        token = self._tokens.generate_token(
            {"id": request.email, "email": request.email, "type": "access", "verified": False}
        )
        return LoginResponse(user=request.email, token=token)

    async def send_otp(self, request: SendOtpRequest) -> dict[str, str]:
        code = self._otp_generator()
        now = self._clock()
        with self._lock:
            self._purge_expired(now)
            self._pending[request.email] = (code, now + self._otp_ttl)
        logger.info("otp_sent", email=request.email)
        return {"message": "OTP sent successfully"}

    async def verify_otp(self, request: VerifyOtpRequest) -> VerifyOtpResponse:
        with self._lock:
            self._purge_expired(self._clock())
            entry = self._pending.get(request.email)
            if entry is None or not secrets.compare_digest(entry[0], request.verification):
                raise AuthenticationError("Invalid verification code")
            del self._pending[request.email]
        token = self._tokens.generate_token(
            {"id": request.email, "email": request.email, "type": "access", "verified": True}
        )
        return VerifyOtpResponse(email=request.email, token=token)

    def _purge_expired(self, now: float) -> None:
        expired = [email for email, (_, expires_at) in self._pending.items() if expires_at <= now]
        for email in expired:
            del self._pending[email]

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)


# ── Handlers ─────────────────────────────────────────────────────────────


async def login(context: Context) -> None:
    service = context.container.get(LoginService)
    context.response.stage(await service.login(context.request.validated_body))


async def request_otp(context: Context) -> None:
    service = context.container.get(LoginService)
    context.response.stage(await service.send_otp(context.request.validated_body))


async def verify_otp(context: Context) -> None:
    service = context.container.get(LoginService)
    context.response.stage(await service.verify_otp(context.request.validated_body))


def build_login_pipelines(container: Container) -> dict[str, Pipeline]:
    """Build the login, request-OTP and verify-OTP pipelines."""
    prefix = (
        Handler()
        .use(DependencyInjectionMiddleware(container))
        .use(ErrorHandlerMiddleware())
        .use(ResponseWrapperMiddleware())
        .use(BasicAuthMiddleware())
        .use(BodyParserMiddleware())
    )
    return {
        "login": prefix.use(BodyValidationMiddleware(LoginRequest)).handle(login),
        "request_otp": prefix.use(BodyValidationMiddleware(SendOtpRequest)).handle(request_otp),
        "verify_otp": prefix.use(BodyValidationMiddleware(VerifyOtpRequest)).handle(verify_otp),
    }
