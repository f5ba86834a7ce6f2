"""
Tests for Bearer, Basic and API-key authentication middleware.
"""

from __future__ import annotations

import base64

import pytest

from fnpipe.api.middleware import ApiKeyMiddleware, BasicAuthMiddleware, BearerAuthMiddleware
from fnpipe.auth.principal import Principal
from fnpipe.core.errors import AuthenticationError
from fnpipe.core.settings import ApiKeyCategory


def basic(user: str, password: str) -> str:
    return "Basic " + base64.b64encode(f"{user}:{password}".encode()).decode()


class TestBearerAuth:
    @pytest.mark.asyncio
    async def test_valid_token_sets_user(self, make_context, tokens):
        token = tokens.generate_token({"id": "u1", "email": "a@b.com", "verified": True})
        ctx = make_context(headers={"Authorization": f"Bearer {token}"})

        await BearerAuthMiddleware(tokens).before(ctx)

        assert isinstance(ctx.user, Principal)
        assert ctx.user.id == "u1"
        assert ctx.user.email == "a@b.com"
        assert ctx.user.verified is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer", "Bearer   "])
    async def test_missing_or_malformed(self, make_context, tokens, header):
        headers = {"Authorization": header} if header is not None else {}
        ctx = make_context(headers=headers)
        with pytest.raises(AuthenticationError, match="Missing or invalid bearer token"):
            await BearerAuthMiddleware(tokens).before(ctx)
        assert ctx.user is None

    @pytest.mark.asyncio
    async def test_invalid_token(self, make_context, tokens):
        ctx = make_context(headers={"Authorization": "Bearer not-a-jwt"})
        with pytest.raises(AuthenticationError, match="Invalid or expired token") as exc_info:
            await BearerAuthMiddleware(tokens).before(ctx)
        assert exc_info.value.status_code == 401
        assert ctx.user is None

    @pytest.mark.asyncio
    async def test_expired_token(self, make_context, tokens):
        token = tokens.generate_token({"id": "u1", "email": "a@b.com"}, expires_minutes=-5)
        ctx = make_context(headers={"Authorization": f"Bearer {token}"})
        with pytest.raises(AuthenticationError, match="Invalid or expired token"):
            await BearerAuthMiddleware(tokens).before(ctx)

    @pytest.mark.asyncio
    async def test_custom_mapper(self, make_context, tokens):
        token = tokens.generate_token({"sub": "s1"})
        ctx = make_context(headers={"authorization": f"bearer {token}"})
        await BearerAuthMiddleware(tokens, principal_mapper=lambda p: p["sub"]).before(ctx)
        assert ctx.user == "s1"


    @pytest.mark.asyncio
    async def test_token_without_subject(self, make_context, tokens):
        token = tokens.generate_token({"name": "Ann"})
        ctx = make_context(headers={"Authorization": f"Bearer {token}"})
        with pytest.raises(AuthenticationError, match="Invalid or expired token") as exc_info:
            await BearerAuthMiddleware(tokens).before(ctx)
        assert exc_info.value.status_code == 401
        assert ctx.user is None

    @pytest.mark.asyncio
    async def test_malformed_claims(self, make_context, tokens):
        token = tokens.generate_token({"id": "u1", "email": "a@b.com", "role": 5})
        ctx = make_context(headers={"Authorization": f"Bearer {token}"})
        with pytest.raises(AuthenticationError, match="Invalid or expired token"):
            await BearerAuthMiddleware(tokens).before(ctx)
        assert ctx.user is None


class TestBasicAuth:
    @pytest.mark.asyncio
    async def test_format_only(self, make_context):
        ctx = make_context(headers={"Authorization": basic("user", "pw")})
        await BasicAuthMiddleware().before(ctx)
        assert ctx.user is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "header",
        [None, "Bearer x", "Basic !!!", "Basic " + base64.b64encode(b"nocolon").decode()],
    )
    async def test_rejects_malformed(self, make_context, header):
        headers = {"Authorization": header} if header else {}
        with pytest.raises(AuthenticationError, match="Missing or invalid basic auth"):
            await BasicAuthMiddleware().before(make_context(headers=headers))

    @pytest.mark.asyncio
    async def test_sync_verifier(self, make_context):
        mw = BasicAuthMiddleware(lambda u, p: (u, p) == ("user", "pw"))
        await mw.before(make_context(headers={"Authorization": basic("user", "pw")}))
        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await mw.before(make_context(headers={"Authorization": basic("user", "bad")}))

    @pytest.mark.asyncio
    async def test_async_verifier(self, make_context):
        async def verify(user, password):
            return password == "pw"

        mw = BasicAuthMiddleware(verify)
        with pytest.raises(AuthenticationError):
            await mw.before(make_context(headers={"Authorization": basic("user", "nope")}))


class TestApiKey:
    def test_valid_key(self, make_context, settings):
        ctx = make_context(headers={"x-api-key": "guest-key"})
        ApiKeyMiddleware(settings, ApiKeyCategory.GUEST).before(ctx)

    def test_header_case_insensitive(self, make_context, settings):
        ctx = make_context(headers={"X-API-Key": "login-key"})
        ApiKeyMiddleware(settings, "LOGIN").before(ctx)

    def test_missing_key(self, make_context, settings):
        with pytest.raises(AuthenticationError, match="API key is required"):
            ApiKeyMiddleware(settings, ApiKeyCategory.GUEST).before(make_context())

    def test_wrong_key(self, make_context, settings):
        ctx = make_context(headers={"x-api-key": "login-key"})
        with pytest.raises(AuthenticationError, match="Invalid API key"):
            ApiKeyMiddleware(settings, ApiKeyCategory.GUEST).before(ctx)

    def test_non_ascii_key_rejected(self, make_context, settings):
        ctx = make_context(headers={"x-api-key": "clé"})
        with pytest.raises(AuthenticationError, match="Invalid API key"):
            ApiKeyMiddleware(settings, ApiKeyCategory.GUEST).before(ctx)
