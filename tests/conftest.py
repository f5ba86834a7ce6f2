"""
Shared pytest fixtures for fnpipe tests.

This module provides:
- Explicit test settings (no environment lookups)
- A fresh service container per test
- A token service with a fixed secret
- A ``make_context`` factory for building request contexts
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from fnpipe.auth.tokens import JwtTokenService
from fnpipe.core.container import Container
from fnpipe.core.settings import FnpipeSettings
from fnpipe.framework.context import Context

TEST_SECRET = "test-secret"


@pytest.fixture
def settings() -> FnpipeSettings:
    return FnpipeSettings(
        environment="test",
        guest_api_key="guest-key",
        login_api_key="login-key",
        jwt_secret=TEST_SECRET,
        log_format="console",
    )


@pytest.fixture
def container() -> Container:
    return Container(name="test")


@pytest.fixture
def tokens() -> JwtTokenService:
    return JwtTokenService(TEST_SECRET)


@pytest.fixture
def make_context() -> Callable[..., Context]:
    """Build a :class:`Context` the way the transport adapter does."""

    def _make(method: str = "GET", **kwargs: Any) -> Context:
        return Context.from_request(method, **kwargs)

    return _make
