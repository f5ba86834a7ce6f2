"""
Tests for FnpipeSettings.
"""

from __future__ import annotations

import pydantic
import pytest

from fnpipe.core.settings import ApiKeyCategory, FnpipeSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    """Isolate from the host environment and any .env file."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "FNPIPE_ENVIRONMENT",
        "FNPIPE_GUEST_API_KEY",
        "FNPIPE_LOGIN_API_KEY",
        "FNPIPE_JWT_SECRET",
        "FNPIPE_REQUEST_TIMEOUT",
        "FNPIPE_CORS_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_development_fills_dev_keys(self):
        s = FnpipeSettings(environment="development")
        assert s.guest_api_key == "dev-guest-key"
        assert s.login_api_key == "dev-login-key"
        assert s.jwt_secret == "dev-secret"

    def test_jwt_defaults(self):
        s = FnpipeSettings()
        assert s.jwt_algorithm == "HS256"
        assert s.jwt_expires_minutes == 1440
        assert s.request_timeout is None

    def test_explicit_values_kept(self):
        s = FnpipeSettings(guest_api_key="g", login_api_key="l", jwt_secret="s")
        assert (s.guest_api_key, s.login_api_key, s.jwt_secret) == ("g", "l", "s")


class TestProduction:
    def test_missing_secrets_fail(self):
        with pytest.raises(pydantic.ValidationError, match="FNPIPE_JWT_SECRET"):
            FnpipeSettings(environment="production", guest_api_key="g", login_api_key="l")

    def test_complete_production_settings(self):
        s = FnpipeSettings(
            environment="production", guest_api_key="g", login_api_key="l", jwt_secret="s"
        )
        assert s.environment == "production"


class TestEnvironment:
    def test_reads_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("FNPIPE_GUEST_API_KEY", "from-env")
        monkeypatch.setenv("FNPIPE_REQUEST_TIMEOUT", "2.5")
        s = FnpipeSettings()
        assert s.guest_api_key == "from-env"
        assert s.request_timeout == 2.5

    def test_cors_origins_from_env(self, monkeypatch):
        origins = '["https://app.example.com", "http://localhost:3000"]'
        monkeypatch.setenv("FNPIPE_CORS_ORIGINS", origins)
        s = FnpipeSettings()
        assert s.cors_origins == ["https://app.example.com", "http://localhost:3000"]

    def test_cors_defaults(self):
        s = FnpipeSettings()
        assert s.cors_origins == ["http://localhost:8080"]
        assert s.cors_max_age == 86400

    def test_invalid_timeout_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            FnpipeSettings(request_timeout=0)


class TestApiKeyFor:
    def test_categories(self, settings):
        assert settings.api_key_for(ApiKeyCategory.GUEST) == "guest-key"
        assert settings.api_key_for(ApiKeyCategory.LOGIN) == "login-key"

    def test_string_category(self, settings):
        assert settings.api_key_for("GUEST") == "guest-key"

    def test_unknown_category(self, settings):
        with pytest.raises(ValueError):
            settings.api_key_for("ADMIN")
