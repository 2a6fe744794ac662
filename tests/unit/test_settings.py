"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from realtyflow.config.settings import DEFAULT_JWT_SECRET, MIN_JWT_SECRET_LENGTH, Settings

STRONG_SECRET = "s" * MIN_JWT_SECRET_LENGTH


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TENANT_HEADER", raising=False)
        settings = Settings(_env_file=None)

        assert settings.TENANT_HEADER == "X-Tenant-Id"
        assert settings.TRIAL_DAYS == 14
        assert settings.TOKEN_EXPIRE_DAYS == 7
        assert settings.plan_limits.contact_limit == 1000
        assert settings.plan_limits.property_limit == 500
        assert settings.plan_limits.deal_limit == 1000
        assert not settings.is_production

    def test_reserved_subdomains_normalized(self):
        settings = Settings(_env_file=None, RESERVED_SUBDOMAINS={" WWW ", "Admin", ""})

        assert settings.RESERVED_SUBDOMAINS == frozenset({"www", "admin"})

    def test_environment_from_env(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("JWT_SECRET", STRONG_SECRET)
        monkeypatch.setenv("TRIAL_DAYS", "30")

        settings = Settings(_env_file=None)

        assert settings.is_production
        assert settings.TRIAL_DAYS == 30

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, ENVIRONMENT="qa")

    def test_production_rejects_default_jwt_secret(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)

        with pytest.raises(ValidationError, match="JWT_SECRET must be set"):
            Settings(_env_file=None, ENVIRONMENT="production")

    def test_production_rejects_short_jwt_secret(self):
        with pytest.raises(ValidationError, match="at least"):
            Settings(_env_file=None, ENVIRONMENT="production", JWT_SECRET="short-but-custom")

    def test_production_accepts_strong_jwt_secret(self):
        settings = Settings(_env_file=None, ENVIRONMENT="production", JWT_SECRET=STRONG_SECRET)

        assert settings.JWT_SECRET.get_secret_value() == STRONG_SECRET

    def test_default_jwt_secret_allowed_outside_production(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)

        settings = Settings(_env_file=None, ENVIRONMENT="development")

        assert settings.JWT_SECRET.get_secret_value() == DEFAULT_JWT_SECRET
