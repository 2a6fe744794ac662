"""Application settings loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_JWT_SECRET = "change-me-in-production"
MIN_JWT_SECRET_LENGTH = 32


class PlanLimits(BaseModel):
    """Default record limits applied to newly created tenants."""

    contact_limit: int = 1000
    """Maximum number of contacts per tenant."""

    property_limit: int = 500
    """Maximum number of properties per tenant."""

    deal_limit: int = 1000
    """Maximum number of deals per tenant."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Runtime
    ENVIRONMENT: Literal["development", "test", "staging", "production"] = "development"
    DEBUG: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    CORS_ORIGINS: list[str] = []

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://localhost:5432/realtyflow"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10

    # Session tokens
    JWT_SECRET: SecretStr = SecretStr(DEFAULT_JWT_SECRET)
    JWT_ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_DAYS: int = 7

    # Password hashing
    BCRYPT_ROUNDS: int = 10

    # Tenancy
    TENANT_HEADER: str = "X-Tenant-Id"
    RESERVED_SUBDOMAINS: frozenset[str] = frozenset({"www", "api", "app"})
    TRIAL_DAYS: int = 14
    default_plan_name: str = "free"
    plan_limits: PlanLimits = PlanLimits()

    # Billing webhooks
    STRIPE_WEBHOOK_SECRET: SecretStr | None = None
    STRIPE_WEBHOOK_TOLERANCE_SECONDS: int = 300
    RAZORPAY_WEBHOOK_SECRET: SecretStr | None = None

    @field_validator("RESERVED_SUBDOMAINS", mode="after")
    @classmethod
    def normalize_reserved_subdomains(cls, v: frozenset[str]) -> frozenset[str]:
        """Reserved labels are compared lowercase."""
        return frozenset(label.strip().lower() for label in v if label.strip())

    @model_validator(mode="after")
    def require_jwt_secret_in_production(self) -> "Settings":
        """Production refuses the shipped default key and short keys."""
        if self.is_production:
            secret = self.JWT_SECRET.get_secret_value()
            if secret == DEFAULT_JWT_SECRET:
                raise ValueError("JWT_SECRET must be set in production")
            if len(secret) < MIN_JWT_SECRET_LENGTH:
                raise ValueError(
                    f"JWT_SECRET must be at least {MIN_JWT_SECRET_LENGTH} characters in production"
                )
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
