"""Pytest fixtures for RealtyFlow tests."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
import pytest_asyncio
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncSession

from realtyflow.config.settings import Settings
from realtyflow.core.roles import Role
from realtyflow.core.security import hash_password, issue_token
from realtyflow.db.config import close_db, configure_engine, create_all, get_session_factory
from realtyflow.db.models.tenant import Tenant, TenantStatus
from realtyflow.db.models.user import User, UserTenant

TEST_PASSWORD = "correct-horse-battery"


# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    This ensures tests that modify structlog global state
    don't affect other tests.
    """
    yield
    structlog.reset_defaults()
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


# =============================================================================
# Settings and database
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings for tests: in-memory SQLite, cheap bcrypt, known webhook secrets."""
    return Settings(
        ENVIRONMENT="test",
        DEBUG=True,
        log_level="DEBUG",
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        JWT_SECRET=SecretStr("test-jwt-secret"),
        BCRYPT_ROUNDS=4,
        STRIPE_WEBHOOK_SECRET=SecretStr("whsec_test"),
        RAZORPAY_WEBHOOK_SECRET=SecretStr("rzp_test_secret"),
    )


@pytest_asyncio.fixture
async def test_engine(test_settings: Settings):
    """Configure the application engine on a fresh in-memory database."""
    engine = configure_engine(test_settings)
    await create_all()

    yield engine

    await close_db()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Session on the same database the application uses."""
    async with get_session_factory()() as session:
        yield session


# =============================================================================
# API fixtures
# =============================================================================


@pytest.fixture
def test_app(test_settings: Settings, test_engine) -> FastAPI:
    """Create a FastAPI test application.

    ASGITransport does not run the lifespan, so the engine comes from the
    test_engine fixture.
    """
    from realtyflow.api.app import create_app

    return create_app(settings=test_settings)


@pytest_asyncio.fixture
async def test_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as client:
        yield client


# =============================================================================
# Data factory
# =============================================================================


class DataFactory:
    """Creates committed users, tenants and memberships for tests.

    Every write is committed so the application's own sessions see it.
    """

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def user(
        self,
        email: str | None = None,
        password: str = TEST_PASSWORD,
        is_platform_admin: bool = False,
        is_active: bool = True,
    ) -> User:
        user = User(
            email=email or f"user-{uuid4().hex[:10]}@example.com",
            first_name="Test",
            last_name="User",
            password_hash=hash_password(password, self.settings.BCRYPT_ROUNDS),
            is_platform_admin=is_platform_admin,
            is_active=is_active,
        )
        self.db.add(user)
        await self.db.commit()
        return user

    async def tenant(
        self,
        name: str = "Acme Realty",
        status: TenantStatus = TenantStatus.TRIAL,
        subdomain: str | None = None,
        trial_ends_at: datetime | None = None,
        **limits: int,
    ) -> Tenant:
        tenant = Tenant(
            name=name,
            subdomain=subdomain,
            status=status.value,
            trial_ends_at=trial_ends_at
            if trial_ends_at is not None
            else datetime.now(UTC) + timedelta(days=14),
            **limits,
        )
        self.db.add(tenant)
        await self.db.commit()
        return tenant

    async def membership(
        self,
        user: User,
        tenant: Tenant,
        role: Role,
        is_active: bool = True,
    ) -> UserTenant:
        membership = UserTenant(
            user_id=user.user_id,
            tenant_id=tenant.tenant_id,
            role=role.value,
            is_active=is_active,
        )
        self.db.add(membership)
        await self.db.commit()
        return membership

    async def member(
        self,
        tenant: Tenant,
        role: Role,
        **user_kwargs,
    ) -> User:
        """A new user holding ``role`` in ``tenant``."""
        user = await self.user(**user_kwargs)
        await self.membership(user, tenant, role)
        return user

    def token(
        self,
        user: User,
        tenants: list[Tenant],
        current: Tenant | None = None,
    ) -> str:
        token, _ = issue_token(
            user.user_id,
            [t.tenant_id for t in tenants],
            self.settings,
            current_tenant_id=current.tenant_id if current is not None else None,
        )
        return token

    def headers(
        self,
        user: User,
        tenants: list[Tenant],
        tenant: Tenant | None = None,
        current: Tenant | None = None,
    ) -> dict[str, str]:
        """Authorization header, plus the tenant header when ``tenant`` is given."""
        headers = {"Authorization": f"Bearer {self.token(user, tenants, current)}"}
        if tenant is not None:
            headers[self.settings.TENANT_HEADER] = str(tenant.tenant_id)
        return headers


@pytest.fixture
def factory(db_session: AsyncSession, test_settings: Settings) -> DataFactory:
    return DataFactory(db_session, test_settings)
