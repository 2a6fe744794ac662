"""Unit tests for API middleware components."""

import json
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import structlog
from fastapi import Request, Response
from sqlalchemy.exc import IntegrityError

from realtyflow.api.middleware.auth import PUBLIC_PATHS, AuthenticationMiddleware
from realtyflow.api.middleware.context import SKIP_CONTEXT_PATHS, RequestContextMiddleware
from realtyflow.api.middleware.errors import EXCEPTION_MAP, ErrorHandlingMiddleware
from realtyflow.api.middleware.logging import RequestLoggingMiddleware, client_ip
from realtyflow.core.context import ActorType, get_current_context_or_none
from realtyflow.core.exceptions import (
    AccessDeniedError,
    ContextNotSetError,
    InsufficientRoleError,
    MembershipNotFoundError,
    PlanLimitExceededError,
    SubscriptionInactiveError,
    TenantExpiredError,
    TenantSuspendedError,
)
from realtyflow.core.security import issue_token


def make_request(path: str, headers: dict | None = None, settings=None) -> MagicMock:
    request = MagicMock(spec=Request)
    request.url.path = path
    request.headers = headers or {}
    request.state = MagicMock()
    request.state.request_id = "req-1"
    request.app.state.settings = settings
    request.client = None
    return request


class TestAuthenticationMiddleware:
    """Tests for AuthenticationMiddleware."""

    def test_public_paths_skip_auth(self):
        expected = {"/health", "/health/db", "/v1/auth/register", "/v1/auth/login"}
        assert expected.issubset(PUBLIC_PATHS)

    def test_switch_tenant_requires_auth(self):
        assert "/v1/auth/switch-tenant" not in PUBLIC_PATHS

    @pytest.mark.asyncio
    async def test_missing_auth_header_returns_401(self, test_settings):
        middleware = AuthenticationMiddleware(app=MagicMock())
        request = make_request("/v1/properties", settings=test_settings)
        call_next = AsyncMock()

        response = await middleware.dispatch(request, call_next)

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        call_next.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_auth_format_returns_401(self, test_settings):
        middleware = AuthenticationMiddleware(app=MagicMock())
        request = make_request(
            "/v1/properties", {"Authorization": "Token abc"}, settings=test_settings
        )
        call_next = AsyncMock()

        response = await middleware.dispatch(request, call_next)

        assert response.status_code == 401
        call_next.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_token_returns_401(self, test_settings):
        middleware = AuthenticationMiddleware(app=MagicMock())
        request = make_request(
            "/v1/properties", {"Authorization": "Bearer garbage"}, settings=test_settings
        )
        call_next = AsyncMock()

        response = await middleware.dispatch(request, call_next)

        assert response.status_code == 401
        body = json.loads(response.body)
        assert body["error_code"] == "unauthorized"
        assert body["message"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_valid_token_sets_state(self, test_settings):
        middleware = AuthenticationMiddleware(app=MagicMock())
        user_id, tenant_id = uuid4(), uuid4()
        token, _ = issue_token(user_id, [tenant_id], test_settings)
        request = make_request(
            "/v1/properties", {"Authorization": f"Bearer {token}"}, settings=test_settings
        )
        call_next = AsyncMock(return_value=Response(status_code=200))

        response = await middleware.dispatch(request, call_next)

        assert response.status_code == 200
        assert request.state.user_id == user_id
        assert request.state.claims.tenant_ids == [tenant_id]
        assert request.state.actor_type == ActorType.HUMAN
        call_next.assert_called_once_with(request)

    @pytest.mark.asyncio
    async def test_skipped_path_sets_system_actor(self):
        middleware = AuthenticationMiddleware(app=MagicMock())
        request = make_request("/health")
        call_next = AsyncMock(return_value=Response(status_code=200))

        await middleware.dispatch(request, call_next)

        assert request.state.actor_type == ActorType.SYSTEM
        assert request.state.claims is None

    @pytest.mark.asyncio
    async def test_webhooks_use_service_actor(self):
        middleware = AuthenticationMiddleware(app=MagicMock())
        request = make_request("/v1/billing/webhooks/stripe")
        call_next = AsyncMock(return_value=Response(status_code=200))

        await middleware.dispatch(request, call_next)

        assert request.state.actor_type == ActorType.SERVICE
        call_next.assert_called_once()


class TestRequestLoggingMiddleware:
    """Tests for RequestLoggingMiddleware."""

    @pytest.mark.asyncio
    async def test_assigns_request_id_and_binds_it(self):
        middleware = RequestLoggingMiddleware(app=MagicMock())
        request = make_request("/v1/properties")
        seen = {}

        async def call_next(req):
            seen.update(structlog.contextvars.get_contextvars())
            return Response(status_code=200)

        await middleware.dispatch(request, call_next)

        assert seen["request_id"] == str(request.state.request_id)
        assert "request_id" not in structlog.contextvars.get_contextvars()

    @pytest.mark.asyncio
    async def test_caller_request_id_kept_when_uuid(self):
        middleware = RequestLoggingMiddleware(app=MagicMock())
        incoming = uuid4()
        request = make_request("/health", {"X-Request-ID": str(incoming)})

        await middleware.dispatch(request, AsyncMock(return_value=Response(status_code=200)))

        assert request.state.request_id == incoming

    @pytest.mark.asyncio
    async def test_malformed_request_id_replaced(self):
        middleware = RequestLoggingMiddleware(app=MagicMock())
        request = make_request("/health", {"X-Request-ID": "not-a-uuid"})

        await middleware.dispatch(request, AsyncMock(return_value=Response(status_code=200)))

        assert request.state.request_id != "not-a-uuid"

    def test_client_ip_prefers_forwarded_for(self):
        request = make_request("/v1/me", {"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})

        assert client_ip(request) == "203.0.113.9"
        assert client_ip(make_request("/v1/me")) is None


class TestRequestContextMiddleware:
    """Tests for RequestContextMiddleware."""

    def test_health_skips_context(self):
        assert "/health" in SKIP_CONTEXT_PATHS

    @pytest.mark.asyncio
    async def test_context_set_during_request(self):
        middleware = RequestContextMiddleware(app=MagicMock())
        user_id = uuid4()
        request = make_request("/v1/properties")
        request.state.user_id = user_id
        request.state.actor_type = ActorType.HUMAN
        seen = {}

        async def call_next(req):
            ctx = get_current_context_or_none()
            seen["user_id"] = ctx.user_id
            ctx.bind_tenant(tenant_id)
            return Response(status_code=200)

        tenant_id = uuid4()
        response = await middleware.dispatch(request, call_next)

        assert seen["user_id"] == user_id
        assert request.state.tenant_id == tenant_id
        assert "X-Correlation-ID" in response.headers
        assert get_current_context_or_none() is None

    @pytest.mark.asyncio
    async def test_caller_correlation_id_honoured(self):
        middleware = RequestContextMiddleware(app=MagicMock())
        correlation_id = uuid4()
        request = make_request("/v1/me", {"X-Correlation-ID": str(correlation_id)})
        request.state.user_id = None
        request.state.actor_type = ActorType.HUMAN

        response = await middleware.dispatch(
            request, AsyncMock(return_value=Response(status_code=200))
        )

        assert response.headers["X-Correlation-ID"] == str(correlation_id)


class TestErrorHandlingMiddleware:
    """Tests for exception to response mapping."""

    def test_gate_errors_mapped(self):
        assert EXCEPTION_MAP[AccessDeniedError] == (403, "tenant_access_denied")
        assert EXCEPTION_MAP[MembershipNotFoundError] == (403, "membership_not_found")
        assert EXCEPTION_MAP[InsufficientRoleError] == (403, "insufficient_role")
        assert EXCEPTION_MAP[SubscriptionInactiveError] == (402, "subscription_inactive")
        assert EXCEPTION_MAP[TenantExpiredError] == (402, "tenant_expired")
        assert EXCEPTION_MAP[TenantSuspendedError] == (403, "tenant_suspended")

    @pytest.mark.asyncio
    async def test_insufficient_role_response(self):
        middleware = ErrorHandlingMiddleware(app=MagicMock())
        request = make_request("/v1/team")
        call_next = AsyncMock(side_effect=InsufficientRoleError("AGENT", ["OWNER", "ADMIN"]))

        response = await middleware.dispatch(request, call_next)

        assert response.status_code == 403
        body = json.loads(response.body)
        assert body["error_code"] == "insufficient_role"
        assert body["details"] == {"role": "AGENT", "allowed": ["OWNER", "ADMIN"]}
        assert body["request_id"] == "req-1"

    @pytest.mark.asyncio
    async def test_access_denied_details(self):
        middleware = ErrorHandlingMiddleware(app=MagicMock())
        tenant_id = uuid4()
        request = make_request("/v1/properties")

        response = await middleware.dispatch(
            request, AsyncMock(side_effect=AccessDeniedError(tenant_id, "header"))
        )

        body = json.loads(response.body)
        assert response.status_code == 403
        assert body["details"] == {"tenant_id": str(tenant_id), "source": "header"}

    @pytest.mark.asyncio
    async def test_plan_limit_is_402(self):
        middleware = ErrorHandlingMiddleware(app=MagicMock())
        request = make_request("/v1/contacts")

        response = await middleware.dispatch(
            request, AsyncMock(side_effect=PlanLimitExceededError("contacts", 1000))
        )

        assert response.status_code == 402
        assert json.loads(response.body)["details"] == {"resource": "contacts", "limit": 1000}

    @pytest.mark.asyncio
    async def test_integrity_error_is_conflict(self):
        middleware = ErrorHandlingMiddleware(app=MagicMock())
        request = make_request("/v1/tenants")
        exc = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

        response = await middleware.dispatch(request, AsyncMock(side_effect=exc))

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_context_not_set_is_500(self):
        middleware = ErrorHandlingMiddleware(app=MagicMock())
        request = make_request("/v1/properties")

        response = await middleware.dispatch(
            request, AsyncMock(side_effect=ContextNotSetError())
        )

        assert response.status_code == 500
        assert json.loads(response.body)["error_code"] == "internal_error"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_500_not_denial(self, test_settings):
        """Test infrastructure failures never surface as access denials."""
        middleware = ErrorHandlingMiddleware(app=MagicMock())
        request = make_request("/v1/properties", settings=test_settings)

        response = await middleware.dispatch(
            request, AsyncMock(side_effect=RuntimeError("database is gone"))
        )

        body = json.loads(response.body)
        assert response.status_code == 500
        assert body["error_code"] == "internal_error"
        assert body["message"] == "Internal server error"
        assert body["details"] == {"type": "RuntimeError"}
