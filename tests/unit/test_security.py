"""Unit tests for password hashing and session tokens."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from jose import jwt
from pydantic import SecretStr

from realtyflow.config.settings import Settings
from realtyflow.core.exceptions import InvalidTokenError
from realtyflow.core.security import (
    decode_token,
    hash_password,
    issue_token,
    verify_password,
)


class TestPasswordHashing:
    """Tests for bcrypt password hashing."""

    def test_hash_verifies(self):
        """Test a hashed password verifies against itself."""
        hashed = hash_password("s3cret-pass", rounds=4)

        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed, rounds=4)

    def test_wrong_password_fails(self):
        """Test a different password does not verify."""
        hashed = hash_password("s3cret-pass", rounds=4)

        assert not verify_password("other-pass", hashed, rounds=4)

    def test_malformed_hash_is_false(self):
        """Test a malformed stored hash verifies as False instead of raising."""
        assert not verify_password("anything", "not-a-bcrypt-hash", rounds=4)

    def test_long_passwords_truncate_consistently(self):
        """Test passwords beyond 72 bytes hash and verify."""
        password = "x" * 100
        hashed = hash_password(password, rounds=4)

        assert verify_password(password, hashed, rounds=4)


class TestSessionTokens:
    """Tests for issuing and decoding session tokens."""

    def test_round_trip_carries_tenant_list(self, test_settings: Settings):
        """Test the decoded claims carry the user and tenant ids."""
        user_id, t1, t2 = uuid4(), uuid4(), uuid4()

        token, issued = issue_token(user_id, [t1, t2], test_settings, current_tenant_id=t2)
        claims = decode_token(token, test_settings)

        assert claims.user_id == user_id
        assert claims.tenant_ids == [t1, t2]
        assert claims.current_tenant_id == t2
        assert claims == issued

    def test_token_has_no_roles(self, test_settings: Settings):
        """Test roles are never embedded in the token."""
        token, _ = issue_token(uuid4(), [uuid4()], test_settings)

        payload = jwt.get_unverified_claims(token)

        assert "role" not in payload
        assert "roles" not in payload

    def test_expiry_uses_configured_days(self, test_settings: Settings):
        """Test the token expires TOKEN_EXPIRE_DAYS after issuance."""
        now = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

        _, claims = issue_token(uuid4(), [], test_settings, now=now)

        assert claims.expires_at == now + timedelta(days=test_settings.TOKEN_EXPIRE_DAYS)

    def test_current_tenant_outside_list_dropped(self, test_settings: Settings):
        """Test a current tenant not in the tenant list is not embedded."""
        _, claims = issue_token(uuid4(), [uuid4()], test_settings, current_tenant_id=uuid4())

        assert claims.current_tenant_id is None

    def test_authorizes_only_listed_tenants(self, test_settings: Settings):
        """Test authorizes() checks membership in the token's list."""
        listed = uuid4()
        _, claims = issue_token(uuid4(), [listed], test_settings)

        assert claims.authorizes(listed)
        assert not claims.authorizes(uuid4())

    def test_expired_token_rejected(self, test_settings: Settings):
        """Test an expired token raises InvalidTokenError."""
        issued = datetime.now(UTC) - timedelta(days=test_settings.TOKEN_EXPIRE_DAYS + 1)
        token, _ = issue_token(uuid4(), [], test_settings, now=issued)

        with pytest.raises(InvalidTokenError) as exc_info:
            decode_token(token, test_settings)

        assert exc_info.value.reason == "Token has expired"

    def test_wrong_secret_rejected(self, test_settings: Settings):
        """Test a token signed with another secret is rejected."""
        token, _ = issue_token(uuid4(), [], test_settings)
        other = test_settings.model_copy(update={"JWT_SECRET": SecretStr("another-secret")})

        with pytest.raises(InvalidTokenError) as exc_info:
            decode_token(token, other)

        assert exc_info.value.reason == "Invalid token"

    def test_garbage_rejected(self, test_settings: Settings):
        """Test a non-JWT string is rejected."""
        with pytest.raises(InvalidTokenError):
            decode_token("not.a.token", test_settings)

    def test_malformed_claims_rejected(self, test_settings: Settings):
        """Test a correctly signed token with bad claims is rejected."""
        token = jwt.encode(
            {"sub": "not-a-uuid", "iat": 0, "exp": 4102444800},
            test_settings.JWT_SECRET.get_secret_value(),
            algorithm=test_settings.JWT_ALGORITHM,
        )

        with pytest.raises(InvalidTokenError) as exc_info:
            decode_token(token, test_settings)

        assert exc_info.value.reason == "Malformed token claims"
