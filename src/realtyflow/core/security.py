"""Password hashing and session tokens.

Passwords are hashed with bcrypt through passlib. Session tokens are HS256
JWTs carrying the user id and the tenant ids the user belonged to when the
token was issued. Tokens never carry roles: roles are read live by the gates.
"""

from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, Field, ValidationError

from realtyflow.config.settings import Settings
from realtyflow.core.exceptions import InvalidTokenError


# =============================================================================
# Passwords
# =============================================================================


@lru_cache(maxsize=8)
def get_password_context(rounds: int) -> CryptContext:
    """CryptContext for the configured bcrypt cost factor."""
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


@lru_cache(maxsize=8)
def _dummy_hash(rounds: int) -> str:
    return get_password_context(rounds).hash("realtyflow-dummy-password")


def _normalize_password(password: str) -> str:
    """bcrypt only considers the first 72 bytes; truncate UTF-8 safely."""
    return password.encode("utf-8")[:72].decode("utf-8", errors="ignore")


def hash_password(password: str, rounds: int = 10) -> str:
    return get_password_context(rounds).hash(_normalize_password(password))


def verify_password(password: str, password_hash: str, rounds: int = 10) -> bool:
    """Constant-time comparison of a password against a stored hash.

    Malformed hashes verify as False rather than raising.
    """
    try:
        return get_password_context(rounds).verify(_normalize_password(password), password_hash)
    except ValueError:
        return False


def verify_dummy_password(password: str, rounds: int = 10) -> None:
    """Spend the same time as a real verification for unknown accounts."""
    get_password_context(rounds).verify(_normalize_password(password), _dummy_hash(rounds))


# =============================================================================
# Session tokens
# =============================================================================


class TokenClaims(BaseModel):
    """Decoded contents of a session token."""

    sub: UUID = Field(..., description="User id")
    tenant_ids: list[UUID] = Field(default_factory=list)
    current_tenant_id: UUID | None = None
    iat: int
    exp: int

    model_config = {"frozen": True}

    @property
    def user_id(self) -> UUID:
        return self.sub

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=UTC)

    def authorizes(self, tenant_id: UUID) -> bool:
        """Whether the tenant was among the user's tenants at issuance."""
        return tenant_id in self.tenant_ids


def issue_token(
    user_id: UUID,
    tenant_ids: list[UUID],
    settings: Settings,
    current_tenant_id: UUID | None = None,
    now: datetime | None = None,
) -> tuple[str, TokenClaims]:
    """Sign a session token.

    ``current_tenant_id`` is only embedded when it is one of ``tenant_ids``.

    Returns:
        The encoded token and the claims it carries
    """
    issued = now or datetime.now(UTC)
    expires = issued + timedelta(days=settings.TOKEN_EXPIRE_DAYS)
    if current_tenant_id is not None and current_tenant_id not in tenant_ids:
        current_tenant_id = None

    claims = TokenClaims(
        sub=user_id,
        tenant_ids=list(tenant_ids),
        current_tenant_id=current_tenant_id,
        iat=int(issued.timestamp()),
        exp=int(expires.timestamp()),
    )
    payload: dict[str, Any] = {
        "sub": str(claims.sub),
        "tenant_ids": [str(t) for t in claims.tenant_ids],
        "iat": claims.iat,
        "exp": claims.exp,
    }
    if claims.current_tenant_id is not None:
        payload["current_tenant_id"] = str(claims.current_tenant_id)

    token = jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )
    return token, claims


def decode_token(token: str, settings: Settings) -> TokenClaims:
    """Verify a token's signature and expiry and return its claims.

    Raises:
        InvalidTokenError: If the token is expired, tampered with or malformed
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError as e:
        raise InvalidTokenError("Token has expired") from e
    except JWTError as e:
        raise InvalidTokenError("Invalid token") from e

    try:
        return TokenClaims.model_validate(payload)
    except ValidationError as e:
        raise InvalidTokenError("Malformed token claims") from e
