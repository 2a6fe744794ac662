"""Registration, login and tenant switching."""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from realtyflow.config.settings import Settings
from realtyflow.core.audit import AuditLogger
from realtyflow.core.exceptions import (
    AccessDeniedError,
    EmailAlreadyRegisteredError,
    InactiveUserError,
    InvalidCredentialsError,
)
from realtyflow.core.logging import get_logger
from realtyflow.core.security import (
    TokenClaims,
    hash_password,
    issue_token,
    verify_dummy_password,
    verify_password,
)
from realtyflow.core.tenant import TenantService
from realtyflow.db.models.audit import AuditEventType
from realtyflow.db.models.tenant import Tenant
from realtyflow.db.models.user import User
from realtyflow.db.repositories.accounts import MembershipRepository, UserRepository
from realtyflow.db.schemas.user import RegisterRequest

logger = get_logger(__name__)


@dataclass(frozen=True)
class IssuedSession:
    """A freshly signed token and what it was issued for."""

    token: str
    claims: TokenClaims
    user: User


class AuthService:
    """Credential checks and session token issuance.

    Every token embeds the user's complete list of active-membership tenant
    ids as of issuance.
    """

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.users = UserRepository(db)
        self.memberships = MembershipRepository(db)
        self.audit = AuditLogger(db)

    async def register(self, data: RegisterRequest) -> tuple[IssuedSession, Tenant]:
        """Create a user, their first tenant (in trial) and the OWNER membership.

        Raises:
            EmailAlreadyRegisteredError: The email already has an account
            SubdomainTakenError: The requested subdomain is unavailable
        """
        email = data.email.lower()
        if await self.users.get_by_email(email) is not None:
            raise EmailAlreadyRegisteredError(email)

        user = await self.users.add(
            User(
                email=email,
                first_name=data.first_name,
                last_name=data.last_name,
                password_hash=hash_password(data.password, self.settings.BCRYPT_ROUNDS),
            )
        )
        tenant, _ = await TenantService(self.db, self.settings).create_tenant(
            name=data.company_name,
            owner_id=user.user_id,
            subdomain=data.subdomain,
        )
        await self.users.set_current_tenant(user, tenant.tenant_id)

        await self.audit.log_event(
            AuditEventType.USER_REGISTERED,
            {"email": email},
            tenant_id=tenant.tenant_id,
            user_id=user.user_id,
            resource_type="user",
            resource_id=user.user_id,
        )
        logger.info("user_registered", new_user_id=str(user.user_id))
        return await self.issue_session(user), tenant

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials and return the active user.

        Unknown emails still pay for a hash verification so response time
        does not reveal whether an account exists.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
            InactiveUserError: The account is deactivated
        """
        user = await self.users.get_by_email(email)
        if user is None:
            verify_dummy_password(password, self.settings.BCRYPT_ROUNDS)
            raise InvalidCredentialsError()
        if not verify_password(password, user.password_hash, self.settings.BCRYPT_ROUNDS):
            raise InvalidCredentialsError()
        if not user.is_active:
            raise InactiveUserError(user.user_id)
        return user

    async def login(self, email: str, password: str) -> IssuedSession:
        """Authenticate and issue a session token.

        Failed attempts are audited and committed before the error propagates,
        since the request's unit of work is rolled back on errors.
        """
        try:
            user = await self.authenticate(email, password)
        except (InvalidCredentialsError, InactiveUserError) as e:
            await self.audit.log_event(
                AuditEventType.USER_LOGIN_FAILED,
                {"email": email.lower(), "reason": type(e).__name__},
                user_id=getattr(e, "user_id", None),
            )
            await self.db.commit()
            raise

        session = await self.issue_session(user)
        await self.audit.log_event(
            AuditEventType.USER_LOGIN,
            {"tenant_count": len(session.claims.tenant_ids)},
            user_id=user.user_id,
            tenant_id=session.claims.current_tenant_id,
        )
        return session

    async def switch_tenant(self, user: User, tenant_id: UUID) -> IssuedSession:
        """Make ``tenant_id`` the user's current tenant and re-issue the token.

        Membership is checked live, so a token issued before the user joined
        the tenant can still switch to it.

        Raises:
            AccessDeniedError: The user has no active membership in the tenant
        """
        active = await self.memberships.active_for_user(user.user_id)
        if tenant_id not in {m.tenant_id for m in active}:
            raise AccessDeniedError(tenant_id, "switch")

        previous = user.current_tenant_id
        await self.users.set_current_tenant(user, tenant_id)
        session = await self.issue_session(user)
        await self.audit.log_event(
            AuditEventType.TENANT_SWITCHED,
            {"from": str(previous) if previous else None, "to": str(tenant_id)},
            user_id=user.user_id,
            tenant_id=tenant_id,
        )
        return session

    async def issue_session(self, user: User) -> IssuedSession:
        """Sign a token with the user's current active-membership tenant ids."""
        memberships = await self.memberships.active_for_user(user.user_id)
        tenant_ids = [m.tenant_id for m in memberships]
        token, claims = issue_token(
            user.user_id,
            tenant_ids,
            self.settings,
            current_tenant_id=user.current_tenant_id,
        )
        return IssuedSession(token=token, claims=claims, user=user)
