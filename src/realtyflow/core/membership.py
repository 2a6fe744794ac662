"""Team membership management within one tenant."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from realtyflow.config.settings import Settings
from realtyflow.core.audit import AuditLogger
from realtyflow.core.exceptions import (
    InsufficientRoleError,
    InvalidRequestError,
    LastOwnerError,
    MembershipExistsError,
    MembershipNotFoundError,
)
from realtyflow.core.logging import get_logger
from realtyflow.core.roles import OWNER_ONLY, Role, ordered
from realtyflow.core.security import hash_password
from realtyflow.db.models.audit import AuditEventType
from realtyflow.db.models.user import User, UserTenant
from realtyflow.db.repositories.accounts import MembershipRepository, UserRepository
from realtyflow.db.schemas.user import MemberCreate

logger = get_logger(__name__)


class MembershipService:
    """Adds, re-roles and deactivates members of a single tenant.

    Granting or revoking OWNER requires the acting member to be an OWNER,
    and the last active OWNER can be neither demoted nor deactivated.
    """

    def __init__(self, db: AsyncSession, settings: Settings, tenant_id: UUID):
        self.db = db
        self.settings = settings
        self.tenant_id = tenant_id
        self.users = UserRepository(db)
        self.memberships = MembershipRepository(db)
        self.audit = AuditLogger(db)

    async def list_members(self, include_inactive: bool = False) -> list[UserTenant]:
        return await self.memberships.for_tenant(self.tenant_id, include_inactive)

    async def get_member(self, user_id: UUID) -> UserTenant:
        membership = await self.memberships.get(user_id, self.tenant_id)
        if membership is None:
            raise MembershipNotFoundError(user_id, self.tenant_id)
        return membership

    async def add_member(self, actor: UserTenant, data: MemberCreate) -> UserTenant:
        """Add a user to the tenant, creating the account for a new email.

        A previously deactivated membership is reactivated with the new role.

        Raises:
            InsufficientRoleError: Non-owner granting OWNER
            MembershipExistsError: The user is already an active member
            InvalidRequestError: New account without a password
        """
        self._require_owner_for(actor, data.role)

        user = await self.users.get_by_email(data.email)
        if user is None:
            if not data.password:
                raise InvalidRequestError(
                    "password is required to create a new account", field="password"
                )
            user = await self.users.add(
                User(
                    email=data.email.lower(),
                    first_name=data.first_name or data.email.split("@")[0],
                    last_name=data.last_name,
                    password_hash=hash_password(data.password, self.settings.BCRYPT_ROUNDS),
                )
            )

        membership = await self.memberships.get(user.user_id, self.tenant_id)
        if membership is not None and membership.is_active:
            raise MembershipExistsError(user.user_id, self.tenant_id)

        if membership is None:
            membership = await self.memberships.add(
                UserTenant(user_id=user.user_id, tenant_id=self.tenant_id, role=data.role.value)
            )
        else:
            membership.role = data.role.value
            membership.is_active = True
            await self.db.flush()

        await self.audit.log_event(
            AuditEventType.MEMBER_ADDED,
            {"member_user_id": str(user.user_id), "role": data.role.value},
            tenant_id=self.tenant_id,
            resource_type="membership",
            resource_id=membership.membership_id,
        )
        await self.db.refresh(membership)
        return membership

    async def change_role(self, actor: UserTenant, user_id: UUID, role: Role) -> UserTenant:
        """Change a member's role.

        Raises:
            MembershipNotFoundError: The user is not an active member
            InsufficientRoleError: Non-owner changing a role to or from OWNER
            LastOwnerError: Demoting the last active OWNER
        """
        membership = await self.get_member(user_id)
        if not membership.is_active:
            raise MembershipNotFoundError(user_id, self.tenant_id)

        previous = Role(membership.role)
        if previous == role:
            return membership
        self._require_owner_for(actor, previous, role)
        if previous == Role.OWNER:
            await self._ensure_not_last_owner()

        membership.role = role.value
        await self.db.flush()
        await self.audit.log_event(
            AuditEventType.MEMBER_ROLE_CHANGED,
            {"member_user_id": str(user_id), "from": previous.value, "to": role.value},
            tenant_id=self.tenant_id,
            resource_type="membership",
            resource_id=membership.membership_id,
        )
        return membership

    async def deactivate(self, actor: UserTenant, user_id: UUID) -> UserTenant:
        """Deactivate a membership. The user account itself stays active.

        Raises:
            MembershipNotFoundError: The user is not a member
            InsufficientRoleError: Non-owner deactivating an OWNER
            LastOwnerError: Deactivating the last active OWNER
        """
        membership = await self.get_member(user_id)
        if not membership.is_active:
            return membership

        role = Role(membership.role)
        self._require_owner_for(actor, role)
        if role == Role.OWNER:
            await self._ensure_not_last_owner()

        membership.is_active = False
        await self.db.flush()
        await self.audit.log_event(
            AuditEventType.MEMBER_DEACTIVATED,
            {"member_user_id": str(user_id), "role": role.value},
            tenant_id=self.tenant_id,
            resource_type="membership",
            resource_id=membership.membership_id,
        )
        logger.info("member_deactivated", member_user_id=str(user_id))
        return membership

    def _require_owner_for(self, actor: UserTenant, *roles: Role) -> None:
        if Role.OWNER in roles and Role(actor.role) not in OWNER_ONLY:
            raise InsufficientRoleError(actor.role, [r.value for r in ordered(OWNER_ONLY)])

    async def _ensure_not_last_owner(self) -> None:
        if await self.memberships.count_active_owners(self.tenant_id) <= 1:
            raise LastOwnerError(self.tenant_id)


async def ensure_assignable(db: AsyncSession, tenant_id: UUID, user_id: UUID) -> None:
    """Records may only be assigned to active members of their own tenant.

    Raises:
        InvalidRequestError: ``user_id`` has no active membership in ``tenant_id``
    """
    membership = await MembershipRepository(db).get(user_id, tenant_id)
    if membership is None or not membership.is_active:
        raise InvalidRequestError(
            "assigned_to must be an active member of this brokerage", field="assigned_to"
        )
