"""Membership roles and the allow-lists protected operations declare.

The Role Gate does no hierarchy inference: every operation names the exact
set of roles it accepts, using one of the constants below.
"""

from enum import Enum


class Role(str, Enum):
    """Role a user holds within one tenant."""

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    AGENT = "AGENT"
    LISTING_MANAGER = "LISTING_MANAGER"
    ACCOUNT = "ACCOUNT"


OWNER_ONLY: frozenset[Role] = frozenset({Role.OWNER})
OWNER_ADMIN: frozenset[Role] = frozenset({Role.OWNER, Role.ADMIN})
STAFF: frozenset[Role] = frozenset(
    {Role.OWNER, Role.ADMIN, Role.AGENT, Role.LISTING_MANAGER}
)
FINANCE: frozenset[Role] = frozenset({Role.OWNER, Role.ADMIN, Role.ACCOUNT})
ANY_MEMBER: frozenset[Role] = frozenset(Role)

# Display order for error messages and API output
ROLE_ORDER: tuple[Role, ...] = (
    Role.OWNER,
    Role.ADMIN,
    Role.AGENT,
    Role.LISTING_MANAGER,
    Role.ACCOUNT,
)


def ordered(roles: frozenset[Role]) -> list[Role]:
    """Return roles in their canonical display order."""
    return [role for role in ROLE_ORDER if role in roles]
