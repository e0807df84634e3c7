"""
Roles, capabilities and the role permission table.

This defines WHAT each role can do, not WHERE it is checked.
Every permission decision in the package routes through
`permissions_for`, so there is exactly one table to audit.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from postelma.core.errors import UnknownCapabilityError, UnknownRoleError
from postelma.core.models import Role


class Capability(str, Enum):
    """
    Boolean-gated actions.

    Values are the identifiers exposed to callers ("canPublish", ...).
    The matching PermissionSet attribute is the lower-cased member name.
    """

    CAN_PUBLISH = "canPublish"                  # Publish posts directly
    CAN_SCHEDULE = "canSchedule"                # Schedule posts
    CAN_DELETE = "canDelete"                    # Delete posts
    CAN_MANAGE_USERS = "canManageUsers"         # Manage the team
    CAN_MANAGE_ACCOUNTS = "canManageAccounts"   # Connect/disconnect social accounts
    CAN_VIEW_ANALYTICS = "canViewAnalytics"
    CAN_APPROVE_CONTENT = "canApproveContent"   # Approve the review queue
    CAN_MANAGE_BILLING = "canManageBilling"

    @property
    def field_name(self) -> str:
        return self.name.lower()


class PermissionSet(BaseModel):
    """
    Fixed-shape record of one boolean per capability.

    Index it with a Capability or its identifier:
        permissions_for(Role.CREATOR)["canSchedule"]  # True
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    can_publish: bool
    can_schedule: bool
    can_delete: bool
    can_manage_users: bool
    can_manage_accounts: bool
    can_view_analytics: bool
    can_approve_content: bool
    can_manage_billing: bool

    def __getitem__(self, capability: Capability | str) -> bool:
        return getattr(self, coerce_capability(capability).field_name)

    def granted(self) -> frozenset[Capability]:
        """All capabilities this set grants."""
        return frozenset(c for c in Capability if self[c])

    def as_dict(self) -> dict[str, bool]:
        """Flags keyed by capability identifier."""
        return self.model_dump(by_alias=True)


# =============================================================================
# Role Permission Table
# =============================================================================


ROLE_PERMISSIONS: Mapping[Role, PermissionSet] = MappingProxyType({
    Role.OWNER: PermissionSet(
        can_publish=True,
        can_schedule=True,
        can_delete=True,
        can_manage_users=True,
        can_manage_accounts=True,
        can_view_analytics=True,
        can_approve_content=True,
        can_manage_billing=True,
    ),
    Role.MANAGER: PermissionSet(
        can_publish=True,
        can_schedule=True,
        can_delete=True,
        can_manage_users=True,
        can_manage_accounts=True,
        can_view_analytics=True,
        can_approve_content=True,
        can_manage_billing=False,
    ),
    Role.CREATOR: PermissionSet(
        can_publish=False,          # Drafts only
        can_schedule=True,
        can_delete=False,
        can_manage_users=False,
        can_manage_accounts=False,
        can_view_analytics=True,
        can_approve_content=False,
        can_manage_billing=False,
    ),
    Role.VIEWER: PermissionSet(
        can_publish=False,
        can_schedule=False,
        can_delete=False,
        can_manage_users=False,
        can_manage_accounts=False,
        can_view_analytics=True,
        can_approve_content=False,
        can_manage_billing=False,
    ),
})


# Which roles each role may hand out
ASSIGNABLE_ROLES: Mapping[Role, tuple[Role, ...]] = MappingProxyType({
    Role.OWNER: (Role.OWNER, Role.MANAGER, Role.CREATOR, Role.VIEWER),
    Role.MANAGER: (Role.CREATOR, Role.VIEWER),
    Role.CREATOR: (),
    Role.VIEWER: (),
})


# =============================================================================
# Validation
# =============================================================================


def coerce_role(role: Any) -> Role:
    """Validate an untyped role value (e.g. read from storage)."""
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except (ValueError, TypeError):
        raise UnknownRoleError(role) from None


def coerce_capability(capability: Any) -> Capability:
    """Validate an untyped capability identifier."""
    if isinstance(capability, Capability):
        return capability
    try:
        return Capability(capability)
    except (ValueError, TypeError):
        raise UnknownCapabilityError(capability) from None


# =============================================================================
# Role Authority
# =============================================================================


def permissions_for(role: Role | str) -> PermissionSet:
    """
    Get the permission set for a role.

    Raises:
        UnknownRoleError: If the role is not one of the known roles.
    """
    role = coerce_role(role)
    try:
        return ROLE_PERMISSIONS[role]
    except KeyError:
        raise UnknownRoleError(role) from None


def has_permission(role: Role | str, capability: Capability | str) -> bool:
    """Check if a role grants a specific capability."""
    return permissions_for(role)[capability]


def is_role(actual: Role | str, expected: Role | str) -> bool:
    """
    Exact role identity check.

    There is no hierarchy here: an owner is not a manager. Gate
    actions on capabilities, not on role rank.
    """
    return coerce_role(actual) is coerce_role(expected)


def assignable_roles(actor_role: Role | str) -> tuple[Role, ...]:
    """Roles a user with `actor_role` may assign or invite."""
    return ASSIGNABLE_ROLES[coerce_role(actor_role)]


def can_change_role(actor_role: Role | str, target_role: Role | str) -> bool:
    """Can `actor_role` give someone `target_role`?"""
    return coerce_role(target_role) in assignable_roles(actor_role)


def can_remove_user(
    actor_role: Role | str,
    actor_id: str,
    target_role: Role | str,
    target_id: str,
) -> bool:
    """
    Can the actor remove the target user from the workspace?

    Nobody removes themselves. Owners remove anyone else, managers
    remove creators and viewers.
    """
    if actor_id == target_id:
        return False
    actor_role = coerce_role(actor_role)
    target_role = coerce_role(target_role)
    if actor_role is Role.OWNER:
        return True
    if actor_role is Role.MANAGER:
        return target_role in (Role.CREATOR, Role.VIEWER)
    return False


# =============================================================================
# Resource Access
# =============================================================================


# Capabilities that open each dashboard resource (any one is enough)
RESOURCE_CAPABILITIES: Mapping[str, tuple[Capability, ...]] = MappingProxyType({
    "users": (Capability.CAN_MANAGE_USERS,),
    "analytics": (Capability.CAN_VIEW_ANALYTICS,),
    "billing": (Capability.CAN_MANAGE_BILLING,),
    "posts": (Capability.CAN_PUBLISH, Capability.CAN_SCHEDULE),
})


def can_access(role: Role | str, resource: str, action: str | None = None) -> bool:
    """
    Can `role` open a dashboard resource?

    Resources without an entry are open to every role. `action` is
    accepted for call-site symmetry; access is decided per resource.
    """
    required = RESOURCE_CAPABILITIES.get(resource)
    if required is None:
        coerce_role(role)
        return True
    return any(has_permission(role, c) for c in required)
