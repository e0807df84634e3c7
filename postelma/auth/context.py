"""
Session context - the "who is acting, on which plan" for each call.

This is the lightweight object passed to services. It holds the current
user and the workspace plan, and forwards every question to the role
and plan authorities. Nothing is cached: a role change on `user` applies
to the very next check.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from postelma.auth import capabilities
from postelma.auth.capabilities import (
    Capability,
    PermissionSet,
    coerce_capability,
    coerce_role,
    has_permission,
    is_role,
    permissions_for,
)
from postelma.config import get_settings
from postelma.core.errors import PermissionDeniedError
from postelma.core.models import Plan, Role, User
from postelma.plans import limits
from postelma.plans.limits import PlanEntitlement, coerce_plan
from postelma.storage.base import Collections, MetadataStorage


def user_from_document(data: dict[str, Any]) -> User:
    """
    Build a User from a stored document.

    The role is validated first so corrupted data surfaces as
    UnknownRoleError instead of a generic validation failure.
    """
    return User.model_validate({**data, "role": coerce_role(data.get("role"))})


@dataclass
class SessionContext:
    """
    Authorization context for a call.

    Usage in services:
        async def publish(ctx: SessionContext, post_id: str):
            ctx.require("canPublish")  # raises if not allowed
            if ctx.has_feature("automation"):
                ...
    """

    # Who
    user: User | None = None

    # Workspace subscription
    plan: Plan = Plan.FREE

    # Extra context
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.plan = coerce_plan(self.plan)

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        """Is there a current user?"""
        return self.user is not None

    @property
    def user_id(self) -> str | None:
        return self.user.id if self.user else None

    @property
    def role(self) -> Role | None:
        return self.user.role if self.user else None

    def has_role(self, role: Role | str) -> bool:
        """Exact role match, no hierarchy."""
        return self.user is not None and is_role(self.user.role, role)

    @property
    def is_owner(self) -> bool:
        return self.has_role(Role.OWNER)

    @property
    def is_manager(self) -> bool:
        return self.has_role(Role.MANAGER)

    @property
    def is_creator(self) -> bool:
        return self.has_role(Role.CREATOR)

    @property
    def is_viewer(self) -> bool:
        return self.has_role(Role.VIEWER)

    @property
    def is_admin(self) -> bool:
        """Owners and managers administer the workspace."""
        return self.is_owner or self.is_manager

    # -------------------------------------------------------------------------
    # Permissions
    # -------------------------------------------------------------------------

    @property
    def permissions(self) -> PermissionSet | None:
        """Current permission set, looked up from the role on every access."""
        return permissions_for(self.user.role) if self.user else None

    def can(self, capability: Capability | str) -> bool:
        """
        Check if the current user has a capability.

        Usage:
            if ctx.can("canSchedule"):
                ...
            if ctx.can(Capability.CAN_APPROVE_CONTENT):
                ...
        """
        if self.user is None:
            coerce_capability(capability)
            return False
        return has_permission(self.user.role, capability)

    def can_any(self, *capabilities: Capability | str) -> bool:
        """Check if user has ANY of the capabilities."""
        return any(self.can(c) for c in capabilities)

    def can_all(self, *capabilities: Capability | str) -> bool:
        """Check if user has ALL of the capabilities."""
        return all(self.can(c) for c in capabilities)

    def require(self, capability: Capability | str) -> None:
        """Raise PermissionDeniedError if the user lacks the capability."""
        if not self.can(capability):
            raise PermissionDeniedError(
                f"Permission denied: {coerce_capability(capability).value}"
            )

    # -------------------------------------------------------------------------
    # Content and team helpers
    # -------------------------------------------------------------------------

    def can_edit_post(self, author_id: str | None = None) -> bool:
        """Authors edit their own posts, admins edit everyone's."""
        if self.user is None:
            return False
        if not self.can_any(Capability.CAN_PUBLISH, Capability.CAN_SCHEDULE):
            return False
        if author_id and author_id == self.user.id:
            return True
        return self.is_admin

    def can_delete_post(self, author_id: str | None = None) -> bool:
        if self.user is None or not self.can(Capability.CAN_DELETE):
            return False
        if author_id and author_id == self.user.id:
            return True
        return self.is_admin

    def can_change_role(self, target_role: Role | str) -> bool:
        if self.user is None:
            return False
        return capabilities.can_change_role(self.user.role, target_role)

    def can_remove_user(self, target: User) -> bool:
        if self.user is None:
            return False
        return capabilities.can_remove_user(
            self.user.role, self.user.id, target.role, target.id
        )

    def can_access(self, resource: str, action: str | None = None) -> bool:
        """Resource-level gate (users, analytics, billing, posts)."""
        if self.user is None:
            return False
        return capabilities.can_access(self.user.role, resource, action)

    # -------------------------------------------------------------------------
    # Plan entitlements
    # -------------------------------------------------------------------------

    @property
    def entitlement(self) -> PlanEntitlement:
        return limits.entitlement_for(self.plan)

    def can_add_account(self, current_count: int) -> bool:
        return limits.can_add_account(current_count, self.plan)

    def is_platform_available(self, platform: str) -> bool:
        return limits.is_platform_available(platform, self.plan)

    def has_feature(self, feature: str) -> bool:
        return limits.has_feature(feature, self.plan)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def refresh(self, storage: MetadataStorage) -> None:
        """Re-read the current user so changes made elsewhere apply."""
        if self.user is None:
            return
        data = await storage.get(Collections.USERS, self.user.id)
        self.user = user_from_document(data) if data else None

    @classmethod
    def anonymous(cls, plan: Plan | str = Plan.FREE) -> SessionContext:
        """Create a context with no user."""
        return cls(plan=plan)


# =============================================================================
# Context Resolution
# =============================================================================


async def get_session_context(
    user_id: str | None,
    storage: MetadataStorage,
    plan: Plan | str | None = None,
) -> SessionContext:
    """
    Resolve the session context for a user.

    Unknown or deactivated users resolve to an anonymous context. The
    plan defaults to the configured workspace plan.
    """
    if plan is None:
        plan = get_settings().default_plan

    if not user_id:
        return SessionContext.anonymous(plan)

    data = await storage.get(Collections.USERS, user_id)
    if not data:
        return SessionContext.anonymous(plan)

    user = user_from_document(data)
    if not user.is_active:
        return SessionContext.anonymous(plan)

    return SessionContext(user=user, plan=plan)
