"""
Authorization - roles, permissions and the per-call session context.

Design principles:
1. One static table maps each role to its permissions
2. Every check routes through that table, nothing is cached
3. Role identity checks are exact; privilege is expressed as capabilities
"""

from postelma.auth.capabilities import (
    ASSIGNABLE_ROLES,
    RESOURCE_CAPABILITIES,
    ROLE_PERMISSIONS,
    Capability,
    PermissionSet,
    assignable_roles,
    can_access,
    can_change_role,
    can_remove_user,
    coerce_capability,
    coerce_role,
    has_permission,
    is_role,
    permissions_for,
)
from postelma.auth.context import (
    SessionContext,
    get_session_context,
    user_from_document,
)
from postelma.auth.policies import (
    Policy,
    require,
    require_all,
    require_any,
    require_auth,
    require_feature,
    require_plan,
)

__all__ = [
    # Role authority
    "ROLE_PERMISSIONS",
    "ASSIGNABLE_ROLES",
    "RESOURCE_CAPABILITIES",
    "Capability",
    "PermissionSet",
    "coerce_role",
    "coerce_capability",
    "permissions_for",
    "has_permission",
    "is_role",
    "assignable_roles",
    "can_change_role",
    "can_remove_user",
    "can_access",
    # Context
    "SessionContext",
    "get_session_context",
    "user_from_document",
    # Policies
    "Policy",
    "require",
    "require_any",
    "require_all",
    "require_auth",
    "require_plan",
    "require_feature",
]
