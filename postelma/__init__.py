"""
Postelma access core.

Role-based permissions and subscription plan entitlements for the
Postelma social media scheduling dashboard.
"""

from postelma.auth import (
    Capability,
    PermissionSet,
    SessionContext,
    has_permission,
    is_role,
    permissions_for,
)
from postelma.core.models import Plan, Role, SocialPlatform
from postelma.plans import (
    PlanEntitlement,
    can_add_account,
    entitlement_for,
    features_for,
    has_feature,
    is_platform_available,
    limit_reached_message,
    recommended_plan,
)

__version__ = "0.1.0"

__all__ = [
    "Role",
    "Plan",
    "SocialPlatform",
    "Capability",
    "PermissionSet",
    "PlanEntitlement",
    "SessionContext",
    "permissions_for",
    "has_permission",
    "is_role",
    "entitlement_for",
    "is_platform_available",
    "can_add_account",
    "limit_reached_message",
    "recommended_plan",
    "features_for",
    "has_feature",
]
