"""
Subscription plans - account ceilings, platform allow-lists and features.
"""

from postelma.plans.limits import (
    PLAN_LIMITS,
    PLAN_ORDER,
    RECOMMENDED_PLANS,
    AllPlatforms,
    PlanEntitlement,
    PlatformAccess,
    PlatformSet,
    can_add_account,
    coerce_plan,
    entitlement_for,
    features_for,
    has_feature,
    is_at_least,
    is_platform_available,
    limit_reached_message,
    plan_rank,
    recommended_plan,
)
from postelma.plans.platforms import (
    PLATFORM_INFO,
    ConnectionStatus,
    PlatformInfo,
    coerce_platform,
    connection_statuses,
    platform_info,
)

__all__ = [
    # Tables
    "PLAN_LIMITS",
    "PLAN_ORDER",
    "RECOMMENDED_PLANS",
    "PLATFORM_INFO",
    # Types
    "AllPlatforms",
    "PlatformSet",
    "PlatformAccess",
    "PlanEntitlement",
    "PlatformInfo",
    "ConnectionStatus",
    # Plan authority
    "coerce_plan",
    "entitlement_for",
    "is_platform_available",
    "can_add_account",
    "limit_reached_message",
    "recommended_plan",
    "features_for",
    "has_feature",
    "plan_rank",
    "is_at_least",
    # Catalog
    "coerce_platform",
    "platform_info",
    "connection_statuses",
]
