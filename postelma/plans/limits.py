"""
Plan entitlements - what each subscription plan unlocks.

Limits are ceilings and allow-lists decided by the business, not
formulas. Keep them in this one declarative table so they can be
audited or changed without touching call sites.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from postelma.core.errors import UnknownPlanError
from postelma.core.models import Plan


# Natural plan ordering, cheapest first
PLAN_ORDER: tuple[Plan, ...] = (Plan.FREE, Plan.STARTER, Plan.PRO, Plan.BUSINESS)


def _identifier(value: Any) -> str:
    # Allow-lists hold plain identifiers, never enum members
    return value.value if isinstance(value, Enum) else value


# =============================================================================
# Platform Access (tagged variant)
# =============================================================================


class AllPlatforms(BaseModel):
    """Every platform, including ones added later."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["all"] = "all"

    def includes(self, platform: Any) -> bool:
        return True

    def covers(self, other: PlatformAccess) -> bool:
        return True


class PlatformSet(BaseModel):
    """An explicit allow-list of platform identifiers."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["set"] = "set"
    platforms: frozenset[str]

    @field_validator("platforms", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> frozenset[str]:
        return frozenset(_identifier(p) for p in value)

    def includes(self, platform: Any) -> bool:
        return _identifier(platform) in self.platforms

    def covers(self, other: PlatformAccess) -> bool:
        if isinstance(other, AllPlatforms):
            return False
        return other.platforms <= self.platforms


PlatformAccess = Annotated[Union[AllPlatforms, PlatformSet], Field(discriminator="kind")]


class PlanEntitlement(BaseModel):
    """Resolved limits and allow-lists for one plan."""

    model_config = ConfigDict(frozen=True)

    max_accounts: int = Field(ge=0)
    platforms: PlatformAccess
    features: frozenset[str]


# =============================================================================
# Plan Table
# =============================================================================


PLAN_LIMITS: Mapping[Plan, PlanEntitlement] = MappingProxyType({
    Plan.FREE: PlanEntitlement(
        max_accounts=1,
        platforms=PlatformSet(platforms={"instagram"}),
        features={"basic_publishing", "scheduling"},
    ),
    Plan.STARTER: PlanEntitlement(
        max_accounts=5,
        platforms=PlatformSet(platforms={"instagram", "facebook", "linkedin", "twitter"}),
        features={"basic_publishing", "scheduling", "analytics", "team_collaboration"},
    ),
    Plan.PRO: PlanEntitlement(
        max_accounts=15,
        platforms=AllPlatforms(),
        features={
            "advanced_publishing",
            "scheduling",
            "analytics",
            "team_collaboration",
            "automation",
            "custom_branding",
        },
    ),
    Plan.BUSINESS: PlanEntitlement(
        max_accounts=999,
        platforms=AllPlatforms(),
        features={
            "enterprise_publishing",
            "advanced_scheduling",
            "enterprise_analytics",
            "unlimited_team",
            "white_label",
            "api_access",
            "priority_support",
        },
    ),
})


# Cheapest plan offering each platform; anything unlisted needs the top plan
RECOMMENDED_PLANS: Mapping[str, Plan] = MappingProxyType({
    "instagram": Plan.FREE,
    "facebook": Plan.STARTER,
    "linkedin": Plan.STARTER,
    "twitter": Plan.STARTER,
    "tiktok": Plan.PRO,
    "youtube": Plan.PRO,
    "pinterest": Plan.PRO,
})


# =============================================================================
# Plan Authority
# =============================================================================


def coerce_plan(plan: Any) -> Plan:
    """Validate an untyped plan value (e.g. read from storage)."""
    if isinstance(plan, Plan):
        return plan
    try:
        return Plan(plan)
    except (ValueError, TypeError):
        raise UnknownPlanError(plan) from None


def entitlement_for(plan: Plan | str) -> PlanEntitlement:
    """
    Get the entitlement record for a plan.

    Raises:
        UnknownPlanError: If the plan is not one of the known plans.
    """
    plan = coerce_plan(plan)
    try:
        return PLAN_LIMITS[plan]
    except KeyError:
        raise UnknownPlanError(plan) from None


def is_platform_available(platform: str, plan: Plan | str) -> bool:
    """Check if a platform can be connected on a plan."""
    return entitlement_for(plan).platforms.includes(platform)


def can_add_account(current_count: int, plan: Plan | str) -> bool:
    """
    Check if one more account fits under the plan ceiling.

    `current_count` is the number of accounts connected right now. This
    is a pure predicate: callers creating accounts must re-check it and
    create the account inside one critical section or transaction.
    """
    if current_count < 0:
        raise ValueError(f"current_count must be non-negative, got {current_count}")
    return current_count < entitlement_for(plan).max_accounts


def limit_reached_message(plan: Plan | str, current_count: int) -> str:
    """Human-readable notice that the account ceiling has been reached."""
    plan = coerce_plan(plan)
    limit = entitlement_for(plan).max_accounts
    return (
        f"You have reached the limit of your {plan.value} plan "
        f"({current_count}/{limit} accounts)"
    )


def recommended_plan(platform: str) -> Plan:
    """Cheapest plan offering a platform. Unknown platforms map to business."""
    return RECOMMENDED_PLANS.get(_identifier(platform), Plan.BUSINESS)


def features_for(plan: Plan | str) -> frozenset[str]:
    """All feature identifiers a plan includes."""
    return entitlement_for(plan).features


def has_feature(feature: str, plan: Plan | str) -> bool:
    """Check if a plan includes a feature."""
    return _identifier(feature) in features_for(plan)


def plan_rank(plan: Plan | str) -> int:
    """Position of a plan in the natural ordering (free is 0)."""
    return PLAN_ORDER.index(coerce_plan(plan))


def is_at_least(plan: Plan | str, minimum: Plan | str) -> bool:
    """Is `plan` the same as or above `minimum`?"""
    return plan_rank(plan) >= plan_rank(minimum)
