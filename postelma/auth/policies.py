"""
Policies - composable pre-action checks.

Build a policy once and check it against any session context:

    PUBLISH = require("canPublish")
    PUBLISH.enforce(ctx)  # raises PermissionDeniedError if denied

Policies gate on capabilities, plan order and plan features. Roles are
never compared by rank here; that is what capabilities are for.
"""

from __future__ import annotations

from typing import Callable

from postelma.auth.capabilities import Capability, coerce_capability
from postelma.auth.context import SessionContext
from postelma.core.errors import PermissionDeniedError
from postelma.core.models import Plan
from postelma.plans.limits import coerce_plan, is_at_least


class Policy:
    """
    A policy that can be checked.

    Policies are composable:
        require("canPublish")                         # Single capability
        require_any("canPublish", "canSchedule")      # Any of these
        require("canManageAccounts", min_plan="pro")  # Capability + plan
    """

    def __init__(
        self,
        capabilities: list[Capability | str] | None = None,
        require_all: bool = True,
        require_auth: bool = True,
        min_plan: Plan | str | None = None,
        features: list[str] | None = None,
        custom_check: Callable[[SessionContext], bool] | None = None,
    ):
        # Fail at definition time on typos
        self.capabilities = [coerce_capability(c) for c in capabilities or []]
        self.require_all_caps = require_all
        self.require_auth = require_auth
        self.min_plan = coerce_plan(min_plan) if min_plan is not None else None
        self.features = list(features or [])
        self.custom_check = custom_check

    def check(self, ctx: SessionContext) -> tuple[bool, str | None]:
        """
        Check if context satisfies this policy.

        Returns: (allowed, error_message)
        """
        if self.require_auth and not ctx.is_authenticated:
            return False, "Authentication required"

        if self.min_plan and not is_at_least(ctx.plan, self.min_plan):
            return False, f"Requires {self.min_plan.value} plan or higher"

        missing_features = [f for f in self.features if not ctx.has_feature(f)]
        if missing_features:
            return False, f"Plan {ctx.plan.value} lacks features: {missing_features}"

        if self.capabilities:
            if self.require_all_caps:
                missing = [c.value for c in self.capabilities if not ctx.can(c)]
                if missing:
                    return False, f"Missing permissions: {missing}"
            elif not ctx.can_any(*self.capabilities):
                return False, f"Requires one of: {[c.value for c in self.capabilities]}"

        if self.custom_check and not self.custom_check(ctx):
            return False, "Custom policy check failed"

        return True, None

    def allows(self, ctx: SessionContext) -> bool:
        return self.check(ctx)[0]

    def enforce(self, ctx: SessionContext) -> SessionContext:
        """Raise PermissionDeniedError if denied, else hand the context back."""
        allowed, error = self.check(ctx)
        if not allowed:
            raise PermissionDeniedError(error or "Permission denied")
        return ctx

    def __repr__(self) -> str:
        caps = [c.value for c in self.capabilities]
        return f"<Policy(capabilities={caps}, min_plan={self.min_plan}, features={self.features})>"


# =============================================================================
# Main Interface
# =============================================================================


def require(
    *capabilities: Capability | str,
    require_auth: bool = True,
    min_plan: Plan | str | None = None,
    features: list[str] | None = None,
) -> Policy:
    """
    Require capabilities (all of them) before an action.

    Args:
        *capabilities: Capabilities required (all must be present)
        require_auth: If True, anonymous contexts are denied
        min_plan: Minimum subscription plan required
        features: Plan features that must be included
    """
    return Policy(
        capabilities=list(capabilities),
        require_all=True,
        require_auth=require_auth,
        min_plan=min_plan,
        features=features,
    )


def require_any(*capabilities: Capability | str, **kwargs) -> Policy:
    """Require ANY of the listed capabilities."""
    return Policy(capabilities=list(capabilities), require_all=False, **kwargs)


def require_all(*capabilities: Capability | str, **kwargs) -> Policy:
    """Require ALL of the listed capabilities (same as require)."""
    return require(*capabilities, **kwargs)


def require_auth() -> Policy:
    """Just require a current user, no specific capability."""
    return require(require_auth=True)


def require_plan(plan: Plan | str) -> Policy:
    """Require a minimum subscription plan."""
    return require(min_plan=plan, require_auth=False)


def require_feature(*features: str) -> Policy:
    """Require plan features, regardless of who is asking."""
    return require(features=list(features), require_auth=False)
