"""Access-control and entitlement exceptions."""

from __future__ import annotations

from typing import Any


class AccessError(Exception):
    """Base exception for access-control and entitlement errors."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class UnknownRoleError(AccessError):
    """Raised when a role value falls outside the known roles."""

    def __init__(self, role: Any):
        super().__init__(f"Unknown role: {role!r}", code="UNKNOWN_ROLE")
        self.role = role


class UnknownPlanError(AccessError):
    """Raised when a plan value falls outside the known plans."""

    def __init__(self, plan: Any):
        super().__init__(f"Unknown plan: {plan!r}", code="UNKNOWN_PLAN")
        self.plan = plan


class UnknownCapabilityError(AccessError):
    """Raised when a capability identifier is not recognised."""

    def __init__(self, capability: Any):
        super().__init__(
            f"Unknown capability: {capability!r}",
            code="UNKNOWN_CAPABILITY",
        )
        self.capability = capability


class UnknownPlatformError(AccessError):
    """Raised when a platform is not part of the platform catalog."""

    def __init__(self, platform: Any):
        super().__init__(f"Unknown platform: {platform!r}", code="UNKNOWN_PLATFORM")
        self.platform = platform


class PermissionDeniedError(AccessError):
    """
    Raised when the current user lacks a required permission.

    HTTP Status: 403 Forbidden
    """

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, code="PERMISSION_DENIED")


class PlatformNotAvailableError(AccessError):
    """
    Raised when a platform is not included in the workspace plan.

    Carries the cheapest plan that offers the platform so callers can
    suggest an upgrade.
    """

    def __init__(self, platform: str, plan: str, recommended_plan: str):
        super().__init__(
            f"Platform {platform} is not available on the {plan} plan "
            f"(requires {recommended_plan})",
            code="PLATFORM_NOT_AVAILABLE",
        )
        self.platform = platform
        self.plan = plan
        self.recommended_plan = recommended_plan


class AccountLimitReachedError(AccessError):
    """Raised when connecting another account would exceed the plan ceiling."""

    def __init__(self, message: str, current_count: int, max_accounts: int):
        super().__init__(message, code="ACCOUNT_LIMIT_REACHED")
        self.current_count = current_count
        self.max_accounts = max_accounts


class UserNotFoundError(AccessError):
    """
    Raised when a user is not found.

    HTTP Status: 404 Not Found
    """

    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}", code="USER_NOT_FOUND")
        self.user_id = user_id


class AccountNotFoundError(AccessError):
    """Raised when a social account is not found."""

    def __init__(self, account_id: str):
        super().__init__(
            f"Social account not found: {account_id}",
            code="ACCOUNT_NOT_FOUND",
        )
        self.account_id = account_id


class InvitationError(AccessError):
    """Raised when an invitation cannot be created, found or accepted."""

    def __init__(self, message: str):
        super().__init__(message, code="INVITATION_INVALID")
