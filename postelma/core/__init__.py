"""
Core module - shared data models, errors and utilities.

This module contains:
- models: Users, social accounts, invitations and the closed enums
- errors: The access-control exception hierarchy
- utils: Shared utility functions
"""

from postelma.core.models import (
    AccountStatus,
    Invitation,
    InvitationStatus,
    Plan,
    Role,
    SocialAccount,
    SocialPlatform,
    User,
)

from postelma.core.errors import (
    AccessError,
    AccountLimitReachedError,
    AccountNotFoundError,
    InvitationError,
    PermissionDeniedError,
    PlatformNotAvailableError,
    UnknownCapabilityError,
    UnknownPlanError,
    UnknownPlatformError,
    UnknownRoleError,
    UserNotFoundError,
)

from postelma.core.utils import generate_id, generate_token, utc_now

__all__ = [
    # Models
    "User",
    "SocialAccount",
    "Invitation",
    # Enums
    "Role",
    "Plan",
    "SocialPlatform",
    "AccountStatus",
    "InvitationStatus",
    # Errors
    "AccessError",
    "UnknownRoleError",
    "UnknownPlanError",
    "UnknownCapabilityError",
    "UnknownPlatformError",
    "PermissionDeniedError",
    "PlatformNotAvailableError",
    "AccountLimitReachedError",
    "UserNotFoundError",
    "AccountNotFoundError",
    "InvitationError",
    # Utils
    "generate_id",
    "generate_token",
    "utc_now",
]
