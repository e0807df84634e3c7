"""
Core data models.

These models represent the entities the access-control core is consulted
about: users, their connected social accounts, and team invitations.
The closed enumerations (roles, plans, platforms) live here as well so
every module shares a single definition.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from postelma.core.utils import generate_id, utc_now


# =============================================================================
# Enums
# =============================================================================


class Role(str, Enum):
    """Role a user has within the workspace."""

    OWNER = "owner"      # Full control, including billing
    MANAGER = "manager"  # Runs the team and the accounts, no billing
    CREATOR = "creator"  # Drafts and schedules content
    VIEWER = "viewer"    # Read-only access to analytics


class Plan(str, Enum):
    """Workspace subscription plan."""

    FREE = "free"
    STARTER = "starter"
    PRO = "pro"
    BUSINESS = "business"


class SocialPlatform(str, Enum):
    """Social networks an account can be connected to."""

    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    LINKEDIN = "linkedin"
    TWITTER = "twitter"
    TIKTOK = "tiktok"
    YOUTUBE = "youtube"
    PINTEREST = "pinterest"


class AccountStatus(str, Enum):
    """Connection state of a social account."""

    CONNECTED = "connected"
    RECONNECT_NEEDED = "reconnect_needed"  # Token expired, still counts toward the plan
    DISCONNECTED = "disconnected"


class InvitationStatus(str, Enum):
    """Lifecycle of a team invitation."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


# =============================================================================
# User
# =============================================================================


class User(BaseModel):
    """
    A member of the workspace.

    A user has exactly one role at a time. Permissions are never stored
    on the user; they are looked up from the role whenever needed so a
    role change applies to every later check.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: generate_id("user"))
    email: str
    name: str
    role: Role = Role.VIEWER

    is_active: bool = True

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    last_login_at: datetime | None = None


# =============================================================================
# Social Account
# =============================================================================


class SocialAccount(BaseModel):
    """A social network account connected to the workspace."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: generate_id("acct"))
    platform: SocialPlatform
    username: str
    display_name: str = ""
    internal_name: str | None = None  # Alias chosen by the team
    followers: int = Field(default=0, ge=0)

    status: AccountStatus = AccountStatus.CONNECTED
    connected_by: str | None = None

    connected_at: datetime = Field(default_factory=utc_now)
    last_sync: datetime | None = None

    @property
    def is_connected(self) -> bool:
        """Does this account occupy a slot in the plan ceiling?"""
        return self.status != AccountStatus.DISCONNECTED


# =============================================================================
# Invitation
# =============================================================================


class Invitation(BaseModel):
    """An invitation for someone to join the workspace with a given role."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: generate_id("inv"))
    email: str
    role: Role
    invited_by: str
    message: str | None = None

    token: str
    status: InvitationStatus = InvitationStatus.PENDING

    invited_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or utc_now()) >= self.expires_at
