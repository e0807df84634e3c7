"""
Platform catalog and per-plan connection status.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict

from postelma.core.errors import UnknownPlatformError
from postelma.core.models import Plan, SocialAccount, SocialPlatform
from postelma.plans.limits import entitlement_for, is_platform_available


class PlatformInfo(BaseModel):
    """Display metadata for a platform."""

    model_config = ConfigDict(frozen=True)

    platform: SocialPlatform
    name: str
    description: str
    color: str


class ConnectionStatus(BaseModel):
    """How a platform stands for a workspace on a given plan."""

    platform: SocialPlatform
    is_available: bool
    is_connected: bool
    account_count: int
    max_accounts: int


PLATFORM_INFO: Mapping[SocialPlatform, PlatformInfo] = MappingProxyType({
    SocialPlatform.INSTAGRAM: PlatformInfo(
        platform=SocialPlatform.INSTAGRAM,
        name="Instagram",
        description="Photos and stories",
        color="#E4405F",
    ),
    SocialPlatform.FACEBOOK: PlatformInfo(
        platform=SocialPlatform.FACEBOOK,
        name="Facebook",
        description="Facebook pages and groups",
        color="#1877F2",
    ),
    SocialPlatform.LINKEDIN: PlatformInfo(
        platform=SocialPlatform.LINKEDIN,
        name="LinkedIn",
        description="Professional network",
        color="#0A66C2",
    ),
    SocialPlatform.TWITTER: PlatformInfo(
        platform=SocialPlatform.TWITTER,
        name="X (Twitter)",
        description="Micro-blogging and news",
        color="#000000",
    ),
    SocialPlatform.TIKTOK: PlatformInfo(
        platform=SocialPlatform.TIKTOK,
        name="TikTok",
        description="Short videos and trends",
        color="#000000",
    ),
    SocialPlatform.YOUTUBE: PlatformInfo(
        platform=SocialPlatform.YOUTUBE,
        name="YouTube",
        description="Videos and shorts",
        color="#FF0000",
    ),
    SocialPlatform.PINTEREST: PlatformInfo(
        platform=SocialPlatform.PINTEREST,
        name="Pinterest",
        description="Boards and pins",
        color="#E60023",
    ),
})


def coerce_platform(platform: Any) -> SocialPlatform:
    """Validate an untyped platform identifier against the catalog."""
    if isinstance(platform, SocialPlatform):
        return platform
    try:
        return SocialPlatform(platform)
    except (ValueError, TypeError):
        raise UnknownPlatformError(platform) from None


def platform_info(platform: SocialPlatform | str) -> PlatformInfo:
    return PLATFORM_INFO[coerce_platform(platform)]


def connection_statuses(
    plan: Plan | str,
    accounts: Iterable[SocialAccount],
) -> list[ConnectionStatus]:
    """
    One status per catalog platform, in catalog order.

    Only accounts that are not disconnected are counted.
    """
    max_accounts = entitlement_for(plan).max_accounts

    counts: dict[SocialPlatform, int] = {p: 0 for p in SocialPlatform}
    for account in accounts:
        if account.is_connected:
            counts[account.platform] += 1

    return [
        ConnectionStatus(
            platform=platform,
            is_available=is_platform_available(platform, plan),
            is_connected=counts[platform] > 0,
            account_count=counts[platform],
            max_accounts=max_accounts,
        )
        for platform in SocialPlatform
    ]
