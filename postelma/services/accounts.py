"""
Account provisioning - connecting social accounts within plan limits.

The plan authority only answers "would one more account fit?". This
service owns the account count, so it is the one that makes the
check-then-create sequence atomic: both happen under a single lock.
The lock covers one process; deployments with several writers need a
store that can run the count and the insert in one transaction.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import BaseModel, Field

from postelma.auth.capabilities import Capability
from postelma.auth.context import SessionContext
from postelma.core.errors import (
    AccountLimitReachedError,
    AccountNotFoundError,
    PlatformNotAvailableError,
)
from postelma.core.models import AccountStatus, Plan, SocialAccount, SocialPlatform
from postelma.core.utils import utc_now
from postelma.plans.limits import limit_reached_message, recommended_plan
from postelma.plans.platforms import ConnectionStatus, coerce_platform, connection_statuses
from postelma.storage.base import Collections, MetadataStorage, query_all

logger = logging.getLogger(__name__)


class AccountStats(BaseModel):
    """Summary of the workspace's social accounts."""

    total: int = 0
    connected: int = 0
    disconnected: int = 0
    by_platform: dict[SocialPlatform, int] = Field(default_factory=dict)


class AccountProvisioning:
    """
    Connects, reconnects and disconnects social accounts.

    Every mutating call takes the acting SessionContext and checks
    `canManageAccounts` first, then the workspace plan.
    """

    def __init__(self, storage: MetadataStorage):
        self.storage = storage
        self._lock = asyncio.Lock()

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_accounts(
        self,
        platform: SocialPlatform | str | None = None,
        status: AccountStatus | str | None = None,
    ) -> list[SocialAccount]:
        filters: dict[str, Any] = {}
        if platform is not None:
            filters["platform"] = coerce_platform(platform).value
        if status is not None:
            filters["status"] = AccountStatus(status).value

        docs = await query_all(self.storage, Collections.SOCIAL_ACCOUNTS, filters or None)
        return [SocialAccount.model_validate(doc) for doc in docs]

    async def get_account(self, account_id: str) -> SocialAccount:
        data = await self.storage.get(Collections.SOCIAL_ACCOUNTS, account_id)
        if not data:
            raise AccountNotFoundError(account_id)
        return SocialAccount.model_validate(data)

    async def connected_count(self) -> int:
        """Accounts currently occupying a slot in the plan ceiling."""
        return sum(1 for a in await self.list_accounts() if a.is_connected)

    async def stats(self) -> AccountStats:
        accounts = await self.list_accounts()
        stats = AccountStats(total=len(accounts))
        for account in accounts:
            if account.is_connected:
                stats.connected += 1
            else:
                stats.disconnected += 1
            stats.by_platform[account.platform] = stats.by_platform.get(account.platform, 0) + 1
        return stats

    async def connection_statuses(self, plan: Plan | str) -> list[ConnectionStatus]:
        return connection_statuses(plan, await self.list_accounts())

    # =========================================================================
    # Mutations
    # =========================================================================

    async def connect_account(
        self,
        ctx: SessionContext,
        platform: SocialPlatform | str,
        username: str,
        display_name: str = "",
        internal_name: str | None = None,
        followers: int = 0,
    ) -> SocialAccount:
        """
        Connect a new social account.

        Raises:
            PermissionDeniedError: The user cannot manage accounts.
            PlatformNotAvailableError: The plan does not include the platform.
            AccountLimitReachedError: The plan ceiling is already reached.
        """
        ctx.require(Capability.CAN_MANAGE_ACCOUNTS)
        platform = coerce_platform(platform)
        self._check_platform(ctx, platform)

        async with self._lock:
            await self._check_capacity(ctx)

            account = SocialAccount(
                platform=platform,
                username=username,
                display_name=display_name or username,
                internal_name=internal_name,
                followers=followers,
                connected_by=ctx.user_id,
                last_sync=utc_now(),
            )
            await self._save(account)

        logger.info(f"Connected {platform.value} account {username} ({account.id})")
        return account

    async def reconnect_account(self, ctx: SessionContext, account_id: str) -> SocialAccount:
        """
        Bring an account back to `connected`.

        The platform must still be on the plan. A disconnected account
        also needs a free slot under the ceiling.
        """
        ctx.require(Capability.CAN_MANAGE_ACCOUNTS)

        async with self._lock:
            account = await self.get_account(account_id)
            self._check_platform(ctx, account.platform)
            if not account.is_connected:
                await self._check_capacity(ctx)

            account.status = AccountStatus.CONNECTED
            account.last_sync = utc_now()
            await self._save(account)

        logger.info(f"Reconnected account {account_id}")
        return account

    async def mark_reconnect_needed(self, account_id: str) -> SocialAccount:
        """Flag an account whose platform token stopped working."""
        account = await self.get_account(account_id)
        if account.status == AccountStatus.CONNECTED:
            account.status = AccountStatus.RECONNECT_NEEDED
            await self._save(account)
            logger.warning(f"Account {account_id} needs to be reconnected")
        return account

    async def disconnect_account(self, ctx: SessionContext, account_id: str) -> SocialAccount:
        """Disconnect an account; it stops counting toward the plan ceiling."""
        ctx.require(Capability.CAN_MANAGE_ACCOUNTS)

        async with self._lock:
            account = await self.get_account(account_id)
            account.status = AccountStatus.DISCONNECTED
            await self._save(account)

        logger.info(f"Disconnected account {account_id}")
        return account

    async def remove_account(self, ctx: SessionContext, account_id: str) -> None:
        """Delete an account record entirely."""
        ctx.require(Capability.CAN_MANAGE_ACCOUNTS)

        async with self._lock:
            if not await self.storage.delete(Collections.SOCIAL_ACCOUNTS, account_id):
                raise AccountNotFoundError(account_id)

        logger.info(f"Removed account {account_id}")

    # =========================================================================
    # Internal
    # =========================================================================

    def _check_platform(self, ctx: SessionContext, platform: SocialPlatform) -> None:
        if not ctx.is_platform_available(platform):
            raise PlatformNotAvailableError(
                platform.value,
                ctx.plan.value,
                recommended_plan(platform).value,
            )

    async def _check_capacity(self, ctx: SessionContext) -> None:
        # Caller holds self._lock
        count = await self.connected_count()
        if not ctx.can_add_account(count):
            message = limit_reached_message(ctx.plan, count)
            logger.info(f"Account limit reached on {ctx.plan.value} plan: {count}")
            raise AccountLimitReachedError(message, count, ctx.entitlement.max_accounts)

    async def _save(self, account: SocialAccount) -> None:
        await self.storage.save(
            Collections.SOCIAL_ACCOUNTS,
            account.id,
            account.model_dump(mode="json"),
        )
