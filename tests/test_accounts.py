"""
Tests for account provisioning against plan limits.
"""

import asyncio

import pytest

from postelma.core.errors import (
    AccountLimitReachedError,
    AccountNotFoundError,
    PermissionDeniedError,
    PlatformNotAvailableError,
    UnknownPlatformError,
)
from postelma.core.models import AccountStatus, Plan, Role, SocialPlatform
from postelma.services import AccountProvisioning


@pytest.fixture
def provisioning(storage):
    return AccountProvisioning(storage)


# =============================================================================
# Connecting
# =============================================================================


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect(self, provisioning, make_session):
        ctx = make_session(Role.OWNER, plan=Plan.FREE)
        account = await provisioning.connect_account(ctx, "instagram", "mata_viande")

        assert account.platform is SocialPlatform.INSTAGRAM
        assert account.status is AccountStatus.CONNECTED
        assert account.display_name == "mata_viande"
        assert account.connected_by == ctx.user_id
        assert await provisioning.get_account(account.id) == account

    @pytest.mark.asyncio
    async def test_limit_reached(self, provisioning, make_session):
        ctx = make_session(Role.OWNER, plan=Plan.FREE)
        await provisioning.connect_account(ctx, "instagram", "first")

        with pytest.raises(AccountLimitReachedError) as exc:
            await provisioning.connect_account(ctx, "instagram", "second")

        assert exc.value.message == "You have reached the limit of your free plan (1/1 accounts)"
        assert exc.value.current_count == 1
        assert exc.value.max_accounts == 1
        assert await provisioning.connected_count() == 1

    @pytest.mark.asyncio
    async def test_platform_not_in_plan(self, provisioning, make_session):
        ctx = make_session(Role.OWNER, plan=Plan.FREE)
        with pytest.raises(PlatformNotAvailableError) as exc:
            await provisioning.connect_account(ctx, "facebook", "page")

        assert exc.value.recommended_plan == "starter"
        assert exc.value.plan == "free"
        assert await provisioning.list_accounts() == []

    @pytest.mark.asyncio
    async def test_unknown_platform(self, provisioning, make_session):
        with pytest.raises(UnknownPlatformError):
            await provisioning.connect_account(make_session(Role.OWNER, plan=Plan.PRO), "myspace", "x")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [Role.CREATOR, Role.VIEWER])
    async def test_requires_manage_accounts(self, provisioning, make_session, role):
        with pytest.raises(PermissionDeniedError):
            await provisioning.connect_account(make_session(role, plan=Plan.PRO), "instagram", "x")

    @pytest.mark.asyncio
    async def test_concurrent_connects_respect_ceiling(self, provisioning, make_session):
        ctx = make_session(Role.MANAGER, plan=Plan.STARTER)

        results = await asyncio.gather(
            *(provisioning.connect_account(ctx, "twitter", f"acct{i}") for i in range(10)),
            return_exceptions=True,
        )

        connected = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, AccountLimitReachedError)]
        assert len(connected) == 5
        assert len(rejected) == 5
        assert await provisioning.connected_count() == 5

    @pytest.mark.asyncio
    async def test_seeded_workspace(self, seeded_storage, make_session):
        provisioning = AccountProvisioning(seeded_storage)
        ctx = make_session(Role.OWNER, plan=Plan.STARTER)

        # Three seeded accounts, one of them awaiting reconnection
        assert await provisioning.connected_count() == 3
        await provisioning.connect_account(ctx, "linkedin", "boucherie")
        await provisioning.connect_account(ctx, "instagram", "second")

        with pytest.raises(AccountLimitReachedError):
            await provisioning.connect_account(ctx, "facebook", "third")


# =============================================================================
# Lifecycle
# =============================================================================


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_disconnect_frees_slot(self, provisioning, make_session):
        ctx = make_session(Role.OWNER, plan=Plan.FREE)
        first = await provisioning.connect_account(ctx, "instagram", "first")

        disconnected = await provisioning.disconnect_account(ctx, first.id)
        assert disconnected.status is AccountStatus.DISCONNECTED
        assert await provisioning.connected_count() == 0

        await provisioning.connect_account(ctx, "instagram", "second")
        assert await provisioning.connected_count() == 1

    @pytest.mark.asyncio
    async def test_reconnect_rechecks_ceiling(self, provisioning, make_session):
        ctx = make_session(Role.OWNER, plan=Plan.FREE)
        first = await provisioning.connect_account(ctx, "instagram", "first")
        await provisioning.disconnect_account(ctx, first.id)
        await provisioning.connect_account(ctx, "instagram", "second")

        with pytest.raises(AccountLimitReachedError):
            await provisioning.reconnect_account(ctx, first.id)

    @pytest.mark.asyncio
    async def test_reconnect_needed_still_counts(self, provisioning, make_session):
        ctx = make_session(Role.OWNER, plan=Plan.FREE)
        account = await provisioning.connect_account(ctx, "instagram", "first")

        flagged = await provisioning.mark_reconnect_needed(account.id)
        assert flagged.status is AccountStatus.RECONNECT_NEEDED
        assert await provisioning.connected_count() == 1

        restored = await provisioning.reconnect_account(ctx, account.id)
        assert restored.status is AccountStatus.CONNECTED

    @pytest.mark.asyncio
    async def test_reconnect_after_downgrade(self, provisioning, make_session):
        account = await provisioning.connect_account(
            make_session(Role.OWNER, plan=Plan.PRO), "tiktok", "shorts"
        )
        await provisioning.mark_reconnect_needed(account.id)

        with pytest.raises(PlatformNotAvailableError) as exc:
            await provisioning.reconnect_account(make_session(Role.OWNER, plan=Plan.FREE), account.id)

        assert exc.value.recommended_plan == "pro"
        stored = await provisioning.get_account(account.id)
        assert stored.status is AccountStatus.RECONNECT_NEEDED

    @pytest.mark.asyncio
    async def test_disconnect_requires_permission(self, provisioning, make_session):
        account = await provisioning.connect_account(
            make_session(Role.OWNER, plan=Plan.FREE), "instagram", "first"
        )
        with pytest.raises(PermissionDeniedError):
            await provisioning.disconnect_account(make_session(Role.CREATOR), account.id)

    @pytest.mark.asyncio
    async def test_missing_account(self, provisioning, make_session):
        ctx = make_session(Role.OWNER)
        with pytest.raises(AccountNotFoundError):
            await provisioning.disconnect_account(ctx, "acct_missing")
        with pytest.raises(AccountNotFoundError):
            await provisioning.remove_account(ctx, "acct_missing")

    @pytest.mark.asyncio
    async def test_remove(self, provisioning, make_session):
        ctx = make_session(Role.OWNER, plan=Plan.FREE)
        account = await provisioning.connect_account(ctx, "instagram", "first")
        await provisioning.remove_account(ctx, account.id)
        assert await provisioning.list_accounts() == []


# =============================================================================
# Reporting
# =============================================================================


class TestReporting:
    @pytest.mark.asyncio
    async def test_list_filters(self, seeded_storage):
        provisioning = AccountProvisioning(seeded_storage)
        assert len(await provisioning.list_accounts()) == 3
        assert [a.id for a in await provisioning.list_accounts(platform="facebook")] == ["acct_facebook"]
        needing = await provisioning.list_accounts(status=AccountStatus.RECONNECT_NEEDED)
        assert [a.id for a in needing] == ["acct_twitter"]

    @pytest.mark.asyncio
    async def test_stats(self, seeded_storage, make_session):
        provisioning = AccountProvisioning(seeded_storage)
        await provisioning.disconnect_account(make_session(Role.OWNER), "acct_facebook")

        stats = await provisioning.stats()
        assert stats.total == 3
        assert stats.connected == 2
        assert stats.disconnected == 1
        assert stats.by_platform == {
            SocialPlatform.INSTAGRAM: 1,
            SocialPlatform.FACEBOOK: 1,
            SocialPlatform.TWITTER: 1,
        }

    @pytest.mark.asyncio
    async def test_connection_statuses(self, seeded_storage):
        provisioning = AccountProvisioning(seeded_storage)
        statuses = {s.platform: s for s in await provisioning.connection_statuses(Plan.STARTER)}

        assert statuses[SocialPlatform.TWITTER].is_connected
        assert statuses[SocialPlatform.LINKEDIN].is_available
        assert not statuses[SocialPlatform.LINKEDIN].is_connected
        assert not statuses[SocialPlatform.TIKTOK].is_available
        assert statuses[SocialPlatform.INSTAGRAM].max_accounts == 5
