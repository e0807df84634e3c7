"""
Tests for the user directory: filtering, role changes and invitations.
"""

import pytest

from postelma.auth import Capability, get_session_context
from postelma.config import Settings
from postelma.core.errors import InvitationError, PermissionDeniedError, UserNotFoundError
from postelma.core.models import InvitationStatus, Plan, Role, User
from postelma.services import UserDirectory


@pytest.fixture
def directory(seeded_storage, settings):
    return UserDirectory(seeded_storage, settings)


# =============================================================================
# Queries
# =============================================================================


class TestQueries:
    @pytest.mark.asyncio
    async def test_list_and_get(self, directory):
        users = await directory.list_users()
        assert {u.id for u in users} == {"user_owner", "user_manager", "user_creator", "user_viewer"}

        owner = await directory.get_user("user_owner")
        assert owner.role is Role.OWNER

    @pytest.mark.asyncio
    async def test_get_missing(self, directory):
        with pytest.raises(UserNotFoundError):
            await directory.get_user("user_nobody")

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, directory):
        found = await directory.filter_users(search="MANAGER")
        assert [u.id for u in found] == ["user_manager"]
        assert len(await directory.filter_users(search="postelma")) == 4

    @pytest.mark.asyncio
    async def test_filter_roles_and_activity(self, directory):
        found = await directory.filter_users(roles=["creator", "viewer"], is_active=True)
        assert [u.id for u in found] == ["user_creator"]

        inactive = await directory.filter_users(is_active=False)
        assert [u.id for u in inactive] == ["user_viewer"]

    @pytest.mark.asyncio
    async def test_users_by_role(self, directory):
        assert [u.id for u in await directory.users_by_role(Role.OWNER)] == ["user_owner"]

    @pytest.mark.asyncio
    async def test_stats(self, directory):
        stats = await directory.stats()
        assert stats.total == 4
        assert stats.active == 3
        assert stats.inactive == 1
        assert stats.by_role == {role: 1 for role in Role}


# =============================================================================
# Team Management
# =============================================================================


class TestRoleChanges:
    @pytest.mark.asyncio
    async def test_change_takes_effect_for_new_sessions(self, directory, seeded_storage, make_session):
        owner = make_session(Role.OWNER)
        before = await get_session_context("user_creator", seeded_storage, plan=Plan.FREE)
        assert not before.can(Capability.CAN_PUBLISH)

        updated = await directory.update_user_role(owner, "user_creator", "manager")
        assert updated.role is Role.MANAGER

        after = await get_session_context("user_creator", seeded_storage, plan=Plan.FREE)
        assert after.can(Capability.CAN_PUBLISH)

        await before.refresh(seeded_storage)
        assert before.can(Capability.CAN_PUBLISH)

    @pytest.mark.asyncio
    async def test_own_role_change_updates_context(self, directory, seeded_storage):
        await directory.save_user(User(id="user_cofounder", email="co@example.com", name="Co", role=Role.OWNER))
        owner = await get_session_context("user_owner", seeded_storage, plan=Plan.FREE)

        await directory.update_user_role(owner, "user_owner", Role.VIEWER)
        assert not owner.can(Capability.CAN_MANAGE_BILLING)

    @pytest.mark.asyncio
    async def test_last_owner_keeps_role(self, directory, seeded_storage):
        owner = await get_session_context("user_owner", seeded_storage, plan=Plan.FREE)

        with pytest.raises(PermissionDeniedError):
            await directory.update_user_role(owner, "user_owner", Role.VIEWER)

        assert owner.can(Capability.CAN_MANAGE_BILLING)
        assert [u.id for u in await directory.users_by_role(Role.OWNER)] == ["user_owner"]

    @pytest.mark.asyncio
    async def test_suspended_owner_does_not_count(self, directory, seeded_storage):
        await directory.save_user(
            User(id="user_cofounder", email="co@example.com", name="Co", role=Role.OWNER, is_active=False)
        )
        owner = await get_session_context("user_owner", seeded_storage, plan=Plan.FREE)

        with pytest.raises(PermissionDeniedError):
            await directory.update_user_role(owner, "user_owner", Role.MANAGER)

    @pytest.mark.asyncio
    async def test_manager_limited_to_creators_and_viewers(self, directory, make_session):
        manager = make_session(Role.MANAGER)
        await directory.update_user_role(manager, "user_creator", Role.VIEWER)

        with pytest.raises(PermissionDeniedError):
            await directory.update_user_role(manager, "user_creator", Role.MANAGER)

    @pytest.mark.asyncio
    async def test_manager_cannot_demote_owner(self, directory, make_session):
        with pytest.raises(PermissionDeniedError):
            await directory.update_user_role(make_session(Role.MANAGER), "user_owner", Role.VIEWER)
        assert (await directory.get_user("user_owner")).role is Role.OWNER

    @pytest.mark.asyncio
    async def test_creator_cannot_change_roles(self, directory, make_session):
        with pytest.raises(PermissionDeniedError):
            await directory.update_user_role(make_session(Role.CREATOR), "user_viewer", Role.CREATOR)


class TestMembership:
    @pytest.mark.asyncio
    async def test_owner_removes_member(self, directory, make_session):
        await directory.remove_user(make_session(Role.OWNER), "user_creator")
        with pytest.raises(UserNotFoundError):
            await directory.get_user("user_creator")

    @pytest.mark.asyncio
    async def test_cannot_remove_self(self, directory, make_session):
        with pytest.raises(PermissionDeniedError):
            await directory.remove_user(make_session(Role.OWNER), "user_owner")

    @pytest.mark.asyncio
    async def test_manager_cannot_remove_owner(self, directory, make_session):
        with pytest.raises(PermissionDeniedError):
            await directory.remove_user(make_session(Role.MANAGER), "user_owner")

    @pytest.mark.asyncio
    async def test_suspended_user_loses_access(self, directory, seeded_storage, make_session):
        await directory.set_active(make_session(Role.MANAGER), "user_creator", False)
        ctx = await get_session_context("user_creator", seeded_storage, plan=Plan.FREE)
        assert not ctx.is_authenticated

        await directory.set_active(make_session(Role.MANAGER), "user_creator", True)
        ctx = await get_session_context("user_creator", seeded_storage, plan=Plan.FREE)
        assert ctx.can(Capability.CAN_SCHEDULE)


# =============================================================================
# Invitations
# =============================================================================


class TestInvitations:
    @pytest.mark.asyncio
    async def test_invite_and_accept(self, directory, make_session):
        invitation = await directory.invite_user(make_session(Role.OWNER), "new@example.com", "manager")
        assert invitation.status is InvitationStatus.PENDING
        assert invitation.invited_by == "user_owner"
        assert (invitation.expires_at - invitation.invited_at).days == 7

        user = await directory.accept_invitation(invitation.token, "New Person")
        assert user.role is Role.MANAGER
        assert user.email == "new@example.com"

        accepted = await directory.list_invitations(status="accepted")
        assert [i.id for i in accepted] == [invitation.id]

    @pytest.mark.asyncio
    async def test_manager_cannot_invite_manager(self, directory, make_session):
        with pytest.raises(PermissionDeniedError):
            await directory.invite_user(make_session(Role.MANAGER), "new@example.com", Role.MANAGER)

    @pytest.mark.asyncio
    async def test_viewer_cannot_invite(self, directory, make_session):
        with pytest.raises(PermissionDeniedError):
            await directory.invite_user(make_session(Role.VIEWER), "new@example.com", Role.VIEWER)

    @pytest.mark.asyncio
    async def test_existing_member(self, directory, make_session):
        with pytest.raises(InvitationError):
            await directory.invite_user(make_session(Role.OWNER), "creator@postelma.com", Role.VIEWER)

    @pytest.mark.asyncio
    async def test_duplicate_pending(self, directory, make_session):
        owner = make_session(Role.OWNER)
        await directory.invite_user(owner, "new@example.com", Role.CREATOR)
        with pytest.raises(InvitationError):
            await directory.invite_user(owner, "new@example.com", Role.VIEWER)

    @pytest.mark.asyncio
    async def test_member_added_before_accept(self, directory, make_session):
        invitation = await directory.invite_user(make_session(Role.OWNER), "dup@example.com", Role.CREATOR)
        await directory.save_user(User(email="dup@example.com", name="Already Here"))

        with pytest.raises(InvitationError):
            await directory.accept_invitation(invitation.token, "Dup")

        assert len(await directory.filter_users(search="dup@example.com")) == 1
        pending = await directory.list_invitations(status=InvitationStatus.PENDING)
        assert [i.id for i in pending] == [invitation.id]

    @pytest.mark.asyncio
    async def test_cancelled_cannot_be_accepted(self, directory, make_session):
        owner = make_session(Role.OWNER)
        invitation = await directory.invite_user(owner, "new@example.com", Role.CREATOR)

        cancelled = await directory.cancel_invitation(owner, invitation.id)
        assert cancelled.status is InvitationStatus.CANCELLED

        with pytest.raises(InvitationError):
            await directory.accept_invitation(invitation.token, "New Person")
        with pytest.raises(InvitationError):
            await directory.cancel_invitation(owner, invitation.id)

    @pytest.mark.asyncio
    async def test_expired(self, seeded_storage, make_session):
        directory = UserDirectory(seeded_storage, Settings(_env_file=None, invitation_expiry_days=0))
        invitation = await directory.invite_user(make_session(Role.OWNER), "late@example.com", Role.VIEWER)

        with pytest.raises(InvitationError):
            await directory.accept_invitation(invitation.token, "Late")

        expired = await directory.list_invitations(status=InvitationStatus.EXPIRED)
        assert [i.id for i in expired] == [invitation.id]
        assert await directory.get_user_by_email("late@example.com") is None

    @pytest.mark.asyncio
    async def test_invalid_token(self, directory):
        with pytest.raises(InvitationError):
            await directory.accept_invitation("not-a-token", "Nobody")
