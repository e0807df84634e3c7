"""
User directory - team members, role changes and invitations.

Role changes are written straight to storage. Contexts resolved
afterwards (or refreshed) see the new role; the acting context is
updated in place when users change their own role.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable

from pydantic import BaseModel, Field

from postelma.auth.capabilities import Capability, coerce_role
from postelma.auth.context import SessionContext, user_from_document
from postelma.config import Settings, get_settings
from postelma.core.errors import InvitationError, PermissionDeniedError, UserNotFoundError
from postelma.core.models import Invitation, InvitationStatus, Role, User
from postelma.core.utils import generate_token, utc_now
from postelma.storage.base import Collections, MetadataStorage, query_all

logger = logging.getLogger(__name__)


class UserStats(BaseModel):
    """Head counts for the team page."""

    total: int = 0
    active: int = 0
    inactive: int = 0
    by_role: dict[Role, int] = Field(default_factory=lambda: {r: 0 for r in Role})


class UserDirectory:
    """Reads and manages workspace members."""

    def __init__(self, storage: MetadataStorage, settings: Settings | None = None):
        self.storage = storage
        self.settings = settings or get_settings()

    # =========================================================================
    # Users
    # =========================================================================

    async def list_users(self) -> list[User]:
        docs = await query_all(self.storage, Collections.USERS)
        return [user_from_document(doc) for doc in docs]

    async def get_user(self, user_id: str) -> User:
        data = await self.storage.get(Collections.USERS, user_id)
        if not data:
            raise UserNotFoundError(user_id)
        return user_from_document(data)

    async def get_user_by_email(self, email: str) -> User | None:
        docs = await self.storage.query(Collections.USERS, {"email": email}, limit=1)
        return user_from_document(docs[0]) if docs else None

    async def save_user(self, user: User) -> User:
        await self.storage.save(Collections.USERS, user.id, user.model_dump(mode="json"))
        return user

    async def filter_users(
        self,
        roles: Iterable[Role | str] | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> list[User]:
        """
        Filter members by role, activity and a name/email search.

        Search is a case-insensitive substring match.
        """
        wanted = {coerce_role(r) for r in roles} if roles else None
        needle = search.lower() if search else None

        results = []
        for user in await self.list_users():
            if wanted is not None and user.role not in wanted:
                continue
            if is_active is not None and user.is_active != is_active:
                continue
            if needle and needle not in user.name.lower() and needle not in user.email.lower():
                continue
            results.append(user)
        return results

    async def users_by_role(self, role: Role | str) -> list[User]:
        return await self.filter_users(roles=[role])

    async def stats(self) -> UserStats:
        stats = UserStats()
        for user in await self.list_users():
            stats.total += 1
            if user.is_active:
                stats.active += 1
            else:
                stats.inactive += 1
            stats.by_role[user.role] += 1
        return stats

    # =========================================================================
    # Team management
    # =========================================================================

    async def update_user_role(
        self,
        ctx: SessionContext,
        user_id: str,
        role: Role | str,
    ) -> User:
        """
        Give a user a new role.

        The actor must be allowed to assign both the user's current role
        and the new one, so a manager cannot demote an owner. The last
        active owner keeps the owner role.
        """
        ctx.require(Capability.CAN_MANAGE_USERS)
        role = coerce_role(role)
        target = await self.get_user(user_id)

        if not (ctx.can_change_role(target.role) and ctx.can_change_role(role)):
            raise PermissionDeniedError(
                f"Role {ctx.role.value} cannot change {target.role.value} to {role.value}"
            )

        if target.role is Role.OWNER and role is not Role.OWNER:
            await self._ensure_other_owner(target)

        previous = target.role
        target.role = role
        await self.save_user(target)

        if ctx.user_id == target.id:
            ctx.user = target

        logger.info(f"User {user_id} role changed: {previous.value} -> {role.value}")
        return target

    async def set_active(self, ctx: SessionContext, user_id: str, active: bool) -> User:
        """Activate or suspend a member. Suspended members resolve as anonymous."""
        ctx.require(Capability.CAN_MANAGE_USERS)
        target = await self.get_user(user_id)
        if not ctx.can_remove_user(target):
            raise PermissionDeniedError(f"Cannot change status of user {user_id}")

        target.is_active = active
        await self.save_user(target)
        logger.info(f"User {user_id} {'activated' if active else 'suspended'}")
        return target

    async def remove_user(self, ctx: SessionContext, user_id: str) -> None:
        ctx.require(Capability.CAN_MANAGE_USERS)
        target = await self.get_user(user_id)
        if not ctx.can_remove_user(target):
            raise PermissionDeniedError(f"Cannot remove user {user_id}")

        await self.storage.delete(Collections.USERS, user_id)
        logger.info(f"User {user_id} removed by {ctx.user_id}")

    # =========================================================================
    # Invitations
    # =========================================================================

    async def invite_user(
        self,
        ctx: SessionContext,
        email: str,
        role: Role | str,
        message: str | None = None,
    ) -> Invitation:
        ctx.require(Capability.CAN_MANAGE_USERS)
        role = coerce_role(role)
        if not ctx.can_change_role(role):
            raise PermissionDeniedError(f"Role {ctx.role.value} cannot invite {role.value}")

        if await self.get_user_by_email(email):
            raise InvitationError(f"{email} is already a member")

        pending = await self.storage.query(
            Collections.INVITATIONS,
            {"email": email, "status": InvitationStatus.PENDING.value},
            limit=1,
        )
        if pending:
            raise InvitationError(f"{email} already has a pending invitation")

        now = utc_now()
        invitation = Invitation(
            email=email,
            role=role,
            invited_by=ctx.user_id,
            message=message,
            token=generate_token(),
            invited_at=now,
            expires_at=now + timedelta(days=self.settings.invitation_expiry_days),
        )
        await self._save_invitation(invitation)

        logger.info(f"Invited {email} as {role.value} ({invitation.id})")
        return invitation

    async def list_invitations(
        self,
        status: InvitationStatus | str | None = None,
    ) -> list[Invitation]:
        filters = {"status": InvitationStatus(status).value} if status is not None else None
        docs = await query_all(self.storage, Collections.INVITATIONS, filters)
        return [Invitation.model_validate(doc) for doc in docs]

    async def cancel_invitation(self, ctx: SessionContext, invitation_id: str) -> Invitation:
        ctx.require(Capability.CAN_MANAGE_USERS)
        data = await self.storage.get(Collections.INVITATIONS, invitation_id)
        if not data:
            raise InvitationError(f"Invitation not found: {invitation_id}")

        invitation = Invitation.model_validate(data)
        if invitation.status != InvitationStatus.PENDING:
            raise InvitationError(f"Invitation {invitation_id} is {invitation.status.value}")

        invitation.status = InvitationStatus.CANCELLED
        await self._save_invitation(invitation)
        return invitation

    async def accept_invitation(self, token: str, name: str) -> User:
        """Turn a pending invitation into a member with the invited role."""
        docs = await self.storage.query(Collections.INVITATIONS, {"token": token}, limit=1)
        if not docs:
            raise InvitationError("Invalid invitation token")

        invitation = Invitation.model_validate(docs[0])
        if invitation.status != InvitationStatus.PENDING:
            raise InvitationError(f"Invitation is {invitation.status.value}")

        if invitation.is_expired():
            invitation.status = InvitationStatus.EXPIRED
            await self._save_invitation(invitation)
            raise InvitationError("Invitation has expired")

        if await self.get_user_by_email(invitation.email):
            raise InvitationError(f"{invitation.email} is already a member")

        user = await self.save_user(
            User(email=invitation.email, name=name, role=invitation.role)
        )
        invitation.status = InvitationStatus.ACCEPTED
        await self._save_invitation(invitation)

        logger.info(f"Invitation {invitation.id} accepted by {user.id}")
        return user

    async def _ensure_other_owner(self, target: User) -> None:
        # The workspace always keeps one active owner
        owners = await self.filter_users(roles=[Role.OWNER], is_active=True)
        if not any(u.id != target.id for u in owners):
            raise PermissionDeniedError("Cannot change the role of the last owner")

    async def _save_invitation(self, invitation: Invitation) -> None:
        await self.storage.save(
            Collections.INVITATIONS,
            invitation.id,
            invitation.model_dump(mode="json"),
        )
