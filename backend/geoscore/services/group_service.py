import logging
from typing import Optional, Sequence

from sqlalchemy import delete as sa_delete, update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..enums import RequestStatus
from ..models import Group, GroupInvite, GroupMember
from ..models.common import utcnow

logger = logging.getLogger(__name__)

MIN_GROUP_NAME_LENGTH = 2
MAX_GROUP_NAME_LENGTH = 50


def validate_group_name(name: str | None) -> str:
    if not isinstance(name, str):
        raise ValueError("Group name must be 2-50 characters.")
    stripped = name.strip()
    if not MIN_GROUP_NAME_LENGTH <= len(stripped) <= MAX_GROUP_NAME_LENGTH:
        raise ValueError("Group name must be 2-50 characters.")
    return stripped


class GroupService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_group(
        self,
        *,
        name: str,
        created_by: str,
        member_ids: Sequence[str] | None = None,
        admin_ids: Sequence[str] | None = None,
        group_id: str | None = None,
        is_original: bool = False,
    ) -> Group:
        group = Group(name=validate_group_name(name), created_by=created_by, is_original=is_original)
        if group_id:
            group.id = group_id
        self.session.add(group)
        await self.session.flush()

        members = list(dict.fromkeys(member_ids or [created_by]))
        admins = set(admin_ids or [created_by])
        for user_id in members:
            self.session.add(GroupMember(group_id=group.id, user_id=user_id, is_admin=user_id in admins))

        await self.session.commit()
        await self.session.refresh(group)
        logger.info("Group %s created by %s", group.id, created_by)
        return group

    async def get_group(self, group_id: str) -> Optional[Group]:
        return await self.session.get(Group, group_id)

    async def list_user_groups(self, user_id: str) -> Sequence[Group]:
        statement = (
            select(Group)
            .join(GroupMember, GroupMember.group_id == Group.id)
            .where(GroupMember.user_id == user_id)
            .order_by(Group.created_at)
        )
        result = await self.session.execute(statement)
        return result.scalars().all()

    async def _memberships(self, group_id: str) -> Sequence[GroupMember]:
        statement = (
            select(GroupMember)
            .where(GroupMember.group_id == group_id)
            .order_by(GroupMember.joined_at, GroupMember.user_id)
        )
        result = await self.session.execute(statement)
        return result.scalars().all()

    async def member_ids(self, group_id: str) -> list[str]:
        return [membership.user_id for membership in await self._memberships(group_id)]

    async def admin_ids(self, group_id: str) -> list[str]:
        return [membership.user_id for membership in await self._memberships(group_id) if membership.is_admin]

    async def get_membership(self, group_id: str, user_id: str) -> Optional[GroupMember]:
        return await self.session.get(GroupMember, (group_id, user_id))

    async def is_member(self, group_id: str, user_id: str) -> bool:
        return await self.get_membership(group_id, user_id) is not None

    async def is_admin(self, group_id: str, user_id: str) -> bool:
        membership = await self.get_membership(group_id, user_id)
        return bool(membership and membership.is_admin)

    async def remove_member(self, group_id: str, user_id: str) -> bool:
        membership = await self.get_membership(group_id, user_id)
        if not membership:
            return False
        await self.session.delete(membership)
        await self.session.commit()
        return True

    async def rename(self, group: Group, name: str) -> Group:
        group.name = validate_group_name(name)
        self.session.add(group)
        await self.session.commit()
        await self.session.refresh(group)
        return group

    async def delete_group(self, group: Group) -> None:
        await self.session.execute(sa_delete(GroupInvite).where(GroupInvite.group_id == group.id))
        await self.session.execute(sa_delete(GroupMember).where(GroupMember.group_id == group.id))
        await self.session.delete(group)
        await self.session.commit()
        logger.info("Group %s deleted", group.id)

    async def reassign_user(self, from_user_id: str, to_user_id: str) -> list[str]:
        """Move every membership, admin flag and group ownership to another user."""
        memberships = (
            await self.session.execute(select(GroupMember).where(GroupMember.user_id == from_user_id))
        ).scalars().all()
        group_ids: list[str] = []
        for membership in memberships:
            group_ids.append(membership.group_id)
            self.session.add(
                GroupMember(
                    group_id=membership.group_id,
                    user_id=to_user_id,
                    is_admin=membership.is_admin,
                    joined_at=membership.joined_at,
                )
            )
            await self.session.delete(membership)
        await self.session.execute(
            sa_update(Group).where(Group.created_by == from_user_id).values(created_by=to_user_id)
        )
        return group_ids

    async def create_invite(self, *, group: Group, from_user_id: str, to_user_id: str) -> GroupInvite:
        if await self.is_member(group.id, to_user_id):
            raise ValueError("User is already a member.")
        invite = GroupInvite(group_id=group.id, from_user_id=from_user_id, to_user_id=to_user_id)
        self.session.add(invite)
        await self.session.commit()
        await self.session.refresh(invite)
        return invite

    async def get_invite(self, invite_id: str) -> Optional[GroupInvite]:
        return await self.session.get(GroupInvite, invite_id)

    async def pending_invites_for(self, user_id: str) -> Sequence[GroupInvite]:
        statement = (
            select(GroupInvite)
            .where(GroupInvite.to_user_id == user_id, GroupInvite.status == RequestStatus.PENDING)
            .order_by(GroupInvite.created_at.desc())
        )
        result = await self.session.execute(statement)
        return result.scalars().all()

    async def respond_to_invite(self, invite: GroupInvite, status: RequestStatus) -> Optional[GroupInvite]:
        if invite.status != RequestStatus.PENDING:
            return None
        invite.status = status
        invite.responded_at = utcnow()
        self.session.add(invite)
        if status == RequestStatus.ACCEPTED and await self.get_group(invite.group_id):
            if not await self.is_member(invite.group_id, invite.to_user_id):
                self.session.add(GroupMember(group_id=invite.group_id, user_id=invite.to_user_id))
        await self.session.commit()
        await self.session.refresh(invite)
        return invite
