from typing import Optional, Sequence

from sqlalchemy import delete as sa_delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..enums import RequestStatus
from ..models import FriendRequest, Friendship
from ..models.common import utcnow


class FriendService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def friend_ids(self, user_id: str) -> list[str]:
        statement = (
            select(Friendship.friend_id)
            .where(Friendship.user_id == user_id)
            .order_by(Friendship.created_at)
        )
        return list((await self.session.execute(statement)).scalars().all())

    async def are_friends(self, user_id: str, other_id: str) -> bool:
        return await self.session.get(Friendship, (user_id, other_id)) is not None

    async def add_friendship(self, user_id: str, other_id: str, *, commit: bool = True) -> None:
        for left, right in ((user_id, other_id), (other_id, user_id)):
            if await self.session.get(Friendship, (left, right)) is None:
                self.session.add(Friendship(user_id=left, friend_id=right))
        if commit:
            await self.session.commit()

    async def remove_friendship(self, user_id: str, other_id: str, *, commit: bool = True) -> None:
        await self.session.execute(
            sa_delete(Friendship).where(
                or_(
                    (Friendship.user_id == user_id) & (Friendship.friend_id == other_id),
                    (Friendship.user_id == other_id) & (Friendship.friend_id == user_id),
                )
            )
        )
        if commit:
            await self.session.commit()

    async def create_request(self, *, from_user_id: str, to_user_id: str) -> FriendRequest:
        if from_user_id == to_user_id:
            raise ValueError("Cannot friend yourself.")
        if await self.are_friends(from_user_id, to_user_id):
            raise ValueError("Already friends.")
        pending_stmt = select(FriendRequest).where(
            FriendRequest.from_user_id == from_user_id,
            FriendRequest.to_user_id == to_user_id,
            FriendRequest.status == RequestStatus.PENDING,
        )
        if (await self.session.execute(pending_stmt)).scalars().first():
            raise ValueError("Friend request already pending.")

        request = FriendRequest(from_user_id=from_user_id, to_user_id=to_user_id)
        self.session.add(request)
        await self.session.commit()
        await self.session.refresh(request)
        return request

    async def get_request(self, request_id: str) -> Optional[FriendRequest]:
        return await self.session.get(FriendRequest, request_id)

    async def pending_requests_for(self, user_id: str) -> Sequence[FriendRequest]:
        statement = (
            select(FriendRequest)
            .where(FriendRequest.to_user_id == user_id, FriendRequest.status == RequestStatus.PENDING)
            .order_by(FriendRequest.created_at.desc())
        )
        result = await self.session.execute(statement)
        return result.scalars().all()

    async def respond(self, request: FriendRequest, status: RequestStatus) -> Optional[FriendRequest]:
        if request.status != RequestStatus.PENDING:
            return None
        request.status = status
        request.responded_at = utcnow()
        self.session.add(request)
        if status == RequestStatus.ACCEPTED:
            await self.add_friendship(request.from_user_id, request.to_user_id, commit=False)
        await self.session.commit()
        await self.session.refresh(request)
        return request

    async def reassign_user(self, from_user_id: str, to_user_id: str) -> list[str]:
        friends = await self.friend_ids(from_user_id)
        for friend_id in friends:
            await self.remove_friendship(from_user_id, friend_id, commit=False)
            await self.add_friendship(to_user_id, friend_id, commit=False)
        return friends
