from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..dependencies import get_current_user
from ..models import User
from ..schemas.user import (
    UserProfile,
    UserPublic,
    UserSearchResponse,
    UserSummary,
    UserUpdate,
    UsernameCheckResponse,
)
from ..services.friend_service import FriendService
from ..services.group_service import GroupService
from ..services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])

MIN_SEARCH_LENGTH = 2


@router.get("/me", response_model=UserPublic)
async def read_current_user(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.patch("/me", response_model=UserPublic)
async def update_current_user(
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> User:
    try:
        return await UserService(session).update_display_name(current_user, payload.display_name)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/search", response_model=UserSearchResponse | UsernameCheckResponse)
async def search_users(
    q: str | None = Query(default=None),
    check: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    service = UserService(session)
    if check:
        lowered = check.strip().lower()
        return UsernameCheckResponse(username=lowered, available=await service.is_username_available(lowered))

    if not q or len(q.strip()) < MIN_SEARCH_LENGTH:
        return UserSearchResponse(users=[])
    users = await service.search(q.strip())
    return UserSearchResponse(users=[UserSummary.model_validate(user) for user in users])


@router.get("/{identifier}", response_model=UserProfile)
async def read_user(
    identifier: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> UserProfile:
    user = await UserService(session).get_by_id_or_username(identifier)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

    groups = await GroupService(session).list_user_groups(user.id)
    is_friend = await FriendService(session).are_friends(current_user.id, user.id)
    return UserProfile(
        user=UserPublic.model_validate(user),
        group_ids=[group.id for group in groups],
        is_friend=is_friend,
    )
