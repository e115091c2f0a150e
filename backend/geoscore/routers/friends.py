from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..dependencies import get_current_user
from ..enums import NotificationType, RequestStatus
from ..models import User
from ..schemas.friend import (
    FriendListResponse,
    FriendRequestCreate,
    FriendRequestPublic,
    FriendRequestRespond,
    FriendRequestSummary,
)
from ..schemas.user import UserSummary
from ..services.friend_service import FriendService
from ..services.notification_service import NotificationService
from ..services.user_service import UserService

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("", response_model=FriendListResponse)
async def list_friends(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> FriendListResponse:
    friend_ids = await FriendService(session).friend_ids(current_user.id)
    users = await UserService(session).get_users(friend_ids)
    return FriendListResponse(
        friends=[UserSummary.model_validate(users[friend_id]) for friend_id in friend_ids if friend_id in users]
    )


@router.post("/request", response_model=FriendRequestPublic, status_code=status.HTTP_201_CREATED)
async def send_friend_request(
    payload: FriendRequestCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    if payload.user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot friend yourself.")
    target = await UserService(session).get_user(payload.user_id)
    if not target:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

    try:
        request = await FriendService(session).create_request(from_user_id=current_user.id, to_user_id=target.id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    await NotificationService(session).notify(
        target.id,
        NotificationType.FRIEND_REQUEST,
        "Friend Request",
        f"{current_user.display_name} wants to be friends!",
        {"request_id": request.id, "from_user_id": current_user.id},
    )
    return request


@router.get("/request", response_model=list[FriendRequestSummary])
async def list_friend_requests(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[FriendRequestSummary]:
    requests = await FriendService(session).pending_requests_for(current_user.id)
    senders = await UserService(session).get_users(request.from_user_id for request in requests)

    summaries: list[FriendRequestSummary] = []
    for request in requests:
        summary = FriendRequestSummary.model_validate(request)
        sender = senders.get(request.from_user_id)
        summary.from_user = UserSummary.model_validate(sender) if sender else None
        summaries.append(summary)
    return summaries


@router.patch("/{request_id}", response_model=FriendRequestPublic)
async def respond_to_friend_request(
    request_id: str,
    payload: FriendRequestRespond,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    if payload.action not in (RequestStatus.ACCEPTED, RequestStatus.DECLINED):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Action must be accepted or declined.")

    service = FriendService(session)
    request = await service.get_request(request_id)
    if not request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found.")
    if request.to_user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your request.")

    result = await service.respond(request, payload.action)
    if result is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request has already been answered.")

    if result.status == RequestStatus.ACCEPTED:
        await NotificationService(session).notify(
            result.from_user_id,
            NotificationType.FRIEND_ACCEPTED,
            "Friend Request Accepted",
            f"{current_user.display_name} accepted your friend request!",
            {"user_id": current_user.id},
        )
    return result


@router.delete("/{friend_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_friend(
    friend_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> None:
    service = FriendService(session)
    if not await service.are_friends(current_user.id, friend_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not friends.")
    await service.remove_friendship(current_user.id, friend_id)
