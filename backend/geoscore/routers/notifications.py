from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..dependencies import get_current_user
from ..models import User
from ..schemas.notification import NotificationListResponse, NotificationPublic
from ..services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> NotificationListResponse:
    service = NotificationService(session)
    notifications = await service.list_recent(current_user.id)
    return NotificationListResponse(
        notifications=[NotificationPublic.model_validate(notification) for notification in notifications],
        unread_count=await service.unread_count(current_user.id),
    )


@router.patch("")
async def mark_notifications_read(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict[str, bool]:
    await NotificationService(session).mark_all_read(current_user.id)
    return {"success": True}
