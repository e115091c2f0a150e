from datetime import datetime
from typing import Any

from pydantic import BaseModel

from ..enums import NotificationType


class NotificationPublic(BaseModel):
    id: str
    type: NotificationType
    title: str
    body: str
    data: dict[str, Any] = {}
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    notifications: list[NotificationPublic]
    unread_count: int
