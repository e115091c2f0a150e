from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..enums import RequestStatus
from .user import UserSummary


class FriendRequestCreate(BaseModel):
    user_id: str


class FriendRequestPublic(BaseModel):
    id: str
    from_user_id: str
    to_user_id: str
    status: RequestStatus
    created_at: datetime
    responded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FriendRequestSummary(FriendRequestPublic):
    from_user: Optional[UserSummary] = None


class FriendRequestRespond(BaseModel):
    action: RequestStatus


class FriendListResponse(BaseModel):
    friends: list[UserSummary]
