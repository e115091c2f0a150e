from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..enums import RequestStatus, RevealMode
from .user import UserSummary


class GroupCreate(BaseModel):
    name: str


class GroupUpdate(BaseModel):
    name: str


class GroupPublic(BaseModel):
    id: str
    name: str
    created_by: str
    reveal_mode: RevealMode
    is_original: bool
    created_at: datetime

    class Config:
        from_attributes = True


class GroupMembersResponse(BaseModel):
    members: list[UserSummary]
    admin_ids: list[str]


class GroupDetail(GroupMembersResponse):
    group: GroupPublic


class GroupInviteCreate(BaseModel):
    user_id: str


class GroupInvitePublic(BaseModel):
    id: str
    group_id: str
    from_user_id: str
    to_user_id: str
    status: RequestStatus
    created_at: datetime
    responded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupInviteSummary(GroupInvitePublic):
    group_name: Optional[str] = None
    from_user: Optional[UserSummary] = None


class GroupInviteRespond(BaseModel):
    invite_id: str
    action: RequestStatus
