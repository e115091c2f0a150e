from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..enums import UserType


class UserSummary(BaseModel):
    id: str
    username: str
    display_name: str
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class UserPublic(UserSummary):
    user_type: UserType
    claimed: bool
    created_at: datetime


class UserUpdate(BaseModel):
    display_name: str


class UserProfile(BaseModel):
    user: UserPublic
    group_ids: list[str]
    is_friend: bool


class UserSearchResponse(BaseModel):
    users: list[UserSummary]


class UsernameCheckResponse(BaseModel):
    username: str
    available: bool
