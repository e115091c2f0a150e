from datetime import datetime

from sqlmodel import Field, SQLModel

from ..enums import RequestStatus, UserType
from .common import generate_id, utcnow


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=lambda: generate_id("usr"), primary_key=True)
    username: str = Field(index=True, unique=True)
    display_name: str
    avatar_url: str | None = Field(default=None)
    hashed_password: str | None = Field(default=None)
    user_type: UserType = Field(default=UserType.NORMAL)
    claimed: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)


class Friendship(SQLModel, table=True):
    """One row per direction; a friendship is always stored as a pair."""

    __tablename__ = "friendships"

    user_id: str = Field(foreign_key="users.id", primary_key=True)
    friend_id: str = Field(foreign_key="users.id", primary_key=True)
    created_at: datetime = Field(default_factory=utcnow)


class FriendRequest(SQLModel, table=True):
    __tablename__ = "friend_requests"

    id: str = Field(default_factory=lambda: generate_id("freq"), primary_key=True)
    from_user_id: str = Field(foreign_key="users.id", index=True)
    to_user_id: str = Field(foreign_key="users.id", index=True)
    status: RequestStatus = Field(default=RequestStatus.PENDING)
    created_at: datetime = Field(default_factory=utcnow)
    responded_at: datetime | None = Field(default=None)
