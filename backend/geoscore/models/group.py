from datetime import datetime

from sqlmodel import Field, SQLModel

from ..enums import RequestStatus, RevealMode
from .common import generate_id, utcnow


class Group(SQLModel, table=True):
    __tablename__ = "groups"

    id: str = Field(default_factory=lambda: generate_id("grp"), primary_key=True)
    name: str
    created_by: str = Field(foreign_key="users.id")
    reveal_mode: RevealMode = Field(default=RevealMode.ALL_SUBMITTED)
    is_original: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)


class GroupMember(SQLModel, table=True):
    __tablename__ = "group_members"

    group_id: str = Field(foreign_key="groups.id", primary_key=True)
    user_id: str = Field(foreign_key="users.id", primary_key=True, index=True)
    is_admin: bool = Field(default=False)
    joined_at: datetime = Field(default_factory=utcnow)


class GroupInvite(SQLModel, table=True):
    __tablename__ = "group_invites"

    id: str = Field(default_factory=lambda: generate_id("ginv"), primary_key=True)
    group_id: str = Field(foreign_key="groups.id", index=True)
    from_user_id: str = Field(foreign_key="users.id")
    to_user_id: str = Field(foreign_key="users.id", index=True)
    status: RequestStatus = Field(default=RequestStatus.PENDING)
    created_at: datetime = Field(default_factory=utcnow)
    responded_at: datetime | None = Field(default=None)
