from datetime import datetime

from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel

from ..enums import NotificationType
from .common import generate_id, utcnow


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: str = Field(default_factory=lambda: generate_id("notif"), primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    type: NotificationType
    title: str
    body: str
    data: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, index=True)
