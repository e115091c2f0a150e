from datetime import datetime

from sqlmodel import Field, SQLModel

from .common import utcnow


class DailyInsight(SQLModel, table=True):
    __tablename__ = "daily_insights"

    date: str = Field(primary_key=True)
    title: str
    body: str
    image_url: str | None = Field(default=None)
    image_caption: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
