from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from .common import generate_id, utcnow


class DailyScore(SQLModel, table=True):
    __tablename__ = "daily_scores"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_daily_scores_user_date"),)

    id: str = Field(default_factory=lambda: generate_id("scr"), primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    date: str = Field(index=True)
    round_one: int
    round_two: int
    round_three: int
    submitted: bool = Field(default=True)
    submitted_at: datetime = Field(default_factory=utcnow)

    @property
    def rounds(self) -> tuple[int, int, int]:
        return (self.round_one, self.round_two, self.round_three)
