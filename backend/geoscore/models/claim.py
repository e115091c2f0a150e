from datetime import datetime

from sqlmodel import Field, SQLModel


class ClaimCode(SQLModel, table=True):
    __tablename__ = "claim_codes"

    code: str = Field(primary_key=True)
    legacy_id: str = Field(foreign_key="users.id", index=True)
    legacy_username: str
    claimed: bool = Field(default=False)
    claimed_by: str | None = Field(default=None)
    claimed_at: datetime | None = Field(default=None)
