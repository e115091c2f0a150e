from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class InsightPublic(BaseModel):
    date: str
    title: str
    body: str
    image_url: Optional[str] = None
    image_caption: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InsightListResponse(BaseModel):
    insights: list[InsightPublic]


class InsightResponse(BaseModel):
    insight: InsightPublic
    cached: bool
