import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import get_session
from ..dependencies import get_current_user
from ..enums import NotificationType
from ..game.calendar import today_key
from ..models import User
from ..schemas.insight import InsightListResponse, InsightPublic, InsightResponse
from ..services.group_service import GroupService
from ..services.insight_service import (
    InsightGenerationError,
    InsightGenerator,
    InsightService,
    get_insight_generator,
)
from ..services.notification_service import NotificationService

router = APIRouter(prefix="/insights", tags=["insights"])
settings = get_settings()
logger = logging.getLogger(__name__)


async def _require_og_member(session: AsyncSession, user: User) -> list[str]:
    member_ids = await GroupService(session).member_ids(settings.og_group_id)
    if user.id not in member_ids:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="OG members only.")
    return member_ids


@router.get("", response_model=InsightListResponse)
async def list_insights(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> InsightListResponse:
    await _require_og_member(session, current_user)
    insights = await InsightService(session).list_all()
    return InsightListResponse(insights=[InsightPublic.model_validate(insight) for insight in insights])


@router.post("", response_model=InsightResponse)
async def create_daily_insight(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    generator: InsightGenerator | None = Depends(get_insight_generator),
) -> InsightResponse:
    member_ids = await _require_og_member(session, current_user)
    service = InsightService(session)
    date_key = today_key()

    existing = await service.get(date_key)
    if existing:
        return InsightResponse(insight=InsightPublic.model_validate(existing), cached=True)

    if generator is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Insight generator is not configured.")

    try:
        generated = await generator.generate(await service.previous_bodies())
    except InsightGenerationError as exc:
        logger.exception("Daily insight generation failed for %s", date_key)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    insight, created = await service.save(date_key, generated)
    if created:
        await NotificationService(session).notify_many(
            member_ids,
            NotificationType.DAILY_INSIGHT,
            "Daily GeoGuessr Insight",
            insight.title,
            {"date": date_key},
        )
        logger.info("Daily insight stored for %s", date_key)
    return InsightResponse(insight=InsightPublic.model_validate(insight), cached=not created)
