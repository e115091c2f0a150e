import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..dependencies import get_current_user
from ..enums import NotificationType
from ..game.calendar import parse_date_key, today_key
from ..game.scoring import is_revealed
from ..models import User
from ..schemas.score import (
    DailyScorePublic,
    GroupRevealState,
    ScoreHistoryResponse,
    ScoreSubmit,
    ScoreSubmitResponse,
    TodayResponse,
)
from ..services.group_service import GroupService
from ..services.notification_service import NotificationService
from ..services.score_service import ScoreService

router = APIRouter(prefix="/scores", tags=["scores"])
logger = logging.getLogger(__name__)


async def _reveal_states(session: AsyncSession, user: User, date_key: str) -> list[GroupRevealState]:
    groups = GroupService(session)
    scores = ScoreService(session)
    states: list[GroupRevealState] = []
    for group in await groups.list_user_groups(user.id):
        member_ids = await groups.member_ids(group.id)
        submitters = await scores.get_submitters(date_key, member_ids)
        states.append(
            GroupRevealState(
                group_id=group.id,
                group_name=group.name,
                revealed=is_revealed(member_ids, submitters),
                submitted_count=len(submitters),
                total_members=len(member_ids),
                submitted_user_ids=[member_id for member_id in member_ids if member_id in submitters],
            )
        )
    return states


@router.post("/submit", response_model=ScoreSubmitResponse)
async def submit_scores(
    payload: ScoreSubmit,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ScoreSubmitResponse:
    date_key = payload.date or today_key()
    try:
        score = await ScoreService(session).submit(user_id=current_user.id, date_key=date_key, rounds=payload.rounds)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    states = await _reveal_states(session, current_user, date_key)
    groups = GroupService(session)
    notifications = NotificationService(session)
    # the submitter was the last one missing from every group revealed now
    for state in states:
        if not state.revealed:
            continue
        logger.info("Scores for %s revealed in group %s", date_key, state.group_id)
        await notifications.notify_many(
            await groups.member_ids(state.group_id),
            NotificationType.SCORES_REVEALED,
            "Scores Revealed!",
            f"Everyone in {state.group_name} has submitted. See who won {date_key}!",
            {"group_id": state.group_id, "date": date_key},
        )

    revealed = any(state.revealed for state in states)
    return ScoreSubmitResponse(
        score=DailyScorePublic.model_validate(score),
        revealed=revealed,
        groups=states,
        message=(
            "All scores are in! Results revealed!"
            if revealed
            else "Scores submitted successfully. Waiting for others..."
        ),
    )


@router.get("/today", response_model=TodayResponse)
async def read_today(
    date: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TodayResponse:
    date_key = date or today_key()
    try:
        parse_date_key(date_key)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    score = await ScoreService(session).get_score(current_user.id, date_key)
    submitted = bool(score and score.submitted)
    return TodayResponse(
        date=date_key,
        submitted=submitted,
        my_scores=list(score.rounds) if submitted else None,
        groups=await _reveal_states(session, current_user, date_key),
    )


@router.get("/history", response_model=ScoreHistoryResponse)
async def read_history(
    limit: int | None = Query(default=None, ge=1, le=366),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ScoreHistoryResponse:
    scores = await ScoreService(session).get_history(current_user.id, limit)
    return ScoreHistoryResponse(scores=[DailyScorePublic.model_validate(score) for score in scores])
