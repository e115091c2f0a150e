import logging
from typing import Iterable, Optional, Sequence

from sqlalchemy import update as sa_update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..game.calendar import parse_date_key, utc_today
from ..game.scoring import validate_rounds
from ..models import DailyScore

logger = logging.getLogger(__name__)

ALREADY_SUBMITTED = "You have already submitted scores for today."


def validate_submission_date(date_key: str) -> str:
    if parse_date_key(date_key) > utc_today():
        raise ValueError("Cannot submit scores for a future date.")
    return date_key


class ScoreService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_score(self, user_id: str, date_key: str) -> Optional[DailyScore]:
        statement = select(DailyScore).where(
            DailyScore.user_id == user_id,
            DailyScore.date == date_key,
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def submit(self, *, user_id: str, date_key: str, rounds: Sequence[int]) -> DailyScore:
        validate_submission_date(date_key)
        existing = await self.get_score(user_id, date_key)
        if existing and existing.submitted:
            raise ValueError(ALREADY_SUBMITTED)

        round_one, round_two, round_three = validate_rounds(rounds)
        score = DailyScore(
            user_id=user_id,
            date=date_key,
            round_one=round_one,
            round_two=round_two,
            round_three=round_three,
        )
        self.session.add(score)
        try:
            await self.session.commit()
        except IntegrityError:
            # another request for the same user and date won the race
            await self.session.rollback()
            raise ValueError(ALREADY_SUBMITTED) from None
        await self.session.refresh(score)
        logger.info("User %s submitted %s for %s", user_id, score.rounds, date_key)
        return score

    async def get_scores_for_date(
        self,
        date_key: str,
        member_ids: Sequence[str],
    ) -> dict[str, Optional[DailyScore]]:
        scores: dict[str, Optional[DailyScore]] = {member_id: None for member_id in member_ids}
        if not member_ids:
            return scores
        statement = select(DailyScore).where(
            DailyScore.date == date_key,
            DailyScore.user_id.in_(list(member_ids)),
        )
        for score in (await self.session.execute(statement)).scalars().all():
            scores[score.user_id] = score
        return scores

    async def get_submitters(self, date_key: str, user_ids: Iterable[str]) -> set[str]:
        ids = list(user_ids)
        if not ids:
            return set()
        statement = select(DailyScore.user_id).where(
            DailyScore.date == date_key,
            DailyScore.submitted.is_(True),
            DailyScore.user_id.in_(ids),
        )
        return set((await self.session.execute(statement)).scalars().all())

    async def get_score_dates(self, user_ids: Iterable[str]) -> list[str]:
        ids = list(user_ids)
        if not ids:
            return []
        statement = select(DailyScore.date).where(DailyScore.user_id.in_(ids)).distinct()
        return sorted((await self.session.execute(statement)).scalars().all())

    async def get_scores_by_date(
        self,
        member_ids: Sequence[str],
        dates: Iterable[str] | None = None,
    ) -> dict[str, dict[str, DailyScore]]:
        """Load every score of the given members, grouped as {date: {user_id: score}}."""
        if not member_ids:
            return {}
        statement = select(DailyScore).where(DailyScore.user_id.in_(list(member_ids)))
        if dates is not None:
            statement = statement.where(DailyScore.date.in_(list(dates)))
        grouped: dict[str, dict[str, DailyScore]] = {}
        for score in (await self.session.execute(statement)).scalars().all():
            grouped.setdefault(score.date, {})[score.user_id] = score
        return grouped

    async def get_history(self, user_id: str, limit: int | None = None) -> Sequence[DailyScore]:
        statement = (
            select(DailyScore)
            .where(DailyScore.user_id == user_id, DailyScore.submitted.is_(True))
            .order_by(DailyScore.date.desc())
        )
        if limit:
            statement = statement.limit(limit)
        result = await self.session.execute(statement)
        return result.scalars().all()

    async def reassign_scores(self, from_user_id: str, to_user_id: str) -> int:
        result = await self.session.execute(
            sa_update(DailyScore)
            .where(DailyScore.user_id == from_user_id)
            .values(user_id=to_user_id)
        )
        return result.rowcount or 0
