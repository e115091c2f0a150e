from dataclasses import dataclass
from typing import Mapping, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ..game.calendar import WeekRange, previous_weeks
from ..game.scoring import (
    DailyResult,
    HeadToHead,
    MemberProfile,
    PlayerStats,
    WeeklyStanding,
    build_daily_result,
    build_head_to_head,
    build_player_stats,
    build_weekly_standings,
    is_revealed,
    submitters_of,
)
from .score_service import ScoreService


@dataclass
class WeekHistory:
    week: WeekRange
    daily_results: list[DailyResult]
    standings: list[WeeklyStanding]


class StatsService:
    """Loads a group's scores once and hands them to the pure scoring functions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.scores = ScoreService(session)

    async def daily_result(self, date_key: str, member_ids: Sequence[str]) -> DailyResult:
        scores = await self.scores.get_scores_for_date(date_key, member_ids)
        revealed = is_revealed(member_ids, submitters_of(scores))
        return build_daily_result(date_key, member_ids, scores, revealed)

    async def weekly_standings(
        self,
        member_ids: Sequence[str],
        week: WeekRange,
        profiles: Mapping[str, MemberProfile] | None = None,
    ) -> list[WeeklyStanding]:
        scores_by_date = await self.scores.get_scores_by_date(member_ids, week.dates)
        return build_weekly_standings(member_ids, week.dates, scores_by_date, profiles)

    async def player_stats(
        self,
        member_ids: Sequence[str],
        profiles: Mapping[str, MemberProfile] | None = None,
    ) -> list[PlayerStats]:
        scores_by_date = await self.scores.get_scores_by_date(member_ids)
        return build_player_stats(member_ids, scores_by_date, profiles)

    async def head_to_head(self, member_ids: Sequence[str]) -> list[HeadToHead]:
        scores_by_date = await self.scores.get_scores_by_date(member_ids)
        return build_head_to_head(member_ids, scores_by_date)

    async def history(
        self,
        member_ids: Sequence[str],
        week_count: int,
        profiles: Mapping[str, MemberProfile] | None = None,
    ) -> list[WeekHistory]:
        weeks = previous_weeks(week_count)
        all_dates = [date_key for week in weeks for date_key in week.dates]
        scores_by_date = await self.scores.get_scores_by_date(member_ids, all_dates)

        history: list[WeekHistory] = []
        for week in weeks:
            daily_results: list[DailyResult] = []
            for date_key in week.dates:
                day_scores = {member_id: scores_by_date.get(date_key, {}).get(member_id) for member_id in member_ids}
                if not any(score is not None for score in day_scores.values()):
                    continue
                if not is_revealed(member_ids, submitters_of(day_scores)):
                    continue
                daily_results.append(build_daily_result(date_key, member_ids, day_scores, True))
            history.append(
                WeekHistory(
                    week=week,
                    daily_results=daily_results,
                    standings=build_weekly_standings(member_ids, week.dates, scores_by_date, profiles),
                )
            )
        return history
