"""Daily results, weekly standings and all-time stats.

Everything here is pure: callers load scores from storage and pass them in as
``{date_key: {user_id: score}}`` mappings, where a score is anything exposing
``rounds`` and ``submitted`` (the ``DailyScore`` table model or a
:class:`ScoreCard`).
"""
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from .calendar import week_range_for_key

MAX_ROUND_SCORE = 5000
ROUNDS_PER_DAY = 3


class ScoreLike(Protocol):
    rounds: Sequence[int]
    submitted: bool


@dataclass(frozen=True)
class ScoreCard:
    rounds: tuple[int, int, int]
    submitted: bool = True


@dataclass(frozen=True)
class MemberProfile:
    display_name: str
    username: str
    avatar_url: Optional[str] = None


@dataclass
class DayScore:
    rounds: tuple[int, int, int]
    total: int


@dataclass
class DailyResult:
    date: str
    scores: dict[str, Optional[DayScore]]
    winner: Optional[str]
    gd_winner: Optional[str]
    revealed: bool
    submitted_count: int
    total_members: int


@dataclass
class WeeklyStanding:
    user_id: str
    display_name: str
    username: str
    avatar_url: Optional[str] = None
    days_won: int = 0
    gd_points: int = 0
    total_points: int = 0
    is_week_winner: bool = False

    @property
    def rank_key(self) -> tuple[int, int, int]:
        return (self.days_won, self.gd_points, self.total_points)


@dataclass
class PlayerStats:
    user_id: str
    display_name: str
    username: str
    total_points: int = 0
    games_played: int = 0
    average_daily: int = 0
    best_daily: int = 0
    best_round: int = 0
    days_won: int = 0
    weeks_won: int = 0
    gd_points: int = 0
    current_streak: int = 0
    best_streak: int = 0
    perfect_rounds: int = 0


@dataclass
class HeadToHead:
    user_id: str
    opponent_id: str
    wins: int = 0
    losses: int = 0


@dataclass
class _StreakTracker:
    current: dict[str, int] = field(default_factory=dict)
    best: dict[str, int] = field(default_factory=dict)

    def record(self, member_ids: Iterable[str], winner: Optional[str]) -> None:
        for member_id in member_ids:
            if winner == member_id:
                self.current[member_id] = self.current.get(member_id, 0) + 1
                self.best[member_id] = max(self.best.get(member_id, 0), self.current[member_id])
            elif winner is not None:
                self.current[member_id] = 0


def validate_rounds(rounds: Sequence[int]) -> tuple[int, int, int]:
    if rounds is None or len(rounds) != ROUNDS_PER_DAY:
        raise ValueError("Must provide exactly 3 round scores.")
    for value in rounds:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_ROUND_SCORE:
            raise ValueError("Each round score must be an integer between 0 and 5000.")
    return (rounds[0], rounds[1], rounds[2])


def daily_total(rounds: Sequence[int]) -> int:
    return sum(rounds)


def _is_submitted(score: Optional[ScoreLike]) -> bool:
    return score is not None and bool(score.submitted)


def submitters_of(scores: Mapping[str, Optional[ScoreLike]]) -> set[str]:
    return {user_id for user_id, score in scores.items() if _is_submitted(score)}


def is_revealed(member_ids: Iterable[str], submitter_ids: Iterable[str]) -> bool:
    """A day is revealed once every current member is among the submitters."""
    submitted = set(submitter_ids)
    return all(member_id in submitted for member_id in member_ids)


def _unique_leader(values: Mapping[str, int]) -> Optional[str]:
    if not values:
        return None
    ranked = sorted(values.items(), key=lambda item: item[1], reverse=True)
    if len(ranked) == 1 or ranked[0][1] > ranked[1][1]:
        return ranked[0][0]
    return None


def build_daily_result(
    date_key: str,
    member_ids: Sequence[str],
    scores: Mapping[str, Optional[ScoreLike]],
    revealed: bool,
) -> DailyResult:
    result_scores: dict[str, Optional[DayScore]] = {}
    totals: dict[str, int] = {}
    best_rounds: dict[str, int] = {}

    for member_id in member_ids:
        score = scores.get(member_id)
        if not _is_submitted(score):
            result_scores[member_id] = None
            continue
        rounds = tuple(score.rounds)
        totals[member_id] = daily_total(rounds)
        best_rounds[member_id] = max(rounds)
        result_scores[member_id] = DayScore(rounds=rounds, total=totals[member_id]) if revealed else None

    winner = _unique_leader(totals) if revealed else None
    gd_winner = _unique_leader(best_rounds) if revealed else None

    return DailyResult(
        date=date_key,
        scores=result_scores,
        winner=winner,
        gd_winner=gd_winner,
        revealed=revealed,
        submitted_count=len(totals),
        total_members=len(member_ids),
    )


def _member_scores(
    member_ids: Sequence[str],
    scores_by_date: Mapping[str, Mapping[str, Optional[ScoreLike]]],
    date_key: str,
) -> dict[str, Optional[ScoreLike]]:
    day = scores_by_date.get(date_key) or {}
    return {member_id: day.get(member_id) for member_id in member_ids}


def _revealed_result(
    member_ids: Sequence[str],
    scores_by_date: Mapping[str, Mapping[str, Optional[ScoreLike]]],
    date_key: str,
) -> tuple[Optional[DailyResult], dict[str, Optional[ScoreLike]]]:
    day_scores = _member_scores(member_ids, scores_by_date, date_key)
    if not is_revealed(member_ids, submitters_of(day_scores)):
        return None, day_scores
    return build_daily_result(date_key, member_ids, day_scores, True), day_scores


def _profile_for(member_id: str, profiles: Mapping[str, MemberProfile] | None) -> MemberProfile:
    if profiles and member_id in profiles:
        return profiles[member_id]
    return MemberProfile(display_name=member_id, username=member_id)


def build_weekly_standings(
    member_ids: Sequence[str],
    week_dates: Sequence[str],
    scores_by_date: Mapping[str, Mapping[str, Optional[ScoreLike]]],
    profiles: Mapping[str, MemberProfile] | None = None,
) -> list[WeeklyStanding]:
    standings: dict[str, WeeklyStanding] = {}
    for member_id in member_ids:
        profile = _profile_for(member_id, profiles)
        standings[member_id] = WeeklyStanding(
            user_id=member_id,
            display_name=profile.display_name,
            username=profile.username,
            avatar_url=profile.avatar_url,
        )

    for date_key in week_dates:
        result, day_scores = _revealed_result(member_ids, scores_by_date, date_key)
        if result is None:
            continue
        if result.winner:
            standings[result.winner].days_won += 1
        if result.gd_winner:
            standings[result.gd_winner].gd_points += 1
        for member_id, score in day_scores.items():
            if _is_submitted(score):
                standings[member_id].total_points += daily_total(score.rounds)

    ranked = sorted(standings.values(), key=lambda standing: standing.rank_key, reverse=True)

    # The leader needs at least one day won and a strict edge over the
    # runner-up on the first of (days_won, gd_points, total_points) that differs.
    if ranked and ranked[0].days_won > 0:
        if len(ranked) == 1 or ranked[0].rank_key > ranked[1].rank_key:
            ranked[0].is_week_winner = True

    return ranked


def build_player_stats(
    member_ids: Sequence[str],
    scores_by_date: Mapping[str, Mapping[str, Optional[ScoreLike]]],
    profiles: Mapping[str, MemberProfile] | None = None,
) -> list[PlayerStats]:
    stats: dict[str, PlayerStats] = {}
    for member_id in member_ids:
        profile = _profile_for(member_id, profiles)
        stats[member_id] = PlayerStats(
            user_id=member_id,
            display_name=profile.display_name,
            username=profile.username,
        )

    streaks = _StreakTracker()
    processed_weeks: set[str] = set()

    for date_key in sorted(scores_by_date):
        result, day_scores = _revealed_result(member_ids, scores_by_date, date_key)
        if result is None:
            continue

        for member_id, score in day_scores.items():
            if not _is_submitted(score):
                continue
            member_stats = stats[member_id]
            total = daily_total(score.rounds)
            member_stats.games_played += 1
            member_stats.total_points += total
            member_stats.best_daily = max(member_stats.best_daily, total)
            member_stats.best_round = max(member_stats.best_round, max(score.rounds))
            member_stats.perfect_rounds += sum(1 for value in score.rounds if value == MAX_ROUND_SCORE)

        if result.winner:
            stats[result.winner].days_won += 1
        if result.gd_winner:
            stats[result.gd_winner].gd_points += 1
        streaks.record(member_ids, result.winner)

        week = week_range_for_key(date_key)
        if week.start not in processed_weeks:
            processed_weeks.add(week.start)
            standings = build_weekly_standings(member_ids, week.dates, scores_by_date, profiles)
            week_winner = next((standing for standing in standings if standing.is_week_winner), None)
            if week_winner:
                stats[week_winner.user_id].weeks_won += 1

    for member_id, member_stats in stats.items():
        if member_stats.games_played:
            # round half up
            member_stats.average_daily = int(member_stats.total_points / member_stats.games_played + 0.5)
        member_stats.current_streak = streaks.current.get(member_id, 0)
        member_stats.best_streak = streaks.best.get(member_id, 0)

    return list(stats.values())


def build_head_to_head(
    member_ids: Sequence[str],
    scores_by_date: Mapping[str, Mapping[str, Optional[ScoreLike]]],
) -> list[HeadToHead]:
    records = {
        (user_id, opponent_id): HeadToHead(user_id=user_id, opponent_id=opponent_id)
        for user_id in member_ids
        for opponent_id in member_ids
        if user_id != opponent_id
    }

    for date_key in sorted(scores_by_date):
        result, day_scores = _revealed_result(member_ids, scores_by_date, date_key)
        if result is None:
            continue
        totals = {
            member_id: daily_total(score.rounds)
            for member_id, score in day_scores.items()
            if _is_submitted(score)
        }
        for (user_id, opponent_id), record in records.items():
            if user_id not in totals or opponent_id not in totals:
                continue
            if totals[user_id] > totals[opponent_id]:
                record.wins += 1
            elif totals[user_id] < totals[opponent_id]:
                record.losses += 1

    return list(records.values())
