from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .group import GroupPublic
from .user import UserSummary


class ScoreSubmit(BaseModel):
    rounds: list[int]
    date: Optional[str] = None


class DailyScorePublic(BaseModel):
    date: str
    rounds: list[int]
    submitted: bool
    submitted_at: datetime

    class Config:
        from_attributes = True


class GroupRevealState(BaseModel):
    group_id: str
    group_name: str
    revealed: bool
    submitted_count: int
    total_members: int
    submitted_user_ids: list[str] = []


class ScoreSubmitResponse(BaseModel):
    success: bool = True
    score: DailyScorePublic
    revealed: bool
    groups: list[GroupRevealState]
    message: str


class TodayResponse(BaseModel):
    date: str
    submitted: bool
    my_scores: Optional[list[int]] = None
    groups: list[GroupRevealState]


class ScoreHistoryResponse(BaseModel):
    scores: list[DailyScorePublic]


class DayScorePublic(BaseModel):
    rounds: list[int]
    total: int

    class Config:
        from_attributes = True


class DailyResultPublic(BaseModel):
    date: str
    scores: dict[str, Optional[DayScorePublic]]
    winner: Optional[str] = None
    gd_winner: Optional[str] = None
    revealed: bool
    submitted_count: int
    total_members: int

    class Config:
        from_attributes = True


class WeeklyStandingPublic(BaseModel):
    user_id: str
    display_name: str
    username: str
    avatar_url: Optional[str] = None
    days_won: int
    gd_points: int
    total_points: int
    is_week_winner: bool

    class Config:
        from_attributes = True


class PlayerStatsPublic(BaseModel):
    user_id: str
    display_name: str
    username: str
    total_points: int
    games_played: int
    average_daily: int
    best_daily: int
    best_round: int
    days_won: int
    weeks_won: int
    gd_points: int
    current_streak: int
    best_streak: int
    perfect_rounds: int

    class Config:
        from_attributes = True


class HeadToHeadPublic(BaseModel):
    user_id: str
    opponent_id: str
    wins: int
    losses: int

    class Config:
        from_attributes = True


class WeekRangePublic(BaseModel):
    start: str
    end: str
    label: str
    dates: list[str]

    class Config:
        from_attributes = True


class GroupScoresResponse(BaseModel):
    date: str
    result: DailyResultPublic
    submitted_user_ids: list[str]
    my_scores: Optional[list[int]] = None


class WeekHistoryPublic(BaseModel):
    week: WeekRangePublic
    daily_results: list[DailyResultPublic]
    standings: list[WeeklyStandingPublic]

    class Config:
        from_attributes = True


class GroupHistoryResponse(BaseModel):
    weeks: list[WeekHistoryPublic]


class CurrentWeekPublic(WeekRangePublic):
    standings: list[WeeklyStandingPublic]


class GroupStatsResponse(BaseModel):
    current_week: CurrentWeekPublic
    all_time_stats: list[PlayerStatsPublic]
    head_to_head: list[HeadToHeadPublic]
    members: list[UserSummary]


class DashboardResponse(BaseModel):
    group: GroupPublic
    members: list[UserSummary]
    result: DailyResultPublic
    my_score: Optional[DailyScorePublic] = None
    current_week: CurrentWeekPublic
    all_time_stats: list[PlayerStatsPublic]
