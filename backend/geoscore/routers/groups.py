import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import get_session
from ..dependencies import get_current_user
from ..enums import NotificationType, RequestStatus
from ..game.calendar import parse_date_key, today_key, utc_today, week_range
from ..models import Group, User
from ..schemas.group import (
    GroupCreate,
    GroupDetail,
    GroupInviteCreate,
    GroupInvitePublic,
    GroupInviteRespond,
    GroupInviteSummary,
    GroupMembersResponse,
    GroupPublic,
    GroupUpdate,
)
from ..schemas.score import (
    CurrentWeekPublic,
    DailyResultPublic,
    DailyScorePublic,
    DashboardResponse,
    GroupHistoryResponse,
    GroupScoresResponse,
    GroupStatsResponse,
    HeadToHeadPublic,
    PlayerStatsPublic,
    WeekHistoryPublic,
    WeeklyStandingPublic,
)
from ..schemas.user import UserSummary
from ..services.group_service import GroupService
from ..services.notification_service import NotificationService
from ..services.score_service import ScoreService
from ..services.stats_service import StatsService
from ..services.user_service import UserService

router = APIRouter(prefix="/groups", tags=["groups"])
settings = get_settings()
logger = logging.getLogger(__name__)

MAX_HISTORY_WEEKS = 52


async def _get_group_or_404(session: AsyncSession, group_id: str) -> Group:
    group = await GroupService(session).get_group(group_id)
    if not group:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found.")
    return group


async def _get_member_group(session: AsyncSession, group_id: str, user: User) -> tuple[Group, list[str]]:
    group = await _get_group_or_404(session, group_id)
    member_ids = await GroupService(session).member_ids(group.id)
    if user.id not in member_ids:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a member of this group.")
    return group, member_ids


async def _require_admin(session: AsyncSession, group: Group, user: User) -> None:
    if not await GroupService(session).is_admin(group.id, user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not an admin.")


async def _member_summaries(session: AsyncSession, member_ids: list[str]) -> list[UserSummary]:
    users = await UserService(session).get_users(member_ids)
    return [UserSummary.model_validate(users[member_id]) for member_id in member_ids if member_id in users]


def _validated_date(date: str | None) -> str:
    date_key = date or today_key()
    try:
        parse_date_key(date_key)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return date_key


@router.get("", response_model=list[GroupPublic])
async def list_groups(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await GroupService(session).list_user_groups(current_user.id)


@router.post("", response_model=GroupDetail, status_code=status.HTTP_201_CREATED)
async def create_group(
    payload: GroupCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> GroupDetail:
    try:
        group = await GroupService(session).create_group(name=payload.name, created_by=current_user.id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return GroupDetail(
        group=GroupPublic.model_validate(group),
        members=[UserSummary.model_validate(current_user)],
        admin_ids=[current_user.id],
    )


@router.get("/invites", response_model=list[GroupInviteSummary])
async def list_pending_invites(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[GroupInviteSummary]:
    service = GroupService(session)
    invites = await service.pending_invites_for(current_user.id)
    senders = await UserService(session).get_users(invite.from_user_id for invite in invites)

    summaries: list[GroupInviteSummary] = []
    for invite in invites:
        group = await service.get_group(invite.group_id)
        sender = senders.get(invite.from_user_id)
        summary = GroupInviteSummary.model_validate(invite)
        summary.group_name = group.name if group else None
        summary.from_user = UserSummary.model_validate(sender) if sender else None
        summaries.append(summary)
    return summaries


@router.patch("/invites/respond", response_model=GroupInvitePublic)
async def respond_to_invite(
    payload: GroupInviteRespond,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    if payload.action not in (RequestStatus.ACCEPTED, RequestStatus.DECLINED):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Action must be accepted or declined.")

    service = GroupService(session)
    invite = await service.get_invite(payload.invite_id)
    if not invite or invite.to_user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invite not found.")

    result = await service.respond_to_invite(invite, payload.action)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invite not found or already responded.")
    return result


@router.get("/{group_id}", response_model=GroupDetail)
async def read_group(
    group_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> GroupDetail:
    group, member_ids = await _get_member_group(session, group_id, current_user)
    return GroupDetail(
        group=GroupPublic.model_validate(group),
        members=await _member_summaries(session, member_ids),
        admin_ids=await GroupService(session).admin_ids(group.id),
    )


@router.patch("/{group_id}", response_model=GroupPublic)
async def update_group(
    group_id: str,
    payload: GroupUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    group = await _get_group_or_404(session, group_id)
    await _require_admin(session, group, current_user)
    try:
        return await GroupService(session).rename(group, payload.name)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(
    group_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> None:
    group = await _get_group_or_404(session, group_id)
    await _require_admin(session, group, current_user)
    if group.is_original:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete the OG group.")
    await GroupService(session).delete_group(group)


@router.get("/{group_id}/members", response_model=GroupMembersResponse)
async def list_members(
    group_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> GroupMembersResponse:
    group, member_ids = await _get_member_group(session, group_id, current_user)
    return GroupMembersResponse(
        members=await _member_summaries(session, member_ids),
        admin_ids=await GroupService(session).admin_ids(group.id),
    )


@router.delete("/{group_id}/members", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    group_id: str,
    user_id: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> None:
    group = await _get_group_or_404(session, group_id)
    if group.is_original:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot leave the OG group.")

    target_id = user_id or current_user.id
    if target_id != current_user.id:
        await _require_admin(session, group, current_user)

    if not await GroupService(session).remove_member(group.id, target_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not a member of this group.")
    logger.info("User %s removed from group %s by %s", target_id, group.id, current_user.id)


@router.post("/{group_id}/invite", response_model=GroupInvitePublic, status_code=status.HTTP_201_CREATED)
async def invite_member(
    group_id: str,
    payload: GroupInviteCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    group, _ = await _get_member_group(session, group_id, current_user)
    target = await UserService(session).get_user(payload.user_id)
    if not target:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

    try:
        invite = await GroupService(session).create_invite(
            group=group,
            from_user_id=current_user.id,
            to_user_id=target.id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    await NotificationService(session).notify(
        target.id,
        NotificationType.GROUP_INVITE,
        "Group Invite",
        f'{current_user.display_name} invited you to join "{group.name}"',
        {"group_id": group.id, "invite_id": invite.id, "from_user_id": current_user.id},
    )
    return invite


@router.get("/{group_id}/scores", response_model=GroupScoresResponse)
async def read_group_scores(
    group_id: str,
    date: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> GroupScoresResponse:
    _, member_ids = await _get_member_group(session, group_id, current_user)
    date_key = _validated_date(date)

    result = await StatsService(session).daily_result(date_key, member_ids)
    submitters = await ScoreService(session).get_submitters(date_key, member_ids)
    my_score = await ScoreService(session).get_score(current_user.id, date_key)
    return GroupScoresResponse(
        date=date_key,
        result=DailyResultPublic.model_validate(result),
        submitted_user_ids=[member_id for member_id in member_ids if member_id in submitters],
        my_scores=list(my_score.rounds) if my_score else None,
    )


@router.get("/{group_id}/stats", response_model=GroupStatsResponse)
async def read_group_stats(
    group_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> GroupStatsResponse:
    _, member_ids = await _get_member_group(session, group_id, current_user)
    profiles = await UserService(session).member_profiles(member_ids)
    stats = StatsService(session)

    current_week = week_range(utc_today())
    standings = await stats.weekly_standings(member_ids, current_week, profiles)
    return GroupStatsResponse(
        current_week=_current_week(current_week, standings),
        all_time_stats=[
            PlayerStatsPublic.model_validate(entry) for entry in await stats.player_stats(member_ids, profiles)
        ],
        head_to_head=[HeadToHeadPublic.model_validate(entry) for entry in await stats.head_to_head(member_ids)],
        members=await _member_summaries(session, member_ids),
    )


@router.get("/{group_id}/history", response_model=GroupHistoryResponse)
async def read_group_history(
    group_id: str,
    weeks: int | None = Query(default=None, ge=1, le=MAX_HISTORY_WEEKS),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> GroupHistoryResponse:
    _, member_ids = await _get_member_group(session, group_id, current_user)
    profiles = await UserService(session).member_profiles(member_ids)
    history = await StatsService(session).history(member_ids, weeks or settings.history_weeks, profiles)
    return GroupHistoryResponse(weeks=[WeekHistoryPublic.model_validate(entry) for entry in history])


@router.get("/{group_id}/dashboard", response_model=DashboardResponse)
async def read_group_dashboard(
    group_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> DashboardResponse:
    group, member_ids = await _get_member_group(session, group_id, current_user)
    profiles = await UserService(session).member_profiles(member_ids)
    stats = StatsService(session)

    date_key = today_key()
    current_week = week_range(utc_today())
    result = await stats.daily_result(date_key, member_ids)
    my_score = await ScoreService(session).get_score(current_user.id, date_key)
    standings = await stats.weekly_standings(member_ids, current_week, profiles)
    all_time = await stats.player_stats(member_ids, profiles)

    return DashboardResponse(
        group=GroupPublic.model_validate(group),
        members=await _member_summaries(session, member_ids),
        result=DailyResultPublic.model_validate(result),
        my_score=DailyScorePublic.model_validate(my_score) if my_score else None,
        current_week=_current_week(current_week, standings),
        all_time_stats=[PlayerStatsPublic.model_validate(entry) for entry in all_time],
    )


def _current_week(week, standings) -> CurrentWeekPublic:
    return CurrentWeekPublic(
        start=week.start,
        end=week.end,
        label=week.label,
        dates=list(week.dates),
        standings=[WeeklyStandingPublic.model_validate(standing) for standing in standings],
    )
