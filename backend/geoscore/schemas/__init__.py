from .auth import RegisterRequest, LoginRequest, Token
from .user import (
    UserSummary,
    UserPublic,
    UserUpdate,
    UserProfile,
    UserSearchResponse,
    UsernameCheckResponse,
)
from .group import (
    GroupCreate,
    GroupUpdate,
    GroupPublic,
    GroupDetail,
    GroupMembersResponse,
    GroupInviteCreate,
    GroupInvitePublic,
    GroupInviteSummary,
    GroupInviteRespond,
)
from .friend import (
    FriendRequestCreate,
    FriendRequestPublic,
    FriendRequestSummary,
    FriendRequestRespond,
    FriendListResponse,
)
from .score import (
    ScoreSubmit,
    ScoreSubmitResponse,
    TodayResponse,
    ScoreHistoryResponse,
    DailyResultPublic,
    GroupScoresResponse,
    GroupStatsResponse,
    GroupHistoryResponse,
    DashboardResponse,
)
from .notification import NotificationPublic, NotificationListResponse
from .claim import ClaimRequest
from .insight import InsightPublic, InsightListResponse, InsightResponse

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "Token",
    "UserSummary",
    "UserPublic",
    "UserUpdate",
    "UserProfile",
    "UserSearchResponse",
    "UsernameCheckResponse",
    "GroupCreate",
    "GroupUpdate",
    "GroupPublic",
    "GroupDetail",
    "GroupMembersResponse",
    "GroupInviteCreate",
    "GroupInvitePublic",
    "GroupInviteSummary",
    "GroupInviteRespond",
    "FriendRequestCreate",
    "FriendRequestPublic",
    "FriendRequestSummary",
    "FriendRequestRespond",
    "FriendListResponse",
    "ScoreSubmit",
    "ScoreSubmitResponse",
    "TodayResponse",
    "ScoreHistoryResponse",
    "DailyResultPublic",
    "GroupScoresResponse",
    "GroupStatsResponse",
    "GroupHistoryResponse",
    "DashboardResponse",
    "NotificationPublic",
    "NotificationListResponse",
    "ClaimRequest",
    "InsightPublic",
    "InsightListResponse",
    "InsightResponse",
]
