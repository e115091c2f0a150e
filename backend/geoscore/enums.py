from enum import Enum


class UserType(str, Enum):
    NORMAL = "normal"
    LEGACY = "legacy"


class RevealMode(str, Enum):
    ALL_SUBMITTED = "all_submitted"


class RequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class NotificationType(str, Enum):
    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPTED = "friend_accepted"
    GROUP_INVITE = "group_invite"
    SCORES_REVEALED = "scores_revealed"
    LEGACY_CLAIMED = "legacy_claimed"
    DAILY_INSIGHT = "daily_insight"
