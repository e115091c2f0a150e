from .user import User, Friendship, FriendRequest
from .group import Group, GroupMember, GroupInvite
from .score import DailyScore
from .notification import Notification
from .claim import ClaimCode
from .insight import DailyInsight

__all__ = [
    "User",
    "Friendship",
    "FriendRequest",
    "Group",
    "GroupMember",
    "GroupInvite",
    "DailyScore",
    "Notification",
    "ClaimCode",
    "DailyInsight",
]
