import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..enums import NotificationType, UserType
from ..models import ClaimCode, User
from ..models.common import utcnow
from ..security import get_password_hash
from .friend_service import FriendService
from .group_service import GroupService
from .notification_service import NotificationService
from .score_service import ScoreService
from .user_service import normalize_display_name, validate_password

logger = logging.getLogger(__name__)


class ClaimService:
    """Hands a legacy player's history over to a freshly created account."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_code(self, code: str) -> Optional[ClaimCode]:
        return await self.session.get(ClaimCode, code.strip().upper())

    async def claim(
        self,
        *,
        legacy_id: str,
        code: str,
        password: str,
        display_name: str | None = None,
    ) -> User:
        claim_code = await self.get_code(code)
        if claim_code is None:
            raise ValueError("Invalid claim code.")
        if claim_code.claimed:
            raise ValueError("This code has already been used.")
        if claim_code.legacy_id != legacy_id:
            raise ValueError("This code does not match the selected player.")

        legacy_user = await self.session.get(User, legacy_id)
        if legacy_user is None:
            raise LookupError("Legacy user not found.")
        validate_password(password)
        name = normalize_display_name(display_name, legacy_user.display_name)

        # the new account inherits the username, so free it up first
        username = legacy_user.username
        legacy_user.username = legacy_user.id
        legacy_user.claimed = True
        self.session.add(legacy_user)
        await self.session.flush()

        new_user = User(
            username=username,
            display_name=name,
            avatar_url=legacy_user.avatar_url,
            hashed_password=get_password_hash(password),
            user_type=UserType.LEGACY,
            claimed=True,
        )
        self.session.add(new_user)
        await self.session.flush()

        moved_scores = await ScoreService(self.session).reassign_scores(legacy_user.id, new_user.id)
        group_ids = await GroupService(self.session).reassign_user(legacy_user.id, new_user.id)
        friend_ids = await FriendService(self.session).reassign_user(legacy_user.id, new_user.id)

        claim_code.claimed = True
        claim_code.claimed_by = new_user.id
        claim_code.claimed_at = utcnow()
        self.session.add(claim_code)
        await self.session.commit()
        await self.session.refresh(new_user)
        logger.info(
            "Legacy player %s claimed as %s (%s scores, %s groups, %s friends)",
            legacy_user.id,
            new_user.id,
            moved_scores,
            len(group_ids),
            len(friend_ids),
        )

        await NotificationService(self.session).notify_many(
            friend_ids,
            NotificationType.LEGACY_CLAIMED,
            "Account Claimed!",
            f"{new_user.display_name} (@{new_user.username}) has claimed their account!",
            {"claimed_user_id": new_user.id},
        )
        return new_user
