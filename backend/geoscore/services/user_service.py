import re
from typing import Iterable, Optional, Sequence

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..enums import UserType
from ..game.scoring import MemberProfile
from ..models import User
from ..security import get_password_hash

USERNAME_PATTERN = re.compile(r"^[a-z0-9_]+$")
MIN_USERNAME_LENGTH = 3
MAX_USERNAME_LENGTH = 20
MAX_DISPLAY_NAME_LENGTH = 50
SEARCH_LIMIT = 10

RESERVED_USERNAMES = frozenset(
    {
        "jimbo", "tbone", "thewizard",
        "james", "tyler", "david",
        "admin", "mod", "system", "aha", "ahaggs",
        "api", "login", "logout", "settings", "profile",
        "groups", "friends", "notifications", "onboarding", "claim",
    }
)


def normalize_username(raw: str) -> str:
    if not raw or not isinstance(raw, str):
        raise ValueError("Username is required.")
    username = raw.strip().lower()
    if not MIN_USERNAME_LENGTH <= len(username) <= MAX_USERNAME_LENGTH:
        raise ValueError("Username must be 3-20 characters.")
    if not USERNAME_PATTERN.match(username):
        raise ValueError("Username can only contain letters, numbers, and underscores.")
    return username


def validate_password(password: str) -> str:
    if not password:
        raise ValueError("Password is required.")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must include at least 1 uppercase letter.")
    if not re.search(r"[0-9]", password):
        raise ValueError("Password must include at least 1 number.")
    return password


def normalize_display_name(raw: str | None, fallback: str) -> str:
    name = (raw or fallback or "").strip()
    if not name or len(name) > MAX_DISPLAY_NAME_LENGTH:
        raise ValueError("Display name must be 1-50 characters.")
    return name


def is_username_reserved(username: str) -> bool:
    return username.lower() in RESERVED_USERNAMES


class UserService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_by_username(self, username: str) -> Optional[User]:
        statement = select(User).where(User.username == username.lower())
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_id_or_username(self, identifier: str) -> Optional[User]:
        user = await self.get_user(identifier)
        if user is None:
            user = await self.get_by_username(identifier)
        return user

    async def is_username_taken(self, username: str) -> bool:
        return await self.get_by_username(username) is not None

    async def is_username_available(self, username: str) -> bool:
        lowered = username.lower()
        return not is_username_reserved(lowered) and not await self.is_username_taken(lowered)

    async def create_user(
        self,
        *,
        username: str,
        password: str,
        display_name: str | None = None,
        user_type: UserType = UserType.NORMAL,
        claimed: bool = False,
    ) -> User:
        normalized = normalize_username(username)
        validate_password(password)
        name = normalize_display_name(display_name, normalized)
        if is_username_reserved(normalized):
            raise ValueError("Username is reserved.")
        if await self.is_username_taken(normalized):
            raise ValueError("Username is already taken.")

        user = User(
            username=normalized,
            display_name=name,
            hashed_password=get_password_hash(password),
            user_type=user_type,
            claimed=claimed,
        )
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def update_display_name(self, user: User, display_name: str) -> User:
        user.display_name = normalize_display_name(display_name, "")
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def search(self, query: str, limit: int = SEARCH_LIMIT) -> Sequence[User]:
        pattern = f"%{query.lower()}%"
        statement = (
            select(User)
            .where(
                or_(
                    func.lower(User.username).like(pattern),
                    func.lower(User.display_name).like(pattern),
                )
            )
            .order_by(User.username)
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return result.scalars().all()

    async def get_users(self, user_ids: Iterable[str]) -> dict[str, User]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        result = await self.session.execute(select(User).where(User.id.in_(ids)))
        return {user.id: user for user in result.scalars().all()}

    async def member_profiles(self, user_ids: Iterable[str]) -> dict[str, MemberProfile]:
        users = await self.get_users(user_ids)
        return {
            user_id: MemberProfile(
                display_name=user.display_name,
                username=user.username,
                avatar_url=user.avatar_url,
            )
            for user_id, user in users.items()
        }
