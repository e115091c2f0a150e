from typing import Iterable, Sequence

from sqlalchemy import delete as sa_delete, func, update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..config import get_settings
from ..enums import NotificationType
from ..models import Notification

settings = get_settings()


class NotificationService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def notify(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        body: str,
        data: dict[str, str] | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            body=body,
            data=dict(data or {}),
        )
        self.session.add(notification)
        await self.session.flush()
        await self._trim(user_id)
        await self.session.commit()
        await self.session.refresh(notification)
        return notification

    async def notify_many(
        self,
        user_ids: Iterable[str],
        type: NotificationType,
        title: str,
        body: str,
        data: dict[str, str] | None = None,
    ) -> list[Notification]:
        created: list[Notification] = []
        for user_id in dict.fromkeys(user_ids):
            created.append(await self.notify(user_id, type, title, body, data))
        return created

    async def _trim(self, user_id: str) -> None:
        stale_ids = (
            await self.session.execute(
                select(Notification.id)
                .where(Notification.user_id == user_id)
                .order_by(Notification.created_at.desc())
                .offset(settings.notification_cap)
            )
        ).scalars().all()
        if stale_ids:
            await self.session.execute(sa_delete(Notification).where(Notification.id.in_(stale_ids)))

    async def list_recent(self, user_id: str, limit: int | None = None) -> Sequence[Notification]:
        statement = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit or settings.notification_page_size)
        )
        result = await self.session.execute(statement)
        return result.scalars().all()

    async def unread_count(self, user_id: str) -> int:
        statement = select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.read.is_(False),
        )
        return (await self.session.execute(statement)).scalar() or 0

    async def mark_all_read(self, user_id: str) -> None:
        await self.session.execute(
            sa_update(Notification)
            .where(Notification.user_id == user_id)
            .values(read=True)
        )
        await self.session.commit()
