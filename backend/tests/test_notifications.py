import asyncio

from geoscore.database import async_session_factory
from geoscore.enums import NotificationType
from geoscore.services.notification_service import NotificationService


async def _notify(user_id: str, count: int) -> None:
    async with async_session_factory() as session:
        service = NotificationService(session)
        for index in range(count):
            await service.notify(user_id, NotificationType.DAILY_INSIGHT, f"Tip {index}", "body", {"index": str(index)})


async def _stored(user_id: str) -> int:
    async with async_session_factory() as session:
        return len(await NotificationService(session).list_recent(user_id, limit=1000))


def test_list_page_unread_count_and_mark_read(client, register):
    alice, headers = register("alice")
    asyncio.run(_notify(alice["id"], 25))

    data = client.get("/api/notifications", headers=headers).json()
    assert len(data["notifications"]) == 20
    assert data["unread_count"] == 25
    assert data["notifications"][0]["title"] == "Tip 24"

    assert client.patch("/api/notifications", headers=headers).json() == {"success": True}
    data = client.get("/api/notifications", headers=headers).json()
    assert data["unread_count"] == 0
    assert all(notification["read"] for notification in data["notifications"])


def test_notifications_are_capped(client, register):
    alice, _ = register("alice")
    asyncio.run(_notify(alice["id"], 55))
    assert asyncio.run(_stored(alice["id"])) == 50
