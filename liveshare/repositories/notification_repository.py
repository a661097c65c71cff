# liveshare/repositories/notification_repository.py
# Repository used by the worker to persist delivered notifications

from __future__ import annotations

from typing import Any

from sqlalchemy import insert

from liveshare.db.base import get_session
from liveshare.models.notifications_table import notifications


class NotificationRepository:
    """Write side of the notifications table."""

    async def insert(self, row: dict[str, Any]) -> int:
        """Insert a notification and return its id."""
        async with get_session() as session:
            result = await session.execute(
                insert(notifications).values(**row).returning(notifications.c.id)
            )
            new_id = result.scalar_one()
            await session.commit()
        return int(new_id)
