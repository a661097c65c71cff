# liveshare/repositories/broadcast_session_repository.py
# Repository for token-addressed broadcast sessions

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, insert, or_, select, update

from liveshare.constants import BROADCAST_EXPIRED, BROADCAST_STOPPED, UNLIMITED_DURATION
from liveshare.db.base import get_session
from liveshare.models.broadcast_sessions_table import broadcast_sessions as bs


def _still_running(now: datetime):
    """SQL guard mirroring utils.expiry.derive_status == 'active'."""
    deadline = bs.c.start_time + func.make_interval(0, 0, 0, 0, 0, bs.c.duration_minutes)
    return (
        bs.c.is_active.is_(True),
        or_(bs.c.duration_minutes == UNLIMITED_DURATION, deadline > now),
    )


class BroadcastSessionRepository:
    """Persistence for broadcast tracking sessions."""

    async def create(self, row: dict[str, Any]) -> dict[str, Any]:
        async with get_session() as session:
            result = await session.execute(insert(bs).values(**row).returning(*bs.c))
            created = dict(result.mappings().one())
            await session.commit()
        return created

    async def get(self, token: str) -> dict[str, Any] | None:
        async with get_session() as session:
            result = await session.execute(select(bs).where(bs.c.session_token == token))
            row = result.mappings().first()
        return dict(row) if row else None

    async def list_by_owner(self, owner_id: str) -> list[dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(
                select(bs).where(bs.c.owner_id == owner_id).order_by(bs.c.start_time.desc())
            )
            return [dict(r) for r in result.mappings().all()]

    async def update_location(
        self,
        token: str,
        location: dict[str, Any],
        address: str | None,
        now: datetime,
    ) -> bool:
        """Move the session's position. Returns False if it stopped or expired meanwhile."""
        values: dict[str, Any] = {"current_location": location, "last_update_at": now}
        if address:
            values["current_address"] = address
        stmt = update(bs).where(bs.c.session_token == token, *_still_running(now)).values(**values)
        async with get_session() as session:
            result = await session.execute(stmt)
            await session.commit()
        return result.rowcount == 1

    async def mark_expired(self, token: str, expired_at: datetime) -> bool:
        """Persist the derived expiry flip; a no-op if already inactive."""
        return await self._close(token, expired_at, BROADCAST_EXPIRED)

    async def stop(self, token: str, now: datetime) -> bool:
        """Stop an active session. Returns False if it was already inactive."""
        return await self._close(token, now, BROADCAST_STOPPED)

    async def _close(self, token: str, end_time: datetime, reason: str) -> bool:
        stmt = (
            update(bs)
            .where(bs.c.session_token == token, bs.c.is_active.is_(True))
            .values(is_active=False, end_time=end_time, end_reason=reason)
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            await session.commit()
        return result.rowcount == 1
