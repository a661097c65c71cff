# liveshare/repositories/mutual_session_repository.py
# Repository for active/ended two-party sessions

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, or_, select, update

from liveshare.constants import SESSION_ACTIVE, SESSION_ENDED
from liveshare.db.base import get_session
from liveshare.models.mutual_sessions_table import mutual_sessions

# party side -> (id column, location column, address column)
_SIDES = {
    "a": (mutual_sessions.c.party_a_id, "party_a_location", "party_a_address"),
    "b": (mutual_sessions.c.party_b_id, "party_b_location", "party_b_address"),
}


class MutualSessionRepository:
    """Persistence for mutual sessions.

    Location writes are partial: they touch one party's columns and
    last_update_at only, so the two parties never overwrite each other.
    """

    async def get(self, session_id: str) -> dict[str, Any] | None:
        async with get_session() as session:
            result = await session.execute(
                select(mutual_sessions).where(mutual_sessions.c.id == session_id)
            )
            row = result.mappings().first()
        return dict(row) if row else None

    async def list_active_for(self, actor_id: str) -> list[dict[str, Any]]:
        """Active sessions where actor_id is either party, newest first."""
        stmt = (
            select(mutual_sessions)
            .where(
                mutual_sessions.c.status == SESSION_ACTIVE,
                or_(
                    mutual_sessions.c.party_a_id == actor_id,
                    mutual_sessions.c.party_b_id == actor_id,
                ),
            )
            .order_by(mutual_sessions.c.created_at.desc())
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return [dict(r) for r in result.mappings().all()]

    async def update_party_location(
        self,
        session_id: str,
        side: str,
        actor_id: str,
        location: dict[str, Any],
        address: str | None,
        now: datetime,
    ) -> bool:
        """Write one party's location. Returns False if the session is no longer active."""
        id_col, loc_col, addr_col = _SIDES[side]
        values: dict[str, Any] = {
            loc_col: location,
            # never move last_update_at backwards
            "last_update_at": func.greatest(mutual_sessions.c.last_update_at, now),
        }
        if address is not None:
            values[addr_col] = address
        stmt = (
            update(mutual_sessions)
            .where(
                mutual_sessions.c.id == session_id,
                id_col == actor_id,
                mutual_sessions.c.status == SESSION_ACTIVE,
            )
            .values(**values)
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            await session.commit()
        return result.rowcount == 1

    async def end(self, session_id: str, actor_id: str, now: datetime) -> bool:
        """Move an active session to ended. Returns False if it was not active."""
        stmt = (
            update(mutual_sessions)
            .where(
                mutual_sessions.c.id == session_id,
                mutual_sessions.c.status == SESSION_ACTIVE,
            )
            .values(
                status=SESSION_ENDED,
                ended_at=now,
                ended_by=actor_id,
                last_update_at=func.greatest(mutual_sessions.c.last_update_at, now),
            )
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            await session.commit()
        return result.rowcount == 1
