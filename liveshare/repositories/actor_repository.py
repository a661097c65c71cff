# liveshare/repositories/actor_repository.py
# Repository for the directory of authenticated actors

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert

from liveshare.db.base import get_session
from liveshare.models.actors_table import actors


class ActorRepository:
    """Persistence for actors seen through bearer credentials."""

    async def upsert(self, actor_id: str, name: str | None, email: str | None, now: datetime) -> None:
        """Insert the actor or refresh its name/email and last_seen_at."""
        stmt = insert(actors).values(
            id=actor_id,
            name=name,
            email=email,
            last_seen_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[actors.c.id],
            set_={
                # keep known values when the token omits a claim
                "name": func.coalesce(stmt.excluded.name, actors.c.name),
                "email": func.coalesce(stmt.excluded.email, actors.c.email),
                "last_seen_at": stmt.excluded.last_seen_at,
            },
        )
        async with get_session() as session:
            await session.execute(stmt)
            await session.commit()

    async def get_by_id(self, actor_id: str) -> dict[str, Any] | None:
        async with get_session() as session:
            result = await session.execute(select(actors).where(actors.c.id == actor_id))
            row = result.mappings().first()
        return dict(row) if row else None

    async def get_by_email(self, email: str) -> dict[str, Any] | None:
        """Case-insensitive lookup; most recently seen actor wins on duplicates."""
        async with get_session() as session:
            result = await session.execute(
                select(actors)
                .where(func.lower(actors.c.email) == email.lower())
                .order_by(actors.c.last_seen_at.desc())
                .limit(1)
            )
            row = result.mappings().first()
        return dict(row) if row else None
