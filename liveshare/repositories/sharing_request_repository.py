# liveshare/repositories/sharing_request_repository.py
# Repository for sharing requests, including the accept transaction

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import insert, select, update

from liveshare.constants import REQUEST_ACCEPTED, REQUEST_DECLINED, REQUEST_PENDING
from liveshare.db.base import get_session
from liveshare.models.mutual_sessions_table import mutual_sessions
from liveshare.models.sharing_requests_table import sharing_requests


class SharingRequestRepository:
    """Persistence for the request -> accept/decline handshake."""

    async def create(self, row: dict[str, Any]) -> dict[str, Any]:
        """Insert a new request row and return it as stored."""
        async with get_session() as session:
            result = await session.execute(
                insert(sharing_requests).values(**row).returning(*sharing_requests.c)
            )
            created = dict(result.mappings().one())
            await session.commit()
        return created

    async def get(self, request_id: str) -> dict[str, Any] | None:
        async with get_session() as session:
            result = await session.execute(
                select(sharing_requests).where(sharing_requests.c.id == request_id)
            )
            row = result.mappings().first()
        return dict(row) if row else None

    async def list_pending_for_recipient(self, recipient_id: str) -> list[dict[str, Any]]:
        """Incoming pending requests, newest first."""
        return await self._list_pending(sharing_requests.c.recipient_id == recipient_id)

    async def list_pending_from_sender(self, sender_id: str) -> list[dict[str, Any]]:
        """Outgoing pending requests, newest first."""
        return await self._list_pending(sharing_requests.c.sender_id == sender_id)

    async def _list_pending(self, condition) -> list[dict[str, Any]]:
        stmt = (
            select(sharing_requests)
            .where(condition, sharing_requests.c.status == REQUEST_PENDING)
            .order_by(sharing_requests.c.created_at.desc(), sharing_requests.c.id.desc())
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return [dict(r) for r in result.mappings().all()]

    async def decline(self, request_id: str, recipient_id: str, now: datetime) -> dict[str, Any] | None:
        """Flip a pending request to declined.

        Returns the updated row, or None when no pending request addressed to
        recipient_id matched (caller inspects the row to tell why).
        """
        stmt = (
            update(sharing_requests)
            .where(
                sharing_requests.c.id == request_id,
                sharing_requests.c.recipient_id == recipient_id,
                sharing_requests.c.status == REQUEST_PENDING,
            )
            .values(status=REQUEST_DECLINED, resolved_at=now)
            .returning(*sharing_requests.c)
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            row = result.mappings().first()
            await session.commit()
        return dict(row) if row else None

    async def accept_with_session(
        self,
        request_id: str,
        recipient_id: str,
        session_row: dict[str, Any],
        now: datetime,
    ) -> dict[str, Any] | None:
        """Mark the request accepted and create its mutual session atomically.

        Both statements run in one transaction: either the request is accepted
        and the session exists, or neither change is committed. Returns the
        created session row, or None when the request was not pending for
        recipient_id.
        """
        flip = (
            update(sharing_requests)
            .where(
                sharing_requests.c.id == request_id,
                sharing_requests.c.recipient_id == recipient_id,
                sharing_requests.c.status == REQUEST_PENDING,
            )
            .values(status=REQUEST_ACCEPTED, resolved_at=now, session_id=session_row["id"])
            .returning(sharing_requests.c.id)
        )
        async with get_session() as session:
            async with session.begin():
                result = await session.execute(flip)
                if result.first() is None:
                    return None
                created = await session.execute(
                    insert(mutual_sessions).values(**session_row).returning(*mutual_sessions.c)
                )
                row = dict(created.mappings().one())
        return row
