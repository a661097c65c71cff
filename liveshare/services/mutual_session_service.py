# liveshare/services/mutual_session_service.py

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from liveshare.constants import (
    EVENT_SESSION_ENDED,
    NOTIFICATION_CATEGORY_LOCATION,
    NOTIFICATION_ICON_LOCATION,
)
from liveshare.middleware.error_handler import AppError, ForbiddenError, NotFoundError, ValidationError
from liveshare.observability.metrics import record_push
from liveshare.repositories.mutual_session_repository import MutualSessionRepository
from liveshare.schemas.actor import Actor
from liveshare.services.notification_service import NotificationEmitter, safe_emit
from liveshare.utils.clock import utc_now
from liveshare.utils.geo import is_valid_accuracy, is_valid_coordinate, make_location
from liveshare.utils.logger import log_exception, log_info


def side_of(session: Dict[str, Any], actor_id: str) -> Optional[str]:
    """Return 'a' or 'b' for a participant, None for anyone else."""
    if session["party_a_id"] == actor_id:
        return "a"
    if session["party_b_id"] == actor_id:
        return "b"
    return None


def _party(session: Dict[str, Any], side: str) -> Dict[str, Any]:
    prefix = f"party_{side}_"
    return {
        "id": session[prefix + "id"],
        "name": session.get(prefix + "name"),
        "email": session.get(prefix + "email"),
        "location": session.get(prefix + "location"),
        "address": session.get(prefix + "address"),
    }


def orient(session: Dict[str, Any], actor_id: str) -> Dict[str, Any]:
    """Present a session from actor_id's point of view."""
    mine = side_of(session, actor_id)
    other = "b" if mine == "a" else "a"
    me = _party(session, mine)
    return {
        "session_id": session["id"],
        "status": session["status"],
        "counterparty": _party(session, other),
        "my_location": me["location"],
        "my_address": me["address"],
        "created_at": session["created_at"],
        "last_update_at": session["last_update_at"],
    }


class MutualSessionService:
    """Active two-party sessions created from accepted requests."""

    def __init__(
        self,
        repository: MutualSessionRepository,
        notifier: NotificationEmitter,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._repo = repository
        self._notifier = notifier
        self._clock = clock

    async def list_active_for(self, actor: Actor) -> List[Dict[str, Any]]:
        sessions = await self._repo.list_active_for(actor.id)
        return [orient(s, actor.id) for s in sessions]

    async def push_location(
        self,
        actor: Actor,
        lat: float,
        lng: float,
        accuracy: Optional[float] = None,
        address: Optional[str] = None,
    ) -> Dict[str, int]:
        """Fan the actor's position out to every active session they are in.

        Each session is updated independently; one failing update does not
        stop the others. Zero sessions is a valid outcome.
        """
        if not is_valid_coordinate(lat, lng):
            raise ValidationError("Invalid coordinates", details={"lat": str(lat), "lng": str(lng)})
        if not is_valid_accuracy(accuracy):
            raise ValidationError("accuracy must be a finite, non-negative number", details={"accuracy": str(accuracy)})

        location = make_location(lat, lng, accuracy)
        updated = 0
        failed = 0
        for session in await self._repo.list_active_for(actor.id):
            side = side_of(session, actor.id)
            try:
                ok = await self._repo.update_party_location(
                    session["id"], side, actor.id, location, address, self._clock()
                )
            except AppError as e:
                failed += 1
                log_exception(e, f"MutualSessionService.push_location session={session['id']}")
                continue
            if ok:
                updated += 1

        record_push("updated", updated)
        record_push("failed", failed)
        log_info(f"MutualSessionService: push from {actor.id} updated={updated} failed={failed}")
        return {"sessions_updated": updated, "sessions_failed": failed}

    async def get_counterparty_location(self, session_id: str, requester: Actor) -> Dict[str, Any]:
        session = await self._load_for_participant(session_id, requester)
        other = "b" if side_of(session, requester.id) == "a" else "a"
        party = _party(session, other)
        return {
            "session_id": session["id"],
            "status": session["status"],
            "counterparty": {"id": party["id"], "name": party["name"], "email": party["email"]},
            "location": party["location"],
            "address": party["address"],
            "last_update_at": session["last_update_at"],
        }

    async def end_session(self, session_id: str, requester: Actor) -> None:
        """End the session. Ending an already ended session succeeds without changes."""
        session = await self._load_for_participant(session_id, requester)
        if not await self._repo.end(session_id, requester.id, self._clock()):
            return
        log_info(f"MutualSessionService: session {session_id} ended by {requester.id}")

        other = _party(session, "b" if side_of(session, requester.id) == "a" else "a")
        await safe_emit(
            self._notifier,
            other["id"],
            "Live location ended",
            f"{requester.name or requester.email or 'Your contact'} stopped sharing live location",
            NOTIFICATION_CATEGORY_LOCATION,
            NOTIFICATION_ICON_LOCATION,
            {"event": EVENT_SESSION_ENDED, "session_id": session_id},
        )

    async def _load_for_participant(self, session_id: str, actor: Actor) -> Dict[str, Any]:
        session = await self._repo.get(session_id)
        if session is None:
            raise NotFoundError("Live location session not found")
        if side_of(session, actor.id) is None:
            raise ForbiddenError()
        return session
