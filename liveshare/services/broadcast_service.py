# liveshare/services/broadcast_service.py

from __future__ import annotations

import secrets
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from liveshare.config import settings
from liveshare.constants import (
    BROADCAST_ACTIVE,
    BROADCAST_EXPIRED,
    DEFAULT_BROADCAST_ADDRESS,
    DEFAULT_BROADCAST_LOCATION,
)
from liveshare.middleware.error_handler import (
    NotFoundError,
    SessionEndedError,
    SessionExpiredError,
    ValidationError,
)
from liveshare.observability.metrics import record_broadcast
from liveshare.repositories.broadcast_session_repository import BroadcastSessionRepository
from liveshare.schemas.actor import Actor
from liveshare.utils.clock import utc_now
from liveshare.utils.expiry import derive_status, expires_at, normalize_duration
from liveshare.utils.geo import is_valid_coordinate, make_location
from liveshare.utils.logger import log_info


class BroadcastService:
    """One-producer, many-viewer tracking sessions addressed by an opaque token.

    There is no background sweeper. Every read and write derives the session
    status from the wall clock first, and persists an expiry flip the first
    time one is observed.
    """

    def __init__(
        self,
        repository: BroadcastSessionRepository,
        clock: Callable[[], datetime] = utc_now,
        token_bytes: Optional[int] = None,
        public_base_url: Optional[str] = None,
    ):
        self._repo = repository
        self._clock = clock
        self._token_bytes = token_bytes or settings.TOKEN_BYTES
        self._base_url = (public_base_url or settings.PUBLIC_BASE_URL).rstrip("/")

    def new_token(self) -> str:
        return secrets.token_urlsafe(self._token_bytes)

    def tracking_url(self, token: str) -> str:
        return f"{self._base_url}/api/location/track/{token}"

    async def start_tracking(
        self,
        owner: Actor,
        phone: Optional[str],
        duration_minutes: Optional[int] = None,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Tuple[str, str]:
        """Create an active session and return (token, tracking_url)."""
        fields = {
            "owner_id": owner.id,
            "owner_name": name or owner.name,
            "owner_phone": phone,
            "owner_email": email or owner.email,
        }
        missing = [k for k, v in fields.items() if not v or not str(v).strip()]
        if missing:
            raise ValidationError(
                "Missing required owner fields",
                details={"missing": missing},
            )
        try:
            duration = normalize_duration(duration_minutes)
        except ValueError as e:
            raise ValidationError(str(e), details={"duration_minutes": duration_minutes})

        now = self._clock()
        token = self.new_token()
        await self._repo.create({
            "session_token": token,
            **{k: str(v).strip() for k, v in fields.items()},
            "current_location": dict(DEFAULT_BROADCAST_LOCATION),
            "current_address": DEFAULT_BROADCAST_ADDRESS,
            "duration_minutes": duration,
            "start_time": now,
            "end_time": None,
            "is_active": True,
            "end_reason": None,
            "last_update_at": now,
        })
        record_broadcast("started")
        log_info(f"BroadcastService: tracking started owner={owner.id} duration={duration}")
        return token, self.tracking_url(token)

    async def update_location(
        self,
        token: str,
        lat: float,
        lng: float,
        address: Optional[str] = None,
    ) -> None:
        if not is_valid_coordinate(lat, lng):
            raise ValidationError("Invalid coordinates", details={"lat": str(lat), "lng": str(lng)})
        record = await self._load_running(token)
        now = self._clock()
        updated = await self._repo.update_location(token, make_location(lat, lng), address, now)
        if not updated:
            # closed between our read and the write; report what closed it
            await self._load_running(token)
            raise SessionEndedError()
        record_broadcast("updated")
        log_info(f"BroadcastService: location updated token={_short(token)} owner={record['owner_id']}")

    async def get_location(self, token: str) -> Dict[str, Any]:
        record = await self._load_running(token)
        location = record.get("current_location") or {}
        return {
            "location": {
                "lat": location.get("lat"),
                "lng": location.get("lng"),
                "address": record.get("current_address"),
            },
            "owner_name": record["owner_name"],
            "owner_phone": record["owner_phone"],
            "owner_email": record["owner_email"],
            "last_update_at": record["last_update_at"],
            "expires_at": expires_at(record),
        }

    async def stop_tracking(self, token: str) -> None:
        """Stop the session. Succeeds again, without changes, once it is closed."""
        record = await self._repo.get(token)
        if record is None:
            raise NotFoundError("Tracking session not found")
        status = derive_status(record, self._clock())
        if status == BROADCAST_EXPIRED and record.get("is_active"):
            await self._persist_expiry(record)
            return
        if await self._repo.stop(token, self._clock()):
            record_broadcast("stopped")
            log_info(f"BroadcastService: tracking stopped token={_short(token)}")

    async def find_session(self, token: str) -> Optional[Dict[str, Any]]:
        """Raw record with its derived status, for the viewer page."""
        record = await self._repo.get(token)
        if record is None:
            return None
        record["status"] = derive_status(record, self._clock())
        if record["status"] == BROADCAST_EXPIRED and record.get("is_active"):
            await self._persist_expiry(record)
        return record

    async def list_owned(self, owner: Actor) -> List[Dict[str, Any]]:
        now = self._clock()
        sessions = []
        for record in await self._repo.list_by_owner(owner.id):
            status = derive_status(record, now)
            if status == BROADCAST_EXPIRED and record.get("is_active"):
                await self._persist_expiry(record)
            sessions.append({
                "session_token": record["session_token"],
                "tracking_url": self.tracking_url(record["session_token"]),
                "status": status,
                "duration_minutes": record["duration_minutes"],
                "start_time": record["start_time"],
                "end_time": record.get("end_time") or (expires_at(record) if status == BROADCAST_EXPIRED else None),
                "last_update_at": record["last_update_at"],
            })
        return sessions

    async def _load_running(self, token: str) -> Dict[str, Any]:
        """Load a session and raise unless it is still running."""
        record = await self._repo.get(token)
        if record is None:
            raise NotFoundError("Tracking session not found")
        status = derive_status(record, self._clock())
        if status == BROADCAST_ACTIVE:
            return record
        if status == BROADCAST_EXPIRED:
            if record.get("is_active"):
                await self._persist_expiry(record)
            raise SessionExpiredError()
        raise SessionEndedError()

    async def _persist_expiry(self, record: Dict[str, Any]) -> None:
        if await self._repo.mark_expired(record["session_token"], expires_at(record)):
            record_broadcast("expired")
            log_info(f"BroadcastService: tracking expired token={_short(record['session_token'])}")


def _short(token: str) -> str:
    # tokens are bearer capabilities; keep them out of logs
    return token[:6] + "…"
