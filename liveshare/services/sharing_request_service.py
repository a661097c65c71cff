# liveshare/services/sharing_request_service.py

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from liveshare.constants import (
    EVENT_SHARE_ACCEPTED,
    EVENT_SHARE_REQUESTED,
    NOTIFICATION_CATEGORY_LOCATION,
    NOTIFICATION_ICON_LOCATION,
    REQUEST_PENDING,
    SESSION_ACTIVE,
)
from liveshare.middleware.error_handler import AlreadyResolvedError, NotFoundError, ValidationError
from liveshare.observability.metrics import record_request
from liveshare.repositories.actor_repository import ActorRepository
from liveshare.repositories.sharing_request_repository import SharingRequestRepository
from liveshare.schemas.actor import Actor
from liveshare.services.notification_service import NotificationEmitter, safe_emit
from liveshare.utils.clock import utc_now
from liveshare.utils.geo import is_valid_accuracy, is_valid_coordinate, make_location
from liveshare.utils.logger import log_info


def _location_from(payload: Optional[Dict[str, Any]], field: str) -> Dict[str, Any]:
    """Validate a {lat, lng, accuracy?} mapping and normalize it for storage."""
    if not payload:
        raise ValidationError(f"{field} is required")
    lat, lng = payload.get("lat"), payload.get("lng")
    if not is_valid_coordinate(lat, lng):
        raise ValidationError(f"{field} has invalid coordinates", details={"lat": str(lat), "lng": str(lng)})
    accuracy = payload.get("accuracy")
    if not is_valid_accuracy(accuracy):
        raise ValidationError(f"{field} has invalid accuracy", details={"accuracy": str(accuracy)})
    return make_location(lat, lng, accuracy)


class SharingRequestService:
    """Request -> accept/decline handshake between two known actors."""

    def __init__(
        self,
        repository: SharingRequestRepository,
        actors: ActorRepository,
        notifier: NotificationEmitter,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._repo = repository
        self._actors = actors
        self._notifier = notifier
        self._clock = clock

    async def create_request(
        self,
        sender: Actor,
        recipient_id: Optional[str],
        recipient_email: Optional[str],
        sender_location: Optional[Dict[str, Any]],
        sender_address: Optional[str] = None,
        recipient_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not recipient_id and not recipient_email:
            raise ValidationError("recipient_id or recipient_email is required")
        location = _location_from(sender_location, "sender_location")

        recipient = await self._resolve_recipient(recipient_id, recipient_email)
        if recipient["id"] == sender.id:
            raise ValidationError("Cannot share location with yourself")

        row = {
            "id": uuid.uuid4().hex,
            "sender_id": sender.id,
            "sender_name": sender.name,
            "sender_email": sender.email,
            "recipient_id": recipient["id"],
            "recipient_name": recipient.get("name") or recipient_name,
            "recipient_email": recipient.get("email") or recipient_email,
            "sender_location": location,
            "sender_address": sender_address,
            "status": REQUEST_PENDING,
            "created_at": self._clock(),
            "resolved_at": None,
            "session_id": None,
        }
        created = await self._repo.create(row)
        record_request("created")
        log_info(f"SharingRequestService: request {created['id']} {sender.id} -> {recipient['id']}")

        await safe_emit(
            self._notifier,
            created["recipient_id"],
            "Live location request",
            f"{sender.name or sender.email or 'Someone'} wants to share live location with you",
            NOTIFICATION_CATEGORY_LOCATION,
            NOTIFICATION_ICON_LOCATION,
            {"event": EVENT_SHARE_REQUESTED, "request_id": created["id"], "sender_id": sender.id},
        )
        return created

    async def list_pending(self, actor: Actor) -> List[Dict[str, Any]]:
        return await self._repo.list_pending_for_recipient(actor.id)

    async def list_outgoing(self, actor: Actor) -> List[Dict[str, Any]]:
        return await self._repo.list_pending_from_sender(actor.id)

    async def accept(
        self,
        request_id: str,
        acceptor: Actor,
        acceptor_location: Optional[Dict[str, Any]],
        acceptor_address: Optional[str] = None,
    ) -> str:
        """Accept a pending request and return the id of the new mutual session."""
        location = _location_from(acceptor_location, "acceptor_location")
        request = await self._load_addressed_to(request_id, acceptor)
        if request["status"] != REQUEST_PENDING:
            raise AlreadyResolvedError(details={"status": request["status"]})

        now = self._clock()
        session_row = {
            "id": uuid.uuid4().hex,
            "request_id": request["id"],
            "party_a_id": request["sender_id"],
            "party_a_name": request.get("sender_name"),
            "party_a_email": request.get("sender_email"),
            "party_a_location": request["sender_location"],
            "party_a_address": request.get("sender_address"),
            "party_b_id": acceptor.id,
            "party_b_name": acceptor.name or request.get("recipient_name"),
            "party_b_email": acceptor.email or request.get("recipient_email"),
            "party_b_location": location,
            "party_b_address": acceptor_address,
            "status": SESSION_ACTIVE,
            "created_at": now,
            "ended_at": None,
            "ended_by": None,
            "last_update_at": now,
        }
        created = await self._repo.accept_with_session(request_id, acceptor.id, session_row, now)
        if created is None:
            # lost a race with another accept/decline of the same request
            current = await self._repo.get(request_id)
            raise AlreadyResolvedError(details={"status": current["status"] if current else None})

        record_request("accepted")
        log_info(f"SharingRequestService: request {request_id} accepted, session {created['id']}")

        await safe_emit(
            self._notifier,
            request["sender_id"],
            "Live location accepted",
            f"{acceptor.name or acceptor.email or 'Your contact'} accepted your live location request",
            NOTIFICATION_CATEGORY_LOCATION,
            NOTIFICATION_ICON_LOCATION,
            {"event": EVENT_SHARE_ACCEPTED, "request_id": request_id, "session_id": created["id"]},
        )
        return created["id"]

    async def decline(self, request_id: str, acceptor: Actor) -> None:
        request = await self._load_addressed_to(request_id, acceptor)
        if request["status"] != REQUEST_PENDING:
            raise AlreadyResolvedError(details={"status": request["status"]})
        declined = await self._repo.decline(request_id, acceptor.id, self._clock())
        if declined is None:
            current = await self._repo.get(request_id)
            raise AlreadyResolvedError(details={"status": current["status"] if current else None})
        record_request("declined")
        log_info(f"SharingRequestService: request {request_id} declined by {acceptor.id}")

    async def _load_addressed_to(self, request_id: str, actor: Actor) -> Dict[str, Any]:
        request = await self._repo.get(request_id)
        # requests addressed to someone else are indistinguishable from missing ones
        if request is None or request["recipient_id"] != actor.id:
            raise NotFoundError("Sharing request not found")
        return request

    async def _resolve_recipient(self, recipient_id: Optional[str], recipient_email: Optional[str]) -> Dict[str, Any]:
        recipient = None
        if recipient_id:
            recipient = await self._actors.get_by_id(recipient_id)
        if recipient is None and recipient_email:
            recipient = await self._actors.get_by_email(recipient_email.strip())
        if recipient is None:
            raise NotFoundError("Recipient not found", details={"recipient_id": recipient_id, "recipient_email": recipient_email})
        return recipient
