# liveshare/routers/sharing.py
# FastAPI router for mutual live-location sharing: requests and sessions

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from liveshare.auth import get_actor_repository, get_current_actor
from liveshare.repositories.actor_repository import ActorRepository
from liveshare.repositories.mutual_session_repository import MutualSessionRepository
from liveshare.repositories.sharing_request_repository import SharingRequestRepository
from liveshare.schemas.actor import Actor
from liveshare.schemas.common import ErrorResponse, StatusResponse
from liveshare.schemas.sharing import (
    AcceptResponse,
    AcceptSharingRequest,
    ActiveSessionListResponse,
    CounterpartyLocationResponse,
    CreateSharingRequest,
    PushLocationRequest,
    PushLocationResponse,
    SharingRequestListResponse,
    SharingRequestResponse,
)
from liveshare.services.mutual_session_service import MutualSessionService
from liveshare.services.notification_service import NotificationEmitter, get_notification_emitter
from liveshare.services.sharing_request_service import SharingRequestService


router = APIRouter(
    prefix="/live-location",
    tags=["Mutual sharing"],
    responses={code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 503)},
)


def get_request_service(
    actors: ActorRepository = Depends(get_actor_repository),
    notifier: NotificationEmitter = Depends(get_notification_emitter),
) -> SharingRequestService:
    return SharingRequestService(
        repository=SharingRequestRepository(),
        actors=actors,
        notifier=notifier,
    )


def get_session_service(
    notifier: NotificationEmitter = Depends(get_notification_emitter),
) -> MutualSessionService:
    return MutualSessionService(repository=MutualSessionRepository(), notifier=notifier)


# --- requests ---

@router.post("/requests", response_model=SharingRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: CreateSharingRequest,
    actor: Actor = Depends(get_current_actor),
    service: SharingRequestService = Depends(get_request_service),
) -> SharingRequestResponse:
    created = await service.create_request(
        actor,
        recipient_id=payload.recipient_id,
        recipient_email=payload.recipient_email,
        sender_location=payload.sender_location.model_dump() if payload.sender_location else None,
        sender_address=payload.sender_address,
        recipient_name=payload.recipient_name,
    )
    return SharingRequestResponse(data=created)


@router.get("/requests/incoming", response_model=SharingRequestListResponse)
async def list_incoming(
    actor: Actor = Depends(get_current_actor),
    service: SharingRequestService = Depends(get_request_service),
) -> SharingRequestListResponse:
    return SharingRequestListResponse(data=await service.list_pending(actor))


@router.get("/requests/outgoing", response_model=SharingRequestListResponse)
async def list_outgoing(
    actor: Actor = Depends(get_current_actor),
    service: SharingRequestService = Depends(get_request_service),
) -> SharingRequestListResponse:
    return SharingRequestListResponse(data=await service.list_outgoing(actor))


@router.put("/requests/{request_id}/accept", response_model=AcceptResponse)
async def accept_request(
    request_id: str,
    payload: AcceptSharingRequest,
    actor: Actor = Depends(get_current_actor),
    service: SharingRequestService = Depends(get_request_service),
) -> AcceptResponse:
    session_id = await service.accept(
        request_id,
        actor,
        payload.location.model_dump() if payload.location else None,
        payload.address,
    )
    return AcceptResponse(session_id=session_id)


@router.put("/requests/{request_id}/decline", response_model=StatusResponse)
async def decline_request(
    request_id: str,
    actor: Actor = Depends(get_current_actor),
    service: SharingRequestService = Depends(get_request_service),
) -> StatusResponse:
    await service.decline(request_id, actor)
    return StatusResponse(message="Request declined")


# --- sessions ---

@router.post("/update", response_model=PushLocationResponse)
async def push_location(
    payload: PushLocationRequest,
    actor: Actor = Depends(get_current_actor),
    service: MutualSessionService = Depends(get_session_service),
) -> PushLocationResponse:
    result = await service.push_location(actor, payload.lat, payload.lng, payload.accuracy, payload.address)
    return PushLocationResponse(**result)


@router.get("/sessions", response_model=ActiveSessionListResponse)
async def list_active_sessions(
    actor: Actor = Depends(get_current_actor),
    service: MutualSessionService = Depends(get_session_service),
) -> ActiveSessionListResponse:
    return ActiveSessionListResponse(data=await service.list_active_for(actor))


@router.get("/sessions/{session_id}/location", response_model=CounterpartyLocationResponse)
async def get_counterparty_location(
    session_id: str,
    actor: Actor = Depends(get_current_actor),
    service: MutualSessionService = Depends(get_session_service),
) -> CounterpartyLocationResponse:
    return CounterpartyLocationResponse(**await service.get_counterparty_location(session_id, actor))


@router.post("/sessions/{session_id}/end", response_model=StatusResponse)
async def end_session(
    session_id: str,
    actor: Actor = Depends(get_current_actor),
    service: MutualSessionService = Depends(get_session_service),
) -> StatusResponse:
    await service.end_session(session_id, actor)
    return StatusResponse(message="Live location session ended")
