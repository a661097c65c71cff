# liveshare/routers/tracking.py
# FastAPI router for broadcast tracking sessions (shareable links)

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from liveshare import config
from liveshare.auth import get_current_actor
from liveshare.constants import BROADCAST_ACTIVE
from liveshare.repositories.broadcast_session_repository import BroadcastSessionRepository
from liveshare.schemas.actor import Actor
from liveshare.schemas.common import ErrorResponse, StatusResponse
from liveshare.schemas.tracking import (
    GetLocationResponse,
    OwnedSessionsResponse,
    StartTrackingRequest,
    StartTrackingResponse,
    StopTrackingRequest,
    UpdateLocationRequest,
)
from liveshare.services.broadcast_service import BroadcastService


router = APIRouter(
    prefix="/location",
    tags=["Broadcast tracking"],
    responses={code: {"model": ErrorResponse} for code in (400, 401, 404, 410, 503)},
)

templates = Jinja2Templates(directory=config.TEMPLATE_PATH)


def get_broadcast_service() -> BroadcastService:
    """Provide service with DI so handlers stay thin."""
    return BroadcastService(repository=BroadcastSessionRepository())


@router.post("/start-tracking", response_model=StartTrackingResponse, status_code=status.HTTP_201_CREATED)
async def start_tracking(
    payload: StartTrackingRequest,
    owner: Actor = Depends(get_current_actor),
    service: BroadcastService = Depends(get_broadcast_service),
) -> StartTrackingResponse:
    token, url = await service.start_tracking(
        owner,
        phone=payload.phone,
        duration_minutes=payload.duration,
        name=payload.name,
        email=payload.email,
    )
    return StartTrackingResponse(session_token=token, tracking_url=url)


@router.post("/update", response_model=StatusResponse)
async def update_location(
    payload: UpdateLocationRequest,
    service: BroadcastService = Depends(get_broadcast_service),
) -> StatusResponse:
    await service.update_location(payload.session_token, payload.lat, payload.lng, payload.address)
    return StatusResponse(message="Location updated successfully")


@router.post("/stop-tracking", response_model=StatusResponse)
async def stop_tracking(
    payload: StopTrackingRequest,
    service: BroadcastService = Depends(get_broadcast_service),
) -> StatusResponse:
    await service.stop_tracking(payload.session_token)
    return StatusResponse(message="Tracking stopped successfully")


@router.get("/get-location/{token}", response_model=GetLocationResponse)
async def get_location(
    token: str,
    service: BroadcastService = Depends(get_broadcast_service),
) -> GetLocationResponse:
    view = await service.get_location(token)
    return GetLocationResponse(**view)


@router.get("/sessions", response_model=OwnedSessionsResponse)
async def list_my_sessions(
    owner: Actor = Depends(get_current_actor),
    service: BroadcastService = Depends(get_broadcast_service),
) -> OwnedSessionsResponse:
    return OwnedSessionsResponse(data=await service.list_owned(owner))


@router.get("/track/{token}", response_class=HTMLResponse, include_in_schema=False)
async def tracking_page(
    request: Request,
    token: str,
    service: BroadcastService = Depends(get_broadcast_service),
):
    """Viewer page for link holders; polls get-location every few seconds."""
    record = await service.find_session(token)
    if record is None:
        return templates.TemplateResponse(
            request, "track_not_found.html", {}, status_code=status.HTTP_404_NOT_FOUND
        )
    return templates.TemplateResponse(
        request,
        "track.html",
        {
            "token": token,
            "owner_name": record["owner_name"],
            "owner_phone": record["owner_phone"],
            "owner_email": record["owner_email"],
            "is_live": record["status"] == BROADCAST_ACTIVE,
            "poll_seconds": 5,
        },
    )
