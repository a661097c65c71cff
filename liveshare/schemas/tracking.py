from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class StartTrackingRequest(BaseModel):
    phone: Optional[str] = Field(None, alias="userPhone")
    name: Optional[str] = Field(None, alias="userName")
    email: Optional[str] = Field(None, alias="userEmail")
    duration: Optional[int] = Field(None, description="Minutes; -1 or omitted = unlimited")

    class Config:
        populate_by_name = True


class StartTrackingResponse(BaseModel):
    success: bool = True
    session_token: str
    tracking_url: str
    message: str = "Live tracking started successfully"


class UpdateLocationRequest(BaseModel):
    session_token: str = Field(..., alias="sessionId")
    lat: float
    lng: float
    address: Optional[str] = None

    class Config:
        populate_by_name = True


class StopTrackingRequest(BaseModel):
    session_token: str = Field(..., alias="sessionId")

    class Config:
        populate_by_name = True


class BroadcastLocation(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None


class GetLocationResponse(BaseModel):
    success: bool = True
    location: BroadcastLocation
    owner_name: str
    owner_phone: str
    owner_email: str
    last_update_at: datetime
    expires_at: Optional[datetime] = None


class OwnedSession(BaseModel):
    session_token: str
    tracking_url: str
    status: str
    duration_minutes: int
    start_time: datetime
    end_time: Optional[datetime] = None
    last_update_at: datetime


class OwnedSessionsResponse(BaseModel):
    success: bool = True
    data: list[OwnedSession]
