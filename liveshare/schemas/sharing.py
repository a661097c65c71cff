from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LocationIn(BaseModel):
    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    accuracy: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class LocationOut(BaseModel):
    lat: float
    lng: float
    accuracy: Optional[float] = None


class CreateSharingRequest(BaseModel):
    recipient_id: Optional[str] = None
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None
    sender_location: Optional[LocationIn] = None
    sender_address: Optional[str] = None


class AcceptSharingRequest(BaseModel):
    location: Optional[LocationIn] = None
    address: Optional[str] = None


class SharingRequestOut(BaseModel):
    id: str
    sender_id: str
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None
    recipient_id: str
    recipient_name: Optional[str] = None
    recipient_email: Optional[str] = None
    sender_location: LocationOut
    sender_address: Optional[str] = None
    status: str
    created_at: datetime
    resolved_at: Optional[datetime] = None
    session_id: Optional[str] = None

    class Config:
        from_attributes = True


class SharingRequestResponse(BaseModel):
    success: bool = True
    data: SharingRequestOut


class SharingRequestListResponse(BaseModel):
    success: bool = True
    data: list[SharingRequestOut]


class AcceptResponse(BaseModel):
    success: bool = True
    session_id: str


class PushLocationRequest(BaseModel):
    lat: float = Field(..., allow_inf_nan=False)
    lng: float = Field(..., allow_inf_nan=False)
    accuracy: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    address: Optional[str] = None


class PushLocationResponse(BaseModel):
    success: bool = True
    sessions_updated: int
    sessions_failed: int = 0


class Party(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    location: Optional[LocationOut] = None
    address: Optional[str] = None


class ActiveSessionOut(BaseModel):
    session_id: str
    status: str
    counterparty: Party
    my_location: Optional[LocationOut] = None
    my_address: Optional[str] = None
    created_at: datetime
    last_update_at: datetime


class ActiveSessionListResponse(BaseModel):
    success: bool = True
    data: list[ActiveSessionOut]


class CounterpartyIdentity(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


class CounterpartyLocationResponse(BaseModel):
    success: bool = True
    session_id: str
    status: str
    counterparty: CounterpartyIdentity
    location: Optional[LocationOut] = None
    address: Optional[str] = None
    last_update_at: datetime
