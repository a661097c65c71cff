from __future__ import annotations

from pydantic import BaseModel


class StatusResponse(BaseModel):
    success: bool = True
    message: str


class ErrorBody(BaseModel):
    code: str
    message: str
    details: dict | None = None
    request_id: str | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorBody
