# liveshare/utils/expiry.py
# Pure status derivation for broadcast sessions.
# Expiry is computed on access, never scheduled: callers apply derive_status
# with the current time before acting on a record.

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from liveshare.constants import (
    BROADCAST_ACTIVE,
    BROADCAST_EXPIRED,
    BROADCAST_STOPPED,
    UNLIMITED_DURATION,
)


def expires_at(record: Mapping[str, Any]) -> Optional[datetime]:
    """Return the instant the session expires, or None when unlimited."""
    duration = record.get("duration_minutes")
    if duration is None or duration == UNLIMITED_DURATION:
        return None
    return record["start_time"] + timedelta(minutes=duration)


def derive_status(record: Mapping[str, Any], now: datetime) -> str:
    """Return 'active', 'expired' or 'stopped' for a broadcast session record.

    A record that is already inactive keeps the reason it was closed with.
    An active record whose deadline has been reached reports 'expired' even
    though the flag in storage still says active.
    """
    if not record.get("is_active"):
        return record.get("end_reason") or BROADCAST_STOPPED
    deadline = expires_at(record)
    if deadline is not None and now >= deadline:
        return BROADCAST_EXPIRED
    return BROADCAST_ACTIVE


def normalize_duration(duration_minutes: Optional[int]) -> int:
    """Map missing/zero durations to unlimited; reject other non-positive values."""
    if not duration_minutes:
        return UNLIMITED_DURATION
    if duration_minutes == UNLIMITED_DURATION or duration_minutes > 0:
        return duration_minutes
    raise ValueError("duration_minutes must be -1 (unlimited) or a positive number of minutes")
