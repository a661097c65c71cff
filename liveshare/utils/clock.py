# liveshare/utils/clock.py

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Timezone-aware current time, matching TIMESTAMP WITH TIME ZONE columns."""
    return datetime.now(timezone.utc)
