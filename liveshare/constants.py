# liveshare/constants.py
# Status values and notification presets shared across layers

# Sharing request lifecycle
REQUEST_PENDING: str = "pending"
REQUEST_ACCEPTED: str = "accepted"
REQUEST_DECLINED: str = "declined"

# Mutual session lifecycle
SESSION_ACTIVE: str = "active"
SESSION_ENDED: str = "ended"

# Derived broadcast session states (see utils/expiry.py)
BROADCAST_ACTIVE: str = "active"
BROADCAST_EXPIRED: str = "expired"
BROADCAST_STOPPED: str = "stopped"

UNLIMITED_DURATION: int = -1

# Placeholders used before the owner's device reports a fix
DEFAULT_BROADCAST_LOCATION: dict = {"lat": 0.0, "lng": 0.0}
DEFAULT_BROADCAST_ADDRESS: str = "Fetching address..."

# Notification events
EVENT_SHARE_REQUESTED: str = "share_requested"
EVENT_SHARE_ACCEPTED: str = "share_accepted"
EVENT_SESSION_ENDED: str = "session_ended"

NOTIFICATION_CATEGORY_LOCATION: str = "location"
NOTIFICATION_ICON_LOCATION: str = "📍"
