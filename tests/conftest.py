# tests/conftest.py
# Shared fixtures: in-memory stand-ins for the repositories, a controllable
# clock and a recording notification emitter.
#
# Side effects are switched off before any liveshare module reads settings.

import copy
import os
from datetime import datetime, timedelta, timezone

os.environ.setdefault("OTEL_ENABLED", "false")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("PUBLIC_BASE_URL", "http://testserver")

import pytest  # noqa: E402

from liveshare.constants import (  # noqa: E402
    REQUEST_ACCEPTED,
    REQUEST_DECLINED,
    REQUEST_PENDING,
    SESSION_ACTIVE,
    SESSION_ENDED,
    UNLIMITED_DURATION,
)
from liveshare.schemas.actor import Actor  # noqa: E402
from liveshare.services.notification_service import NotificationEmitter  # noqa: E402


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, minutes: float = 0) -> None:
        self.now = self.now + timedelta(seconds=seconds, minutes=minutes)


class InMemoryActorRepository:
    def __init__(self):
        self.rows: dict[str, dict] = {}

    async def upsert(self, actor_id, name, email, now):
        row = self.rows.setdefault(actor_id, {"id": actor_id, "name": None, "email": None})
        row["name"] = name or row["name"]
        row["email"] = email or row["email"]
        row["last_seen_at"] = now

    async def get_by_id(self, actor_id):
        row = self.rows.get(actor_id)
        return dict(row) if row else None

    async def get_by_email(self, email):
        for row in self.rows.values():
            if row["email"] and row["email"].lower() == email.lower():
                return dict(row)
        return None


class InMemoryBroadcastRepository:
    def __init__(self):
        self.rows: dict[str, dict] = {}

    async def create(self, row):
        self.rows[row["session_token"]] = copy.deepcopy(row)
        return copy.deepcopy(row)

    async def get(self, token):
        row = self.rows.get(token)
        return copy.deepcopy(row) if row else None

    async def list_by_owner(self, owner_id):
        owned = [r for r in self.rows.values() if r["owner_id"] == owner_id]
        owned.sort(key=lambda r: r["start_time"], reverse=True)
        return copy.deepcopy(owned)

    async def update_location(self, token, location, address, now):
        row = self.rows.get(token)
        if row is None or not row["is_active"]:
            return False
        if row["duration_minutes"] != UNLIMITED_DURATION:
            if row["start_time"] + timedelta(minutes=row["duration_minutes"]) <= now:
                return False
        row["current_location"] = dict(location)
        if address:
            row["current_address"] = address
        row["last_update_at"] = now
        return True

    async def mark_expired(self, token, expired_at):
        return self._close(token, expired_at, "expired")

    async def stop(self, token, now):
        return self._close(token, now, "stopped")

    def _close(self, token, end_time, reason):
        row = self.rows.get(token)
        if row is None or not row["is_active"]:
            return False
        row.update(is_active=False, end_time=end_time, end_reason=reason)
        return True


class InMemoryMutualSessionRepository:
    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.failing_ids: set[str] = set()

    async def get(self, session_id):
        row = self.rows.get(session_id)
        return copy.deepcopy(row) if row else None

    async def list_active_for(self, actor_id):
        found = [
            r for r in self.rows.values()
            if r["status"] == SESSION_ACTIVE and actor_id in (r["party_a_id"], r["party_b_id"])
        ]
        found.sort(key=lambda r: r["created_at"], reverse=True)
        return copy.deepcopy(found)

    async def update_party_location(self, session_id, side, actor_id, location, address, now):
        if session_id in self.failing_ids:
            from liveshare.middleware.error_handler import DatabaseError
            raise DatabaseError()
        row = self.rows.get(session_id)
        if row is None or row["status"] != SESSION_ACTIVE or row[f"party_{side}_id"] != actor_id:
            return False
        row[f"party_{side}_location"] = dict(location)
        if address is not None:
            row[f"party_{side}_address"] = address
        row["last_update_at"] = max(row["last_update_at"], now)
        return True

    async def end(self, session_id, actor_id, now):
        row = self.rows.get(session_id)
        if row is None or row["status"] != SESSION_ACTIVE:
            return False
        row.update(status=SESSION_ENDED, ended_at=now, ended_by=actor_id)
        row["last_update_at"] = max(row["last_update_at"], now)
        return True


class InMemorySharingRequestRepository:
    def __init__(self, sessions: InMemoryMutualSessionRepository):
        self.rows: dict[str, dict] = {}
        self.sessions = sessions

    async def create(self, row):
        self.rows[row["id"]] = copy.deepcopy(row)
        return copy.deepcopy(row)

    async def get(self, request_id):
        row = self.rows.get(request_id)
        return copy.deepcopy(row) if row else None

    async def list_pending_for_recipient(self, recipient_id):
        return self._pending(lambda r: r["recipient_id"] == recipient_id)

    async def list_pending_from_sender(self, sender_id):
        return self._pending(lambda r: r["sender_id"] == sender_id)

    def _pending(self, predicate):
        found = [r for r in self.rows.values() if r["status"] == REQUEST_PENDING and predicate(r)]
        found.sort(key=lambda r: r["created_at"], reverse=True)
        return copy.deepcopy(found)

    async def decline(self, request_id, recipient_id, now):
        row = self._pending_for(request_id, recipient_id)
        if row is None:
            return None
        row.update(status=REQUEST_DECLINED, resolved_at=now)
        return copy.deepcopy(row)

    async def accept_with_session(self, request_id, recipient_id, session_row, now):
        row = self._pending_for(request_id, recipient_id)
        if row is None:
            return None
        row.update(status=REQUEST_ACCEPTED, resolved_at=now, session_id=session_row["id"])
        self.sessions.rows[session_row["id"]] = copy.deepcopy(session_row)
        return copy.deepcopy(session_row)

    def _pending_for(self, request_id, recipient_id):
        row = self.rows.get(request_id)
        if row is None or row["recipient_id"] != recipient_id or row["status"] != REQUEST_PENDING:
            return None
        return row


class RecordingEmitter(NotificationEmitter):
    def __init__(self, fail: bool = False):
        self.events: list[dict] = []
        self.fail = fail

    async def emit(self, target_actor_id, title, message, category, icon, data=None):
        if self.fail:
            raise RuntimeError("queue unavailable")
        self.events.append({
            "target_actor_id": target_actor_id,
            "title": title,
            "message": message,
            "category": category,
            "icon": icon,
            "data": data,
        })


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def alice():
    return Actor(id="u-alice", name="Alice", email="alice@example.com")


@pytest.fixture
def bob():
    return Actor(id="u-bob", name="Bob", email="bob@example.com")


@pytest.fixture
def carol():
    return Actor(id="u-carol", name="Carol", email="carol@example.com")


@pytest.fixture
def actor_repo(alice, bob, carol):
    repo = InMemoryActorRepository()
    for actor in (alice, bob, carol):
        repo.rows[actor.id] = {"id": actor.id, "name": actor.name, "email": actor.email}
    return repo


@pytest.fixture
def broadcast_repo():
    return InMemoryBroadcastRepository()


@pytest.fixture
def session_repo():
    return InMemoryMutualSessionRepository()


@pytest.fixture
def request_repo(session_repo):
    return InMemorySharingRequestRepository(session_repo)


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest.fixture
def failing_emitter():
    return RecordingEmitter(fail=True)
