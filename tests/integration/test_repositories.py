# tests/integration/test_repositories.py
# Repositories against the real schema in a PostgreSQL container.

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from liveshare.repositories.actor_repository import ActorRepository
from liveshare.repositories.broadcast_session_repository import BroadcastSessionRepository
from liveshare.repositories.mutual_session_repository import MutualSessionRepository
from liveshare.repositories.notification_repository import NotificationRepository
from liveshare.repositories.sharing_request_repository import SharingRequestRepository

pytestmark = [pytest.mark.integration, pytest.mark.usefixtures("clean_tables")]

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _request_row(sender="u-a", recipient="u-b", created_at=NOW):
    return {
        "id": uuid.uuid4().hex,
        "sender_id": sender,
        "sender_name": "A",
        "sender_email": "a@example.com",
        "recipient_id": recipient,
        "recipient_name": "B",
        "recipient_email": "b@example.com",
        "sender_location": {"lat": 1.0, "lng": 1.0},
        "sender_address": None,
        "status": "pending",
        "created_at": created_at,
        "resolved_at": None,
        "session_id": None,
    }


def _session_row(request_id, a="u-a", b="u-b"):
    return {
        "id": uuid.uuid4().hex,
        "request_id": request_id,
        "party_a_id": a,
        "party_a_name": "A",
        "party_a_email": None,
        "party_a_location": {"lat": 1.0, "lng": 1.0},
        "party_a_address": None,
        "party_b_id": b,
        "party_b_name": "B",
        "party_b_email": None,
        "party_b_location": {"lat": 2.0, "lng": 2.0},
        "party_b_address": None,
        "status": "active",
        "created_at": NOW,
        "ended_at": None,
        "ended_by": None,
        "last_update_at": NOW,
    }


def _broadcast_row(token, duration=5, start=NOW):
    return {
        "session_token": token,
        "owner_id": "u-a",
        "owner_name": "A",
        "owner_phone": "+1",
        "owner_email": "a@example.com",
        "current_location": {"lat": 0.0, "lng": 0.0},
        "current_address": "Fetching address...",
        "duration_minutes": duration,
        "start_time": start,
        "end_time": None,
        "is_active": True,
        "end_reason": None,
        "last_update_at": start,
    }


async def _accepted_session():
    requests = SharingRequestRepository()
    request = await requests.create(_request_row())
    return await requests.accept_with_session(request["id"], "u-b", _session_row(request["id"]), NOW)


@pytest.mark.asyncio
async def test_accept_is_atomic_and_single_shot():
    requests = SharingRequestRepository()
    request = await requests.create(_request_row())

    created = await requests.accept_with_session(request["id"], "u-b", _session_row(request["id"]), NOW)
    assert created is not None

    stored = await requests.get(request["id"])
    assert stored["status"] == "accepted"
    assert stored["session_id"] == created["id"]

    second = await requests.accept_with_session(request["id"], "u-b", _session_row(request["id"]), NOW)
    assert second is None
    assert await requests.decline(request["id"], "u-b", NOW) is None


@pytest.mark.asyncio
async def test_concurrent_accepts_create_one_session():
    requests = SharingRequestRepository()
    request = await requests.create(_request_row())

    results = await asyncio.gather(*[
        requests.accept_with_session(request["id"], "u-b", _session_row(request["id"]), NOW)
        for _ in range(5)
    ], return_exceptions=True)

    winners = [r for r in results if isinstance(r, dict)]
    assert len(winners) == 1
    assert len(await MutualSessionRepository().list_active_for("u-a")) == 1


@pytest.mark.asyncio
async def test_accept_by_wrong_recipient_changes_nothing():
    requests = SharingRequestRepository()
    request = await requests.create(_request_row())

    assert await requests.accept_with_session(request["id"], "u-c", _session_row(request["id"]), NOW) is None
    assert (await requests.get(request["id"]))["status"] == "pending"
    assert await MutualSessionRepository().list_active_for("u-a") == []


@pytest.mark.asyncio
async def test_pending_views_are_newest_first_and_exclude_resolved():
    requests = SharingRequestRepository()
    older = await requests.create(_request_row(created_at=NOW))
    newer = await requests.create(_request_row(sender="u-c", created_at=NOW + timedelta(seconds=5)))
    declined = await requests.create(_request_row(sender="u-d"))
    await requests.decline(declined["id"], "u-b", NOW)

    incoming = await requests.list_pending_for_recipient("u-b")
    assert [r["id"] for r in incoming] == [newer["id"], older["id"]]
    assert [r["id"] for r in await requests.list_pending_from_sender("u-a")] == [older["id"]]


@pytest.mark.asyncio
async def test_party_updates_do_not_overwrite_each_other():
    sessions = MutualSessionRepository()
    session = await _accepted_session()

    await asyncio.gather(
        sessions.update_party_location(session["id"], "a", "u-a", {"lat": 10.0, "lng": 10.0}, None, NOW),
        sessions.update_party_location(session["id"], "b", "u-b", {"lat": 20.0, "lng": 20.0}, "B st", NOW),
    )

    row = await sessions.get(session["id"])
    assert row["party_a_location"] == {"lat": 10.0, "lng": 10.0}
    assert row["party_b_location"] == {"lat": 20.0, "lng": 20.0}
    assert row["party_b_address"] == "B st"


@pytest.mark.asyncio
async def test_party_update_requires_matching_side_and_active():
    sessions = MutualSessionRepository()
    session = await _accepted_session()

    # u-b cannot write party a's columns
    assert not await sessions.update_party_location(session["id"], "a", "u-b", {"lat": 9.0, "lng": 9.0}, None, NOW)

    assert await sessions.end(session["id"], "u-a", NOW)
    assert not await sessions.end(session["id"], "u-b", NOW)
    assert not await sessions.update_party_location(session["id"], "a", "u-a", {"lat": 9.0, "lng": 9.0}, None, NOW)

    row = await sessions.get(session["id"])
    assert row["status"] == "ended"
    assert row["ended_by"] == "u-a"
    assert row["party_a_location"] == {"lat": 1.0, "lng": 1.0}


@pytest.mark.asyncio
async def test_last_update_at_never_moves_backwards():
    sessions = MutualSessionRepository()
    session = await _accepted_session()
    later = NOW + timedelta(minutes=1)

    await sessions.update_party_location(session["id"], "a", "u-a", {"lat": 1.0, "lng": 1.0}, None, later)
    await sessions.update_party_location(session["id"], "b", "u-b", {"lat": 2.0, "lng": 2.0}, None, NOW)

    assert (await sessions.get(session["id"]))["last_update_at"] == later


@pytest.mark.asyncio
async def test_broadcast_update_guarded_by_deadline():
    repo = BroadcastSessionRepository()
    await repo.create(_broadcast_row("tok-1", duration=5))

    assert await repo.update_location("tok-1", {"lat": 1.0, "lng": 1.0}, "Here", NOW + timedelta(minutes=4))
    assert not await repo.update_location("tok-1", {"lat": 2.0, "lng": 2.0}, None, NOW + timedelta(minutes=5))

    row = await repo.get("tok-1")
    assert row["current_location"] == {"lat": 1.0, "lng": 1.0}
    assert row["current_address"] == "Here"


@pytest.mark.asyncio
async def test_broadcast_unlimited_and_close_once():
    repo = BroadcastSessionRepository()
    await repo.create(_broadcast_row("tok-2", duration=-1))

    assert await repo.update_location("tok-2", {"lat": 1.0, "lng": 1.0}, None, NOW + timedelta(days=400))
    assert await repo.stop("tok-2", NOW)
    assert not await repo.stop("tok-2", NOW + timedelta(minutes=1))
    assert not await repo.mark_expired("tok-2", NOW)

    row = await repo.get("tok-2")
    assert row["end_time"] == NOW
    assert row["end_reason"] == "stopped"
    assert [r["session_token"] for r in await repo.list_by_owner("u-a")] == ["tok-2"]


@pytest.mark.asyncio
async def test_actor_upsert_keeps_known_claims():
    repo = ActorRepository()
    await repo.upsert("u-a", "Alice", "Alice@Example.com", NOW)
    await repo.upsert("u-a", None, None, NOW + timedelta(minutes=1))

    row = await repo.get_by_id("u-a")
    assert row["name"] == "Alice"
    assert row["last_seen_at"] == NOW + timedelta(minutes=1)
    assert (await repo.get_by_email("alice@example.com"))["id"] == "u-a"


@pytest.mark.asyncio
async def test_notification_insert_returns_id():
    new_id = await NotificationRepository().insert({
        "target_actor_id": "u-b",
        "title": "Live location request",
        "message": "A wants to share live location with you",
        "category": "location",
        "icon": "📍",
        "data": {"request_id": "r1"},
        "read": False,
        "created_at": NOW,
    })
    assert new_id > 0
