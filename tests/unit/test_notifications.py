# tests/unit/test_notifications.py
# Notification emitters and the worker job that stores them

import pytest

from liveshare.jobs.worker import deliver_notification
from liveshare.middleware.error_handler import DatabaseError
from liveshare.services.notification_service import (
    ArqNotificationEmitter,
    NullNotificationEmitter,
    get_notification_emitter,
    safe_emit,
)


class FakeRedis:
    def __init__(self):
        self.counters = {}

    async def incr(self, key):
        self.counters[key] = self.counters.get(key, 0) + 1


class FakeNotificationRepository:
    def __init__(self, failures=0):
        self.rows = []
        self.failures = failures

    async def insert(self, row):
        if self.failures:
            self.failures -= 1
            raise DatabaseError()
        self.rows.append(row)
        return len(self.rows)


def _payload(**overrides):
    payload = {
        "target_actor_id": "u-bob",
        "title": "Live location request",
        "message": "Alice wants to share live location with you",
        "category": "location",
        "icon": "📍",
        "data": {"event": "share_requested", "request_id": "r1"},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def breaker():
    from liveshare.middleware.circuit_breaker import get_circuit_breaker

    cb = get_circuit_breaker("notifications")
    cb.reset()
    yield cb
    cb.reset()


def test_disabled_notifications_use_null_emitter():
    assert isinstance(get_notification_emitter(), NullNotificationEmitter)


@pytest.mark.asyncio
async def test_arq_emitter_enqueues_payload(breaker):
    emitter = ArqNotificationEmitter(redis_url="redis://localhost:6379/0")
    sent = []

    async def fake_enqueue(payload):
        sent.append(payload)

    emitter._enqueue = fake_enqueue
    await emitter.emit("u-bob", "t", "m", "location", "📍", {"k": 1})

    assert sent == [{
        "target_actor_id": "u-bob",
        "title": "t",
        "message": "m",
        "category": "location",
        "icon": "📍",
        "data": {"k": 1},
    }]


@pytest.mark.asyncio
async def test_arq_emitter_swallows_queue_failures_and_opens_breaker(breaker):
    emitter = ArqNotificationEmitter(redis_url="redis://localhost:6379/0")
    attempts = 0

    async def broken_enqueue(payload):
        nonlocal attempts
        attempts += 1
        raise ConnectionError("redis down")

    emitter._enqueue = broken_enqueue
    for _ in range(breaker.failure_threshold + 3):
        await emitter.emit("u-bob", "t", "m", "location", "📍")

    assert breaker.is_open
    # once open, further emits are dropped without touching Redis
    assert attempts == breaker.failure_threshold


@pytest.mark.asyncio
async def test_safe_emit_contains_errors():
    class Exploding(NullNotificationEmitter):
        async def emit(self, *args, **kwargs):
            raise RuntimeError("boom")

    await safe_emit(Exploding(), "u-1", "t", "m", "location", "📍")


@pytest.mark.asyncio
async def test_worker_stores_notification():
    repo = FakeNotificationRepository()
    ctx = {"redis": FakeRedis(), "notification_repository": repo}

    result = await deliver_notification(ctx, _payload())

    assert result == {"status": "delivered", "id": 1}
    stored = repo.rows[0]
    assert stored["target_actor_id"] == "u-bob"
    assert stored["read"] is False
    assert stored["data"]["request_id"] == "r1"
    assert stored["created_at"].tzinfo is not None
    assert ctx["redis"].counters == {"notifications:delivered": 1}


@pytest.mark.asyncio
async def test_worker_retries_transient_storage_errors(monkeypatch):
    import asyncio

    async def no_sleep(_):
        return None

    monkeypatch.setattr(asyncio, "sleep", no_sleep)
    repo = FakeNotificationRepository(failures=2)
    ctx = {"redis": FakeRedis(), "notification_repository": repo}

    result = await deliver_notification(ctx, _payload())

    assert result["status"] == "delivered"
    assert len(repo.rows) == 1


@pytest.mark.asyncio
async def test_worker_rejects_malformed_payload():
    repo = FakeNotificationRepository()
    ctx = {"redis": FakeRedis(), "notification_repository": repo}

    result = await deliver_notification(ctx, _payload(title="", target_actor_id=None))

    assert result["status"] == "rejected"
    assert set(result["missing"]) == {"title", "target_actor_id"}
    assert repo.rows == []
