# liveshare/services/notification_service.py
# Fire-and-forget notification emission.
# Emitters are awaited after the state mutation has committed and never raise:
# a failed notification must not turn a successful operation into an error.

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from arq.connections import ArqRedis, RedisSettings, create_pool

from liveshare.config import settings
from liveshare.middleware.circuit_breaker import CircuitBreakerError, get_circuit_breaker, with_timeout
from liveshare.observability.metrics import record_notification
from liveshare.utils.logger import log_exception, log_info, log_warning

DELIVER_JOB_NAME = "deliver_notification"


class NotificationEmitter:
    """Interface of the notification collaborator."""

    async def emit(
        self,
        target_actor_id: str,
        title: str,
        message: str,
        category: str,
        icon: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        raise NotImplementedError


class NullNotificationEmitter(NotificationEmitter):
    """Used when notifications are disabled."""

    async def emit(self, target_actor_id, title, message, category, icon, data=None) -> None:
        log_info(f"Notification suppressed for {target_actor_id}: {title}")


class ArqNotificationEmitter(NotificationEmitter):
    """Enqueue notifications on the arq queue for the worker to deliver."""

    def __init__(self, redis_url: Optional[str] = None, timeout_seconds: float = 2.0):
        self._redis_url = redis_url or settings.REDIS_URL
        self._pool: Optional[ArqRedis] = None
        self._pool_lock = asyncio.Lock()
        self._timeout = timeout_seconds
        self._breaker = get_circuit_breaker("notifications", failure_threshold=5, recovery_timeout=30.0)

    async def _get_arq(self) -> ArqRedis:
        """Get or create the shared ArqRedis connection pool."""
        async with self._pool_lock:
            if self._pool is None:
                self._pool = await create_pool(RedisSettings.from_dsn(self._redis_url))
        return self._pool

    async def _enqueue(self, payload: Dict[str, Any]) -> None:
        arq = await self._get_arq()
        await arq.enqueue_job(DELIVER_JOB_NAME, payload)

    async def emit(self, target_actor_id, title, message, category, icon, data=None) -> None:
        payload = {
            "target_actor_id": target_actor_id,
            "title": title,
            "message": message,
            "category": category,
            "icon": icon,
            "data": data,
        }
        enqueue = with_timeout(self._timeout)(self._enqueue)
        try:
            await self._breaker.call(enqueue, payload)
            record_notification("enqueued")
            log_info(f"Notification enqueued for {target_actor_id}: {title}")
        except CircuitBreakerError as e:
            record_notification("dropped")
            log_warning(f"Notification dropped for {target_actor_id}: {e}")
        except Exception as e:
            record_notification("failed")
            log_exception(e, f"ArqNotificationEmitter.emit target={target_actor_id}")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.aclose()
            self._pool = None


_emitter: Optional[NotificationEmitter] = None


def get_notification_emitter() -> NotificationEmitter:
    """Process-wide emitter chosen from settings."""
    global _emitter
    if _emitter is None:
        if settings.NOTIFICATIONS_ENABLED:
            _emitter = ArqNotificationEmitter()
        else:
            _emitter = NullNotificationEmitter()
    return _emitter


async def close_notification_emitter() -> None:
    global _emitter
    if isinstance(_emitter, ArqNotificationEmitter):
        await _emitter.close()
    _emitter = None


async def safe_emit(emitter: NotificationEmitter, target_actor_id: str, title: str, message: str,
                    category: str, icon: str, data: Optional[Dict[str, Any]] = None) -> None:
    """Call an emitter and contain anything it raises."""
    try:
        await emitter.emit(target_actor_id, title, message, category, icon, data)
    except Exception as e:
        log_exception(e, f"notification emit target={target_actor_id}")
