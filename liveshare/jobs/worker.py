from arq import cron
from arq.connections import RedisSettings
from opentelemetry import trace

from liveshare import config
from liveshare.config import settings
from liveshare.middleware.circuit_breaker import retry_with_backoff
from liveshare.middleware.error_handler import DatabaseError
from liveshare.observability.logger import configure_logging
from liveshare.repositories.notification_repository import NotificationRepository
from liveshare.utils.clock import utc_now
from liveshare.utils.logger import log_info
from liveshare.utils.telemetry import init_otel

_REQUIRED_FIELDS = ("target_actor_id", "title", "message", "category")


@retry_with_backoff(max_retries=3, base_delay=0.5, exceptions=(DatabaseError,))
async def _store(repository: NotificationRepository, row: dict) -> int:
    return await repository.insert(row)


async def deliver_notification(ctx, payload: dict) -> dict:
    """Persist a notification so the target actor finds it in their feed."""
    r = ctx["redis"]
    tracer = trace.get_tracer("worker")
    missing = [f for f in _REQUIRED_FIELDS if not payload.get(f)]
    if missing:
        # malformed jobs are dropped, retrying cannot fix them
        await r.incr("notifications:rejected")
        return {"status": "rejected", "missing": missing}

    repository = ctx.get("notification_repository") or NotificationRepository()
    row = {
        "target_actor_id": payload["target_actor_id"],
        "title": payload["title"],
        "message": payload["message"],
        "category": payload["category"],
        "icon": payload.get("icon"),
        "data": payload.get("data"),
        "read": False,
        "created_at": utc_now(),
    }
    try:
        with tracer.start_as_current_span("deliver_notification"):
            notification_id = await _store(repository, row)
    except Exception:
        await r.incr("notifications:failed")
        raise
    await r.incr("notifications:delivered")
    log_info(f"Notification {notification_id} stored for {row['target_actor_id']}: {row['title']}")
    return {"status": "delivered", "id": notification_id}


deliver_notification.job_keep_result = 600


async def cleanup_jobs(ctx) -> dict:
    """Periodic cleanup: remove non-expiring ARQ job keys to prevent growth."""
    r = ctx["redis"]
    removed = 0
    cursor = 0
    pattern = "arq:job:*"
    while True:
        cursor, keys = await r.scan(cursor=cursor, match=pattern, count=500)
        if keys:
            # delete keys that have no TTL (ttl == -1)
            for k in keys:
                ttl = await r.ttl(k)
                if ttl == -1:
                    await r.delete(k)
                    removed += 1
        if cursor == 0:
            break
    return {"removed": removed}


class WorkerSettings:
    functions = [deliver_notification, cleanup_jobs]
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    cron_jobs = [
        cron(cleanup_jobs, minute={0, 15, 30, 45}),
    ]

    @staticmethod
    async def startup(ctx):
        configure_logging(config)
        ctx["notification_repository"] = NotificationRepository()
        if settings.OTEL_ENABLED:
            init_otel(service_name=f"{config.SERVICE_NAME}-worker")
