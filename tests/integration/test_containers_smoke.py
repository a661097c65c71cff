# tests/integration/test_containers_smoke.py
# Smoke tests: containers are reachable and the schema exists.

import asyncpg
import pytest  # type: ignore[import-not-found]
from redis.asyncio import from_url as redis_from_url  # type: ignore

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_postgres_schema_created(postgres_url: str):
    conn = await asyncpg.connect(dsn=postgres_url)
    try:
        tables = {
            r["tablename"]
            for r in await conn.fetch("SELECT tablename FROM pg_tables WHERE schemaname = 'public'")
        }
    finally:
        await conn.close()
    assert {"actors", "sharing_requests", "mutual_sessions", "broadcast_sessions", "notifications"} <= tables


@pytest.mark.asyncio
async def test_redis_container_connect(redis_url: str):
    r = redis_from_url(redis_url)
    try:
        assert await r.ping() is True
    finally:
        await r.flushdb()
        await r.aclose()
