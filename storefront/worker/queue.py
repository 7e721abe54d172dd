"""arq connection settings and enqueue helper shared by the API and the worker."""

from typing import Any
from urllib.parse import urlparse

from arq import create_pool
from arq.connections import RedisSettings

from storefront.core.config import get_settings


def get_redis_settings() -> RedisSettings:
    s = get_settings()
    u = urlparse(s.redis_url)
    return RedisSettings(
        host=u.hostname or "localhost",
        port=u.port or 6379,
        password=u.password,
        database=int(u.path.lstrip("/") or 0) if u.path else 0,
        conn_timeout=2,
        conn_retries=1,
    )


async def enqueue(function: str, *args: Any) -> str | None:
    """Enqueue an arq job by function name; return the job id."""
    redis = await create_pool(get_redis_settings())
    try:
        job = await redis.enqueue_job(function, *args)
        return job.job_id if job else None
    finally:
        await redis.close()
