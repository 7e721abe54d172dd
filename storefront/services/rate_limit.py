"""Admin assistant rate limit: requests per user per minute via Redis.

Counter errors are treated as a zero count so a Redis outage never blocks the assistant.
"""

from storefront.core.clock import utcnow
from storefront.core.config import get_settings
from storefront.core.exceptions import TooManyRequestsError
from storefront.core.logging import get_logger

log = get_logger(__name__)

KEY_PREFIX = "assistant:requests"
TTL_SECONDS = 90  # a little past the minute window


def _key(user_id: str) -> str:
    minute = utcnow().strftime("%Y-%m-%dT%H:%M")
    return f"{KEY_PREFIX}:{user_id}:{minute}"


def seconds_until_next_window() -> int:
    return 60 - utcnow().second


async def get_assistant_requests_this_minute(redis, user_id: str) -> int:
    try:
        val = await redis.get(_key(user_id))
        return int(val) if val is not None else 0
    except Exception as e:
        log.warning("rate_limit_read_failed", error=str(e))
        return 0


async def incr_assistant_requests(redis, user_id: str) -> int:
    """Increment and return new count; set TTL on first increment."""
    key = _key(user_id)
    try:
        n = await redis.incr(key)
        if n == 1:
            await redis.expire(key, TTL_SECONDS)
        return n
    except Exception as e:
        log.warning("rate_limit_incr_failed", error=str(e))
        return 0


def assistant_per_minute_cap() -> int:
    return get_settings().assistant_requests_per_minute


async def enforce_assistant_rate_limit(redis, user_id: str) -> int:
    """Count this request; raise TooManyRequestsError once the cap is passed."""
    n = await incr_assistant_requests(redis, user_id)
    if n > assistant_per_minute_cap():
        raise TooManyRequestsError(
            "Too many assistant requests, try again shortly",
            retry_after=seconds_until_next_window(),
        )
    return n
