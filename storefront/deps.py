"""Shared FastAPI dependencies."""

from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import Request

from storefront.core.config import get_settings
from storefront.core.exceptions import ForbiddenError, UnauthorizedError
from storefront.core.security import load_session_cookie
from storefront.models.user import User

SESSION_COOKIE_NAME = "storefront_session"
GUEST_SESSION_HEADER = "X-Guest-Session"


async def get_optional_user(request: Request) -> User | None:
    """Dependency: the signed-in user, or None for guests and stale cookies."""
    cookie = request.cookies.get(SESSION_COOKIE_NAME)
    if not cookie:
        return None
    payload = load_session_cookie(cookie)
    if not payload or not payload.get("user_id"):
        return None
    user = await User.get(payload["user_id"])
    if not user or payload.get("session_version") != user.session_version:
        return None
    return user


async def get_current_user(request: Request) -> User:
    """Dependency: load session from cookie and return User."""
    cookie = request.cookies.get(SESSION_COOKIE_NAME)
    if not cookie:
        raise UnauthorizedError("Not authenticated")
    payload = load_session_cookie(cookie)
    if not payload:
        raise UnauthorizedError("Invalid or expired session")
    user_id = payload.get("user_id")
    if not user_id:
        raise UnauthorizedError("Invalid session")
    user = await User.get(user_id)
    if not user:
        raise UnauthorizedError("User not found")
    if payload.get("session_version") != user.session_version:
        raise UnauthorizedError("Session invalidated")
    return user


async def require_admin(request: Request) -> User:
    """Dependency: require an admin or manager."""
    user = await get_current_user(request)
    if not user.is_admin:
        raise ForbiddenError("Admin only")
    return user


def get_guest_session(request: Request) -> str | None:
    return request.headers.get(GUEST_SESSION_HEADER) or None


async def get_redis() -> AsyncIterator[aioredis.Redis]:
    redis = aioredis.from_url(get_settings().redis_url, decode_responses=True, socket_connect_timeout=2)
    try:
        yield redis
    finally:
        await redis.aclose()
