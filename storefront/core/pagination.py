"""Pagination helpers for list endpoints."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: list[T]
    limit: int
    offset: int
    total: int | None = None


def paginate(limit: int, offset: int, max_limit: int = 200) -> tuple[int, int]:
    """Clamp limit/offset; return (limit, offset)."""
    return max(1, min(limit, max_limit)), max(0, offset)


def page_of(items: list[dict[str, Any]], limit: int, offset: int, total: int | None = None) -> Page[dict[str, Any]]:
    return Page[dict[str, Any]](items=items, limit=limit, offset=offset, total=total)
