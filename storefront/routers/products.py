from fastapi import APIRouter, Depends, Query

from storefront.core.exceptions import NotFoundError
from storefront.deps import get_optional_user
from storefront.models.user import User
from storefront.services import products as products_service

router = APIRouter()


def _can_see_locked(user: User | None) -> bool:
    return bool(user and (user.is_approved or user.is_admin))


@router.get("")
async def products_list(
    collection: str | None = None,
    category: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    user: User | None = Depends(get_optional_user),
):
    products = await products_service.list_products(limit=limit, collection=collection, category=category)
    locked = _can_see_locked(user)
    return {"products": [products_service.serialize(p, include_locked=locked) for p in products]}


@router.get("/search")
async def products_search(
    q: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    user: User | None = Depends(get_optional_user),
):
    products = await products_service.search_products(q, limit=limit)
    locked = _can_see_locked(user)
    return {"products": [products_service.serialize(p, include_locked=locked) for p in products]}


@router.get("/{handle}")
async def products_get(handle: str, user: User | None = Depends(get_optional_user)):
    product = await products_service.get_by_handle(handle)
    if not product:
        raise NotFoundError("Product not found")
    return products_service.serialize(product, include_locked=_can_see_locked(user))
