from beanie import PydanticObjectId
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from storefront.core.exceptions import NotFoundError
from storefront.deps import get_guest_session, get_optional_user
from storefront.models.cart import Cart
from storefront.models.user import User
from storefront.services import carts as carts_service

router = APIRouter()


class AddItemRequest(BaseModel):
    product_id: PydanticObjectId
    variant_id: str
    quantity: int = Field(1, ge=1)


class UpdateItemRequest(BaseModel):
    product_id: PydanticObjectId
    variant_id: str
    quantity: int


class RemoveItemRequest(BaseModel):
    product_id: PydanticObjectId
    variant_id: str


async def _owned_cart(user: User | None, session_id: str | None) -> Cart:
    return await carts_service.get_or_create(user.id if user else None, session_id)


@router.get("")
async def cart_get(
    user: User | None = Depends(get_optional_user),
    session_id: str | None = Depends(get_guest_session),
):
    cart = await carts_service.get_for_owner(user.id if user else None, session_id)
    if not cart:
        return {"cart": None}
    return {"cart": carts_service.serialize(cart)}


@router.post("/items")
async def cart_add_item(
    body: AddItemRequest,
    user: User | None = Depends(get_optional_user),
    session_id: str | None = Depends(get_guest_session),
):
    cart = await _owned_cart(user, session_id)
    cart = await carts_service.add_item(cart.id, body.product_id, body.variant_id, body.quantity)
    return {"cart": carts_service.serialize(cart)}


@router.patch("/items")
async def cart_update_item(
    body: UpdateItemRequest,
    user: User | None = Depends(get_optional_user),
    session_id: str | None = Depends(get_guest_session),
):
    cart = await carts_service.get_for_owner(user.id if user else None, session_id)
    if not cart:
        raise NotFoundError("Cart not found")
    cart = await carts_service.update_item_quantity(cart.id, body.product_id, body.variant_id, body.quantity)
    return {"cart": carts_service.serialize(cart)}


@router.delete("/items")
async def cart_remove_item(
    body: RemoveItemRequest,
    user: User | None = Depends(get_optional_user),
    session_id: str | None = Depends(get_guest_session),
):
    cart = await carts_service.get_for_owner(user.id if user else None, session_id)
    if not cart:
        raise NotFoundError("Cart not found")
    cart = await carts_service.remove_item(cart.id, body.product_id, body.variant_id)
    return {"cart": carts_service.serialize(cart)}


@router.delete("")
async def cart_clear(
    user: User | None = Depends(get_optional_user),
    session_id: str | None = Depends(get_guest_session),
):
    cart = await carts_service.get_for_owner(user.id if user else None, session_id)
    if not cart:
        raise NotFoundError("Cart not found")
    cart = await carts_service.clear(cart.id)
    return {"cart": carts_service.serialize(cart)}
