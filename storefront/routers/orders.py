from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, Header, Query
from pydantic import BaseModel, Field

from storefront.core.audit import log_event
from storefront.core.exceptions import NotFoundError
from storefront.core.pagination import page_of, paginate
from storefront.core.security import normalize_idempotency_key
from storefront.deps import get_current_user, require_admin
from storefront.models.order import FinancialStatus, FulfillmentStatus, Order
from storefront.models.user import User
from storefront.services import orders as orders_service
from storefront.services import payments as payments_service

router = APIRouter()


class CheckoutRequest(BaseModel):
    cart_id: PydanticObjectId
    discount_code: str | None = None
    credits_applied: float = Field(0, ge=0)


class OrderStatusRequest(BaseModel):
    fulfillment_status: FulfillmentStatus | None = None
    financial_status: FinancialStatus | None = None


def _visible_to(order: Order | None, user: User) -> Order:
    if not order or (order.user_id != user.id and not user.is_admin):
        raise NotFoundError("Order not found")
    return order


@router.post("/checkout")
async def orders_checkout(
    body: CheckoutRequest,
    user: User = Depends(get_current_user),
    idempotency_key: str | None = Header(None, alias="Idempotency-Key"),
):
    """Place the order for the cart; returns the order, its payment id and UPI details."""
    result = await orders_service.checkout(
        user.id,
        body.cart_id,
        discount_code=body.discount_code,
        credits_applied=body.credits_applied,
        checkout_key=normalize_idempotency_key(idempotency_key),
    )
    return {
        "order": orders_service.serialize(result["order"]),
        "payment_id": str(result["payment_id"]),
        "upi": result["upi"],
    }


@router.get("/mine")
async def orders_mine(user: User = Depends(get_current_user)):
    orders = await orders_service.get_by_user_id(user.id)
    return {"orders": [orders_service.serialize(o) for o in orders]}


@router.get("/number/{order_number}")
async def orders_by_number(order_number: int, user: User = Depends(get_current_user)):
    order = _visible_to(await orders_service.get_by_order_number(order_number), user)
    return orders_service.serialize(order)


@router.get("/admin/all")
async def orders_admin_list(
    _: User = Depends(require_admin),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    limit, offset = paginate(limit, offset)
    orders, total = await orders_service.list_orders(limit=limit, offset=offset)
    return page_of([orders_service.serialize(o) for o in orders], limit, offset, total)


@router.get("/{order_id}")
async def orders_get(order_id: PydanticObjectId, user: User = Depends(get_current_user)):
    order = _visible_to(await orders_service.get_by_id(order_id), user)
    payment = await payments_service.get_by_order_id(order.id)
    out = orders_service.serialize(order)
    out["payment"] = payments_service.serialize(payment) if payment else None
    return out


@router.patch("/{order_id}/status")
async def orders_update_status(
    order_id: PydanticObjectId,
    body: OrderStatusRequest,
    admin: User = Depends(require_admin),
):
    order = await orders_service.update_status(order_id, body.fulfillment_status, body.financial_status)
    await log_event(str(admin.id), "order_status_updated", "order", str(order_id), body.model_dump(exclude_none=True))
    return orders_service.serialize(order)
