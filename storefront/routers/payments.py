from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from storefront.core.audit import log_event
from storefront.core.exceptions import NotFoundError
from storefront.deps import get_current_user, require_admin
from storefront.models.payment import Payment, PaymentStatus
from storefront.models.user import User
from storefront.services import orders as orders_service
from storefront.services import payments as payments_service

router = APIRouter()


class CreatePaymentRequest(BaseModel):
    order_id: PydanticObjectId


class UpdatePaymentRequest(BaseModel):
    amount_paid: float = Field(..., ge=0)
    transaction_id: str | None = None
    notes: str | None = None


def _visible_to(payment: Payment | None, user: User) -> Payment:
    if not payment or (payment.user_id != user.id and not user.is_admin):
        raise NotFoundError("Payment not found")
    return payment


@router.post("")
async def payments_create(body: CreatePaymentRequest, user: User = Depends(get_current_user)):
    """Create the payment row for one of the caller's orders (returns the existing one if present)."""
    order = await orders_service.get_by_id(body.order_id)
    if not order or order.user_id != user.id:
        raise NotFoundError("Order not found")
    payment_id = await payments_service.create_payment(order.id, user.id, order.total_price)
    return {"payment_id": str(payment_id)}


@router.get("/mine/pending")
async def payments_mine_pending(user: User = Depends(get_current_user)):
    payments = await payments_service.get_pending_by_user_id(user.id)
    return {"payments": [payments_service.serialize(p) for p in payments]}


@router.get("/admin/all")
async def payments_admin_list(
    _: User = Depends(require_admin),
    status: PaymentStatus | None = None,
    limit: int = Query(100, ge=1, le=500),
):
    payments = await payments_service.get_all(status=status, limit=limit)
    return {"payments": [payments_service.serialize(p) for p in payments]}


@router.get("/order/{order_id}")
async def payments_by_order(order_id: PydanticObjectId, user: User = Depends(get_current_user)):
    payment = _visible_to(await payments_service.get_by_order_id(order_id), user)
    return payments_service.serialize(payment)


@router.get("/{payment_id}")
async def payments_get(payment_id: PydanticObjectId, user: User = Depends(get_current_user)):
    payment = _visible_to(await payments_service.get_by_id(payment_id), user)
    return payments_service.serialize(payment)


@router.post("/{payment_id}/initiate")
async def payments_initiate(payment_id: PydanticObjectId, user: User = Depends(get_current_user)):
    """Customer reached the QR step; starts the countdown once."""
    _visible_to(await payments_service.get_by_id(payment_id), user)
    initiated_at = await payments_service.initiate_payment(payment_id)
    return {"payment_initiated_at": initiated_at.isoformat()}


@router.get("/{payment_id}/window")
async def payments_window(payment_id: PydanticObjectId, user: User = Depends(get_current_user)):
    payment = _visible_to(await payments_service.get_by_id(payment_id), user)
    window = payments_service.payment_window(payment)
    return {
        "initiated_at": window["initiated_at"].isoformat() if window["initiated_at"] else None,
        "expires_at": window["expires_at"].isoformat() if window["expires_at"] else None,
        "seconds_remaining": window["seconds_remaining"],
        "expired": window["expired"],
    }


@router.patch("/{payment_id}")
async def payments_admin_update(
    payment_id: PydanticObjectId,
    body: UpdatePaymentRequest,
    admin: User = Depends(require_admin),
):
    """Admin records the amount received; status and order financial status are re-derived."""
    result = await payments_service.update_payment(payment_id, body.amount_paid, body.transaction_id, body.notes)
    await log_event(
        str(admin.id),
        "payment_updated",
        "payment",
        str(payment_id),
        {"amount_paid": body.amount_paid, "status": result["status"], "transaction_id": body.transaction_id},
    )
    return result
