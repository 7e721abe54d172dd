"""Manual UPI payment lifecycle: one payment per order, status derived from amounts.

Status is recomputed from (amount_paid, amount) on every admin update; there is
no transition guard, so recording a smaller amount moves a paid payment back
to partial/pending. The linked order's financial_status is written right after
the payment; the two writes are not atomic, and the worker's reconciliation
sweep (orders.reconcile_financial_status) repairs an order left behind.
"""

from datetime import datetime, timedelta
from typing import Any

from beanie import PydanticObjectId

from storefront.core.clock import utcnow
from storefront.core.config import get_settings
from storefront.core.exceptions import NotFoundError
from storefront.core.logging import get_logger
from storefront.models.order import Order
from storefront.models.payment import OUTSTANDING_STATUSES, Payment, PaymentStatus
from storefront.services import notifications

log = get_logger(__name__)

PAYMENT_METHOD = "UPI"


def derive_status(amount_paid: float, amount: float) -> PaymentStatus:
    if amount_paid >= amount:
        return "paid"
    if amount_paid > 0:
        return "partial"
    return "pending"


def financial_status_for(payment_status: str) -> str:
    return "paid" if payment_status == "paid" else "pending"


async def create_payment(
    order_id: PydanticObjectId,
    user_id: PydanticObjectId,
    amount: float,
) -> PydanticObjectId:
    """Create the payment row for an order, or return the existing one's id."""
    existing = await get_by_order_id(order_id)
    if existing:
        return existing.id
    payment = Payment(
        order_id=order_id,
        user_id=user_id,
        amount=amount,
        amount_paid=0,
        status="pending",
        payment_method=PAYMENT_METHOD,
    )
    await payment.insert()
    log.info("payment_created", payment_id=str(payment.id), order_id=str(order_id), amount=amount)
    return payment.id


async def get_by_id(payment_id: PydanticObjectId) -> Payment | None:
    return await Payment.get(payment_id)


async def get_by_order_id(order_id: PydanticObjectId) -> Payment | None:
    return await Payment.find_one(Payment.order_id == order_id)


async def _require(payment_id: PydanticObjectId) -> Payment:
    payment = await Payment.get(payment_id)
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


async def initiate_payment(payment_id: PydanticObjectId) -> datetime:
    """Mark the moment the customer reached the QR step. Set once; later calls return it unchanged."""
    payment = await _require(payment_id)
    if payment.payment_initiated_at is not None:
        return payment.payment_initiated_at
    now = utcnow()
    await payment.set({Payment.payment_initiated_at: now, Payment.updated_at: now})
    log.info("payment_initiated", payment_id=str(payment.id), order_id=str(payment.order_id))
    await notifications.dispatch_payment_notification(payment, "initiated")
    return now


async def update_payment(
    payment_id: PydanticObjectId,
    amount_paid: float,
    transaction_id: str | None = None,
    notes: str | None = None,
) -> dict[str, Any]:
    """Record what has been received so far. None keeps transaction_id/notes; "" clears them."""
    payment = await _require(payment_id)
    previous = payment.status
    status = derive_status(amount_paid, payment.amount)
    now = utcnow()

    changes: dict = {Payment.amount_paid: amount_paid, Payment.status: status, Payment.updated_at: now}
    if transaction_id is not None:
        changes[Payment.transaction_id] = transaction_id
    if notes is not None:
        changes[Payment.notes] = notes
    await payment.set(changes)

    order = await Order.get(payment.order_id)
    if order:
        await order.set({Order.financial_status: financial_status_for(status), Order.updated_at: now})
    else:
        log.warning("payment_order_missing", payment_id=str(payment.id), order_id=str(payment.order_id))

    log.info(
        "payment_updated",
        payment_id=str(payment.id),
        amount=payment.amount,
        amount_paid=amount_paid,
        status=status,
        previous_status=previous,
    )
    await notifications.dispatch_payment_notification(payment, notifications.notification_type_for_status(status))
    return {"success": True, "status": status}


async def get_pending_by_user_id(user_id: PydanticObjectId) -> list[Payment]:
    """Outstanding (pending or partial) payments for a user, newest first."""
    return (
        await Payment.find(
            Payment.user_id == user_id,
            {"status": {"$in": list(OUTSTANDING_STATUSES)}},
        )
        .sort("-_id")
        .to_list()
    )


async def get_all(status: str | None = None, limit: int = 100) -> list[Payment]:
    """Newest first; the status filter applies before the limit."""
    query = Payment.find(Payment.status == status) if status else Payment.find_all()
    return await query.sort("-_id").limit(limit).to_list()


def payment_window(payment: Payment, now: datetime | None = None) -> dict[str, Any]:
    """Countdown shown next to the QR code. Display only: the payment stays payable after expiry."""
    minutes = get_settings().payment_window_minutes
    started = payment.payment_initiated_at
    if started is None:
        return {"initiated_at": None, "expires_at": None, "seconds_remaining": minutes * 60, "expired": False}
    expires_at = started + timedelta(minutes=minutes)
    remaining = int((expires_at - (now or utcnow())).total_seconds())
    return {
        "initiated_at": started,
        "expires_at": expires_at,
        "seconds_remaining": max(0, remaining),
        "expired": remaining <= 0,
    }


def serialize(payment: Payment) -> dict[str, Any]:
    return {
        "id": str(payment.id),
        "order_id": str(payment.order_id),
        "user_id": str(payment.user_id),
        "amount": payment.amount,
        "amount_paid": payment.amount_paid,
        "status": payment.status,
        "payment_method": payment.payment_method,
        "transaction_id": payment.transaction_id,
        "notes": payment.notes,
        "payment_initiated_at": payment.payment_initiated_at.isoformat() if payment.payment_initiated_at else None,
        "created_at": payment.created_at.isoformat(),
        "updated_at": payment.updated_at.isoformat(),
    }
