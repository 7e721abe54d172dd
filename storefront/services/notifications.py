"""Payment, authorization and contact-form notifications: payload building, Discord embeds, fire-and-forget dispatch.

Dispatch only enqueues; delivery happens on the arq worker, which retries and
dead-letters on its own. A failure to enqueue is logged and dropped so the
triggering request always completes. Contact-form dispatch is the exception:
it raises so the visitor learns the message was not taken.
"""

from datetime import datetime, timezone
from typing import Any, Literal
from zoneinfo import ZoneInfo

import httpx
from beanie import PydanticObjectId
from pydantic import BaseModel

from storefront.core.config import get_settings
from storefront.core.exceptions import AppError
from storefront.core.logging import get_logger
from storefront.models.order import Order
from storefront.models.payment import Payment
from storefront.models.user import User
from storefront.worker import queue

log = get_logger(__name__)

NotificationType = Literal["initiated", "completed", "partial"]

COLOR_ORANGE = 0xFFA500
COLOR_GREEN = 0x00FF00
COLOR_BLUE = 0x3498DB
COLOR_BLURPLE = 0x5865F2
FOOTER_TEXT = "Storefront Payment System"
CONTACT_FOOTER_TEXT = "Storefront Contact Form"
# Discord caps embed field values at 1024 characters
FIELD_VALUE_LIMIT = 1024
IST = ZoneInfo("Asia/Kolkata")


class PaymentNotification(BaseModel):
    type: NotificationType
    order_number: int
    customer_email: str
    amount: float
    amount_paid: float | None = None
    payment_method: str
    status: str


class AuthorizationRequestNotification(BaseModel):
    user_id: str
    user_email: str
    user_name: str


class ContactMessage(BaseModel):
    email: str
    message: str
    submitted_at: str


def notification_type_for_status(status: str) -> NotificationType:
    """paid -> completed, partial -> partial, anything else -> initiated."""
    if status == "paid":
        return "completed"
    if status == "partial":
        return "partial"
    return "initiated"


async def build_payment_notification(payment: Payment, type_: NotificationType) -> PaymentNotification:
    order = await Order.get(payment.order_id)
    user = await User.get(payment.user_id)
    return PaymentNotification(
        type=type_,
        order_number=order.order_number if order else 0,
        customer_email=user.email if user and user.email else "Unknown",
        amount=payment.amount,
        amount_paid=payment.amount_paid,
        payment_method=payment.payment_method,
        status=payment.status,
    )


def _money(value: float) -> str:
    return f"₹{value:.2f}"


def build_payment_embed(n: PaymentNotification) -> dict[str, Any]:
    order_field = {"name": "Order Number", "value": f"#{n.order_number}", "inline": True}
    customer_field = {"name": "Customer", "value": n.customer_email or "Unknown", "inline": True}
    if n.type == "initiated":
        window = get_settings().payment_window_minutes
        title = "💰 New Payment Pending"
        description = f"A customer has initiated payment. QR code is active for {window} minutes."
        fields = [
            order_field,
            customer_field,
            {"name": "Amount", "value": _money(n.amount), "inline": True},
            {"name": "Payment Method", "value": n.payment_method, "inline": True},
        ]
        color = COLOR_ORANGE
    else:
        if n.type == "completed":
            paid = n.amount_paid if n.amount_paid is not None else n.amount
            title = "✅ Payment Completed"
            description = f"Full payment received for order #{n.order_number}"
            color = COLOR_GREEN
        else:
            paid = n.amount_paid or 0
            title = "⚠️ Partial Payment"
            description = f"Partial payment of {_money(paid)} received. Remaining: {_money(n.amount - paid)}"
            color = COLOR_ORANGE
        fields = [
            order_field,
            customer_field,
            {"name": "Total Amount", "value": _money(n.amount), "inline": True},
            {"name": "Amount Paid", "value": _money(paid), "inline": True},
            {"name": "Status", "value": n.status, "inline": True},
        ]
    return {
        "title": title,
        "description": description,
        "fields": fields,
        "color": color,
        "footer": {"text": FOOTER_TEXT},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def build_authorization_embed(n: AuthorizationRequestNotification) -> dict[str, Any]:
    return {
        "title": "🔐 Authorization Request",
        "description": "A user has requested authorization to view locked content.",
        "fields": [
            {"name": "User", "value": n.user_name or "Unknown", "inline": True},
            {"name": "Email", "value": n.user_email or "Unknown", "inline": True},
            {"name": "User ID", "value": n.user_id, "inline": False},
        ],
        "color": COLOR_BLUE,
        "footer": {"text": "Storefront Authorization System"},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def truncate_field(value: str, limit: int = FIELD_VALUE_LIMIT) -> str:
    if len(value) <= limit:
        return value
    return value[: limit - 3] + "..."


def ist_timestamp(when: datetime | None = None) -> str:
    """Human-readable India time, e.g. "Monday, 19 October 2026 at 03:04:05 PM IST"."""
    when = (when or datetime.now(timezone.utc)).astimezone(IST)
    return when.strftime("%A, %d %B %Y at %I:%M:%S %p IST")


def build_contact_embed(n: ContactMessage) -> dict[str, Any]:
    return {
        "title": "📧 New Contact Form Submission",
        "color": COLOR_BLURPLE,
        "fields": [
            {"name": "Email", "value": n.email, "inline": False},
            {"name": "Message", "value": truncate_field(n.message), "inline": False},
            {"name": "Timestamp", "value": n.submitted_at, "inline": False},
        ],
        "footer": {"text": CONTACT_FOOTER_TEXT},
    }


def contact_webhook_url() -> str:
    s = get_settings()
    return s.contact_webhook_url or s.notify_webhook_url


async def post_embed(embed: dict[str, Any], client: httpx.AsyncClient | None = None, url: str | None = None) -> bool:
    """POST one embed to the webhook. Returns False when no webhook is configured.

    Raises httpx errors (transport or non-2xx) so the worker can retry.
    """
    url = url or get_settings().notify_webhook_url
    if not url:
        log.warning("notification_webhook_unset")
        return False
    if client is None:
        async with httpx.AsyncClient(timeout=10.0) as c:
            resp = await c.post(url, json={"embeds": [embed]})
    else:
        resp = await client.post(url, json={"embeds": [embed]})
    resp.raise_for_status()
    return True


async def dispatch_payment_notification(payment: Payment, type_: NotificationType) -> None:
    """Best-effort: enqueue delivery, never raise."""
    try:
        n = await build_payment_notification(payment, type_)
        job_id = await queue.enqueue("send_payment_notification", n.model_dump())
        log.info("notification_enqueued", kind="payment", type=type_, payment_id=str(payment.id), job_id=job_id)
    except Exception as e:
        log.error("notification_enqueue_failed", kind="payment", type=type_, payment_id=str(payment.id), error=str(e))


async def dispatch_authorization_notification(user_id: PydanticObjectId) -> None:
    """Best-effort: enqueue delivery, never raise."""
    try:
        user = await User.get(user_id)
        if not user:
            return
        n = AuthorizationRequestNotification(
            user_id=str(user.id),
            user_email=user.email,
            user_name=user.display_name or user.email,
        )
        job_id = await queue.enqueue("send_authorization_notification", n.model_dump())
        log.info("notification_enqueued", kind="authorization", user_id=str(user_id), job_id=job_id)
    except Exception as e:
        log.error("notification_enqueue_failed", kind="authorization", user_id=str(user_id), error=str(e))


async def dispatch_contact_notification(email: str, message: str) -> str | None:
    """Enqueue a contact-form message. Raises a 503 AppError when it cannot be queued."""
    if not contact_webhook_url():
        log.error("contact_webhook_unset")
        raise AppError("Failed to send message. Please try again later.", code="CONTACT_UNAVAILABLE", status_code=503)
    n = ContactMessage(email=email, message=message, submitted_at=ist_timestamp())
    try:
        job_id = await queue.enqueue("send_contact_notification", n.model_dump())
    except Exception as e:
        log.error("notification_enqueue_failed", kind="contact", error=str(e))
        raise AppError(
            "Failed to send message. Please try again later.", code="CONTACT_UNAVAILABLE", status_code=503
        ) from e
    log.info("notification_enqueued", kind="contact", job_id=job_id)
    return job_id
