from datetime import datetime
from typing import Literal

from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field

from storefront.core.clock import utcnow

# "cancelled" is part of the stored vocabulary but nothing transitions into it.
PaymentStatus = Literal["pending", "partial", "paid", "cancelled"]
OUTSTANDING_STATUSES = ("pending", "partial")


class Payment(Document):
    """Manual UPI reconciliation record; one per order (enforced by lookup, not by index)."""
    order_id: Indexed(PydanticObjectId)
    user_id: Indexed(PydanticObjectId)
    amount: float  # due, fixed at creation
    amount_paid: float = 0
    status: PaymentStatus = "pending"
    payment_method: str = "UPI"
    transaction_id: str | None = None  # UPI reference entered by admin
    notes: str | None = None
    payment_initiated_at: datetime | None = None  # set once, when the QR is first shown
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "payments"
        indexes = [[("status", 1)], [("created_at", -1)]]
