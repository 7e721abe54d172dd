from datetime import datetime
from typing import Literal

from beanie import Document, PydanticObjectId
from pydantic import Field

from storefront.core.clock import utcnow

TransactionType = Literal["earned", "spent", "shared", "received", "refund"]


class CreditTransaction(Document):
    user_id: PydanticObjectId
    amount: float  # positive = credit, negative = debit
    balance_after: float
    type: TransactionType
    description: str
    order_id: PydanticObjectId | None = None
    status: Literal["pending", "completed"] = "completed"
    idempotency_key: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "credit_transactions"
        indexes = [
            [("user_id", 1), ("created_at", -1)],
            [("user_id", 1), ("idempotency_key", 1)],
        ]
