from datetime import datetime
from typing import Literal

from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field

from storefront.core.clock import utcnow

FulfillmentStatus = Literal["unfulfilled", "partial", "fulfilled"]
FinancialStatus = Literal["pending", "paid", "refunded"]


class OrderLineItem(BaseModel):
    """Snapshot taken at checkout; never repriced from the live product."""
    product_id: PydanticObjectId
    variant_id: str
    title: str
    quantity: int
    price: float  # unit price
    image: str | None = None


class Order(Document):
    user_id: Indexed(PydanticObjectId)
    order_number: Indexed(int)
    items: list[OrderLineItem]
    subtotal: float | None = None
    discount_code: str | None = None
    discount_amount: float = 0
    credits_applied: float = 0
    credits_earned: float = 0
    total_price: float
    currency_code: str = "INR"
    fulfillment_status: FulfillmentStatus = "unfulfilled"
    financial_status: FinancialStatus = "pending"
    checkout_key: str | None = None  # client Idempotency-Key for the checkout call
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "orders"
        indexes = [[("user_id", 1), ("checkout_key", 1)]]
