"""Checkout discounts: coupon codes and admin-issued gift cards."""

from datetime import datetime
from typing import Literal

from beanie import Document, Indexed
from pydantic import Field

from storefront.core.clock import utcnow


class CouponCode(Document):
    code: Indexed(str)  # stored upper-case
    discount_type: Literal["percentage", "fixed"]
    discount_value: float  # 0-100 for percentage, amount otherwise
    is_active: bool = True
    expires_at: datetime | None = None
    usage_limit: int | None = None
    usage_count: int = 0
    min_purchase_amount: float | None = None
    description: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "coupon_codes"
        indexes = [[("is_active", 1)]]


class AdminGiftCard(Document):
    code: Indexed(str)
    amount: float
    is_active: bool = True
    expires_at: datetime | None = None
    usage_limit: int | None = None
    usage_count: int = 0
    min_purchase_amount: float | None = None
    description: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "admin_gift_cards"
        indexes = [[("is_active", 1)]]
