from datetime import datetime

from beanie import Document, PydanticObjectId
from pydantic import BaseModel, Field

from storefront.core.clock import utcnow


class CartItem(BaseModel):
    product_id: PydanticObjectId
    variant_id: str
    quantity: int
    price: float  # variant price when added


class Cart(Document):
    """One cart per signed-in user or per guest session."""
    user_id: PydanticObjectId | None = None
    session_id: str | None = None
    items: list[CartItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "carts"
        indexes = [[("user_id", 1)], [("session_id", 1)]]
