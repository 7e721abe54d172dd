from datetime import datetime

from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field

from storefront.core.clock import utcnow


class GiftCard(Document):
    """Credits shared by a customer as a one-shot redeemable code."""
    code: Indexed(str)
    amount: float
    created_by: Indexed(PydanticObjectId)
    used_by: PydanticObjectId | None = None
    is_used: bool = False
    expires_at: datetime
    used_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "gift_cards"
