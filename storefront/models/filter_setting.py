from datetime import datetime
from typing import Literal

from beanie import Document
from pydantic import Field

from storefront.core.clock import utcnow

FilterType = Literal["brand", "category", "color", "size", "material", "activity"]


class FilterSetting(Document):
    type: FilterType
    name: str
    display_name: str
    is_active: bool = True
    order: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "filter_settings"
        indexes = [[("type", 1)], [("is_active", 1)]]
