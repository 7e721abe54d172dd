from datetime import datetime
from typing import Literal

from beanie import Document
from pydantic import Field

from storefront.core.clock import utcnow

ContentType = Literal["hero", "categoryCard", "featuredCollection", "heroMarquee"]


class HomepageContent(Document):
    type: ContentType
    # hero
    videos: list[str] | None = None
    hero_image: str | None = None
    # heroMarquee
    top_row_images: list[str] | None = None
    bottom_row_images: list[str] | None = None
    # categoryCard
    title: str | None = None
    handle: str | None = None
    image: str | None = None
    description: str | None = None
    # featuredCollection
    collection_handle: str | None = None
    product_handles: list[str] | None = None
    collection_image: str | None = None
    subtitle: str | None = None
    link_url: str | None = None
    order: int = 0
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "homepage_content"
        indexes = [[("type", 1)], [("is_active", 1)]]
