from datetime import datetime

from beanie import Document, Indexed
from pydantic import BaseModel, Field

from storefront.core.clock import utcnow


class ProductImage(BaseModel):
    url: str
    alt_text: str | None = None
    locked: bool | None = None  # visible only to approved users


class SelectedOption(BaseModel):
    name: str
    value: str


class VariantImage(BaseModel):
    url: str
    alt_text: str | None = None


class ProductVariant(BaseModel):
    id: str
    title: str
    price: float
    available_for_sale: bool = True
    quantity: int = 0
    selected_options: list[SelectedOption] | None = None
    image: VariantImage | None = None


class Product(Document):
    title: str
    description: str = ""
    handle: Indexed(str)
    price: float
    mrp: float | None = None  # list price, for showing the discount
    currency_code: str = "INR"
    images: list[ProductImage] = Field(default_factory=list)
    variants: list[ProductVariant] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    collection: str  # mens-collection | womens-collection | kids-collection
    category: str | None = None
    archived: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "products"
        indexes = [[("collection", 1)], [("category", 1)]]

    def find_variant(self, variant_id: str) -> ProductVariant | None:
        return next((v for v in self.variants if v.id == variant_id), None)
