"""Product catalog reads for the storefront and CRUD for the admin console."""

from typing import Any

from beanie import PydanticObjectId

from storefront.core.clock import utcnow
from storefront.core.exceptions import ConflictError, NotFoundError
from storefront.core.logging import get_logger
from storefront.models.product import Product

log = get_logger(__name__)

UPDATABLE_FIELDS = (
    "title",
    "description",
    "price",
    "mrp",
    "images",
    "variants",
    "tags",
    "collection",
    "category",
    "archived",
)


async def list_products(
    limit: int = 50,
    collection: str | None = None,
    category: str | None = None,
) -> list[Product]:
    """Public listing; archived products are hidden."""
    if collection:
        query = Product.find(Product.collection == collection)
    elif category:
        query = Product.find(Product.category == category)
    else:
        query = Product.find_all()
    query = query.find(Product.archived != True)  # noqa: E712
    return await query.limit(limit).to_list()


async def list_all_products(limit: int = 100) -> list[Product]:
    """Admin listing, archived included."""
    return await Product.find_all().limit(limit).to_list()


async def get_by_handle(handle: str) -> Product | None:
    product = await Product.find_one(Product.handle == handle)
    if product and product.archived:
        return None
    return product


async def get_by_id(product_id: PydanticObjectId) -> Product | None:
    return await Product.get(product_id)


def matches(product: Product, term: str) -> bool:
    term = term.lower()
    return (
        term in product.title.lower()
        or term in (product.description or "").lower()
        or any(term in tag.lower() for tag in product.tags)
    )


async def search_products(query: str, limit: int = 20) -> list[Product]:
    """Case-insensitive substring match on title, description and tags."""
    term = (query or "").strip()
    if not term:
        return []
    out: list[Product] = []
    async for product in Product.find(Product.archived != True):  # noqa: E712
        if matches(product, term):
            out.append(product)
            if len(out) >= limit:
                break
    return out


async def create_product(data: dict[str, Any]) -> Product:
    if await Product.find_one(Product.handle == data.get("handle")):
        raise ConflictError("A product with this handle already exists")
    product = Product(**data)
    await product.insert()
    log.info("product_created", product_id=str(product.id), handle=product.handle)
    return product


async def update_product(product_id: PydanticObjectId, updates: dict[str, Any]) -> Product:
    """Partial update; keys outside UPDATABLE_FIELDS and None values are ignored."""
    product = await Product.get(product_id)
    if not product:
        raise NotFoundError("Product not found")
    changes = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS and v is not None}
    if not changes:
        return product
    # re-validate so nested images/variants given as plain dicts become models
    validated = Product.model_validate({**product.model_dump(exclude={"id", "revision_id"}), **changes})
    for key in changes:
        setattr(product, key, getattr(validated, key))
    product.updated_at = utcnow()
    await product.save()
    log.info("product_updated", product_id=str(product.id), fields=sorted(changes))
    return product


async def archive_product(product_id: PydanticObjectId, archived: bool) -> Product:
    product = await Product.get(product_id)
    if not product:
        raise NotFoundError("Product not found")
    await product.set({Product.archived: archived, Product.updated_at: utcnow()})
    return product


async def delete_product(product_id: PydanticObjectId) -> None:
    product = await Product.get(product_id)
    if not product:
        raise NotFoundError("Product not found")
    await product.delete()
    log.info("product_deleted", product_id=str(product_id))


def serialize(product: Product, include_locked: bool = True) -> dict[str, Any]:
    out = product.model_dump(mode="json", exclude={"id", "revision_id"})
    out["id"] = str(product.id)
    if not include_locked:
        out["images"] = [img for img in out["images"] if not img.get("locked")]
    return out
