"""Callbacks the model may invoke, and the dispatcher that runs one requested tool call."""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from beanie import PydanticObjectId

from storefront.core.exceptions import BadRequestError, NotFoundError
from storefront.services import homepage as homepage_service
from storefront.services import products as products_service


async def _search_products(query: str) -> list[dict[str, Any]]:
    return [products_service.serialize(p) for p in await products_service.search_products(query)]


async def _get_product_by_id(product_id: str) -> dict[str, Any]:
    product = await products_service.get_by_id(PydanticObjectId(product_id))
    if not product:
        raise NotFoundError("Product not found")
    return products_service.serialize(product)


async def _update_product(product_id: str, updates: dict[str, Any]) -> dict[str, Any]:
    product = await products_service.update_product(PydanticObjectId(product_id), updates)
    return products_service.serialize(product)


async def _get_all_products(
    limit: int | None = None,
    collection: str | None = None,
    category: str | None = None,
) -> list[dict[str, Any]]:
    products = await products_service.list_products(limit=limit or 50, collection=collection, category=category)
    return [products_service.serialize(p) for p in products]


async def _get_homepage_content() -> dict[str, Any]:
    return {
        "hero": await homepage_service.get_hero(),
        "category_cards": await homepage_service.get_category_cards(),
    }


async def _update_hero(videos: list[str] | None = None, hero_image: str | None = None) -> dict[str, Any]:
    hero_id = await homepage_service.update_hero(videos=videos, hero_image=hero_image)
    return {"id": str(hero_id)}


async def _upsert_category_card(card: dict[str, Any]) -> dict[str, Any]:
    card_id = card.get("id")
    new_id = await homepage_service.upsert_category_card(
        title=card["title"],
        handle=card["handle"],
        image=card["image"],
        description=card.get("description"),
        order=card.get("order"),
        card_id=PydanticObjectId(card_id) if card_id else None,
    )
    return {"id": str(new_id)}


@dataclass
class AssistantTools:
    """Async callbacks behind each tool; swap any of them out in tests."""

    search_products: Callable[[str], Awaitable[Any]] = _search_products
    get_product_by_id: Callable[[str], Awaitable[Any]] = _get_product_by_id
    update_product: Callable[[str, dict[str, Any]], Awaitable[Any]] = _update_product
    get_all_products: Callable[..., Awaitable[Any]] = _get_all_products
    get_homepage_content: Callable[[], Awaitable[Any]] = _get_homepage_content
    update_hero: Callable[..., Awaitable[Any]] = _update_hero
    upsert_category_card: Callable[[dict[str, Any]], Awaitable[Any]] = _upsert_category_card


def _product_updates(args: dict[str, Any]) -> dict[str, Any]:
    updates = {k: v for k, v in args.items() if k != "id"}
    if "images" in updates:
        updates["images"] = [
            {"url": img["url"], "alt_text": img.get("altText") or img.get("alt_text")}
            for img in updates["images"]
            if img.get("url")
        ]
    return updates


async def run_tool(tools: AssistantTools, name: str, args: dict[str, Any]) -> Any:
    """Run one tool by its wire name. Unknown names raise BadRequestError."""
    if name == "searchProducts":
        return await tools.search_products(args.get("query", ""))
    if name == "getProductById":
        return await tools.get_product_by_id(args["id"])
    if name == "updateProduct":
        await tools.update_product(args["id"], _product_updates(args))
        return {"success": True, "message": "Product updated successfully"}
    if name == "getAllProducts":
        limit = args.get("limit")
        return await tools.get_all_products(
            limit=int(limit) if limit else None,
            collection=args.get("collection"),
            category=args.get("category"),
        )
    if name == "getHomepageContent":
        return await tools.get_homepage_content()
    if name == "updateHero":
        await tools.update_hero(videos=args.get("videos"), hero_image=args.get("heroImage"))
        return {"success": True, "message": "Hero updated"}
    if name == "upsertCategoryCard":
        result = await tools.upsert_category_card(args)
        return {"success": True, **(result or {})}
    raise BadRequestError(f"Unknown tool: {name}")
