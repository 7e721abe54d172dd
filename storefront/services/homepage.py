"""Homepage content blocks: hero media, category cards, featured collections."""

from typing import Any

from beanie import PydanticObjectId

from storefront.core.clock import utcnow
from storefront.core.exceptions import NotFoundError
from storefront.models.homepage_content import HomepageContent

DEFAULT_HERO = {
    "videos": ["/Intro.mp4"],
    "hero_image": "/hero-video-bg.jpg",
}

DEFAULT_CATEGORY_CARDS = [
    {
        "title": "Performance & Sports",
        "handle": "performance-sports",
        "image": "/athletic-performance.jpg",
        "description": "Athletic excellence redefined",
    },
    {
        "title": "Lifestyle & Casual",
        "handle": "lifestyle-casual",
        "image": "/premium-lifestyle.jpg",
        "description": "Everyday sophistication",
    },
    {
        "title": "Limited Edition & Hype",
        "handle": "limited-edition-hype",
        "image": "/limited-editions.jpg",
        "description": "Exclusive drops & collaborations",
    },
    {
        "title": "Retro & Classics",
        "handle": "retro-classics",
        "image": "/street-fashion.jpg",
        "description": "Timeless heritage designs",
    },
]


async def get_hero() -> dict[str, Any]:
    hero = await HomepageContent.find_one(HomepageContent.type == "hero", HomepageContent.is_active == True)  # noqa: E712
    if not hero:
        return dict(DEFAULT_HERO)
    return {"id": str(hero.id), "videos": hero.videos or [], "hero_image": hero.hero_image}


async def get_category_cards() -> list[dict[str, Any]]:
    cards = (
        await HomepageContent.find(
            HomepageContent.type == "categoryCard",
            HomepageContent.is_active == True,  # noqa: E712
        )
        .sort(+HomepageContent.order)
        .to_list()
    )
    if not cards:
        return [dict(c) for c in DEFAULT_CATEGORY_CARDS]
    return [
        {
            "id": str(c.id),
            "title": c.title or "",
            "handle": c.handle or "",
            "image": c.image or "",
            "description": c.description or "",
        }
        for c in cards
    ]


async def get_featured_collections() -> list[HomepageContent]:
    return (
        await HomepageContent.find(
            HomepageContent.type == "featuredCollection",
            HomepageContent.is_active == True,  # noqa: E712
        )
        .sort(+HomepageContent.order)
        .to_list()
    )


async def update_hero(videos: list[str] | None = None, hero_image: str | None = None) -> PydanticObjectId:
    """Update the hero block, creating it on first use."""
    hero = await HomepageContent.find_one(HomepageContent.type == "hero")
    now = utcnow()
    if hero:
        changes: dict[str, Any] = {"updated_at": now}
        if videos is not None:
            changes["videos"] = videos
        if hero_image is not None:
            changes["hero_image"] = hero_image
        await hero.set(changes)
        return hero.id
    hero = HomepageContent(type="hero", videos=videos, hero_image=hero_image, order=0)
    await hero.insert()
    return hero.id


async def _next_order(type_: str) -> int:
    last = await HomepageContent.find(HomepageContent.type == type_).sort(-HomepageContent.order).first_or_none()
    return last.order + 1 if last else 0


async def upsert_category_card(
    title: str,
    handle: str,
    image: str,
    description: str | None = None,
    order: int | None = None,
    is_active: bool | None = None,
    card_id: PydanticObjectId | None = None,
) -> PydanticObjectId:
    if card_id:
        card = await HomepageContent.get(card_id)
        if not card or card.type != "categoryCard":
            raise NotFoundError("Category card not found")
        changes: dict[str, Any] = {"title": title, "handle": handle, "image": image, "updated_at": utcnow()}
        if description is not None:
            changes["description"] = description
        if order is not None:
            changes["order"] = order
        if is_active is not None:
            changes["is_active"] = is_active
        await card.set(changes)
        return card.id
    card = HomepageContent(
        type="categoryCard",
        title=title,
        handle=handle,
        image=image,
        description=description,
        order=order if order is not None else await _next_order("categoryCard"),
        is_active=True if is_active is None else is_active,
    )
    await card.insert()
    return card.id


async def delete_category_card(card_id: PydanticObjectId) -> None:
    card = await HomepageContent.get(card_id)
    if not card:
        raise NotFoundError("Category card not found")
    await card.delete()


async def get_all() -> list[HomepageContent]:
    return await HomepageContent.find_all().to_list()


def serialize(block: HomepageContent) -> dict[str, Any]:
    out = block.model_dump(mode="json", exclude={"id", "revision_id"}, exclude_none=True)
    out["id"] = str(block.id)
    return out
