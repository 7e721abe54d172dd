from beanie import PydanticObjectId
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from storefront.core.audit import log_event
from storefront.deps import require_admin
from storefront.models.user import User
from storefront.services import homepage as homepage_service

router = APIRouter()


class HeroUpdate(BaseModel):
    videos: list[str] | None = None
    hero_image: str | None = None


class CategoryCardRequest(BaseModel):
    id: PydanticObjectId | None = None
    title: str
    handle: str
    image: str
    description: str | None = None
    order: int | None = None
    is_active: bool | None = None


@router.get("")
async def homepage_get():
    """Everything the homepage renders, with defaults for unset blocks."""
    featured = await homepage_service.get_featured_collections()
    return {
        "hero": await homepage_service.get_hero(),
        "category_cards": await homepage_service.get_category_cards(),
        "featured_collections": [homepage_service.serialize(f) for f in featured],
    }


@router.get("/admin/all")
async def homepage_admin_all(_: User = Depends(require_admin)):
    return {"blocks": [homepage_service.serialize(b) for b in await homepage_service.get_all()]}


@router.put("/hero")
async def homepage_update_hero(body: HeroUpdate, admin: User = Depends(require_admin)):
    hero_id = await homepage_service.update_hero(videos=body.videos, hero_image=body.hero_image)
    await log_event(str(admin.id), "hero_updated", "homepage_content", str(hero_id))
    return {"id": str(hero_id)}


@router.post("/category-cards")
async def homepage_upsert_category_card(body: CategoryCardRequest, admin: User = Depends(require_admin)):
    card_id = await homepage_service.upsert_category_card(
        title=body.title,
        handle=body.handle,
        image=body.image,
        description=body.description,
        order=body.order,
        is_active=body.is_active,
        card_id=body.id,
    )
    await log_event(str(admin.id), "category_card_saved", "homepage_content", str(card_id), {"handle": body.handle})
    return {"id": str(card_id)}


@router.delete("/category-cards/{card_id}")
async def homepage_delete_category_card(card_id: PydanticObjectId, admin: User = Depends(require_admin)):
    await homepage_service.delete_category_card(card_id)
    await log_event(str(admin.id), "category_card_deleted", "homepage_content", str(card_id))
    return {"status": "ok"}
