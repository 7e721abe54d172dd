from beanie import PydanticObjectId
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from storefront.deps import require_admin
from storefront.models.filter_setting import FilterType
from storefront.models.user import User
from storefront.services import filters as filters_service

router = APIRouter()


class FilterCreate(BaseModel):
    type: FilterType
    name: str
    display_name: str
    order: int | None = None


class FilterUpdate(BaseModel):
    display_name: str | None = None
    is_active: bool | None = None
    order: int | None = None


@router.get("")
async def filters_active():
    grouped = await filters_service.get_all_active()
    return {t: [filters_service.serialize(f) for f in items] for t, items in grouped.items()}


@router.get("/{type_}")
async def filters_by_type(type_: FilterType):
    return {"filters": [filters_service.serialize(f) for f in await filters_service.get_by_type(type_)]}


@router.post("")
async def filters_create(body: FilterCreate, _: User = Depends(require_admin)):
    f = await filters_service.create_filter(body.type, body.name, body.display_name, body.order)
    return filters_service.serialize(f)


@router.patch("/{filter_id}")
async def filters_update(filter_id: PydanticObjectId, body: FilterUpdate, _: User = Depends(require_admin)):
    f = await filters_service.update_filter(filter_id, body.display_name, body.is_active, body.order)
    return filters_service.serialize(f)


@router.delete("/{filter_id}")
async def filters_delete(filter_id: PydanticObjectId, _: User = Depends(require_admin)):
    await filters_service.delete_filter(filter_id)
    return {"status": "ok"}
