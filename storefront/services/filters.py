"""Storefront filter options (brands, categories, colours, sizes, ...)."""

from typing import Any

from beanie import PydanticObjectId

from storefront.core.clock import utcnow
from storefront.core.exceptions import NotFoundError
from storefront.models.filter_setting import FilterSetting, FilterType


async def get_by_type(type_: FilterType) -> list[FilterSetting]:
    return (
        await FilterSetting.find(FilterSetting.type == type_, FilterSetting.is_active == True)  # noqa: E712
        .sort(+FilterSetting.order)
        .to_list()
    )


async def get_all_active() -> dict[str, list[FilterSetting]]:
    """Active filters grouped by type, each group in display order."""
    grouped: dict[str, list[FilterSetting]] = {}
    for f in await FilterSetting.find(FilterSetting.is_active == True).to_list():  # noqa: E712
        grouped.setdefault(f.type, []).append(f)
    for items in grouped.values():
        items.sort(key=lambda f: f.order)
    return grouped


async def create_filter(type_: FilterType, name: str, display_name: str, order: int | None = None) -> FilterSetting:
    if order is None:
        last = await FilterSetting.find(FilterSetting.type == type_).sort(-FilterSetting.order).first_or_none()
        order = last.order + 1 if last else 1
    f = FilterSetting(type=type_, name=name, display_name=display_name, order=order)
    await f.insert()
    return f


async def update_filter(
    filter_id: PydanticObjectId,
    display_name: str | None = None,
    is_active: bool | None = None,
    order: int | None = None,
) -> FilterSetting:
    f = await FilterSetting.get(filter_id)
    if not f:
        raise NotFoundError("Filter not found")
    changes: dict[str, Any] = {"updated_at": utcnow()}
    if display_name is not None:
        changes["display_name"] = display_name
    if is_active is not None:
        changes["is_active"] = is_active
    if order is not None:
        changes["order"] = order
    await f.set(changes)
    return f


async def delete_filter(filter_id: PydanticObjectId) -> None:
    f = await FilterSetting.get(filter_id)
    if not f:
        raise NotFoundError("Filter not found")
    await f.delete()


def serialize(f: FilterSetting) -> dict[str, Any]:
    return {
        "id": str(f.id),
        "type": f.type,
        "name": f.name,
        "display_name": f.display_name,
        "is_active": f.is_active,
        "order": f.order,
    }
