from datetime import datetime
from typing import Literal

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from storefront.core.audit import log_event
from storefront.deps import get_current_user, require_admin
from storefront.models.user import User
from storefront.services import discounts as discounts_service

router = APIRouter()


class QuoteRequest(BaseModel):
    code: str = Field(..., min_length=1)
    subtotal: float = Field(..., ge=0)


class CouponCreate(BaseModel):
    code: str
    discount_type: Literal["percentage", "fixed"]
    discount_value: float = Field(..., gt=0)
    is_active: bool = True
    expires_at: datetime | None = None
    usage_limit: int | None = Field(None, ge=1)
    min_purchase_amount: float | None = Field(None, ge=0)
    description: str | None = None


class CouponUpdate(BaseModel):
    code: str | None = None
    discount_type: Literal["percentage", "fixed"] | None = None
    discount_value: float | None = Field(None, gt=0)
    is_active: bool | None = None
    expires_at: datetime | None = None
    usage_limit: int | None = Field(None, ge=1)
    min_purchase_amount: float | None = Field(None, ge=0)
    description: str | None = None


class GiftCardCreate(BaseModel):
    code: str
    amount: float = Field(..., gt=0)
    is_active: bool = True
    expires_at: datetime | None = None
    usage_limit: int | None = Field(None, ge=1)
    min_purchase_amount: float | None = Field(None, ge=0)
    description: str | None = None


class GiftCardUpdate(BaseModel):
    code: str | None = None
    amount: float | None = Field(None, gt=0)
    is_active: bool | None = None
    expires_at: datetime | None = None
    usage_limit: int | None = Field(None, ge=1)
    min_purchase_amount: float | None = Field(None, ge=0)
    description: str | None = None


@router.post("/quote")
async def discounts_quote(body: QuoteRequest, _: User = Depends(get_current_user)):
    """Preview what a code takes off this subtotal; nothing is consumed."""
    quote = await discounts_service.quote_discount(body.code, body.subtotal)
    return quote.model_dump()


@router.get("/coupons/active")
async def coupons_active():
    """Active coupons the storefront can advertise."""
    return {"coupons": [discounts_service.serialize(c) for c in await discounts_service.list_active_coupons()]}


@router.get("/admin/coupons")
async def coupons_list(_: User = Depends(require_admin)):
    return {"coupons": [discounts_service.serialize(c) for c in await discounts_service.list_coupons()]}


@router.post("/admin/coupons")
async def coupons_create(body: CouponCreate, admin: User = Depends(require_admin)):
    coupon = await discounts_service.create_coupon(**body.model_dump())
    await log_event(str(admin.id), "coupon_created", "coupon", str(coupon.id), {"code": coupon.code})
    return discounts_service.serialize(coupon)


@router.patch("/admin/coupons/{coupon_id}")
async def coupons_update(coupon_id: PydanticObjectId, body: CouponUpdate, admin: User = Depends(require_admin)):
    coupon = await discounts_service.update_coupon(coupon_id, **body.model_dump(exclude_none=True))
    await log_event(str(admin.id), "coupon_updated", "coupon", str(coupon_id), body.model_dump(mode="json", exclude_none=True))
    return discounts_service.serialize(coupon)


@router.delete("/admin/coupons/{coupon_id}")
async def coupons_delete(coupon_id: PydanticObjectId, admin: User = Depends(require_admin)):
    await discounts_service.delete_coupon(coupon_id)
    await log_event(str(admin.id), "coupon_deleted", "coupon", str(coupon_id))
    return {"status": "ok"}


@router.get("/admin/gift-cards")
async def gift_cards_list(_: User = Depends(require_admin)):
    return {"gift_cards": [discounts_service.serialize(c) for c in await discounts_service.list_admin_gift_cards()]}


@router.get("/admin/gift-cards/active")
async def gift_cards_active(_: User = Depends(require_admin)):
    cards = await discounts_service.list_active_admin_gift_cards()
    return {"gift_cards": [discounts_service.serialize(c) for c in cards]}


@router.post("/admin/gift-cards")
async def gift_cards_create(body: GiftCardCreate, admin: User = Depends(require_admin)):
    card = await discounts_service.create_admin_gift_card(**body.model_dump())
    await log_event(str(admin.id), "gift_card_created", "admin_gift_card", str(card.id), {"code": card.code})
    return discounts_service.serialize(card)


@router.patch("/admin/gift-cards/{card_id}")
async def gift_cards_update(card_id: PydanticObjectId, body: GiftCardUpdate, admin: User = Depends(require_admin)):
    card = await discounts_service.update_admin_gift_card(card_id, **body.model_dump(exclude_none=True))
    await log_event(
        str(admin.id), "gift_card_updated", "admin_gift_card", str(card_id), body.model_dump(mode="json", exclude_none=True)
    )
    return discounts_service.serialize(card)


@router.delete("/admin/gift-cards/{card_id}")
async def gift_cards_delete(card_id: PydanticObjectId, admin: User = Depends(require_admin)):
    await discounts_service.delete_admin_gift_card(card_id)
    await log_event(str(admin.id), "gift_card_deleted", "admin_gift_card", str(card_id))
    return {"status": "ok"}
