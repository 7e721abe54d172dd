"""Coupon codes and admin gift cards: admin CRUD plus checkout quoting/redemption."""

from datetime import datetime
from typing import Any, Literal

from beanie import PydanticObjectId
from pydantic import BaseModel

from storefront.core.clock import utcnow
from storefront.core.exceptions import BadRequestError, ConflictError, NotFoundError
from storefront.core.logging import get_logger
from storefront.models.discount import AdminGiftCard, CouponCode

log = get_logger(__name__)

CouponOrGiftCard = CouponCode | AdminGiftCard


class DiscountQuote(BaseModel):
    code: str
    kind: Literal["coupon", "gift_card"]
    subtotal: float
    discount_amount: float
    total: float


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


# ---------- coupons ----------

async def list_coupons() -> list[CouponCode]:
    return await CouponCode.find_all().sort("-_id").to_list()


async def list_active_coupons() -> list[CouponCode]:
    return await CouponCode.find(CouponCode.is_active == True).sort("-_id").to_list()  # noqa: E712


async def get_coupon_by_code(code: str) -> CouponCode | None:
    return await CouponCode.find_one(CouponCode.code == normalize_code(code))


async def create_coupon(
    code: str,
    discount_type: Literal["percentage", "fixed"],
    discount_value: float,
    is_active: bool = True,
    expires_at: datetime | None = None,
    usage_limit: int | None = None,
    min_purchase_amount: float | None = None,
    description: str | None = None,
) -> CouponCode:
    code = normalize_code(code)
    if not code:
        raise BadRequestError("Code is required")
    if await get_coupon_by_code(code):
        raise ConflictError("Coupon code already exists")
    if discount_type == "percentage" and not 0 < discount_value <= 100:
        raise BadRequestError("Percentage discount must be between 0 and 100")
    coupon = CouponCode(
        code=code,
        discount_type=discount_type,
        discount_value=discount_value,
        is_active=is_active,
        expires_at=expires_at,
        usage_limit=usage_limit,
        min_purchase_amount=min_purchase_amount,
        description=description,
    )
    await coupon.insert()
    return coupon


async def update_coupon(coupon_id: PydanticObjectId, **updates: Any) -> CouponCode:
    coupon = await CouponCode.get(coupon_id)
    if not coupon:
        raise NotFoundError("Coupon not found")
    changes = {k: v for k, v in updates.items() if v is not None}
    if "code" in changes:
        changes["code"] = normalize_code(changes["code"])
        existing = await get_coupon_by_code(changes["code"])
        if existing and existing.id != coupon.id:
            raise ConflictError("Coupon code already exists")
    discount_type = changes.get("discount_type", coupon.discount_type)
    discount_value = changes.get("discount_value", coupon.discount_value)
    if discount_type == "percentage" and not 0 < discount_value <= 100:
        raise BadRequestError("Percentage discount must be between 0 and 100")
    changes["updated_at"] = utcnow()
    await coupon.set(changes)
    return coupon


async def delete_coupon(coupon_id: PydanticObjectId) -> None:
    coupon = await CouponCode.get(coupon_id)
    if not coupon:
        raise NotFoundError("Coupon not found")
    await coupon.delete()


# ---------- admin gift cards ----------

async def list_admin_gift_cards() -> list[AdminGiftCard]:
    return await AdminGiftCard.find_all().sort("-_id").to_list()


async def list_active_admin_gift_cards() -> list[AdminGiftCard]:
    return await AdminGiftCard.find(AdminGiftCard.is_active == True).sort("-_id").to_list()  # noqa: E712


async def get_admin_gift_card_by_code(code: str) -> AdminGiftCard | None:
    return await AdminGiftCard.find_one(AdminGiftCard.code == normalize_code(code))


async def create_admin_gift_card(
    code: str,
    amount: float,
    is_active: bool = True,
    expires_at: datetime | None = None,
    usage_limit: int | None = None,
    min_purchase_amount: float | None = None,
    description: str | None = None,
) -> AdminGiftCard:
    code = normalize_code(code)
    if not code:
        raise BadRequestError("Code is required")
    if await get_admin_gift_card_by_code(code):
        raise ConflictError("Gift card code already exists")
    card = AdminGiftCard(
        code=code,
        amount=amount,
        is_active=is_active,
        expires_at=expires_at,
        usage_limit=usage_limit,
        min_purchase_amount=min_purchase_amount,
        description=description,
    )
    await card.insert()
    return card


async def update_admin_gift_card(card_id: PydanticObjectId, **updates: Any) -> AdminGiftCard:
    card = await AdminGiftCard.get(card_id)
    if not card:
        raise NotFoundError("Gift card not found")
    changes = {k: v for k, v in updates.items() if v is not None}
    if "code" in changes:
        changes["code"] = normalize_code(changes["code"])
        existing = await get_admin_gift_card_by_code(changes["code"])
        if existing and existing.id != card.id:
            raise ConflictError("Gift card code already exists")
    changes["updated_at"] = utcnow()
    await card.set(changes)
    return card


async def delete_admin_gift_card(card_id: PydanticObjectId) -> None:
    card = await AdminGiftCard.get(card_id)
    if not card:
        raise NotFoundError("Gift card not found")
    await card.delete()


# ---------- checkout ----------

def check_redeemable(item: CouponOrGiftCard, subtotal: float, now: datetime | None = None) -> None:
    """Raise BadRequestError when the code cannot be used on this subtotal."""
    now = now or utcnow()
    if not item.is_active:
        raise BadRequestError("This code is no longer active")
    if item.expires_at is not None and now > item.expires_at:
        raise BadRequestError("This code has expired")
    if item.usage_limit is not None and item.usage_count >= item.usage_limit:
        raise BadRequestError("This code has reached its usage limit")
    if item.min_purchase_amount is not None and subtotal < item.min_purchase_amount:
        raise BadRequestError(
            f"Minimum purchase of ₹{item.min_purchase_amount:.2f} required",
            details={"min_purchase_amount": item.min_purchase_amount},
        )


def discount_for(item: CouponOrGiftCard, subtotal: float) -> float:
    if isinstance(item, CouponCode) and item.discount_type == "percentage":
        raw = subtotal * item.discount_value / 100
    elif isinstance(item, CouponCode):
        raw = item.discount_value
    else:
        raw = item.amount
    return round(min(max(raw, 0), subtotal), 2)


async def _find_code(code: str) -> CouponOrGiftCard:
    item: CouponOrGiftCard | None = await get_coupon_by_code(code)
    if item is None:
        item = await get_admin_gift_card_by_code(code)
    if item is None:
        raise NotFoundError("Invalid discount code")
    return item


def _quote(item: CouponOrGiftCard, subtotal: float) -> DiscountQuote:
    check_redeemable(item, subtotal)
    discount = discount_for(item, subtotal)
    return DiscountQuote(
        code=item.code,
        kind="coupon" if isinstance(item, CouponCode) else "gift_card",
        subtotal=subtotal,
        discount_amount=discount,
        total=round(subtotal - discount, 2),
    )


async def quote_discount(code: str, subtotal: float) -> DiscountQuote:
    return _quote(await _find_code(code), subtotal)


async def redeem_discount(code: str, subtotal: float) -> DiscountQuote:
    """Quote and consume one use of the code."""
    item = await _find_code(code)
    quote = _quote(item, subtotal)
    await item.inc({type(item).usage_count: 1})
    log.info("discount_redeemed", code=quote.code, kind=quote.kind, discount=quote.discount_amount)
    return quote


async def release_discount(code: str) -> None:
    """Give back one use taken by redeem_discount when the order could not be placed."""
    item = await _find_code(code)
    if item.usage_count > 0:
        await item.inc({type(item).usage_count: -1})
    log.info("discount_released", code=item.code)


def serialize(item: CouponOrGiftCard) -> dict[str, Any]:
    out = item.model_dump(mode="json", exclude={"id", "revision_id"})
    out["id"] = str(item.id)
    return out
