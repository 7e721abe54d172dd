from datetime import timedelta

import pytest

from storefront.core.clock import utcnow
from storefront.core.exceptions import BadRequestError, ConflictError, NotFoundError
from storefront.models.discount import AdminGiftCard, CouponCode
from storefront.services import discounts as discounts_service


def test_percentage_discount():
    coupon = CouponCode.model_construct(discount_type="percentage", discount_value=10)
    assert discounts_service.discount_for(coupon, 2200) == 220


def test_fixed_discount_capped_at_subtotal():
    coupon = CouponCode.model_construct(discount_type="fixed", discount_value=500)
    assert discounts_service.discount_for(coupon, 300) == 300


def test_gift_card_discount_is_its_amount():
    card = AdminGiftCard.model_construct(amount=250)
    assert discounts_service.discount_for(card, 1000) == 250


def test_check_redeemable_rules():
    base = dict(is_active=True, expires_at=None, usage_limit=None, usage_count=0, min_purchase_amount=None)
    discounts_service.check_redeemable(CouponCode.model_construct(**base), 100)
    for override in (
        {"is_active": False},
        {"expires_at": utcnow() - timedelta(minutes=1)},
        {"usage_limit": 2, "usage_count": 2},
        {"min_purchase_amount": 1000},
    ):
        with pytest.raises(BadRequestError):
            discounts_service.check_redeemable(CouponCode.model_construct(**{**base, **override}), 100)


async def test_create_coupon_normalizes_and_rejects_duplicates(db):
    coupon = await discounts_service.create_coupon(" welcome10 ", "percentage", 10)
    assert coupon.code == "WELCOME10"
    with pytest.raises(ConflictError):
        await discounts_service.create_coupon("WELCOME10", "fixed", 100)


async def test_create_coupon_rejects_bad_percentage(db):
    with pytest.raises(BadRequestError):
        await discounts_service.create_coupon("HUGE", "percentage", 150)


async def test_update_coupon_checks_percentage(db):
    coupon = await discounts_service.create_coupon("FLAT", "fixed", 300)
    with pytest.raises(BadRequestError):
        await discounts_service.update_coupon(coupon.id, discount_type="percentage")
    updated = await discounts_service.update_coupon(coupon.id, description="Flat 300 off")
    assert updated.description == "Flat 300 off"


async def test_quote_does_not_consume_but_redeem_does(db):
    await discounts_service.create_coupon("ONCE", "fixed", 100, usage_limit=1)
    quote = await discounts_service.quote_discount("once", 1000)
    assert quote.kind == "coupon"
    assert quote.discount_amount == 100
    assert quote.total == 900
    await discounts_service.redeem_discount("ONCE", 1000)
    assert (await discounts_service.get_coupon_by_code("ONCE")).usage_count == 1
    with pytest.raises(BadRequestError):
        await discounts_service.quote_discount("ONCE", 1000)


async def test_gift_card_code_is_found_after_coupons(db):
    await discounts_service.create_admin_gift_card("GIFT500", 500)
    quote = await discounts_service.quote_discount("gift500", 400)
    assert quote.kind == "gift_card"
    assert quote.discount_amount == 400
    assert quote.total == 0


async def test_unknown_code(db):
    with pytest.raises(NotFoundError):
        await discounts_service.quote_discount("NOPE", 100)


async def test_active_lists_skip_disabled_codes(db):
    live = await discounts_service.create_coupon("LIVE", "fixed", 100)
    off = await discounts_service.create_coupon("OFF", "fixed", 100)
    await discounts_service.update_coupon(off.id, is_active=False)
    await discounts_service.create_admin_gift_card("GIFT100", 100)
    card = await discounts_service.create_admin_gift_card("GIFT200", 200)
    await discounts_service.update_admin_gift_card(card.id, is_active=False)

    assert [c.id for c in await discounts_service.list_active_coupons()] == [live.id]
    assert [c.code for c in await discounts_service.list_active_admin_gift_cards()] == ["GIFT100"]


async def test_release_returns_a_redeemed_use(db):
    await discounts_service.create_coupon("ONCE", "fixed", 100, usage_limit=1)
    await discounts_service.redeem_discount("ONCE", 1000)
    await discounts_service.release_discount("ONCE")
    assert (await discounts_service.get_coupon_by_code("ONCE")).usage_count == 0
    # usable again
    assert (await discounts_service.quote_discount("ONCE", 1000)).discount_amount == 100
