import pytest
from beanie import PydanticObjectId

from storefront.core.exceptions import BadRequestError, NotFoundError
from storefront.models.order import Order
from storefront.models.payment import Payment
from storefront.services import carts as carts_service
from storefront.services import credits as credits_service
from storefront.services import discounts as discounts_service
from storefront.services import orders as orders_service


async def _cart_with(user, product, variant_id="ar-8", quantity=1):
    cart = await carts_service.get_or_create(user_id=user.id)
    return await carts_service.add_item(cart.id, product.id, variant_id, quantity)


async def test_checkout_creates_order_payment_and_clears_cart(user, product, enqueued):
    cart = await _cart_with(user, product, quantity=2)
    result = await orders_service.checkout(user.id, cart.id)

    order = result["order"]
    assert order.order_number == 1
    assert order.subtotal == 5000
    assert order.total_price == 5000
    assert order.items[0].title == "Air Runner - UK 8"
    assert order.items[0].image == "/img/air-runner.jpg"
    payment = await Payment.get(result["payment_id"])
    assert payment.amount == 5000
    assert payment.order_id == order.id
    assert (await carts_service.get_for_owner(user_id=user.id)).items == []
    assert "am=5000.00" in result["upi"]["uri"]
    # no notification until the customer reaches the QR step
    assert enqueued == []


async def test_order_numbers_increase(user, product):
    first = await orders_service.checkout(user.id, (await _cart_with(user, product)).id)
    second = await orders_service.checkout(user.id, (await _cart_with(user, product)).id)
    assert second["order"].order_number == first["order"].order_number + 1


async def test_checkout_awards_cashback(user, product):
    result = await orders_service.checkout(user.id, (await _cart_with(user, product)).id)
    assert result["order"].credits_earned == 1000  # 40% of 2500
    assert await credits_service.get_balance(user.id) == 1000


async def test_checkout_with_coupon_and_credits(user, product):
    await discounts_service.create_coupon("TEN", "percentage", 10)
    await credits_service.apply_transaction(user.id, 200, "earned", "Cashback")
    cart = await _cart_with(user, product)

    result = await orders_service.checkout(user.id, cart.id, discount_code="ten", credits_applied=200)
    order = result["order"]
    assert order.discount_code == "TEN"
    assert order.discount_amount == 250
    assert order.credits_applied == 200
    assert order.total_price == 2050
    assert (await Payment.get(result["payment_id"])).amount == 2050
    # 200 spent, 40% of 2050 earned
    assert await credits_service.get_balance(user.id) == 820
    assert (await discounts_service.get_coupon_by_code("TEN")).usage_count == 1


async def test_checkout_rejects_credits_beyond_balance(user, product):
    cart = await _cart_with(user, product)
    with pytest.raises(BadRequestError):
        await orders_service.checkout(user.id, cart.id, credits_applied=100)
    assert await Order.find_all().count() == 0


async def test_checkout_bad_code_creates_nothing(user, product):
    cart = await _cart_with(user, product)
    with pytest.raises(NotFoundError):
        await orders_service.checkout(user.id, cart.id, discount_code="NOPE")
    assert await Order.find_all().count() == 0
    assert len((await carts_service.get_for_owner(user_id=user.id)).items) == 1


async def test_checkout_empty_or_foreign_cart(user, product):
    cart = await carts_service.get_or_create(user_id=user.id)
    with pytest.raises(BadRequestError):
        await orders_service.checkout(user.id, cart.id)
    with pytest.raises(NotFoundError):
        await orders_service.checkout(PydanticObjectId(), cart.id)


async def test_checkout_key_replays_first_order(user, product):
    cart = await _cart_with(user, product)
    first = await orders_service.checkout(user.id, cart.id, checkout_key="key-1")
    again = await orders_service.checkout(user.id, cart.id, checkout_key="key-1")
    assert again["order"].id == first["order"].id
    assert again["payment_id"] == first["payment_id"]
    assert await Order.find_all().count() == 1


async def test_update_status_overwrites_without_rules(user, product):
    result = await orders_service.checkout(user.id, (await _cart_with(user, product)).id)
    order = await orders_service.update_status(result["order"].id, fulfillment_status="fulfilled")
    assert order.fulfillment_status == "fulfilled"
    order = await orders_service.update_status(order.id, fulfillment_status="unfulfilled", financial_status="refunded")
    stored = await Order.get(order.id)
    assert stored.fulfillment_status == "unfulfilled"
    assert stored.financial_status == "refunded"


async def test_update_status_unknown_order(db):
    with pytest.raises(NotFoundError):
        await orders_service.update_status(PydanticObjectId(), fulfillment_status="fulfilled")


async def test_refused_debit_leaves_no_order_and_returns_the_code(user, product, monkeypatch):
    await discounts_service.create_coupon("TEN", "percentage", 10)
    await credits_service.apply_transaction(user.id, 200, "earned", "Cashback")
    cart = await _cart_with(user, product)

    # balance read before the debit is stale; the debit itself sees only 200
    async def stale_balance(user_id):
        return 10_000

    monkeypatch.setattr(credits_service, "get_balance", stale_balance)
    with pytest.raises(BadRequestError):
        await orders_service.checkout(user.id, cart.id, discount_code="TEN", credits_applied=500)

    assert await Order.find_all().count() == 0
    assert (await discounts_service.get_coupon_by_code("TEN")).usage_count == 0
    assert len((await carts_service.get_for_owner(user_id=user.id)).items) == 1
