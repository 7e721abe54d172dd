"""Payment lifecycle against the test database."""

from datetime import timedelta

import pytest
from beanie import PydanticObjectId

from storefront.core.clock import utcnow
from storefront.core.exceptions import NotFoundError
from storefront.models.order import Order, OrderLineItem
from storefront.models.payment import Payment
from storefront.services import orders as orders_service
from storefront.services import payments as payments_service


async def _order(user, total: float, number: int = 1) -> Order:
    order = Order(
        user_id=user.id,
        order_number=number,
        items=[
            OrderLineItem(
                product_id=PydanticObjectId(),
                variant_id="v1",
                title="Air Runner - UK 8",
                quantity=1,
                price=total,
            )
        ],
        total_price=total,
    )
    await order.insert()
    return order


def _notified(enqueued) -> list[str]:
    return [args[0]["type"] for name, args in enqueued if name == "send_payment_notification"]


async def test_create_payment_is_idempotent_per_order(user, enqueued):
    order = await _order(user, 1000)
    first = await payments_service.create_payment(order.id, user.id, 1000)
    second = await payments_service.create_payment(order.id, user.id, 1000)
    assert first == second
    assert await Payment.find(Payment.order_id == order.id).count() == 1
    payment = await Payment.get(first)
    assert payment.status == "pending"
    assert payment.amount_paid == 0
    assert payment.payment_initiated_at is None
    assert enqueued == []


async def test_initiate_returns_same_timestamp_and_notifies_once(user, enqueued):
    order = await _order(user, 1000)
    pid = await payments_service.create_payment(order.id, user.id, 1000)
    t1 = await payments_service.initiate_payment(pid)
    t2 = await payments_service.initiate_payment(pid)
    assert t1 == t2
    assert (await Payment.get(pid)).payment_initiated_at == t1
    assert _notified(enqueued) == ["initiated"]
    payload = enqueued[0][1][0]
    assert payload["order_number"] == 1
    assert payload["customer_email"] == "buyer@example.com"


async def test_initiate_unknown_payment_raises(db):
    with pytest.raises(NotFoundError):
        await payments_service.initiate_payment(PydanticObjectId())


async def test_update_unknown_payment_raises(db):
    with pytest.raises(NotFoundError):
        await payments_service.update_payment(PydanticObjectId(), 100)


async def test_update_keeps_unset_fields_and_clears_on_empty_string(user):
    order = await _order(user, 1000)
    pid = await payments_service.create_payment(order.id, user.id, 1000)
    await payments_service.update_payment(pid, 400, transaction_id="UTR123", notes="first")
    await payments_service.update_payment(pid, 600)
    p = await Payment.get(pid)
    assert p.transaction_id == "UTR123"
    assert p.notes == "first"
    await payments_service.update_payment(pid, 600, transaction_id="")
    p = await Payment.get(pid)
    assert p.transaction_id == ""
    assert p.notes == "first"


async def test_order_financial_status_mirrors_payment(user):
    order = await _order(user, 1000)
    pid = await payments_service.create_payment(order.id, user.id, 1000)
    await payments_service.update_payment(pid, 1000)
    assert (await Order.get(order.id)).financial_status == "paid"
    await payments_service.update_payment(pid, 300)
    assert (await Order.get(order.id)).financial_status == "pending"


async def test_get_all_filters_before_limit(user):
    for i, paid in enumerate([1000, 0, 1000, 500], start=1):
        order = await _order(user, 1000, number=i)
        pid = await payments_service.create_payment(order.id, user.id, 1000)
        if paid:
            await payments_service.update_payment(pid, paid)
    result = await payments_service.get_all(status="paid", limit=1)
    assert len(result) == 1
    assert result[0].status == "paid"
    everything = await payments_service.get_all()
    assert len(everything) == 4
    # newest first
    assert everything[0].id > everything[-1].id


async def test_checkout_to_paid_flow(user, enqueued):
    order = await _order(user, 1980)
    pid = await payments_service.create_payment(order.id, user.id, 1980)
    await payments_service.initiate_payment(pid)
    result = await payments_service.update_payment(pid, 1980, transaction_id="UTR9")
    assert result == {"success": True, "status": "paid"}
    assert (await Payment.get(pid)).status == "paid"
    assert (await Order.get(order.id)).financial_status == "paid"
    assert _notified(enqueued) == ["initiated", "completed"]


async def test_partial_then_paid(user, enqueued):
    order = await _order(user, 1000)
    pid = await payments_service.create_payment(order.id, user.id, 1000)
    assert (await payments_service.update_payment(pid, 400))["status"] == "partial"
    assert (await payments_service.update_payment(pid, 1000))["status"] == "paid"
    assert _notified(enqueued) == ["partial", "completed"]


async def test_paid_can_regress_to_partial(user):
    order = await _order(user, 1000)
    pid = await payments_service.create_payment(order.id, user.id, 1000)
    await payments_service.update_payment(pid, 1000)
    assert (await payments_service.update_payment(pid, 200))["status"] == "partial"
    assert (await Order.get(order.id)).financial_status == "pending"


async def test_pending_by_user_excludes_settled(user):
    statuses = ["pending", "partial", "paid", "cancelled"]
    for i, status in enumerate(statuses, start=1):
        order = await _order(user, 1000, number=i)
        await Payment(order_id=order.id, user_id=user.id, amount=1000, status=status).insert()
    other = await _order(user, 1000, number=9)
    await Payment(order_id=other.id, user_id=PydanticObjectId(), amount=1000).insert()

    pending = await payments_service.get_pending_by_user_id(user.id)
    assert sorted(p.status for p in pending) == ["partial", "pending"]


async def test_notification_enqueue_failure_does_not_break_update(user, monkeypatch):
    from storefront.worker import queue

    async def broken(*args):
        raise ConnectionError("redis down")

    monkeypatch.setattr(queue, "enqueue", broken)
    order = await _order(user, 1000)
    pid = await payments_service.create_payment(order.id, user.id, 1000)
    await payments_service.initiate_payment(pid)
    assert (await payments_service.update_payment(pid, 1000))["status"] == "paid"


async def test_reconcile_repairs_stale_order(user):
    order = await _order(user, 1000)
    pid = await payments_service.create_payment(order.id, user.id, 1000)
    await order.set({Order.updated_at: utcnow() - timedelta(minutes=1)})
    # payment written but the order write never happened
    await (await Payment.get(pid)).set({Payment.amount_paid: 1000, Payment.status: "paid", Payment.updated_at: utcnow()})
    assert (await Order.get(order.id)).financial_status == "pending"

    assert await orders_service.reconcile_financial_status() == 1
    assert (await Order.get(order.id)).financial_status == "paid"
    assert await orders_service.reconcile_financial_status() == 0


async def test_reconcile_leaves_refunded_orders(user):
    order = await _order(user, 1000)
    await payments_service.create_payment(order.id, user.id, 1000)
    await order.set({Order.financial_status: "refunded"})
    assert await orders_service.reconcile_financial_status() == 0
    assert (await Order.get(order.id)).financial_status == "refunded"


async def test_reconcile_keeps_admin_status_edits(user):
    order = await _order(user, 1000)
    await payments_service.create_payment(order.id, user.id, 1000)
    await orders_service.update_status(order.id, financial_status="paid")

    assert await orders_service.reconcile_financial_status() == 0
    assert (await Order.get(order.id)).financial_status == "paid"


async def test_reconcile_leaves_orders_written_with_the_payment(user):
    order = await _order(user, 1000)
    pid = await payments_service.create_payment(order.id, user.id, 1000)
    await payments_service.update_payment(pid, 1000)
    # admin corrects the order afterwards
    await orders_service.update_status(order.id, financial_status="pending")

    assert await orders_service.reconcile_financial_status() == 0
    assert (await Order.get(order.id)).financial_status == "pending"
