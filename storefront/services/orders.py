"""Orders: checkout from a cart, status updates, and the payment/order reconciliation sweep."""

from typing import Any
from urllib.parse import urlencode

from beanie import PydanticObjectId

from storefront.core.clock import utcnow
from storefront.core.config import get_settings
from storefront.core.exceptions import BadRequestError, NotFoundError
from storefront.core.logging import get_logger
from storefront.models.cart import Cart
from storefront.models.order import FinancialStatus, FulfillmentStatus, Order, OrderLineItem
from storefront.models.payment import Payment
from storefront.models.product import Product
from storefront.services import carts as carts_service
from storefront.services import credits as credits_service
from storefront.services import discounts as discounts_service
from storefront.services import payments as payments_service

log = get_logger(__name__)


async def next_order_number() -> int:
    last = await Order.find_all().sort(-Order.order_number).first_or_none()
    return last.order_number + 1 if last else 1


def cashback_for(total_price: float) -> float:
    return round(max(total_price, 0) * get_settings().credits_cashback_rate, 2)


async def create_order(
    user_id: PydanticObjectId,
    items: list[OrderLineItem],
    total_price: float,
    currency_code: str = "INR",
    credits_applied: float = 0,
    subtotal: float | None = None,
    discount_code: str | None = None,
    discount_amount: float = 0,
    checkout_key: str | None = None,
) -> Order:
    """Insert the order as given (line items are stored verbatim) and move credits.

    total_price is the amount still payable after discounts and credits.
    """
    order_number = await next_order_number()
    credits_earned = cashback_for(total_price)
    order_id = PydanticObjectId()
    # debit first: a refused debit must not leave an order behind
    if credits_applied > 0:
        await credits_service.apply_transaction(
            user_id,
            -credits_applied,
            "spent",
            f"Applied to order #{order_number}",
            order_id=order_id,
            idempotency_key=f"order_{order_id}_spent",
        )
    order = Order(
        id=order_id,
        user_id=user_id,
        order_number=order_number,
        items=items,
        subtotal=subtotal,
        discount_code=discount_code,
        discount_amount=discount_amount,
        credits_applied=credits_applied,
        credits_earned=credits_earned,
        total_price=total_price,
        currency_code=currency_code,
        fulfillment_status="unfulfilled",
        financial_status="pending",
        checkout_key=checkout_key,
    )
    await order.insert()
    log.info("order_created", order_id=str(order.id), order_number=order_number, total=total_price)

    if credits_earned > 0:
        await credits_service.apply_transaction(
            user_id,
            credits_earned,
            "earned",
            f"Earned from order #{order_number}",
            order_id=order.id,
            idempotency_key=f"order_{order.id}_earned",
        )
    return order


async def _line_items_from_cart(cart: Cart) -> list[OrderLineItem]:
    items = []
    for line in cart.items:
        product = await Product.get(line.product_id)
        if not product or product.archived:
            raise BadRequestError("A product in your cart is no longer available", details={"product_id": str(line.product_id)})
        variant = product.find_variant(line.variant_id)
        if variant and variant.image:
            image = variant.image.url
        else:
            image = product.images[0].url if product.images else None
        title = product.title
        if variant and variant.title and variant.title.lower() != "default":
            title = f"{product.title} - {variant.title}"
        items.append(
            OrderLineItem(
                product_id=product.id,
                variant_id=line.variant_id,
                title=title,
                quantity=line.quantity,
                price=line.price,
                image=image,
            )
        )
    return items


def upi_payment_details(amount: float, order_number: int) -> dict[str, Any]:
    """UPI deep link the checkout page renders as a QR code."""
    s = get_settings()
    params = {"pa": s.upi_id, "pn": s.upi_payee_name, "am": f"{amount:.2f}", "cu": s.currency_code, "tn": f"Order {order_number}"}
    return {"upi_id": s.upi_id, "payee_name": s.upi_payee_name, "amount": amount, "uri": "upi://pay?" + urlencode(params)}


async def checkout(
    user_id: PydanticObjectId,
    cart_id: PydanticObjectId,
    discount_code: str | None = None,
    credits_applied: float = 0,
    checkout_key: str | None = None,
) -> dict[str, Any]:
    """Turn the user's cart into one order plus its payment row, then empty the cart.

    With a checkout_key, a retried call returns the order created by the first one.
    """
    if checkout_key:
        existing = await Order.find_one(Order.user_id == user_id, Order.checkout_key == checkout_key)
        if existing:
            payment_id = await payments_service.create_payment(existing.id, user_id, existing.total_price)
            return {
                "order": existing,
                "payment_id": payment_id,
                "upi": upi_payment_details(existing.total_price, existing.order_number),
            }

    cart = await Cart.get(cart_id)
    if not cart or cart.user_id != user_id:
        raise NotFoundError("Cart not found")
    if not cart.items:
        raise BadRequestError("Cart is empty")
    if credits_applied < 0:
        raise BadRequestError("Credits applied cannot be negative")

    items = await _line_items_from_cart(cart)
    subtotal = round(sum(i.price * i.quantity for i in items), 2)
    discount_amount = 0.0
    code = None
    if discount_code:
        quote = await discounts_service.quote_discount(discount_code, subtotal)
        discount_amount, code = quote.discount_amount, quote.code
    payable = round(subtotal - discount_amount, 2)
    if credits_applied > payable:
        raise BadRequestError("Credits applied exceed the order total")
    if credits_applied > await credits_service.get_balance(user_id):
        raise BadRequestError("Insufficient credits")
    if code:
        await discounts_service.redeem_discount(code, subtotal)

    try:
        order = await create_order(
            user_id,
            items,
            total_price=round(payable - credits_applied, 2),
            currency_code=get_settings().currency_code,
            credits_applied=credits_applied,
            subtotal=subtotal,
            discount_code=code,
            discount_amount=discount_amount,
            checkout_key=checkout_key,
        )
    except Exception:
        # hand the use back; no order was written
        if code:
            await discounts_service.release_discount(code)
        raise
    payment_id = await payments_service.create_payment(order.id, user_id, order.total_price)
    await carts_service.clear(cart.id)
    return {
        "order": order,
        "payment_id": payment_id,
        "upi": upi_payment_details(order.total_price, order.order_number),
    }


async def get_by_id(order_id: PydanticObjectId) -> Order | None:
    return await Order.get(order_id)


async def get_by_order_number(order_number: int) -> Order | None:
    return await Order.find_one(Order.order_number == order_number)


async def get_by_user_id(user_id: PydanticObjectId) -> list[Order]:
    return await Order.find(Order.user_id == user_id).sort("-_id").to_list()


async def list_orders(limit: int = 50, offset: int = 0) -> tuple[list[Order], int]:
    total = await Order.find_all().count()
    items = await Order.find_all().sort("-_id").skip(offset).limit(limit).to_list()
    return items, total


async def update_status(
    order_id: PydanticObjectId,
    fulfillment_status: FulfillmentStatus | None = None,
    financial_status: FinancialStatus | None = None,
) -> Order:
    """Overwrite either status field; no transition rules apply."""
    order = await Order.get(order_id)
    if not order:
        raise NotFoundError("Order not found")
    changes: dict[str, Any] = {Order.updated_at: utcnow()}
    if fulfillment_status is not None:
        changes[Order.fulfillment_status] = fulfillment_status
    if financial_status is not None:
        changes[Order.financial_status] = financial_status
    await order.set(changes)
    log.info("order_status_updated", order_id=str(order_id), fulfillment=fulfillment_status, financial=financial_status)
    return order


async def reconcile_financial_status() -> int:
    """Re-apply a payment's status to its order where the order write was lost; return how many changed.

    update_payment stamps the payment and the order with the same updated_at, so an
    order older than its payment missed that write. Orders written later (admin
    status edits included) are left as they are, and so are refunded orders.
    """
    fixed = 0
    async for payment in Payment.find_all():
        order = await Order.get(payment.order_id)
        if not order or order.financial_status == "refunded":
            continue
        if order.updated_at >= payment.updated_at:
            continue
        expected = payments_service.financial_status_for(payment.status)
        if order.financial_status != expected:
            await order.set({Order.financial_status: expected, Order.updated_at: utcnow()})
            log.warning("order_financial_status_repaired", order_id=str(order.id), status=expected)
            fixed += 1
    return fixed


def serialize(order: Order) -> dict[str, Any]:
    out = order.model_dump(mode="json", exclude={"id", "revision_id", "checkout_key"})
    out["id"] = str(order.id)
    return out
