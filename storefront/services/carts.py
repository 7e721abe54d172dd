"""Carts for signed-in users and guest sessions."""

from beanie import PydanticObjectId

from storefront.core.clock import utcnow
from storefront.core.exceptions import BadRequestError, NotFoundError
from storefront.models.cart import Cart, CartItem
from storefront.models.product import Product


async def get_for_owner(user_id: PydanticObjectId | None = None, session_id: str | None = None) -> Cart | None:
    if user_id:
        return await Cart.find_one(Cart.user_id == user_id)
    if session_id:
        return await Cart.find_one(Cart.session_id == session_id)
    return None


async def get_or_create(user_id: PydanticObjectId | None = None, session_id: str | None = None) -> Cart:
    if not user_id and not session_id:
        raise BadRequestError("A user or guest session is required")
    cart = await get_for_owner(user_id, session_id)
    if cart:
        return cart
    cart = Cart(user_id=user_id, session_id=None if user_id else session_id)
    await cart.insert()
    return cart


async def _require(cart_id: PydanticObjectId) -> Cart:
    cart = await Cart.get(cart_id)
    if not cart:
        raise NotFoundError("Cart not found")
    return cart


def _same_line(item: CartItem, product_id: PydanticObjectId, variant_id: str) -> bool:
    return item.product_id == product_id and item.variant_id == variant_id


async def _save_items(cart: Cart, items: list[CartItem]) -> Cart:
    cart.items = items
    cart.updated_at = utcnow()
    await cart.save()
    return cart


async def add_item(cart_id: PydanticObjectId, product_id: PydanticObjectId, variant_id: str, quantity: int) -> Cart:
    """Add a variant; an existing line for the same variant has its quantity increased."""
    if quantity <= 0:
        raise BadRequestError("Quantity must be positive")
    cart = await _require(cart_id)
    product = await Product.get(product_id)
    if not product:
        raise NotFoundError("Product not found")
    variant = product.find_variant(variant_id)
    if not variant:
        raise NotFoundError("Variant not found")

    items = list(cart.items)
    for i, item in enumerate(items):
        if _same_line(item, product_id, variant_id):
            items[i] = item.model_copy(update={"quantity": item.quantity + quantity})
            break
    else:
        items.append(CartItem(product_id=product_id, variant_id=variant_id, quantity=quantity, price=variant.price))
    return await _save_items(cart, items)


async def update_item_quantity(
    cart_id: PydanticObjectId,
    product_id: PydanticObjectId,
    variant_id: str,
    quantity: int,
) -> Cart:
    cart = await _require(cart_id)
    if quantity <= 0:
        items = [i for i in cart.items if not _same_line(i, product_id, variant_id)]
    else:
        items = [
            i.model_copy(update={"quantity": quantity}) if _same_line(i, product_id, variant_id) else i
            for i in cart.items
        ]
    return await _save_items(cart, items)


async def remove_item(cart_id: PydanticObjectId, product_id: PydanticObjectId, variant_id: str) -> Cart:
    cart = await _require(cart_id)
    return await _save_items(cart, [i for i in cart.items if not _same_line(i, product_id, variant_id)])


async def clear(cart_id: PydanticObjectId) -> Cart:
    cart = await _require(cart_id)
    return await _save_items(cart, [])


def subtotal(cart: Cart) -> float:
    return round(sum(i.price * i.quantity for i in cart.items), 2)


def serialize(cart: Cart) -> dict:
    return {
        "id": str(cart.id),
        "user_id": str(cart.user_id) if cart.user_id else None,
        "session_id": cart.session_id,
        "items": [
            {
                "product_id": str(i.product_id),
                "variant_id": i.variant_id,
                "quantity": i.quantity,
                "price": i.price,
            }
            for i in cart.items
        ],
        "subtotal": subtotal(cart),
        "updated_at": cart.updated_at.isoformat(),
    }
