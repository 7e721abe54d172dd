"""Admin dashboard numbers."""

from datetime import timedelta
from typing import Any

from storefront.core.clock import utcnow
from storefront.core.config import get_settings
from storefront.models.order import Order
from storefront.models.product import Product
from storefront.models.user import ADMIN_ROLES, User

RECENT_DAYS = 30
TOP_PRODUCTS = 10


async def dashboard_stats() -> dict[str, Any]:
    low_stock_below = get_settings().low_stock_threshold
    since = utcnow() - timedelta(days=RECENT_DAYS)

    products = {p.id: p for p in await Product.find_all().to_list()}
    total_inventory = 0
    low_stock = 0
    for p in products.values():
        total_inventory += sum(v.quantity or 0 for v in p.variants)
        if any((v.quantity or 0) < low_stock_below for v in p.variants):
            low_stock += 1

    revenue = {"total": 0.0, "pending": 0.0, "recent": 0.0}
    orders = {"total": 0, "fulfilled": 0, "pending": 0, "recent": 0}
    sales: dict[str, dict[str, Any]] = {}
    async for order in Order.find_all():
        orders["total"] += 1
        recent = order.created_at >= since
        if recent:
            orders["recent"] += 1
        if order.financial_status == "paid":
            revenue["total"] += order.total_price
            if recent:
                revenue["recent"] += order.total_price
        elif order.financial_status == "pending":
            revenue["pending"] += order.total_price
        if order.fulfillment_status == "fulfilled":
            orders["fulfilled"] += 1
        elif order.fulfillment_status == "unfulfilled":
            orders["pending"] += 1
        for item in order.items:
            key = str(item.product_id)
            if key not in sales:
                product = products.get(item.product_id)
                sales[key] = {"product_id": key, "title": product.title if product else "Unknown", "sales": 0, "revenue": 0.0}
            sales[key]["sales"] += item.quantity
            sales[key]["revenue"] += item.price * item.quantity

    admins = await User.find({"role": {"$in": list(ADMIN_ROLES)}}).count()
    customers = await User.find(User.role == "customer").count()
    total_users = await User.find_all().count()

    top = sorted(sales.values(), key=lambda s: s["sales"], reverse=True)[:TOP_PRODUCTS]
    return {
        "revenue": {k: round(v, 2) for k, v in revenue.items()},
        "users": {"total": total_users, "admins": admins, "customers": customers},
        "orders": orders,
        "inventory": {"total": total_inventory, "low_stock": low_stock},
        "top_products": [{**s, "revenue": round(s["revenue"], 2)} for s in top],
    }
