from storefront.models.audit_log import AuditLog
from storefront.models.cart import Cart
from storefront.models.chat import Chat
from storefront.models.credit_balance import CreditBalance
from storefront.models.credit_transaction import CreditTransaction
from storefront.models.discount import AdminGiftCard, CouponCode
from storefront.models.failed_job import FailedJob
from storefront.models.filter_setting import FilterSetting
from storefront.models.gift_card import GiftCard
from storefront.models.homepage_content import HomepageContent
from storefront.models.order import Order
from storefront.models.payment import Payment
from storefront.models.product import Product
from storefront.models.user import User

__all__ = [
    "User",
    "Product",
    "Cart",
    "Order",
    "Payment",
    "CreditBalance",
    "CreditTransaction",
    "GiftCard",
    "CouponCode",
    "AdminGiftCard",
    "FilterSetting",
    "HomepageContent",
    "Chat",
    "AuditLog",
    "FailedJob",
]
