import certifi
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from storefront.core.config import get_settings
from storefront.models import (
    AdminGiftCard,
    AuditLog,
    Cart,
    Chat,
    CouponCode,
    CreditBalance,
    CreditTransaction,
    FailedJob,
    FilterSetting,
    GiftCard,
    HomepageContent,
    Order,
    Payment,
    Product,
    User,
)

DOCUMENT_MODELS = [
    User,
    Product,
    Cart,
    Order,
    Payment,
    CreditBalance,
    CreditTransaction,
    GiftCard,
    CouponCode,
    AdminGiftCard,
    FilterSetting,
    HomepageContent,
    Chat,
    AuditLog,
    FailedJob,
]


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


def create_client(server_selection_timeout_ms: int | None = None) -> AsyncIOMotorClient:
    settings = get_settings()
    kwargs = {}
    if _use_tls(settings.mongodb_uri):
        kwargs["tlsCAFile"] = certifi.where()
        kwargs["tlsDisableOCSPEndpointCheck"] = True
    if server_selection_timeout_ms is not None:
        kwargs["serverSelectionTimeoutMS"] = server_selection_timeout_ms
    return AsyncIOMotorClient(settings.mongodb_uri, **kwargs)


async def init_db(client: AsyncIOMotorClient | None = None) -> AsyncIOMotorClient:
    client = client or create_client()
    database = client[get_settings().mongodb_db_name]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    return client
