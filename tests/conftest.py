import os
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pymongo.errors import PyMongoError

# Use test DB
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DB_NAME", "storefront_test")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")
os.environ.setdefault("NOTIFY_WEBHOOK_URL", "")
os.environ.setdefault("LLM_API_KEY", "")


@pytest.fixture(autouse=True)
def enqueued(monkeypatch) -> list[tuple[str, tuple[Any, ...]]]:
    """Record arq jobs instead of talking to Redis."""
    from storefront.worker import queue

    jobs: list[tuple[str, tuple[Any, ...]]] = []

    async def fake_enqueue(function: str, *args: Any) -> str:
        jobs.append((function, args))
        return f"job-{len(jobs)}"

    monkeypatch.setattr(queue, "enqueue", fake_enqueue)
    return jobs


@pytest_asyncio.fixture
async def db():
    """Fresh test database per test; skipped when MongoDB is not running."""
    from storefront.core.config import get_settings
    from storefront.db.init import create_client, init_db

    client = create_client(server_selection_timeout_ms=1500)
    try:
        await client.admin.command("ping")
    except PyMongoError:
        client.close()
        pytest.skip("MongoDB not reachable")
    await client.drop_database(get_settings().mongodb_db_name)
    await init_db(client)
    yield client
    client.close()


@pytest_asyncio.fixture
async def user(db):
    from storefront.models.user import User

    u = User(google_sub="sub-customer", email="buyer@example.com", first_name="Asha", last_name="Rao", display_name="Asha Rao")
    await u.insert()
    return u


@pytest_asyncio.fixture
async def admin_user(db):
    from storefront.models.user import User

    u = User(google_sub="sub-admin", email="admin@example.com", first_name="Admin", role="admin", is_approved=True)
    await u.insert()
    return u


@pytest_asyncio.fixture
async def product(db):
    from storefront.models.product import Product, ProductImage, ProductVariant

    p = Product(
        title="Air Runner",
        handle="air-runner",
        description="Lightweight daily trainer",
        price=2500,
        images=[ProductImage(url="/img/air-runner.jpg"), ProductImage(url="/img/locked.jpg", locked=True)],
        variants=[
            ProductVariant(id="ar-8", title="UK 8", price=2500, quantity=4),
            ProductVariant(id="ar-9", title="UK 9", price=2500, quantity=20),
        ],
        tags=["running", "mesh"],
        collection="mens-collection",
        category="athletic-performance",
    )
    await p.insert()
    return p


@pytest.fixture
def login():
    """Put a valid session cookie for the given user on an AsyncClient."""
    from storefront.core.security import create_session_cookie
    from storefront.deps import SESSION_COOKIE_NAME

    def _login(ac: AsyncClient, u) -> AsyncClient:
        payload = {"user_id": str(u.id), "session_version": u.session_version}
        ac.cookies.set(SESSION_COOKIE_NAME, create_session_cookie(payload))
        return ac

    return _login


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    from storefront.main import app
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
