import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from fastapi.staticfiles import StaticFiles

from storefront.core.config import get_settings
from storefront.core.exceptions import (
    AppError,
    app_exception_handler,
    generic_exception_handler,
    validation_exception_handler,
)
from storefront.core.logging import bind_request_id, configure_logging, get_logger
from storefront.db.init import init_db
from storefront.routers import (
    admin,
    auth,
    cart,
    chats,
    contact,
    credits,
    discounts,
    filters,
    homepage,
    orders,
    payments,
    products,
)

settings = get_settings()
configure_logging(debug=settings.debug)
log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.sentry_dsn:
        import sentry_sdk
        sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.1)
        log.info("startup", msg="Sentry enabled")
    client = await init_db()
    log.info("startup", msg="DB connected")
    yield
    client.close()


app = FastAPI(
    title="Storefront API",
    version="1.0.0",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_id_middleware(request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    bind_request_id(request_id)
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    log.info(
        "request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(duration_ms, 2),
    )
    response.headers["X-Request-ID"] = request_id
    return response


app.add_exception_handler(AppError, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Routers
app.include_router(auth.router, prefix="/v1/auth", tags=["auth"])
app.include_router(products.router, prefix="/v1/products", tags=["products"])
app.include_router(cart.router, prefix="/v1/cart", tags=["cart"])
app.include_router(orders.router, prefix="/v1/orders", tags=["orders"])
app.include_router(payments.router, prefix="/v1/payments", tags=["payments"])
app.include_router(credits.router, prefix="/v1/credits", tags=["credits"])
app.include_router(discounts.router, prefix="/v1/discounts", tags=["discounts"])
app.include_router(homepage.router, prefix="/v1/homepage", tags=["homepage"])
app.include_router(filters.router, prefix="/v1/filters", tags=["filters"])
app.include_router(chats.router, prefix="/v1/chats", tags=["chats"])
app.include_router(contact.router, prefix="/v1/contact", tags=["contact"])
app.include_router(admin.router, prefix="/v1/admin", tags=["admin"])

if settings.storage_backend == "local" and settings.media_base_url.startswith("/"):
    Path(settings.storage_local_path).mkdir(parents=True, exist_ok=True)
    app.mount(settings.media_base_url, StaticFiles(directory=settings.storage_local_path), name="media")


@app.get("/health")
async def health():
    """Health check for load balancers and monitoring."""
    return {"status": "ok"}
