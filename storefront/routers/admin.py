import json
import uuid
from pathlib import PurePath
from typing import Any, Literal

import redis.asyncio as aioredis
from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel, Field

from storefront import assistant
from storefront.core.audit import log_event
from storefront.core.exceptions import BadRequestError
from storefront.core.pagination import page_of, paginate
from storefront.deps import get_redis, require_admin
from storefront.models.product import ProductImage, ProductVariant
from storefront.models.user import Role, User
from storefront.services import analytics as analytics_service
from storefront.services import chats as chats_service
from storefront.services import products as products_service
from storefront.services import rate_limit
from storefront.services import users as user_service
from storefront.storage.base import get_storage

router = APIRouter()

MAX_IMAGE_BYTES = 10 * 1024 * 1024
IMAGE_TYPES = {"image/jpeg": ".jpg", "image/png": ".png", "image/webp": ".webp", "image/gif": ".gif"}


class ApprovalRequest(BaseModel):
    approved: bool


class RoleRequest(BaseModel):
    role: Role


class ProductCreate(BaseModel):
    title: str
    handle: str
    description: str = ""
    price: float = Field(..., ge=0)
    mrp: float | None = None
    images: list[ProductImage] = Field(default_factory=list)
    variants: list[ProductVariant] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    collection: str
    category: str | None = None


class ProductUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    price: float | None = Field(None, ge=0)
    mrp: float | None = None
    images: list[ProductImage] | None = None
    variants: list[ProductVariant] | None = None
    tags: list[str] | None = None
    collection: str | None = None
    category: str | None = None
    archived: bool | None = None


class HistoryMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class AskRequest(BaseModel):
    question: str = Field(..., min_length=1)
    history: list[HistoryMessage] = Field(default_factory=list)
    current_data: dict[str, Any] | None = None
    mode: Literal["tools", "extract"] = "tools"


# ---------- dashboard ----------

@router.get("/dashboard")
async def admin_dashboard(_: User = Depends(require_admin)):
    return await analytics_service.dashboard_stats()


@router.get("/chat-stats")
async def admin_chat_stats(_: User = Depends(require_admin)):
    """Every user with purchase and chat counts."""
    return {"users": await chats_service.users_with_chat_stats()}


# ---------- users ----------

@router.get("/users")
async def admin_users(
    _: User = Depends(require_admin),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    limit, offset = paginate(limit, offset)
    users, total = await user_service.list_users(limit=limit, offset=offset)
    return page_of([user_service.serialize(u) for u in users], limit, offset, total)


@router.get("/users/pending-authorization")
async def admin_pending_authorizations(_: User = Depends(require_admin)):
    users = await user_service.list_pending_authorizations()
    return {"users": [user_service.serialize(u) for u in users]}


@router.post("/users/{user_id}/approval")
async def admin_set_approval(user_id: PydanticObjectId, body: ApprovalRequest, admin: User = Depends(require_admin)):
    user = await user_service.set_approval(user_id, body.approved, actor_id=admin.id)
    return user_service.serialize(user)


@router.post("/users/{user_id}/role")
async def admin_set_role(user_id: PydanticObjectId, body: RoleRequest, admin: User = Depends(require_admin)):
    user = await user_service.set_role(user_id, body.role, actor_id=admin.id)
    return user_service.serialize(user)


# ---------- products ----------

@router.get("/products")
async def admin_products(_: User = Depends(require_admin), limit: int = Query(100, ge=1, le=500)):
    products = await products_service.list_all_products(limit=limit)
    return {"products": [products_service.serialize(p) for p in products]}


@router.post("/products")
async def admin_create_product(body: ProductCreate, admin: User = Depends(require_admin)):
    product = await products_service.create_product(body.model_dump())
    await log_event(str(admin.id), "product_created", "product", str(product.id), {"handle": product.handle})
    return products_service.serialize(product)


@router.patch("/products/{product_id}")
async def admin_update_product(product_id: PydanticObjectId, body: ProductUpdate, admin: User = Depends(require_admin)):
    updates = body.model_dump(exclude_none=True)
    product = await products_service.update_product(product_id, updates)
    await log_event(str(admin.id), "product_updated", "product", str(product_id), {"fields": sorted(updates)})
    return products_service.serialize(product)


@router.delete("/products/{product_id}")
async def admin_delete_product(product_id: PydanticObjectId, admin: User = Depends(require_admin)):
    await products_service.delete_product(product_id)
    await log_event(str(admin.id), "product_deleted", "product", str(product_id))
    return {"status": "ok"}


# ---------- assistant ----------

def _parse_json_field(raw: str | None, name: str) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise BadRequestError(f"{name} must be JSON") from e


@router.post("/assistant/image")
async def admin_assistant_image(
    admin: User = Depends(require_admin),
    redis: aioredis.Redis = Depends(get_redis),
    file: UploadFile = File(...),
    history: str | None = Form(None),
    existing_data: str | None = Form(None),
):
    """Store a product photo and ask the vision model to fill the product form from it."""
    content_type = file.content_type or "image/jpeg"
    if content_type not in IMAGE_TYPES:
        raise BadRequestError("Unsupported image type", details={"content_type": content_type})
    content = await file.read()
    if not content:
        raise BadRequestError("Empty file")
    if len(content) > MAX_IMAGE_BYTES:
        raise BadRequestError("Image too large", details={"max_bytes": MAX_IMAGE_BYTES})
    await rate_limit.enforce_assistant_rate_limit(redis, str(admin.id))

    suffix = PurePath(file.filename or "").suffix.lower() or IMAGE_TYPES[content_type]
    key = f"products/{uuid.uuid4().hex}{suffix}"
    image_url = await get_storage().put(key, content, content_type=content_type)

    result = await assistant.analyze_product_image(
        content,
        content_type,
        history=_parse_json_field(history, "history") or [],
        existing_data=_parse_json_field(existing_data, "existing_data"),
    )
    return {"image_url": image_url, **result.model_dump()}


@router.post("/assistant/ask")
async def admin_assistant_ask(
    body: AskRequest,
    admin: User = Depends(require_admin),
    redis: aioredis.Redis = Depends(get_redis),
):
    await rate_limit.enforce_assistant_rate_limit(redis, str(admin.id))
    reply = await assistant.ask(
        body.question,
        history=[m.model_dump() for m in body.history],
        current_data=body.current_data,
        mode=body.mode,
    )
    if any(c.name in ("updateProduct", "updateHero", "upsertCategoryCard") for c in reply.tool_calls):
        await log_event(
            str(admin.id),
            "assistant_changes",
            "assistant",
            None,
            {"tools": [c.name for c in reply.tool_calls], "question": body.question[:200]},
        )
    return reply.model_dump()
