from typing import Any

from beanie import PydanticObjectId
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from storefront.core.audit import log_event
from storefront.core.clock import utcnow
from storefront.core.config import get_settings
from storefront.core.exceptions import BadRequestError, NotFoundError, UnauthorizedError
from storefront.core.logging import get_logger
from storefront.models.user import Role, User
from storefront.services import notifications

log = get_logger(__name__)

PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "phone",
    "accepts_marketing",
    "address",
    "apartment",
    "city",
    "state",
    "country",
    "pin_code",
)


def verify_google_id_token(token: str) -> dict:
    """Verify Google ID token; return decoded claims (sub, email, given_name, picture, etc.)."""
    settings = get_settings()
    try:
        return id_token.verify_oauth2_token(token, google_requests.Request(), settings.google_client_id)
    except ValueError as e:
        raise UnauthorizedError(f"Invalid Google token: {e}") from e


def _names_from_claims(claims: dict) -> tuple[str, str]:
    first = claims.get("given_name") or ""
    last = claims.get("family_name") or ""
    if not first and claims.get("name"):
        first, _, last = claims["name"].partition(" ")
    return first, last


async def upsert_user_from_google(claims: dict) -> User:
    google_sub = claims.get("sub")
    if not google_sub:
        raise BadRequestError("Missing sub in token")
    email = claims.get("email") or ""
    first_name, last_name = _names_from_claims(claims)
    picture = claims.get("picture")
    now = utcnow()

    user = await User.find_one(User.google_sub == google_sub)
    if user:
        user.email = email
        user.picture = picture
        # keep names the customer edited on their profile
        user.first_name = user.first_name or first_name
        user.last_name = user.last_name or last_name
        user.last_login_at = now
        user.updated_at = now
        await user.save()
        log.info("user_login", user_id=str(user.id), email=user.email)
        await log_event(str(user.id), "user_login", "user", str(user.id), {"email": user.email})
    else:
        user = User(
            google_sub=google_sub,
            email=email,
            first_name=first_name,
            last_name=last_name,
            display_name=claims.get("name") or f"{first_name} {last_name}".strip(),
            picture=picture,
            last_login_at=now,
        )
        await user.insert()
        log.info("user_created", user_id=str(user.id), email=user.email)
        await log_event(str(user.id), "user_created", "user", str(user.id), {"email": user.email})
    return user


def session_payload_for_user(user: User) -> dict:
    return {"user_id": str(user.id), "session_version": user.session_version}


async def get_by_id(user_id: PydanticObjectId) -> User | None:
    return await User.get(user_id)


async def _require(user_id: PydanticObjectId) -> User:
    user = await User.get(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def update_profile(user_id: PydanticObjectId, updates: dict[str, Any]) -> User:
    user = await _require(user_id)
    changes: dict[str, Any] = {k: v for k, v in updates.items() if k in PROFILE_FIELDS and v is not None}
    if not changes:
        return user
    if "first_name" in changes or "last_name" in changes:
        first = changes.get("first_name", user.first_name)
        last = changes.get("last_name", user.last_name)
        changes["display_name"] = f"{first} {last}".strip()
    changes["updated_at"] = utcnow()
    await user.set(changes)
    return user


async def request_authorization(user_id: PydanticObjectId) -> User:
    """Customer asks to see locked product images; admins are pinged."""
    user = await _require(user_id)
    if user.is_approved:
        return user
    now = utcnow()
    await user.set({User.authorization_requested_at: now, User.updated_at: now})
    await notifications.dispatch_authorization_notification(user.id)
    return user


async def set_approval(user_id: PydanticObjectId, approved: bool, actor_id: PydanticObjectId | None = None) -> User:
    user = await _require(user_id)
    await user.set({User.is_approved: approved, User.updated_at: utcnow()})
    await log_event(
        str(actor_id) if actor_id else None,
        "user_approved" if approved else "user_approval_revoked",
        "user",
        str(user.id),
    )
    return user


async def set_role(user_id: PydanticObjectId, role: Role, actor_id: PydanticObjectId | None = None) -> User:
    user = await _require(user_id)
    # bump session_version so existing cookies pick up the new role on next load
    await user.set({User.role: role, User.session_version: user.session_version + 1, User.updated_at: utcnow()})
    await log_event(str(actor_id) if actor_id else None, "user_role_changed", "user", str(user.id), {"role": role})
    return user


async def list_pending_authorizations() -> list[User]:
    return (
        await User.find(User.is_approved == False, User.authorization_requested_at != None)  # noqa: E711,E712
        .sort(-User.authorization_requested_at)
        .to_list()
    )


async def list_users(limit: int = 50, offset: int = 0) -> tuple[list[User], int]:
    total = await User.find_all().count()
    items = await User.find_all().sort(-User.created_at).skip(offset).limit(limit).to_list()
    return items, total


def serialize(user: User) -> dict[str, Any]:
    return {
        "id": str(user.id),
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "display_name": user.display_name,
        "picture": user.picture,
        "phone": user.phone,
        "accepts_marketing": user.accepts_marketing,
        "role": user.role,
        "is_approved": user.is_approved,
        "authorization_requested_at": user.authorization_requested_at.isoformat()
        if user.authorization_requested_at
        else None,
        "address": {
            "address": user.address,
            "apartment": user.apartment,
            "city": user.city,
            "state": user.state,
            "country": user.country,
            "pin_code": user.pin_code,
        },
    }
