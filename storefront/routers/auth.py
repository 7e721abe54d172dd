from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from storefront.core.security import SESSION_MAX_AGE, create_session_cookie
from storefront.deps import SESSION_COOKIE_NAME, get_current_user
from storefront.models.user import User
from storefront.services import users as user_service

router = APIRouter()


class GoogleAuthRequest(BaseModel):
    id_token: str


class ProfileUpdateRequest(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    accepts_marketing: bool | None = None
    address: str | None = None
    apartment: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    pin_code: str | None = None


@router.post("/google")
async def auth_google(body: GoogleAuthRequest, response: Response):
    """Exchange Google ID token for session; set httpOnly cookie."""
    claims = user_service.verify_google_id_token(body.id_token)
    user = await user_service.upsert_user_from_google(claims)
    payload = user_service.session_payload_for_user(user)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=create_session_cookie(payload),
        max_age=SESSION_MAX_AGE,
        httponly=True,
        secure=False,  # set True in prod with HTTPS
        samesite="lax",
        path="/",
    )
    return {"user": user_service.serialize(user)}


@router.get("/me")
async def auth_me(user: User = Depends(get_current_user)):
    """Return current user. Requires session cookie."""
    return user_service.serialize(user)


@router.patch("/profile")
async def auth_update_profile(body: ProfileUpdateRequest, user: User = Depends(get_current_user)):
    updated = await user_service.update_profile(user.id, body.model_dump(exclude_none=True))
    return user_service.serialize(updated)


@router.post("/authorization-request")
async def auth_request_authorization(user: User = Depends(get_current_user)):
    """Ask an admin for access to locked product images."""
    updated = await user_service.request_authorization(user.id)
    return {
        "is_approved": updated.is_approved,
        "authorization_requested_at": updated.authorization_requested_at.isoformat()
        if updated.authorization_requested_at
        else None,
    }


@router.post("/logout")
async def auth_logout(response: Response):
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return {"status": "ok"}
