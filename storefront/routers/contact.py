from fastapi import APIRouter
from pydantic import BaseModel, Field

from storefront.services import notifications

router = APIRouter()


class ContactRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    message: str = Field(..., min_length=1, max_length=5000)


@router.post("")
async def contact_send(body: ContactRequest):
    """Forward a storefront contact-form message to the shop's webhook."""
    await notifications.dispatch_contact_notification(body.email.strip(), body.message)
    return {"success": True}
