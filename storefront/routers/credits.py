from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from storefront.core.pagination import paginate
from storefront.deps import get_current_user
from storefront.models.user import User
from storefront.services import credits as credits_service

router = APIRouter()


class ShareRequest(BaseModel):
    amount: float = Field(..., gt=0)


class RedeemRequest(BaseModel):
    code: str = Field(..., min_length=1)


@router.get("/balance")
async def credits_balance(user: User = Depends(get_current_user)):
    """Return balance, lifetime earned and pending credits."""
    return await credits_service.get_credits(user.id)


@router.get("/transactions")
async def credits_transactions(
    user: User = Depends(get_current_user),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """Return transactions for current user (newest first)."""
    limit, offset = paginate(limit, offset)
    entries = await credits_service.list_transactions(user.id, limit=limit, offset=offset)
    return {
        "transactions": [credits_service.serialize_transaction(t) for t in entries],
        "limit": limit,
        "offset": offset,
    }


@router.post("/share")
async def credits_share(body: ShareRequest, user: User = Depends(get_current_user)):
    """Turn part of the balance into a gift card code for someone else."""
    card = await credits_service.share_credits(user.id, body.amount)
    return {"code": card.code, "amount": card.amount, "expires_at": card.expires_at.isoformat()}


@router.post("/redeem")
async def credits_redeem(body: RedeemRequest, user: User = Depends(get_current_user)):
    amount = await credits_service.redeem_gift_card(user.id, body.code)
    return {"amount": amount, "balance": await credits_service.get_balance(user.id)}
