"""Platform credits: balance per user, signed transaction log, shareable gift cards."""

import secrets
import string
from datetime import timedelta
from typing import Any

from beanie import PydanticObjectId

from storefront.core.clock import utcnow
from storefront.core.config import get_settings
from storefront.core.exceptions import BadRequestError, NotFoundError
from storefront.core.logging import get_logger
from storefront.models.credit_balance import CreditBalance
from storefront.models.credit_transaction import CreditTransaction, TransactionType
from storefront.models.gift_card import GiftCard
from storefront.models.user import User

log = get_logger(__name__)

TYPES = ("earned", "spent", "shared", "received", "refund")
GIFT_CODE_PREFIX = "2XY-"
_CODE_ALPHABET = string.ascii_uppercase + string.digits


async def _balance_doc(user_id: PydanticObjectId) -> CreditBalance | None:
    return await CreditBalance.find_one(CreditBalance.user_id == user_id)


async def get_balance(user_id: PydanticObjectId) -> float:
    """Return current balance for user (0 if no record)."""
    bal = await _balance_doc(user_id)
    return bal.balance if bal else 0


async def get_credits(user_id: PydanticObjectId) -> dict[str, float]:
    bal = await _balance_doc(user_id)
    if not bal:
        return {"balance": 0, "earned": 0, "pending": 0}
    return {"balance": bal.balance, "earned": bal.earned, "pending": bal.pending}


async def list_transactions(user_id: PydanticObjectId, limit: int = 50, offset: int = 0) -> list[CreditTransaction]:
    return (
        await CreditTransaction.find(CreditTransaction.user_id == user_id)
        .sort("-_id")
        .skip(offset)
        .limit(limit)
        .to_list()
    )


async def apply_transaction(
    user_id: PydanticObjectId,
    amount: float,
    type_: TransactionType,
    description: str,
    order_id: PydanticObjectId | None = None,
    idempotency_key: str | None = None,
) -> tuple[CreditTransaction, float]:
    """
    Add a transaction and move the balance.
    Returns (transaction, balance_after).
    Idempotency: a second call with the same key returns the first transaction untouched.
    """
    if type_ not in TYPES:
        raise BadRequestError(f"Invalid transaction type: {type_}")
    if not await User.get(user_id):
        raise NotFoundError("User not found")
    if idempotency_key:
        existing = await CreditTransaction.find_one(
            CreditTransaction.user_id == user_id,
            CreditTransaction.idempotency_key == idempotency_key,
        )
        if existing:
            return existing, await get_balance(user_id)

    balance_doc = await _balance_doc(user_id)
    if not balance_doc:
        balance_doc = CreditBalance(user_id=user_id)
        await balance_doc.insert()
    balance_after = round(balance_doc.balance + amount, 2)
    if balance_after < 0:
        raise BadRequestError("Insufficient credits")

    balance_doc.balance = balance_after
    if type_ == "earned" and amount > 0:
        balance_doc.earned = round(balance_doc.earned + amount, 2)
    await balance_doc.save()

    entry = CreditTransaction(
        user_id=user_id,
        amount=amount,
        balance_after=balance_after,
        type=type_,
        description=description,
        order_id=order_id,
        idempotency_key=idempotency_key,
    )
    await entry.insert()
    log.info("credits_applied", user_id=str(user_id), amount=amount, type=type_, balance_after=balance_after)
    return entry, balance_after


def _generate_gift_code() -> str:
    return GIFT_CODE_PREFIX + "".join(secrets.choice(_CODE_ALPHABET) for _ in range(8))


async def share_credits(user_id: PydanticObjectId, amount: float) -> GiftCard:
    """Move credits out of the user's balance into a one-shot gift card."""
    if amount <= 0:
        raise BadRequestError("Amount must be positive")
    if await get_balance(user_id) < amount:
        raise BadRequestError("Insufficient credits")
    for _ in range(10):
        code = _generate_gift_code()
        if not await GiftCard.find_one(GiftCard.code == code):
            break
    else:
        raise BadRequestError("Could not generate unique gift card code")

    await apply_transaction(user_id, -amount, "shared", f"Shared via gift card {code}")
    card = GiftCard(
        code=code,
        amount=amount,
        created_by=user_id,
        expires_at=utcnow() + timedelta(days=get_settings().gift_card_validity_days),
    )
    await card.insert()
    from storefront.core.audit import log_event
    await log_event(str(user_id), "credits_shared", "gift_card", str(card.id), {"amount": amount, "code": code})
    return card


async def redeem_gift_card(user_id: PydanticObjectId, code: str) -> float:
    code = (code or "").strip().upper()
    card = await GiftCard.find_one(GiftCard.code == code)
    if not card:
        raise NotFoundError("Invalid gift card code")
    if card.is_used:
        raise BadRequestError("Gift card has already been used")
    if utcnow() > card.expires_at:
        raise BadRequestError("Gift card has expired")

    now = utcnow()
    await card.set({GiftCard.is_used: True, GiftCard.used_by: user_id, GiftCard.used_at: now})
    await apply_transaction(
        user_id,
        card.amount,
        "received",
        f"Received from gift card {code}",
        idempotency_key=f"gift_card_{card.id}",
    )
    from storefront.core.audit import log_event
    await log_event(str(user_id), "gift_card_redeemed", "gift_card", str(card.id), {"amount": card.amount})
    return card.amount


def serialize_transaction(t: CreditTransaction) -> dict[str, Any]:
    return {
        "id": str(t.id),
        "amount": t.amount,
        "balance_after": t.balance_after,
        "type": t.type,
        "description": t.description,
        "order_id": str(t.order_id) if t.order_id else None,
        "status": t.status,
        "created_at": t.created_at.isoformat(),
    }
