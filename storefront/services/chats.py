"""Saved customer chatbot conversations."""

from typing import Any

from beanie import PydanticObjectId

from storefront.core.clock import utcnow
from storefront.core.exceptions import ForbiddenError, NotFoundError
from storefront.models.chat import Chat, ChatMessage
from storefront.models.order import Order
from storefront.models.user import User

TITLE_MAX_CHARS = 50
DEFAULT_TITLE = "New Chat"


def title_from_messages(messages: list[ChatMessage]) -> str:
    """First user message, cut at 50 characters with an ellipsis."""
    for m in messages:
        if m.type == "user":
            title = m.content[:TITLE_MAX_CHARS]
            if len(m.content) > TITLE_MAX_CHARS:
                title += "..."
            return title
    return DEFAULT_TITLE


async def list_for_user(user_id: PydanticObjectId) -> list[Chat]:
    return await Chat.find(Chat.user_id == user_id).sort("-_id").to_list()


async def get_by_session_id(session_id: str) -> Chat | None:
    return await Chat.find_one(Chat.session_id == session_id)


async def save_chat(
    user_id: PydanticObjectId,
    session_id: str,
    messages: list[ChatMessage],
    title: str | None = None,
) -> PydanticObjectId:
    """Upsert by session; the full message list replaces what was stored."""
    if not title and messages:
        title = title_from_messages(messages)
    existing = await get_by_session_id(session_id)
    if existing:
        if existing.user_id != user_id:
            raise ForbiddenError("Chat belongs to another user")
        existing.messages = messages
        existing.title = title or existing.title
        existing.updated_at = utcnow()
        await existing.save()
        return existing.id
    chat = Chat(user_id=user_id, session_id=session_id, messages=messages, title=title or DEFAULT_TITLE)
    await chat.insert()
    return chat.id


async def delete_chat(chat_id: PydanticObjectId, user_id: PydanticObjectId) -> None:
    chat = await Chat.get(chat_id)
    if not chat or chat.user_id != user_id:
        raise NotFoundError("Chat not found")
    await chat.delete()


async def stats_for_user(user_id: PydanticObjectId) -> dict[str, int]:
    chats = await Chat.find(Chat.user_id == user_id).to_list()
    return {"total_chats": len(chats), "total_messages": sum(len(c.messages) for c in chats)}


async def users_with_chat_stats() -> list[dict[str, Any]]:
    """Every user with purchase, chat and message counts (admin view)."""
    purchases: dict[PydanticObjectId, int] = {}
    async for order in Order.find_all():
        purchases[order.user_id] = purchases.get(order.user_id, 0) + 1
    chat_counts: dict[PydanticObjectId, list[int]] = {}
    async for chat in Chat.find_all():
        totals = chat_counts.setdefault(chat.user_id, [0, 0])
        totals[0] += 1
        totals[1] += len(chat.messages)

    out = []
    async for user in User.find_all():
        chats, messages = chat_counts.get(user.id, (0, 0))
        out.append(
            {
                "id": str(user.id),
                "email": user.email,
                "display_name": user.display_name,
                "role": user.role,
                "is_approved": user.is_approved,
                "purchase_count": purchases.get(user.id, 0),
                "total_chats": chats,
                "total_messages": messages,
            }
        )
    return out


def serialize(chat: Chat, with_messages: bool = True) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": str(chat.id),
        "session_id": chat.session_id,
        "title": chat.title,
        "message_count": len(chat.messages),
        "created_at": chat.created_at.isoformat(),
        "updated_at": chat.updated_at.isoformat(),
    }
    if with_messages:
        out["messages"] = [m.model_dump() for m in chat.messages]
    return out
