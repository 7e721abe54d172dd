import pytest
from beanie import PydanticObjectId

from storefront.core.exceptions import ForbiddenError, NotFoundError
from storefront.models.chat import Chat, ChatMessage
from storefront.services import chats as chats_service


def _msgs(*pairs):
    return [ChatMessage(id=f"m{i}", type=t, content=c, timestamp=1700000000000 + i) for i, (t, c) in enumerate(pairs)]


def test_title_uses_first_user_message():
    long = "x" * 60
    assert chats_service.title_from_messages(_msgs(("bot", "Hi"), ("user", long))) == "x" * 50 + "..."
    assert chats_service.title_from_messages(_msgs(("user", "Size 9 runners?"))) == "Size 9 runners?"
    assert chats_service.title_from_messages(_msgs(("bot", "Hi"))) == "New Chat"


async def test_save_upserts_by_session(user):
    first = await chats_service.save_chat(user.id, "s1", _msgs(("user", "Hello")))
    second = await chats_service.save_chat(user.id, "s1", _msgs(("user", "Hello"), ("bot", "Hi there")))
    assert first == second
    chat = await Chat.get(first)
    assert chat.title == "Hello"
    assert len(chat.messages) == 2
    assert await chats_service.stats_for_user(user.id) == {"total_chats": 1, "total_messages": 2}


async def test_session_of_another_user_is_forbidden(user):
    await chats_service.save_chat(user.id, "s1", _msgs(("user", "Hello")))
    with pytest.raises(ForbiddenError):
        await chats_service.save_chat(PydanticObjectId(), "s1", _msgs(("user", "Mine now")))


async def test_delete_is_owner_only(user):
    chat_id = await chats_service.save_chat(user.id, "s1", _msgs(("user", "Hello")))
    with pytest.raises(NotFoundError):
        await chats_service.delete_chat(chat_id, PydanticObjectId())
    await chats_service.delete_chat(chat_id, user.id)
    assert await Chat.get(chat_id) is None
