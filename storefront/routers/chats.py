from beanie import PydanticObjectId
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from storefront.core.exceptions import NotFoundError
from storefront.deps import get_current_user
from storefront.models.chat import ChatMessage
from storefront.models.user import User
from storefront.services import chats as chats_service

router = APIRouter()


class SaveChatRequest(BaseModel):
    session_id: str
    messages: list[ChatMessage]
    title: str | None = None


@router.get("")
async def chats_list(user: User = Depends(get_current_user)):
    chats = await chats_service.list_for_user(user.id)
    return {"chats": [chats_service.serialize(c, with_messages=False) for c in chats]}


@router.get("/stats")
async def chats_stats(user: User = Depends(get_current_user)):
    return await chats_service.stats_for_user(user.id)


@router.get("/session/{session_id}")
async def chats_by_session(session_id: str, user: User = Depends(get_current_user)):
    chat = await chats_service.get_by_session_id(session_id)
    if not chat or chat.user_id != user.id:
        raise NotFoundError("Chat not found")
    return chats_service.serialize(chat)


@router.put("")
async def chats_save(body: SaveChatRequest, user: User = Depends(get_current_user)):
    chat_id = await chats_service.save_chat(user.id, body.session_id, body.messages, body.title)
    return {"id": str(chat_id)}


@router.delete("/{chat_id}")
async def chats_delete(chat_id: PydanticObjectId, user: User = Depends(get_current_user)):
    await chats_service.delete_chat(chat_id, user.id)
    return {"status": "ok"}
