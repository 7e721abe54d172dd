from datetime import datetime
from typing import Any, Literal

from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field

from storefront.core.clock import utcnow


class ChatMessage(BaseModel):
    id: str
    type: Literal["user", "bot"]
    content: str
    timestamp: int  # client epoch millis
    metadata: dict[str, Any] | None = None  # products shown, detected intent


class Chat(Document):
    user_id: Indexed(PydanticObjectId)
    session_id: Indexed(str)
    title: str = "New Chat"
    messages: list[ChatMessage] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "chats"
