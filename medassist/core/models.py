from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from medassist.core.config import ANONYMOUS_USER_ID, DEFAULT_CONVERSATION_TITLE

Role = Literal["user", "assistant"]


class WireModel(BaseModel):
    # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(populate_by_name=True)


# User Models
class UserCreate(WireModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


# Conversation Models
class ConversationCreate(WireModel):
    user_id: Optional[str] = Field(default=ANONYMOUS_USER_ID, alias="userId")
    title: Optional[str] = Field(default=DEFAULT_CONVERSATION_TITLE, max_length=200)

    @field_validator("user_id")
    @classmethod
    def _default_user(cls, value):
        return value or ANONYMOUS_USER_ID

    @field_validator("title")
    @classmethod
    def _default_title(cls, value):
        value = (value or "").strip()
        return value or DEFAULT_CONVERSATION_TITLE


class Conversation(WireModel):
    id: int
    user_id: Optional[str] = Field(default=None, alias="userId")
    title: str
    created_at: datetime = Field(alias="createdAt")


# Message Models
class MessageIn(WireModel):
    # emptiness and length are checked by the conversation service so that
    # they surface as ValidationError rather than a body-shape error
    content: str


class Message(WireModel):
    id: int
    conversation_id: int = Field(alias="conversationId")
    seq: int
    role: Role
    content: str
    timestamp: datetime
    is_typing: bool = Field(default=False, alias="isTyping")


# Quick Action Models
class QuickActionIn(WireModel):
    action: str


class QuickActionOut(WireModel):
    content: str


class QuickActionInfo(WireModel):
    id: str
    label: str
    icon: str
