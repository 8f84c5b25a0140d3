"""Conversation and message routes"""
from typing import List

from fastapi import APIRouter, Depends

from medassist.api.dependencies import get_conversation_service
from medassist.core.models import Conversation, ConversationCreate, Message, MessageIn

router = APIRouter(prefix="/conversations", tags=["Conversations"])


@router.post("", response_model=Conversation, status_code=201)
async def create_conversation(payload: ConversationCreate, service=Depends(get_conversation_service)):
    """Create a new conversation"""
    return await service.create_conversation(payload.user_id, payload.title)


@router.get("/{conversation_id}/messages", response_model=List[Message])
async def get_messages(conversation_id: int, service=Depends(get_conversation_service)):
    """Get messages for a conversation, oldest first"""
    return await service.list_messages(conversation_id)


@router.post("/{conversation_id}/messages", response_model=Message)
async def add_message(conversation_id: int, payload: MessageIn, service=Depends(get_conversation_service)):
    """Add a user message and return the assistant's reply"""
    return await service.post_message(conversation_id, payload.content)
