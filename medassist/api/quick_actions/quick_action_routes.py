"""Quick question routes"""
from typing import List

from fastapi import APIRouter, Depends

from medassist.api.dependencies import get_client_key, get_conversation_service
from medassist.core.models import QuickActionIn, QuickActionInfo, QuickActionOut
from medassist.services.quick_actions import list_quick_actions

router = APIRouter(prefix="/quick-actions", tags=["Quick Actions"])


@router.get("", response_model=List[QuickActionInfo])
async def get_quick_actions():
    """Available quick actions for the chat page buttons"""
    return list_quick_actions()


@router.post("", response_model=QuickActionOut)
async def run_quick_action(payload: QuickActionIn, service=Depends(get_conversation_service),
                           client_key=Depends(get_client_key)):
    """Canned informational reply; nothing is stored"""
    content = await service.quick_action(payload.action, client_key)
    return QuickActionOut(content=content)
