"""Shared FastAPI dependencies"""
from fastapi import Request


def get_conversation_service(request: Request):
    """The ConversationService built at startup"""
    return request.app.state.service


def get_client_key(request: Request):
    """Caller identity for per-client request caps"""
    return request.headers.get("x-client-id") or (request.client.host if request.client else None)
