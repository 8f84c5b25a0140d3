"""Pytest configuration and shared fixtures."""
import asyncio

import fakeredis
import httpx
import pytest

from medassist.app import create_app
from medassist.core.cache import ChatCache
from medassist.core.database import MemoryStore
from medassist.core.errors import UpstreamError
from medassist.services.chatbot import ResponseGenerator
from medassist.services.conversations import ConversationService


class FakeGenerator(ResponseGenerator):
    """Deterministic stand-in for the LLM-backed generator."""

    def __init__(self, delay=0.0, error=None):
        self.delay = delay
        self.error = error
        self.histories = []

    async def generate_reply(self, history):
        self.histories.append(list(history))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        last_user = [m for m in history if m.role == "user"][-1]
        return f"Reply to: {last_user.content}"


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def service(store, generator):
    return ConversationService(store, generator, upstream_timeout=1.0)


@pytest.fixture
def redis_client():
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def cache(redis_client):
    return ChatCache(redis_client)


@pytest.fixture
def app(service):
    return create_app(service=service)


@pytest.fixture
def transport(app):
    return httpx.ASGITransport(app=app)


@pytest.fixture
def client(transport):
    """AsyncClient talking to the in-process app; enter it with ``async with``."""
    return httpx.AsyncClient(transport=transport, base_url="http://test")


@pytest.fixture
def failing_generator():
    return FakeGenerator(error=UpstreamError("The assistant is unavailable right now. Please try again."))
