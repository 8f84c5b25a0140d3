import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from medassist.api.conversations.conversation_routes import router as conversation_router
from medassist.api.quick_actions.quick_action_routes import router as quick_action_router
from medassist.core.cache import ChatCache
from medassist.core.config import PG_DSN, REDIS_URL
from medassist.core.database import MemoryStore, PostgresStore, create_database_pool, create_redis_client
from medassist.core.errors import ChatServiceError
from medassist.services.chatbot import OpenAIResponseGenerator
from medassist.services.conversations import ConversationService

logger = logging.getLogger(__name__)


async def build_service():
    """ConversationService wired from the environment"""
    if PG_DSN:
        store = PostgresStore(await create_database_pool(PG_DSN))
    else:
        logger.warning("DATABASE_URL not set, keeping conversations in memory")
        store = MemoryStore()

    cache = None
    if REDIS_URL:
        cache = ChatCache(await create_redis_client(REDIS_URL))
    else:
        logger.warning("REDIS_URL not set, request caps are disabled")

    return ConversationService(store, OpenAIResponseGenerator(), cache)


@asynccontextmanager
async def lifespan(app: FastAPI):
    owned = getattr(app.state, "service", None) is None
    if owned:
        app.state.service = await build_service()
    try:
        yield  # app runs here
    finally:
        if owned:
            service = app.state.service
            await service.store.close()
            if service.cache is not None:
                await service.cache.close()


async def chat_service_error_handler(request: Request, exc: ChatServiceError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(service=None, mount_ui=False):
    """Build the API; pass ``service`` to skip building one from the environment."""
    app = FastAPI(title="MedAssist API", version="1.0.0", lifespan=lifespan)
    if service is not None:
        app.state.service = service

    app.add_exception_handler(ChatServiceError, chat_service_error_handler)
    app.include_router(conversation_router)
    app.include_router(quick_action_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    if mount_ui:
        import gradio as gr
        from medassist.ui.chat import create_chat_page

        app = gr.mount_gradio_app(app, create_chat_page(), path="/chat")

        @app.get("/")
        async def root():
            return RedirectResponse(url="/chat", status_code=307)

    return app
