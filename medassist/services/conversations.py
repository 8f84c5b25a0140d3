"""Conversation operations behind the REST routes"""
import asyncio
import logging

from medassist.core.config import (
    ANONYMOUS_USER_ID,
    DEFAULT_CONVERSATION_TITLE,
    MAX_MESSAGE_LENGTH,
    QUICK_ACTION_LIMIT_PER_MINUTE,
    SEND_LIMIT_PER_MINUTE,
    UPSTREAM_TIMEOUT,
)
from medassist.core.errors import NotFound, RateLimited, StorageError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

# conversations.id is a SERIAL (int4) column
MAX_CONVERSATION_ID = 2**31 - 1


class ConversationService:
    def __init__(self, store, generator, cache=None, upstream_timeout=UPSTREAM_TIMEOUT,
                 send_limit=SEND_LIMIT_PER_MINUTE, quick_action_limit=QUICK_ACTION_LIMIT_PER_MINUTE):
        self.store = store
        self.generator = generator
        self.cache = cache
        self.upstream_timeout = upstream_timeout
        self.send_limit = send_limit
        self.quick_action_limit = quick_action_limit

    async def create_conversation(self, user_id=ANONYMOUS_USER_ID, title=DEFAULT_CONVERSATION_TITLE):
        conversation = await self.store.create_conversation(user_id or ANONYMOUS_USER_ID,
                                                            title or DEFAULT_CONVERSATION_TITLE)
        logger.info("Created conversation %s for %s", conversation.id, conversation.user_id)
        return conversation

    async def _require_conversation(self, conversation_id):
        if not 1 <= conversation_id <= MAX_CONVERSATION_ID:
            raise NotFound("Conversation not found")
        conversation = await self.store.get_conversation(conversation_id)
        if conversation is None:
            raise NotFound("Conversation not found")
        return conversation

    async def list_messages(self, conversation_id):
        await self._require_conversation(conversation_id)
        return await self.store.list_messages(conversation_id)

    async def _check_limit(self, key, limit):
        if self.cache is not None and not await self.cache.hit(key, limit):
            raise RateLimited("Too many requests. Please wait a moment and try again.")

    async def post_message(self, conversation_id, content):
        """Store the user's message, generate and store the reply, return the reply."""
        if content is None or not content.strip():
            raise ValidationError("Message content must not be empty")
        if len(content) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f"Message content must be at most {MAX_MESSAGE_LENGTH} characters")

        await self._require_conversation(conversation_id)
        await self._check_limit(f"conv:{conversation_id}", self.send_limit)

        user_message = await self.store.add_message(conversation_id, "user", content, is_typing=True)
        history = await self.store.list_messages(conversation_id)

        try:
            reply_text = await asyncio.wait_for(
                self.generator.generate_reply(history),
                timeout=self.upstream_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Reply for conversation %s timed out after %ss", conversation_id, self.upstream_timeout)
            await self.store.clear_typing(user_message.id)
            raise UpstreamError("The assistant took too long to respond. Please try again.") from e
        except UpstreamError:
            await self.store.clear_typing(user_message.id)
            raise
        except Exception as e:
            logger.exception("Response generator failed for conversation %s", conversation_id)
            await self.store.clear_typing(user_message.id)
            raise UpstreamError("The assistant is unavailable right now. Please try again.") from e

        try:
            reply = await self.store.add_reply(conversation_id, user_message.id, reply_text)
        except StorageError:
            await self._clear_typing_quietly(user_message.id)
            raise
        logger.info("Conversation %s: stored messages %s and %s", conversation_id, user_message.seq, reply.seq)
        return reply

    async def _clear_typing_quietly(self, message_id):
        try:
            await self.store.clear_typing(message_id)
        except StorageError:
            logger.warning("Pending marker left set on message %s", message_id)

    async def quick_action(self, tag, client_key=None):
        """Canned reply for a quick action; nothing is stored."""
        if not tag or not tag.strip():
            raise ValidationError("Quick action must not be empty")
        if client_key:
            await self._check_limit(f"client:{client_key}", self.quick_action_limit)
        return await self.generator.generate_quick_action_text(tag.strip())
