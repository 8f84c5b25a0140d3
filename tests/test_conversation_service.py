"""Unit tests for the conversation service."""
import asyncio

import pytest

from medassist.core.config import ANONYMOUS_USER_ID, DEFAULT_CONVERSATION_TITLE, MAX_MESSAGE_LENGTH
from medassist.core.database import MemoryStore
from medassist.core.errors import NotFound, RateLimited, StorageError, UpstreamError, ValidationError
from medassist.services.conversations import ConversationService

from conftest import FakeGenerator


class TestCreateConversation:
    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamp(self, service):
        conversation = await service.create_conversation("anonymous", "MedAssist Chat")

        assert conversation.id == 1
        assert conversation.user_id == "anonymous"
        assert conversation.title == "MedAssist Chat"
        assert conversation.created_at is not None

    @pytest.mark.asyncio
    async def test_defaults_for_missing_user_and_title(self, service):
        conversation = await service.create_conversation(None, "")

        assert conversation.user_id == ANONYMOUS_USER_ID
        assert conversation.title == DEFAULT_CONVERSATION_TITLE


class TestListMessages:
    @pytest.mark.asyncio
    async def test_new_conversation_has_no_messages(self, service):
        conversation = await service.create_conversation()

        assert await service.list_messages(conversation.id) == []

    @pytest.mark.asyncio
    async def test_unknown_conversation_is_not_found(self, service):
        with pytest.raises(NotFound):
            await service.list_messages(999)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("conversation_id", [0, -1, 2**31, 10**12])
    async def test_out_of_range_id_is_not_found(self, service, conversation_id):
        with pytest.raises(NotFound):
            await service.list_messages(conversation_id)
        with pytest.raises(NotFound):
            await service.post_message(conversation_id, "Hello")

    @pytest.mark.asyncio
    async def test_listing_twice_returns_identical_sequences(self, service):
        conversation = await service.create_conversation()
        await service.post_message(conversation.id, "Hello")

        first = await service.list_messages(conversation.id)
        second = await service.list_messages(conversation.id)

        assert first == second

    @pytest.mark.asyncio
    async def test_messages_are_ordered_by_seq_and_timestamp(self, service):
        conversation = await service.create_conversation()
        for text in ("one", "two", "three"):
            await service.post_message(conversation.id, text)

        messages = await service.list_messages(conversation.id)

        assert [m.seq for m in messages] == [1, 2, 3, 4, 5, 6]
        timestamps = [m.timestamp for m in messages]
        assert timestamps == sorted(timestamps)


class TestPostMessage:
    @pytest.mark.asyncio
    async def test_headache_scenario(self, service):
        conversation = await service.create_conversation()

        reply = await service.post_message(conversation.id, "I have a headache")
        messages = await service.list_messages(conversation.id)

        assert [m.role for m in messages] == ["user", "assistant"]
        assert messages[0].content == "I have a headache"
        assert reply == messages[1]
        assert reply.content == "Reply to: I have a headache"
        assert reply.conversation_id == conversation.id

    @pytest.mark.asyncio
    async def test_generator_sees_full_history(self, service, generator):
        conversation = await service.create_conversation()
        await service.post_message(conversation.id, "first")
        await service.post_message(conversation.id, "second")

        history = generator.histories[-1]
        assert [m.content for m in history] == ["first", "Reply to: first", "second"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    async def test_empty_content_is_rejected_and_nothing_stored(self, service, content):
        conversation = await service.create_conversation()

        with pytest.raises(ValidationError):
            await service.post_message(conversation.id, content)

        assert await service.list_messages(conversation.id) == []

    @pytest.mark.asyncio
    async def test_overlong_content_is_rejected(self, service):
        conversation = await service.create_conversation()

        with pytest.raises(ValidationError):
            await service.post_message(conversation.id, "x" * (MAX_MESSAGE_LENGTH + 1))

        assert await service.list_messages(conversation.id) == []

    @pytest.mark.asyncio
    async def test_unknown_conversation_is_not_found(self, service, store):
        with pytest.raises(NotFound):
            await service.post_message(42, "Hello")

        assert store.messages == {}

    @pytest.mark.asyncio
    async def test_user_message_is_pending_while_reply_is_generated(self, store):
        seen = []

        class InspectingGenerator(FakeGenerator):
            async def generate_reply(self, history):
                seen.append([m.is_typing for m in await store.list_messages(history[0].conversation_id)])
                return await super().generate_reply(history)

        service = ConversationService(store, InspectingGenerator())
        conversation = await service.create_conversation()
        await service.post_message(conversation.id, "Is this pending?")

        assert seen == [[True]]
        messages = await service.list_messages(conversation.id)
        assert [m.is_typing for m in messages] == [False, False]

    @pytest.mark.asyncio
    async def test_upstream_failure_keeps_user_message_without_reply(self, store, failing_generator):
        service = ConversationService(store, failing_generator)
        conversation = await service.create_conversation()

        with pytest.raises(UpstreamError):
            await service.post_message(conversation.id, "Hello?")

        messages = await service.list_messages(conversation.id)
        assert [(m.role, m.content, m.is_typing) for m in messages] == [("user", "Hello?", False)]

    @pytest.mark.asyncio
    async def test_failed_reply_storage_clears_pending_marker(self, generator):
        class ReplyFailingStore(MemoryStore):
            async def add_reply(self, conversation_id, user_message_id, content):
                raise StorageError("Storage unavailable while trying to store a reply")

        store = ReplyFailingStore()
        service = ConversationService(store, generator)
        conversation = await service.create_conversation()

        with pytest.raises(StorageError):
            await service.post_message(conversation.id, "Hello?")

        messages = await store.list_messages(conversation.id)
        assert [(m.role, m.is_typing) for m in messages] == [("user", False)]

    @pytest.mark.asyncio
    async def test_unexpected_generator_error_becomes_upstream_error(self, store):
        service = ConversationService(store, FakeGenerator(error=RuntimeError("boom")))
        conversation = await service.create_conversation()

        with pytest.raises(UpstreamError):
            await service.post_message(conversation.id, "Hello?")

    @pytest.mark.asyncio
    async def test_slow_generator_times_out(self, store):
        service = ConversationService(store, FakeGenerator(delay=0.5), upstream_timeout=0.05)
        conversation = await service.create_conversation()

        with pytest.raises(UpstreamError, match="too long"):
            await service.post_message(conversation.id, "Hello?")

        messages = await service.list_messages(conversation.id)
        assert len(messages) == 1
        assert messages[0].is_typing is False

    @pytest.mark.asyncio
    async def test_concurrent_posts_keep_each_pair_ordered(self, store):
        service = ConversationService(store, FakeGenerator(delay=0.01))
        conversation = await service.create_conversation()

        await asyncio.gather(
            service.post_message(conversation.id, "A"),
            service.post_message(conversation.id, "B"),
        )
        messages = await service.list_messages(conversation.id)

        assert len(messages) == 4
        assert sorted(m.role for m in messages) == ["assistant", "assistant", "user", "user"]
        contents = [m.content for m in messages]
        for text in ("A", "B"):
            assert contents.index(text) < contents.index(f"Reply to: {text}")
        assert sorted(m.seq for m in messages) == [1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_send_limit_per_conversation(self, store, generator, cache):
        service = ConversationService(store, generator, cache=cache, send_limit=2)
        conversation = await service.create_conversation()
        other = await service.create_conversation()

        await service.post_message(conversation.id, "one")
        await service.post_message(conversation.id, "two")
        with pytest.raises(RateLimited):
            await service.post_message(conversation.id, "three")

        await service.post_message(other.id, "unaffected")
        assert len(await service.list_messages(conversation.id)) == 4


class TestQuickAction:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("tag", ["symptoms", "medications", "wellness", "emergency"])
    async def test_known_tags_return_content(self, service, tag):
        content = await service.quick_action(tag)

        assert content.strip()

    @pytest.mark.asyncio
    async def test_emergency_has_no_side_effects(self, service, store):
        content = await service.quick_action("emergency")

        assert "emergency" in content.lower()
        assert store.conversations == {}
        assert store.messages == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tag", ["", "diet", "EMERGENCY"])
    async def test_unknown_tag_is_rejected(self, service, tag):
        with pytest.raises(ValidationError):
            await service.quick_action(tag)

    @pytest.mark.asyncio
    async def test_quick_action_limit_per_client(self, store, generator, cache):
        service = ConversationService(store, generator, cache=cache, quick_action_limit=1)

        await service.quick_action("wellness", client_key="10.0.0.1")
        with pytest.raises(RateLimited):
            await service.quick_action("wellness", client_key="10.0.0.1")
        await service.quick_action("wellness", client_key="10.0.0.2")
