import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional

import asyncpg
from redis.asyncio import Redis

from medassist.core.config import PG_DSN, REDIS_URL
from medassist.core.errors import StorageError
from medassist.core.models import Conversation, Message

logger = logging.getLogger(__name__)

# =============================================================================
# CONNECTION SETUP
# =============================================================================

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id SERIAL PRIMARY KEY,
    username TEXT NOT NULL UNIQUE,
    password TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS conversations (
    id SERIAL PRIMARY KEY,
    user_id TEXT,
    title TEXT DEFAULT 'New Conversation',
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    last_seq INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS messages (
    id SERIAL PRIMARY KEY,
    conversation_id INTEGER NOT NULL REFERENCES conversations(id),
    seq INTEGER NOT NULL,
    role TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
    content TEXT NOT NULL,
    timestamp TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
    is_typing BOOLEAN NOT NULL DEFAULT false,
    UNIQUE (conversation_id, seq)
);
"""


async def create_database_pool(dsn=PG_DSN):
    """Create PostgreSQL connection pool and make sure the tables exist"""
    pool = await asyncpg.create_pool(
        dsn=dsn,
        min_size=1,
        max_size=10,
    )
    async with pool.acquire() as conn:
        await conn.execute(SCHEMA)
    return pool


async def create_redis_client(url=REDIS_URL):
    """Create Redis client"""
    redis = Redis.from_url(
        url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
    )
    await redis.ping()  # fail fast if creds/TLS are wrong
    return redis


# =============================================================================
# DATABASE OPERATIONS
# =============================================================================

class MessageStore(ABC):
    """Persistence for conversations and their append-only message log."""

    @abstractmethod
    async def create_conversation(self, user_id: Optional[str], title: str) -> Conversation:
        ...

    @abstractmethod
    async def get_conversation(self, conversation_id: int) -> Optional[Conversation]:
        ...

    @abstractmethod
    async def list_messages(self, conversation_id: int) -> List[Message]:
        """Messages of a conversation in ``seq`` order."""

    @abstractmethod
    async def add_message(self, conversation_id: int, role: str, content: str,
                          is_typing: bool = False) -> Message:
        """Append a message, assigning the next per-conversation ``seq``."""

    @abstractmethod
    async def add_reply(self, conversation_id: int, user_message_id: int, content: str) -> Message:
        """Append an assistant message and clear the pending marker on the user message."""

    @abstractmethod
    async def clear_typing(self, message_id: int) -> None:
        ...

    async def close(self) -> None:
        pass


def _conversation(row) -> Conversation:
    return Conversation(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        created_at=row["created_at"],
    )


def _message(row) -> Message:
    return Message(
        id=row["id"],
        conversation_id=row["conversation_id"],
        seq=row["seq"],
        role=row["role"],
        content=row["content"],
        timestamp=row["timestamp"],
        is_typing=row["is_typing"],
    )


MESSAGE_COLUMNS = "id, conversation_id, seq, role, content, timestamp, is_typing"


class PostgresStore(MessageStore):
    def __init__(self, pool):
        self.pool = pool

    @asynccontextmanager
    async def _connection(self, action):
        try:
            async with self.pool.acquire() as conn:
                yield conn
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.exception("Database error during %s", action)
            raise StorageError(f"Storage unavailable while trying to {action}") from e

    async def create_conversation(self, user_id, title):
        async with self._connection("create a conversation") as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO conversations (user_id, title)
                VALUES ($1, $2)
                RETURNING id, user_id, title, created_at
                """,
                user_id, title,
            )
        return _conversation(row)

    async def get_conversation(self, conversation_id):
        async with self._connection("load a conversation") as conn:
            row = await conn.fetchrow(
                "SELECT id, user_id, title, created_at FROM conversations WHERE id=$1",
                conversation_id,
            )
        return _conversation(row) if row else None

    async def list_messages(self, conversation_id):
        async with self._connection("list messages") as conn:
            rows = await conn.fetch(
                f"""
                SELECT {MESSAGE_COLUMNS}
                FROM messages
                WHERE conversation_id=$1
                ORDER BY seq ASC
                """,
                conversation_id,
            )
        return [_message(r) for r in rows]

    async def _insert(self, conn, conversation_id, role, content, is_typing):
        # the UPDATE takes the conversation row lock, so seq and timestamp
        # are handed out in the same order
        seq = await conn.fetchval(
            """
            UPDATE conversations SET last_seq = last_seq + 1
            WHERE id=$1
            RETURNING last_seq
            """,
            conversation_id,
        )
        return await conn.fetchrow(
            f"""
            INSERT INTO messages (conversation_id, seq, role, content, is_typing, timestamp)
            VALUES ($1, $2, $3, $4, $5, clock_timestamp())
            RETURNING {MESSAGE_COLUMNS}
            """,
            conversation_id, seq, role, content, is_typing,
        )

    async def add_message(self, conversation_id, role, content, is_typing=False):
        async with self._connection("store a message") as conn:
            async with conn.transaction():
                row = await self._insert(conn, conversation_id, role, content, is_typing)
        return _message(row)

    async def add_reply(self, conversation_id, user_message_id, content):
        async with self._connection("store a reply") as conn:
            async with conn.transaction():
                row = await self._insert(conn, conversation_id, "assistant", content, False)
                await conn.execute(
                    "UPDATE messages SET is_typing=false WHERE id=$1",
                    user_message_id,
                )
        return _message(row)

    async def clear_typing(self, message_id):
        async with self._connection("clear a pending marker") as conn:
            await conn.execute(
                "UPDATE messages SET is_typing=false WHERE id=$1",
                message_id,
            )

    async def close(self):
        await self.pool.close()


class MemoryStore(MessageStore):
    """In-process store for development runs without DATABASE_URL, and tests."""

    def __init__(self):
        self.conversations: Dict[int, Conversation] = {}
        self.messages: Dict[int, List[Message]] = {}
        self._last_seq: Dict[int, int] = {}
        self._next_conversation_id = 1
        self._next_message_id = 1
        self._lock = asyncio.Lock()

    async def create_conversation(self, user_id, title):
        async with self._lock:
            conversation = Conversation(
                id=self._next_conversation_id,
                user_id=user_id,
                title=title,
                created_at=datetime.now(timezone.utc),
            )
            self._next_conversation_id += 1
            self.conversations[conversation.id] = conversation
            self.messages[conversation.id] = []
            self._last_seq[conversation.id] = 0
        return conversation

    async def get_conversation(self, conversation_id):
        return self.conversations.get(conversation_id)

    async def list_messages(self, conversation_id):
        return [m.model_copy() for m in self.messages.get(conversation_id, [])]

    def _insert(self, conversation_id, role, content, is_typing):
        if conversation_id not in self.conversations:
            raise StorageError(f"Conversation {conversation_id} does not exist")
        self._last_seq[conversation_id] += 1
        message = Message(
            id=self._next_message_id,
            conversation_id=conversation_id,
            seq=self._last_seq[conversation_id],
            role=role,
            content=content,
            timestamp=datetime.now(timezone.utc),
            is_typing=is_typing,
        )
        self._next_message_id += 1
        self.messages[conversation_id].append(message)
        return message

    def _find(self, message_id):
        for messages in self.messages.values():
            for message in messages:
                if message.id == message_id:
                    return message
        return None

    async def add_message(self, conversation_id, role, content, is_typing=False):
        async with self._lock:
            return self._insert(conversation_id, role, content, is_typing).model_copy()

    async def add_reply(self, conversation_id, user_message_id, content):
        async with self._lock:
            reply = self._insert(conversation_id, "assistant", content, False)
            user_message = self._find(user_message_id)
            if user_message is not None:
                user_message.is_typing = False
            return reply.model_copy()

    async def clear_typing(self, message_id):
        async with self._lock:
            message = self._find(message_id)
            if message is not None:
                message.is_typing = False
