"""Client-side chat state: one ChatSession per open chat page.

The session owns everything the page needs to render (conversation id, the
draft, the typing flag, the message log, the last error) and drives the API
through :class:`~medassist.ui.api_client.ChatApiClient`.

Status moves ``IDLE -> INITIALIZING -> READY``. Sends and quick actions are
only allowed one of each at a time; while either is pending the session is
"typing". Nothing is retried automatically: a failed init stays in
INITIALIZING until :meth:`ChatSession.initialize` is called again, and a
failed send keeps the draft for the user to resend.

Every server result is merged through :func:`apply_event`, so normal replies
and quick action answers share one ordering rule: server messages sort by
their per-conversation ``seq``, local quick action answers sit right after
the highest ``seq`` known when they arrived.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from medassist.core.config import ANONYMOUS_USER_ID
from medassist.core.models import Message
from medassist.ui.api_client import ApiError, ChatApiClient

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    READY = "ready"


@dataclass
class LogEntry:
    role: str
    content: str
    timestamp: Optional[datetime]
    seq: int
    message_id: Optional[int] = None
    local_index: Optional[int] = None

    @property
    def is_local(self):
        return self.message_id is None

    @property
    def sort_key(self):
        if self.is_local:
            return (self.seq, 1, self.local_index)
        return (self.seq, 0, 0)


@dataclass
class MessageLog:
    server: dict = field(default_factory=dict)  # message id -> LogEntry
    local: list = field(default_factory=list)

    @property
    def last_seq(self):
        return max((e.seq for e in self.server.values()), default=0)

    def entries(self) -> List[LogEntry]:
        return sorted(list(self.server.values()) + self.local, key=lambda e: e.sort_key)

    def clear(self):
        self.server.clear()
        self.local.clear()


# Events
@dataclass
class HistoryLoaded:
    messages: List[Message]


@dataclass
class ReplyReceived:
    message: Message


@dataclass
class QuickActionAnswered:
    content: str
    timestamp: Optional[datetime] = None


def _server_entry(message):
    return LogEntry(
        role=message.role,
        content=message.content,
        timestamp=message.timestamp,
        seq=message.seq,
        message_id=message.id,
    )


def apply_event(log, event):
    """Merge a server result into the local message log."""
    if isinstance(event, HistoryLoaded):
        # the server's list is authoritative for server messages
        log.server = {m.id: _server_entry(m) for m in event.messages}
    elif isinstance(event, ReplyReceived):
        log.server[event.message.id] = _server_entry(event.message)
    elif isinstance(event, QuickActionAnswered):
        log.local.append(LogEntry(
            role="assistant",
            content=event.content,
            timestamp=event.timestamp or datetime.now(timezone.utc),
            seq=log.last_seq,
            local_index=len(log.local),
        ))
    else:
        raise TypeError(f"Unknown event {type(event).__name__}")
    return log


class ChatSession:
    def __init__(self, api=None, user_id=ANONYMOUS_USER_ID, title="MedAssist Chat"):
        self.api = api or ChatApiClient()
        self.user_id = user_id
        self.title = title
        self.conversation_id: Optional[int] = None
        self.status = SessionStatus.IDLE
        self.draft = ""
        self.sending = False
        self.quick_action_pending = False
        self.error: Optional[str] = None
        self.log = MessageLog()
        self._init_in_flight = False

    @property
    def typing(self):
        return self.sending or self.quick_action_pending

    @property
    def messages(self):
        return self.log.entries()

    def dismiss_error(self):
        self.error = None

    async def initialize(self):
        """Create the conversation once; True when the session is ready."""
        if self.status is SessionStatus.READY:
            return True
        if self._init_in_flight:
            return False
        self.status = SessionStatus.INITIALIZING
        self._init_in_flight = True
        try:
            conversation = await self.api.create_conversation(self.user_id, self.title)
        except ApiError as e:
            logger.warning("Could not start conversation: %s", e)
            self.error = "Failed to start conversation. Please refresh the page."
            return False
        finally:
            self._init_in_flight = False

        self.conversation_id = conversation.id
        self.status = SessionStatus.READY
        self.error = None
        await self.refresh()
        return True

    async def refresh(self):
        """Re-fetch the message history of the current conversation."""
        if self.conversation_id is None:
            return
        try:
            messages = await self.api.list_messages(self.conversation_id)
        except ApiError as e:
            self.error = e.detail or "Failed to load messages"
            return
        apply_event(self.log, HistoryLoaded(messages))

    async def send(self, text=None):
        """Send ``text`` (default: the draft). Returns True when a reply arrived."""
        text = self.draft if text is None else text
        content = (text or "").strip()
        if not content or self.status is not SessionStatus.READY or self.sending:
            return False

        self.draft = text
        self.sending = True
        self.error = None
        try:
            reply = await self.api.post_message(self.conversation_id, content)
            apply_event(self.log, ReplyReceived(reply))
            self.draft = ""
            await self.refresh()
            return True
        except ApiError as e:
            self.error = e.detail or "Failed to send message"
            return False
        finally:
            self.sending = False

    async def quick_action(self, tag):
        """Ask for a quick action answer and add it to the log."""
        if self.quick_action_pending:
            return False
        self.quick_action_pending = True
        self.error = None
        try:
            content = await self.api.quick_action(tag)
        except ApiError as e:
            self.error = e.detail or "Failed to get quick action response"
            return False
        finally:
            self.quick_action_pending = False
        apply_event(self.log, QuickActionAnswered(content))
        return True

    def close(self):
        """Tear down when the page goes away."""
        self.conversation_id = None
        self.status = SessionStatus.IDLE
        self.draft = ""
        self.error = None
        self.log.clear()
