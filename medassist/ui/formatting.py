"""Text helpers for the chat page"""
from datetime import datetime, timezone

from medassist.core.config import MAX_MESSAGE_LENGTH

TYPING_PLACEHOLDER = "…"


def format_timestamp(timestamp, now=None):
    """Relative time for recent messages, wall-clock time for older ones."""
    if timestamp is None:
        return "Just now"
    now = now or datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    minutes = int((now - timestamp).total_seconds() // 60)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} min{'' if minutes == 1 else 's'} ago"

    local = timestamp.astimezone()
    return f"{local.hour % 12 or 12}:{local.minute:02d} {'AM' if local.hour < 12 else 'PM'}"


def character_count(text):
    return f"{len(text or '')}/{MAX_MESSAGE_LENGTH} characters"


def to_chatbot_messages(entries, now=None):
    """Log entries -> gr.Chatbot(type="messages") values."""
    return [
        {"role": e.role, "content": f"{e.content}\n\n*{format_timestamp(e.timestamp, now)}*"}
        for e in entries
    ]
