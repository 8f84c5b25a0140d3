"""Assistant reply generation"""
import logging
from abc import ABC, abstractmethod

from openai import AsyncOpenAI, OpenAIError

from medassist.core.config import OPENAI_API_KEY, OPENAI_MODEL, OPENAI_TEMPERATURE, UPSTREAM_TIMEOUT
from medassist.core.errors import UpstreamError, ValidationError
from medassist.services.quick_actions import quick_action_content

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50

system_prompt = [{
    "role": "system",
    "content": (
        "You are Dr. MedAssist, an AI healthcare companion that gives general health information. "
        "You help with questions about symptoms, medications, wellness and general health. "
        "Be warm, clear and concise; use short paragraphs or bulleted lists. "
        "Never give a diagnosis or prescribe treatment, and never tell the user to start, stop or change a medication. "
        "When something needs professional attention, say so and suggest the right kind of care. "
        "If the user describes a possible emergency (chest pain, trouble breathing, stroke signs, severe bleeding, "
        "thoughts of self-harm, overdose), tell them to call their local emergency number immediately before anything else. "
        "End medical answers with a short reminder that this is general information, not medical advice."
    )
}]


class ResponseGenerator(ABC):
    """Produces assistant text; any failure surfaces as UpstreamError."""

    @abstractmethod
    async def generate_reply(self, history):
        """Reply to the last user message of ``history`` (list of Message)."""

    async def generate_quick_action_text(self, tag):
        content = quick_action_content(tag)
        if content is None:
            raise ValidationError(f"Unknown quick action: {tag!r}")
        return content


def to_chat_messages(history):
    """Message models -> OpenAI chat messages, most recent HISTORY_LIMIT only."""
    return [{"role": m.role, "content": m.content} for m in history[-HISTORY_LIMIT:]]


class OpenAIResponseGenerator(ResponseGenerator):
    def __init__(self, client=None, model=OPENAI_MODEL, temperature=OPENAI_TEMPERATURE):
        self._client = client
        self.model = model
        self.temperature = temperature

    @property
    def client(self):
        # created on first use so the app can start without an API key
        if self._client is None:
            if not OPENAI_API_KEY:
                raise UpstreamError("Response generator is not configured")
            self._client = AsyncOpenAI(api_key=OPENAI_API_KEY, timeout=UPSTREAM_TIMEOUT, max_retries=0)
        return self._client

    async def generate_reply(self, history):
        messages = system_prompt + to_chat_messages(history)
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
            )
        except OpenAIError as e:
            logger.exception("Completion request failed")
            raise UpstreamError("The assistant is unavailable right now. Please try again.") from e

        text = (resp.choices[0].message.content or "").strip() if resp.choices else ""
        if not text:
            raise UpstreamError("The assistant returned an empty reply")
        return text
