"""HTTP client for the chat API"""
import httpx

from medassist.core.config import ANONYMOUS_USER_ID, BASE_URL, UPSTREAM_TIMEOUT
from medassist.core.models import Conversation, Message


class ApiError(Exception):
    def __init__(self, status_code, detail):
        super().__init__(f"{status_code}: {detail}" if status_code else detail)
        self.status_code = status_code
        self.detail = detail


def _detail(resp):
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        # FastAPI body validation errors
        return "; ".join(str(d.get("msg", d)) for d in detail)
    return detail or resp.reason_phrase


class ChatApiClient:
    """One short-lived httpx.AsyncClient per call; safe to hold in UI state."""

    def __init__(self, base_url=BASE_URL, timeout=UPSTREAM_TIMEOUT + 5, transport=None):
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    async def _request(self, method, path, **kwargs):
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout,
                                         transport=self.transport) as client:
                resp = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(0, f"Network error: {e}") from e
        if resp.status_code >= 400:
            raise ApiError(resp.status_code, _detail(resp))
        return resp.json()

    async def create_conversation(self, user_id=ANONYMOUS_USER_ID, title="MedAssist Chat"):
        data = await self._request("POST", "/conversations", json={"userId": user_id, "title": title})
        return Conversation.model_validate(data)

    async def list_messages(self, conversation_id):
        data = await self._request("GET", f"/conversations/{conversation_id}/messages")
        return [Message.model_validate(m) for m in data]

    async def post_message(self, conversation_id, content):
        data = await self._request("POST", f"/conversations/{conversation_id}/messages",
                                   json={"content": content})
        return Message.model_validate(data)

    async def quick_action(self, action):
        data = await self._request("POST", "/quick-actions", json={"action": action})
        return data["content"]
