"""HTTP response generator backed by a remote `/chat` endpoint."""

from __future__ import annotations

import asyncio
import json
import logging
import ssl
import urllib.error
import urllib.request
import uuid
from typing import Any, Dict, Iterable, Optional

from ..exceptions import ChatClientError
from ..interfaces import ResponseGenerator
from ..models import Post
from ..responses import NO_POST_REPLY

logger = logging.getLogger(__name__)


class HttpResponseGenerator(ResponseGenerator):
    """
    Asks a chat backend for the assistant reply, sending the post as context.

    Drop-in replacement for :class:`~threadtalk.responses.KeywordResponseGenerator`.
    The blocking request runs on a worker thread.

    Usage:
        >>> generator = HttpResponseGenerator("http://localhost:8000", api_key=None)
        >>> await generator.generate("Summarize it", post, message_count=2)
        'The thread argues ...'
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        conversation_id: Optional[str] = None,
        ssl_context: Optional[ssl.SSLContext] = None,
    ) -> None:
        self._endpoint = f"{base_url.rstrip('/')}/chat"
        self._api_key = api_key
        self._timeout = timeout
        self._ssl_context = ssl_context
        self.conversation_id = conversation_id or f"session-{uuid.uuid4()}"

    async def generate(self, message: str, post: Optional[Post], *, message_count: int) -> str:
        if post is None:
            return NO_POST_REPLY
        return await asyncio.to_thread(self._chat, message, post, message_count)

    def _chat(self, message: str, post: Post, message_count: int) -> str:
        payload = {
            "message": message,
            "conversation_id": self.conversation_id,
            "message_count": message_count,
            "context": {
                "title": post.title,
                "summary": post.summary,
                "viewpoints": list(post.viewpoints),
            },
        }
        request = urllib.request.Request(
            self._endpoint,
            data=json.dumps(payload).encode("utf-8"),
            headers=self._headers(),
            method="POST",
        )

        logger.debug("Sending to %s", self._endpoint)
        try:
            with urllib.request.urlopen(request, timeout=self._timeout, context=self._ssl_context) as response:  # type: ignore[arg-type]
                body = response.read()
                content_type = response.headers.get("Content-Type", "")
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore")
            raise ChatClientError(f"Chat request failed ({exc.code}): {detail}") from exc
        except urllib.error.URLError as exc:
            raise ChatClientError(f"Chat request could not reach the server: {exc.reason}") from exc

        if "application/json" not in content_type:
            raise ChatClientError(f"Unexpected content type: {content_type}")

        try:
            data = json.loads(body.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise ChatClientError("Chat response was not valid JSON") from exc
        if not isinstance(data, dict):
            raise ChatClientError("Chat response was not a JSON object")

        conversation_id = _extract_conversation_id(data)
        if conversation_id:
            self.conversation_id = conversation_id
        return _extract_assistant_text(data)

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers


def _extract_assistant_text(payload: Dict[str, Any]) -> str:
    """
    Normalize multiple plausible response shapes to a string.

    Accepted shapes (first match wins):
        {"data": {"response": "text"}}
        {"reply": "text"}
        {"message": {"role": "assistant", "content": "text"}}
        {"choices": [{"message": {"role": "assistant", "content": "text"}}]}
    """

    data = payload.get("data")
    if isinstance(data, dict) and isinstance(data.get("response"), str):
        return data["response"]

    if isinstance(payload.get("reply"), str):
        return payload["reply"]

    message = payload.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]

    choices = payload.get("choices")
    if isinstance(choices, Iterable) and not isinstance(choices, (str, bytes)):
        for choice in choices:
            msg = choice.get("message") if isinstance(choice, dict) else None
            if isinstance(msg, dict) and isinstance(msg.get("content"), str):
                return msg["content"]

    raise ChatClientError("Chat response did not contain assistant content")


def _extract_conversation_id(payload: Dict[str, Any]) -> Optional[str]:
    for key in ("data", "message"):
        section = payload.get(key)
        if isinstance(section, dict) and isinstance(section.get("conversation_id"), str):
            return section["conversation_id"]
    return None
