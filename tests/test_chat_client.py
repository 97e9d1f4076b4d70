import io
import json
import urllib.error

import pytest

from threadtalk.exceptions import ChatClientError
from threadtalk.responses import NO_POST_REPLY
from threadtalk.services import chat_client
from threadtalk.services.chat_client import HttpResponseGenerator


class FakeResponse:
    def __init__(self, payload, content_type="application/json"):
        self._body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
        self.headers = {"Content-Type": content_type}

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture()
def requests_sent(monkeypatch):
    sent = []
    responses = []

    def fake_urlopen(request, timeout=None, context=None):
        sent.append(request)
        response = responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(chat_client.urllib.request, "urlopen", fake_urlopen)
    return sent, responses


@pytest.mark.asyncio
async def test_sends_post_context_and_reads_reply(requests_sent, post):
    sent, responses = requests_sent
    responses.append(FakeResponse({"data": {"response": "Remote says hi", "conversation_id": "conv-9"}}))
    generator = HttpResponseGenerator("http://chat.local/", api_key="secret", conversation_id="conv-1")

    reply = await generator.generate("What's the summary?", post, message_count=2)

    assert reply == "Remote says hi"
    assert generator.conversation_id == "conv-9"
    request = sent[0]
    assert request.full_url == "http://chat.local/chat"
    assert request.get_header("Authorization") == "Bearer secret"
    body = json.loads(request.data.decode("utf-8"))
    assert body["message"] == "What's the summary?"
    assert body["conversation_id"] == "conv-1"
    assert body["context"]["title"] == post.title
    assert body["context"]["viewpoints"] == list(post.viewpoints)


@pytest.mark.parametrize(
    "payload",
    [
        {"reply": "answer"},
        {"message": {"role": "assistant", "content": "answer"}},
        {"choices": [{"message": {"role": "assistant", "content": "answer"}}]},
    ],
)
@pytest.mark.asyncio
async def test_accepts_known_reply_shapes(requests_sent, post, payload):
    _, responses = requests_sent
    responses.append(FakeResponse(payload))
    generator = HttpResponseGenerator("http://chat.local")

    assert await generator.generate("hi", post, message_count=2) == "answer"


@pytest.mark.asyncio
async def test_no_post_skips_the_request(requests_sent):
    sent, _ = requests_sent
    generator = HttpResponseGenerator("http://chat.local")

    assert await generator.generate("hi", None, message_count=1) == NO_POST_REPLY
    assert sent == []


@pytest.mark.asyncio
async def test_http_error_raises_chat_client_error(requests_sent, post):
    _, responses = requests_sent
    responses.append(
        urllib.error.HTTPError("http://chat.local/chat", 502, "Bad Gateway", {}, io.BytesIO(b"upstream down"))
    )
    generator = HttpResponseGenerator("http://chat.local")

    with pytest.raises(ChatClientError, match="502"):
        await generator.generate("hi", post, message_count=2)


@pytest.mark.asyncio
async def test_unreachable_server_raises_chat_client_error(requests_sent, post):
    _, responses = requests_sent
    responses.append(urllib.error.URLError("connection refused"))
    generator = HttpResponseGenerator("http://chat.local")

    with pytest.raises(ChatClientError, match="could not reach"):
        await generator.generate("hi", post, message_count=2)


@pytest.mark.asyncio
async def test_rejects_non_json_and_empty_payloads(requests_sent, post):
    _, responses = requests_sent
    responses.append(FakeResponse(b"<html>", content_type="text/html"))
    responses.append(FakeResponse({"unexpected": True}))
    generator = HttpResponseGenerator("http://chat.local")

    with pytest.raises(ChatClientError, match="content type"):
        await generator.generate("hi", post, message_count=2)
    with pytest.raises(ChatClientError, match="assistant content"):
        await generator.generate("hi", post, message_count=2)
