"""Tests for the streamed chat assistant."""

import json

import httpx
import pytest

from app.config import get_settings
from app.schemas.assistant import ChatRequest
from app.services.ai_assistant import AssistantService
from tests.conftest import ADMIN_HEADERS

DECOR_QUESTION = "tell me about decorations"


def sse_contents(text: str) -> list[str]:
    """Contents of every data event before [DONE]."""
    contents = []
    for block in text.split("\n\n"):
        if not block.startswith("data: "):
            continue
        data = block[len("data: "):]
        if data == "[DONE]":
            break
        contents.append(json.loads(data)["content"])
    return contents


async def collect(stream) -> str:
    return "".join([event async for event in stream])


@pytest.fixture
def remote_ai(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "USE_LOCAL_AI", False)
    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", "test-key")
    return settings


async def test_greeting_streams_single_reply(client):
    response = await client.post("/api/ai-assistant/stream", json={"message": "hello there"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.text.endswith("data: [DONE]\n\n")
    contents = sse_contents(response.text)
    assert len(contents) == 1
    assert "Ankit" in contents[0]


async def test_empty_message_rejected(client):
    response = await client.post("/api/ai-assistant/stream", json={"message": "   "})

    assert response.status_code == 400
    assert response.json()["error"] == "Message is required"


async def test_slot_question_uses_live_availability(client):
    await client.post("/api/admin/theaters", json={"name": "Lavish Theater"}, headers=ADMIN_HEADERS)

    response = await client.post("/api/ai-assistant/stream", json={"message": "slots for 2030-01-15"})

    contents = sse_contents(response.text)
    assert len(contents) == 1
    assert "2030-01-15" in contents[0]
    assert "~4" in contents[0]


async def test_local_mode_types_reply_word_by_word(client):
    response = await client.post("/api/ai-assistant/stream", json={"message": "how are you"})

    contents = sse_contents(response.text)
    assert len(contents) > 1
    # Each event carries the reply so far
    assert contents[-1].startswith(contents[0])
    assert len(contents[-1]) > len(contents[0])


async def test_contact_reply_uses_site_settings(client):
    await client.put("/api/admin/settings", json={"sitePhone": "+91 90000 00000"}, headers=ADMIN_HEADERS)

    response = await client.post("/api/ai-assistant/stream", json={"message": "what is your phone number"})

    assert "+91 90000 00000" in sse_contents(response.text)[-1]


async def test_openrouter_deltas_are_forwarded(db_session, remote_ai):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["authorization"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        body = (
            'data: {"choices":[{"delta":{"content":"Decor "}}]}\n\n'
            ": keep-alive\n\n"
            'data: {"choices":[{"delta":{"content":"packages start at 750"}}]}\n\n'
            "data: [DONE]\n\n"
        )
        return httpx.Response(200, content=body.encode())

    service = AssistantService(db_session, transport=httpx.MockTransport(handler))
    stream = await service.open_stream(
        ChatRequest(
            message=DECOR_QUESTION,
            conversation_history=[{"message": "Hi", "isUser": True}, {"content": "Hello!", "role": "assistant"}],
        )
    )
    text = await collect(stream)

    assert sse_contents(text) == ["Decor ", "packages start at 750"]
    assert text.endswith("data: [DONE]\n\n")
    assert seen["authorization"] == "Bearer test-key"
    messages = seen["body"]["messages"]
    assert messages[0]["role"] == "system"
    assert [m["role"] for m in messages[1:]] == ["user", "assistant", "user"]
    assert messages[-1]["content"] == DECOR_QUESTION


async def test_openrouter_rate_limit(db_session, remote_ai):
    service = AssistantService(
        db_session, transport=httpx.MockTransport(lambda request: httpx.Response(429))
    )

    text = await collect(await service.open_stream(ChatRequest(message=DECOR_QUESTION)))

    contents = sse_contents(text)
    assert len(contents) == 1
    assert "rate limit" in contents[0]
    assert text.endswith("data: [DONE]\n\n")


async def test_openrouter_error_falls_back_to_local_reply(db_session, remote_ai):
    service = AssistantService(
        db_session, transport=httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
    )

    text = await collect(await service.open_stream(ChatRequest(message=DECOR_QUESTION)))

    contents = sse_contents(text)
    assert len(contents) == 1
    assert contents[0]
    assert text.endswith("data: [DONE]\n\n")


async def test_openrouter_connection_error_falls_back(db_session, remote_ai):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    service = AssistantService(db_session, transport=httpx.MockTransport(handler))

    text = await collect(await service.open_stream(ChatRequest(message=DECOR_QUESTION)))

    assert len(sse_contents(text)) == 1
    assert text.endswith("data: [DONE]\n\n")
