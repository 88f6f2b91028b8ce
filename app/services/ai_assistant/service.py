"""Chat assistant that streams replies as server-sent events."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.schemas.assistant import ChatRequest
from app.services.ai_assistant.local_responder import GREETING, SLOTS_QUERY, generate_local_response
from app.services.ai_assistant.memory import (
    AssistantMemory,
    build_system_prompt,
    load_memory_files,
    parse_admin_memory,
)
from app.services.catalog_service import CatalogService
from app.services.slot_service import SlotService

settings = get_settings()
logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
SSE_DONE = "data: [DONE]\n\n"
TYPING_DELAY_SECONDS = 0.02


class AssistantError(Exception):
    """Assistant request error."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def sse_event(content: str) -> str:
    return f"data: {json.dumps({'content': content}, ensure_ascii=False)}\n\n"


async def single_message(text: str) -> AsyncIterator[str]:
    yield sse_event(text)
    yield SSE_DONE


async def typed_message(text: str, delay: float = TYPING_DELAY_SECONDS) -> AsyncIterator[str]:
    """Stream a reply word by word; each event carries the text so far."""
    words = text.split(" ")
    current = ""
    for index, word in enumerate(words):
        current = f"{current} {word}" if current else word
        trailing = " " if index < len(words) - 1 else ""
        yield sse_event(current + trailing)
        await asyncio.sleep(delay)
    yield SSE_DONE


def rate_limit_message(contact: dict[str, str]) -> str:
    def value(key: str) -> str:
        return contact.get(key) or "Contact us"

    return (
        "Sorry yaar! 😅 Abhi thoda busy hai AI service (rate limit). Thoda wait karke phir se try karo "
        "ya phir contact karo - main manually help kar sakta hun!\n\n"
        f"📞 Phone: {value('sitePhone')}\n"
        f"💬 WhatsApp: {value('siteWhatsapp')}\n"
        f"📧 Email: {value('siteEmail')}\n"
        f"📍 Address: {value('siteAddress')}"
    )


def _delta_content(data: str) -> str | None:
    try:
        chunk = json.loads(data)
    except ValueError:
        return None
    choices = chunk.get("choices") or [{}]
    return (choices[0].get("delta") or {}).get("content")


class AssistantService:
    """
    Answers chat messages from the booking widget.

    Greetings and slot questions are always answered locally from live data.
    Everything else goes to OpenRouter when a key is configured, falling back
    to the local responder on errors.
    """

    def __init__(self, db: AsyncSession, transport: httpx.AsyncBaseTransport | None = None):
        self.db = db
        self.catalog = CatalogService(db)
        self.slots = SlotService(db)
        self.transport = transport

    async def load_context(self) -> tuple[AssistantMemory, dict[str, str]]:
        memory = load_memory_files(settings.AI_MEMORY_DIR)
        settings_row = await self.catalog.get_settings()
        memory.admin = parse_admin_memory(settings_row.chatbot_memory_json)
        return memory, await self.catalog.contact_info()

    async def open_stream(self, request: ChatRequest) -> AsyncIterator[str]:
        """
        Resolve everything that needs the database, then return the event stream.

        Raises:
            AssistantError: If the message is empty
        """
        message = (request.message or "").strip()
        if not message:
            raise AssistantError("Message is required")

        memory, contact = await self.load_context()
        last = request.last_assistant_message()
        use_local = settings.USE_LOCAL_AI or not settings.OPENROUTER_API_KEY
        logger.info(f"Assistant message received (local={use_local})")

        if GREETING.match(message.lower()) or SLOTS_QUERY.search(message):
            reply = await generate_local_response(
                message, memory, contact, last, slot_lookup=self.slots.available_slots
            )
            return single_message(reply)

        if use_local:
            reply = await generate_local_response(message, memory, contact, last)
            return typed_message(reply)

        return self._openrouter_stream(request, message, memory, contact, last)

    def _chat_messages(self, request: ChatRequest, message: str, system_prompt: str) -> list[dict]:
        history = [
            {"role": turn.role, "content": turn.text}
            for turn in request.conversation_history
            if turn.text
        ]
        return [
            {"role": "system", "content": system_prompt},
            *history,
            {"role": "user", "content": message},
        ]

    async def _openrouter_stream(
        self,
        request: ChatRequest,
        message: str,
        memory: AssistantMemory,
        contact: dict[str, str],
        last: str,
    ) -> AsyncIterator[str]:
        system_prompt = build_system_prompt(memory, contact, settings.BUSINESS_NAME)
        payload = {
            "model": settings.OPENROUTER_MODEL,
            "messages": self._chat_messages(request, message, system_prompt),
            "stream": True,
            "temperature": 0.7,
            "max_tokens": 320,
        }
        headers = {
            "Authorization": f"Bearer {settings.OPENROUTER_API_KEY}",
            "HTTP-Referer": settings.SITE_URL,
            "X-Title": f"{settings.BUSINESS_NAME} AI Assistant",
        }

        failed = False
        try:
            async with httpx.AsyncClient(
                timeout=settings.OPENROUTER_TIMEOUT_SECONDS, transport=self.transport
            ) as client:
                async with client.stream("POST", OPENROUTER_URL, json=payload, headers=headers) as response:
                    if response.status_code == 429:
                        logger.warning("OpenRouter rate limit hit")
                        yield sse_event(rate_limit_message(contact))
                        yield SSE_DONE
                        return
                    if response.status_code != 200:
                        body = await response.aread()
                        logger.error(f"OpenRouter error {response.status_code}: {body[:500]!r}")
                        failed = True
                    else:
                        async for line in response.aiter_lines():
                            if not line.startswith("data: "):
                                continue
                            data = line[6:].strip()
                            if data == "[DONE]":
                                break
                            content = _delta_content(data)
                            if content:
                                yield sse_event(content)
        except httpx.HTTPError as e:
            logger.error(f"OpenRouter request failed: {e}")
            failed = True

        if failed:
            reply = await generate_local_response(message, memory, contact, last)
            yield sse_event(reply)
        yield SSE_DONE
