"""Tests for the rule-based assistant replies and memory loading."""

import json
from datetime import timedelta

from app.services.ai_assistant import AssistantMemory, generate_local_response, load_memory_files
from app.services.ai_assistant.local_responder import (
    DEFAULT_RESPONSES,
    parse_message_date,
    pick_non_repeating,
    relevant_snippets,
    shorten_text,
)
from app.services.ai_assistant.memory import admin_memory_text, parse_admin_memory
from app.timeutils import now_ist


def _memory(**kwargs) -> AssistantMemory:
    return AssistantMemory(**kwargs)


async def test_greeting_introduces_ankit():
    reply = await generate_local_response("hello there", _memory())
    assert "Ankit" in reply


async def test_small_talk_stays_friendly():
    reply = await generate_local_response("how are you", _memory())
    assert "?" in reply
    assert reply not in DEFAULT_RESPONSES


async def test_contact_without_settings():
    reply = await generate_local_response("what is your phone number", _memory(), contact={})
    assert "contact info abhi available nahi hai" in reply


async def test_contact_with_settings():
    contact = {"sitePhone": "+91 90000 00000", "siteWhatsapp": "", "siteAddress": "Delhi"}
    reply = await generate_local_response("whatsapp contact please", _memory(), contact=contact)
    assert "+91 90000 00000" in reply
    assert "Delhi" in reply


async def test_slots_without_date_asks_for_one():
    reply = await generate_local_response("any slots available?", _memory())
    assert "date" in reply.lower()


async def test_slots_summary_for_date():
    async def lookup(date_ymd):
        assert date_ymd == "2030-01-15"
        return {"Lavish Theater": ["4:00 PM - 7:00 PM", "7:30 PM - 10:30 PM"], "Cozy Theater": []}

    reply = await generate_local_response("slots on 2030-01-15", _memory(), slot_lookup=lookup)
    assert "2030-01-15" in reply
    assert "~2" in reply


async def test_slots_for_named_theater():
    async def lookup(date_ymd):
        return {"Lavish Theater": ["4:00 PM - 7:00 PM", "7:30 PM - 10:30 PM"]}

    reply = await generate_local_response("lavish slots on 2030-01-15", _memory(), slot_lookup=lookup)
    assert "Lavish Theater" in reply
    assert "4:00 PM - 7:00 PM" in reply


async def test_slots_lookup_failure_is_reported():
    async def lookup(date_ymd):
        raise RuntimeError("database down")

    reply = await generate_local_response("slots on 2030-01-15", _memory(), slot_lookup=lookup)
    assert "nahi ho" in reply


async def test_pricing_starts_from_cheapest_theater():
    memory = _memory(theaters=[{"name": "Lavish", "price": 1999}, {"name": "Cozy", "price": 1499}])
    reply = await generate_local_response("what is the price", memory)
    assert "₹1499" in reply


async def test_faq_answer_is_shortened_with_follow_up():
    answer = "You can cancel up to 72 hours before your slot for a partial refund. " * 5
    memory = _memory(faq=[{"category": "cancellation", "question": "Can I cancel?", "answer": answer}])
    reply = await generate_local_response("how do I cancel", memory)
    first_line, follow_up = reply.split("\n", 1)
    assert first_line.endswith("…")
    assert "BookingId" in follow_up


async def test_business_question_without_knowledge_falls_back():
    reply = await generate_local_response("tell me about refund policy", _memory())
    assert reply in DEFAULT_RESPONSES


def test_pick_non_repeating_avoids_last_reply():
    for _ in range(20):
        assert pick_non_repeating(["first", "second"], "first") == "second"


def test_parse_message_date():
    today = now_ist().date()
    assert parse_message_date("slots today") == today.isoformat()
    assert parse_message_date("slots tomorrow") == (today + timedelta(days=1)).isoformat()
    assert parse_message_date("slots on 15/01/2030") == "2030-01-15"
    assert parse_message_date("any slots?") is None


def test_shorten_text():
    assert shorten_text("  short   text ", 50) == "short text"
    assert shorten_text("x" * 100, 10) == "x" * 10 + "…"


def test_relevant_snippets_rank_by_matches():
    memory = {"offers": {"weekday": "Weekday discount 10 percent", "cake": "Free cake on birthdays"}}
    snippets = relevant_snippets("weekday discount please", memory, 2)
    assert snippets[0] == "offers.weekday: Weekday discount 10 percent"


def test_load_memory_files(tmp_path):
    (tmp_path / "theaters.json").write_text(
        json.dumps({"theaters": [{"name": "Lavish", "price": 1999}], "lastUpdated": "2025-10-01"}),
        encoding="utf-8",
    )
    (tmp_path / "faq.json").write_text(json.dumps([{"question": "Q", "answer": "A"}]), encoding="utf-8")
    (tmp_path / "gifts.json").write_text("{not json", encoding="utf-8")

    memory = load_memory_files(tmp_path)

    assert memory.theaters == [{"name": "Lavish", "price": 1999}]
    assert memory.faq == [{"question": "Q", "answer": "A"}]
    assert memory.gifts == []
    assert memory.occasions == []


def test_admin_memory_parsing():
    assert parse_admin_memory(None) is None
    assert parse_admin_memory("not json") is None
    assert parse_admin_memory('{"offer": "10% off"}') == {"offer": "10% off"}
    assert admin_memory_text(None) == ""
