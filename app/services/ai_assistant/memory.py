"""Knowledge the assistant answers from: JSON memory files plus admin notes."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MEMORY_FILES = ("theaters", "occasions", "gifts", "services", "faq")
ADMIN_MEMORY_LIMIT = 6000


@dataclass
class AssistantMemory:
    theaters: list[dict] = field(default_factory=list)
    occasions: list[dict] = field(default_factory=list)
    gifts: list[dict] = field(default_factory=list)
    services: list[dict] = field(default_factory=list)
    faq: list[dict] = field(default_factory=list)
    admin: Any = None


def _read_memory_file(path: Path, name: str) -> list[dict]:
    if not path.exists():
        logger.debug(f"AI memory file not found: {path}")
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to read AI memory file {path}: {e}")
        return []
    # Files hold either {"<name>": [...], "lastUpdated": ...} or a bare list
    if isinstance(data, dict):
        data = data.get(name, [])
    if not isinstance(data, list):
        return []
    return [entry for entry in data if isinstance(entry, dict)]


def load_memory_files(directory: str | Path) -> AssistantMemory:
    """Load every memory file from a directory. Missing or broken files load as empty."""
    base = Path(directory)
    return AssistantMemory(
        **{name: _read_memory_file(base / f"{name}.json", name) for name in MEMORY_FILES}
    )


def parse_admin_memory(raw: str | None) -> Any:
    """Admin chatbot memory JSON from system settings, or None when unset or invalid."""
    if not raw or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Ignoring invalid chatbot memory JSON in system settings")
        return None


def admin_memory_text(admin: Any) -> str:
    if not admin:
        return ""
    raw = json.dumps(admin, ensure_ascii=False)
    if len(raw) > ADMIN_MEMORY_LIMIT:
        raw = raw[:ADMIN_MEMORY_LIMIT] + "…"
    return f"\n\nADMIN CHATBOT MEMORY (from System Settings):\n{raw}"


def _join(values: Any, default: str = "") -> str:
    if isinstance(values, list):
        return ", ".join(str(value) for value in values) or default
    return str(values or default)


def _slot_labels(slots: Any) -> str:
    labels = []
    for slot in slots or []:
        if isinstance(slot, dict):
            labels.append(f"{slot.get('startTime', '')}-{slot.get('endTime', '')}")
        else:
            labels.append(str(slot))
    return ", ".join(labels)


def format_memory(memory: AssistantMemory, contact: dict[str, str]) -> str:
    """Business information block for the system prompt."""
    sections = [
        "CONTACT INFORMATION:\n"
        f"- Phone: {contact.get('sitePhone') or 'Contact us'}\n"
        f"- WhatsApp: {contact.get('siteWhatsapp') or 'Contact us'}\n"
        f"- Email: {contact.get('siteEmail') or 'Contact us'}\n"
        f"- Address: {contact.get('siteAddress') or 'Contact us'}"
    ]

    if memory.theaters:
        lines = ["DETAILED THEATERS INFORMATION:"]
        for theater in memory.theaters:
            capacity = theater.get("capacity") or {}
            lines.append(
                f"- {theater.get('name')} ({theater.get('type', '')}): ₹{theater.get('price', '')}\n"
                f"  Capacity: {capacity.get('min', '')}-{capacity.get('max', '')} people\n"
                f"  Time Slots: {_slot_labels(theater.get('timeSlots'))}\n"
                f"  Features: {_join(theater.get('features'), 'Premium theater experience')}"
            )
        sections.append("\n".join(lines))

    if memory.occasions:
        lines = ["AVAILABLE OCCASIONS FOR BOOKING:"]
        for occasion in memory.occasions:
            lines.append(
                f"- {occasion.get('name')}: {occasion.get('description', '')}\n"
                f"  Required Fields: {_join(occasion.get('requiredFields'))}"
            )
        sections.append("\n".join(lines))

    if memory.services:
        lines = ["OUR COMPLETE SERVICES:"]
        for service in memory.services:
            items = ", ".join(
                f"{item.get('name')} (₹{item.get('price', 0)})"
                for item in service.get("items") or []
                if isinstance(item, dict)
            )
            lines.append(f"- {service.get('name')}: {service.get('description', '')}\n  Items Available: {items}")
        sections.append("\n".join(lines))

    if memory.faq:
        lines = ["FREQUENTLY ASKED QUESTIONS:"]
        for entry in memory.faq:
            lines.append(f"Q: {entry.get('question', '')}\nA: {entry.get('answer', '')}")
        sections.append("\n".join(lines))

    return "\n\n".join(sections)


SYSTEM_PROMPT_TEMPLATE = """You are Ankit, a warm, friendly receptionist at {business_name}, a private theater for celebrations.

BEHAVIOR:
- Only share booking, pricing, slot, policy, location or service details when the user asks for them.
- For casual chat reply like a polite friend in short Hinglish (1-3 lines) with one follow-up question.
- Speak mostly English with natural Hindi words ("yaar", "arre", "waah"). Never write full sentences in Hindi script.
- Use emojis naturally: 🎭, 💕, 🎉, ✨, 🥳

BUSINESS INFORMATION:
{business_info}{admin_memory}

SHORT REPLY RULES:
- Default to 1-2 lines and end with exactly one follow-up question.
- Only list options or prices when the user asks for details, options, a list or a comparison, and then at most 2 items.
- If a detail is missing from BUSINESS INFORMATION, ask a question instead of guessing."""


def build_system_prompt(memory: AssistantMemory, contact: dict[str, str], business_name: str) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(
        business_name=business_name,
        business_info=format_memory(memory, contact),
        admin_memory=admin_memory_text(memory.admin),
    )
