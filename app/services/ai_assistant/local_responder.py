"""
Rule-based replies in Ankit's voice, used when no language model is available.

The first matching rule wins: greeting, small talk, contact, slots, FAQ,
theaters, occasions, pricing, services and finally admin memory snippets.
"""

import logging
import random
import re
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

from app.services.ai_assistant.memory import AssistantMemory
from app.timeutils import normalize_date_to_ymd, now_ist

logger = logging.getLogger(__name__)

SlotLookup = Callable[[str], Awaitable[dict[str, list[str]]]]

GREETING = re.compile(r"^\s*(hi|hello|hey|namaste|namaskar|hii|hlo)")
SLOTS_QUERY = re.compile(r"(slot|slots|time slot|timeslot|availability|available\s+slot|available\s+time)", re.IGNORECASE)
DETAILS = re.compile(
    r"(detail|details|option|options|list|full|explain|elaborate|compare|all|price list"
    r"|theater list|theatre list|show me|batao|btao|pura)"
)
BUSINESS = re.compile(
    r"(feel\s*me|feelme|fmt|feelme\s*town|town\b|private\s*theatre|private\s*theater|theatre|theater"
    r"|slot|slots|timeslot|availability|available|book|booking|reserve|reservation|price|pricing|cost"
    r"|charges|fee|offer|discount|deal|package|decor|decoration|cake|food|menu|add\s*on|addon|gift"
    r"|surprise|location|address|contact|phone|whatsapp|email|timing|time\s*slots|refund|cancel"
    r"|cancellation|policy|rules|capacity|guests|people|persons|payment|upi|advance|deposit)",
    re.IGNORECASE,
)
BOOKING_HELP = re.compile(r"(how\s*to\s*book|booking\s*process|process|steps|confirm|confirmation|book\s*kaise|kaise\s*book)", re.IGNORECASE)
CANCEL_HELP = re.compile(r"(cancel|cancellation|refund|reschedule|change\s*date|modify)", re.IGNORECASE)
PAYMENT_HELP = re.compile(r"(payment|advance|deposit|upi|cash|venue\s*payment|paid|receipt)", re.IGNORECASE)
IDENTITY = re.compile(r"(who\s*are\s*you|who\s*r\s*you|your\s*name|tum\s*kaun|aap\s*kaun|name\s*kya)", re.IGNORECASE)
CONTACT = re.compile(r"(contact|phone|number|call|whatsapp|email|address|location)")
WHERE = re.compile(r"where\s+.*(located|location|address|feel\s*me|feelme|town|theater|theatre)", re.IGNORECASE)
CAPACITY = re.compile(r"(\d+)\s*(people|persons|guests|members)", re.IGNORECASE)
YMD_IN_TEXT = re.compile(r"\b\d{4}-\d{1,2}-\d{1,2}\b")
DMY_IN_TEXT = re.compile(r"\b\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}\b")
MONTH_IN_TEXT = re.compile(
    r"\b\d{1,2}\s*(jan|january|feb|february|mar|march|apr|april|may|jun|june|jul|july|aug|august"
    r"|sep|sept|september|oct|october|nov|november|dec|december)\s*(\d{4})?\b",
    re.IGNORECASE,
)

FAQ_KEYWORDS = {
    "booking": ["book", "booking", "reserve", "reservation", "how to book"],
    "cancellation": ["cancel", "cancellation", "refund", "cancel booking"],
    "capacity": ["capacity", "people", "persons", "how many", "accommodate"],
    "timing": ["time", "timing", "slot", "when", "hours", "available"],
    "payment": ["payment", "pay", "price", "cost", "fee", "charges"],
    "food": ["food", "eat", "bring food", "outside food"],
    "decorations": ["decoration", "decor", "decoration package"],
    "location": ["location", "where", "address", "place"],
}

OCCASION_TYPES = ["couple", "couples", "romantic", "date", "friends", "family", "birthday", "anniversary", "proposal"]

DEFAULT_RESPONSES = [
    "Haan ji 😊 Aap kya puchna chahte ho: price, time slot ya booking?",
    "Achha 😊 Kitne log hain aur date/time kya chahiye?",
    "Done! 😊 Aap birthday/anniversary/proposal me se kya plan kar rahe ho?",
    "Okay 😊 Aapko theater, pricing ya slots me se kiski info chahiye?",
]


def shorten_text(text: str, max_chars: int) -> str:
    """Collapse whitespace and cut at a sentence end near the limit."""
    cleaned = re.sub(r"\s+", " ", str(text or "")).strip()
    if len(cleaned) <= max_chars:
        return cleaned
    piece = cleaned[:max_chars]
    last_stop = max(piece.rfind(". "), piece.rfind("? "), piece.rfind("! "))
    if last_stop > 60:
        piece = piece[: last_stop + 1]
    return piece.rstrip() + "…"


def _compare_key(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(text or "").lower())


def pick_non_repeating(variants: list[str], last_assistant_message: str | None = None) -> str:
    """Pick a random variant that differs from the assistant's previous reply."""
    if not variants:
        return ""
    last = _compare_key(last_assistant_message or "")
    pool = [variant for variant in variants if _compare_key(variant) != last] if last else variants
    return random.choice(pool or variants)


def wants_details(message: str) -> bool:
    return bool(DETAILS.search(message.lower()))


def is_business_query(message: str) -> bool:
    return bool(message.strip()) and bool(BUSINESS.search(message))


def parse_message_date(message: str) -> str | None:
    """Date a slot question refers to, as YYYY-MM-DD."""
    lowered = message.lower()
    today = now_ist().date()
    if "today" in lowered or "aaj" in lowered:
        return today.isoformat()
    if "tomorrow" in lowered or "kal" in lowered:
        return (today + timedelta(days=1)).isoformat()
    for pattern in (YMD_IN_TEXT, DMY_IN_TEXT, MONTH_IN_TEXT):
        match = pattern.search(message)
        if match:
            return normalize_date_to_ymd(match.group(0))
    return None


def _flatten(value: Any, path: list[str], out: list[tuple[str, str]]) -> None:
    if value is None:
        return
    if isinstance(value, (str, int, float, bool)):
        joined = ".".join(path)
        out.append((joined, f"{joined + ': ' if joined else ''}{value}".strip()))
    elif isinstance(value, list):
        for index, item in enumerate(value):
            _flatten(item, path + [str(index)], out)
    elif isinstance(value, dict):
        for key, item in value.items():
            _flatten(item, path + [str(key)], out)


def relevant_snippets(message: str, memory: Any, max_items: int) -> list[str]:
    """Admin memory leaves scored by how many query words (3+ chars) they contain."""
    snippets: list[tuple[str, str]] = []
    _flatten(memory, [], snippets)
    words = [word for word in message.lower().split() if len(word) >= 3][:12]

    scored = []
    for path, text in snippets:
        haystack = f"{text} {path}".lower()
        score = sum(1 for word in words if word in haystack)
        if score > 0:
            scored.append((score, text))
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [text for _, text in scored[:max_items]]


def find_faq(message: str, faq: list[dict]) -> dict | None:
    lowered = message.lower()
    for category, words in FAQ_KEYWORDS.items():
        if any(word in lowered for word in words):
            for entry in faq:
                if (
                    entry.get("category") == category
                    or category in str(entry.get("question", "")).lower()
                    or category in str(entry.get("answer", "")).lower()
                ):
                    return entry

    for entry in faq:
        question_words = str(entry.get("question", "")).lower().split(" ")
        if any(len(word) > 3 and word in lowered for word in question_words):
            return entry
    return None


def find_theaters(message: str, theaters: list[dict]) -> list[dict]:
    """Theaters named in the message, or suited to a guest count or occasion."""
    if not theaters:
        return []
    lowered = message.lower()

    match = CAPACITY.search(lowered)
    if match:
        guests = int(match.group(1))
        suitable = [
            theater for theater in theaters
            if (theater.get("capacity") or {}).get("min", 0) <= guests <= (theater.get("capacity") or {}).get("max", 0)
        ]
        if suitable:
            return suitable

    for occasion_type in OCCASION_TYPES:
        if occasion_type in lowered:
            suitable = [
                theater for theater in theaters
                if occasion_type in str(theater.get("type") or "").lower()
                or occasion_type in str(theater.get("description") or "").lower()
            ]
            if suitable:
                return suitable

    matched = []
    for theater in theaters:
        name = str(theater.get("name") or "").lower()
        theater_type = str(theater.get("type") or "").lower()
        if (
            (name and name.split(" ")[0] in lowered)
            or (theater_type and theater_type in lowered)
            or any(word and word in lowered for word in name.split(" "))
        ):
            matched.append(theater)
    return matched or theaters[:3]


def find_occasions(message: str, occasions: list[dict]) -> list[dict]:
    lowered = message.lower()
    matched = [
        occasion for occasion in occasions
        if any(
            word and word in lowered
            for word in str(occasion.get("name") or "").lower().split(" ")
        )
    ]
    return matched or occasions[:2]


def _named_theaters(message: str, names: list[str]) -> list[str]:
    lowered = message.lower()
    return [
        name for name in names
        if any(len(word) > 2 and word in lowered for word in name.lower().split(" "))
    ]


async def _slots_reply(
    message: str,
    details: bool,
    slot_lookup: SlotLookup | None,
    last: str,
) -> str:
    date_ymd = parse_message_date(message)
    if not date_ymd:
        return pick_non_repeating(
            [
                "Haan ji 😊 Slots check ho jayenge.\nKaunsi date chahiye? (e.g. 2026-01-05)",
                "Slots dekh leta hun 😊\nKaunsi date aur kaunsa theater?",
                "Okay 😊 Date bata do (YYYY-MM-DD).\nTheater kaunsa chahiye?",
            ],
            last,
        )

    if slot_lookup is None:
        return pick_non_repeating(
            [
                f"Slots dekhne ke liye date mil gayi ({date_ymd}).\nKaunsa theater chahiye?",
                f"Date noted: {date_ymd}.\nTheater name bata do 😊",
            ],
            last,
        )

    try:
        availability = await slot_lookup(date_ymd)
    except Exception as e:
        logger.warning(f"Slot lookup failed for {date_ymd}: {e}")
        return pick_non_repeating(
            [
                "Yaar abhi slots load nahi ho paye 😅\nKaunsa theater chahiye?",
                "Abhi slots fetch nahi ho rahe 😅\nTheater ka naam bata do, main dobara try karun?",
            ],
            last,
        )

    if not availability:
        return pick_non_repeating(
            [
                f"Date noted ({date_ymd}).\nKaunsa theater name chahiye?",
                f"Okay ({date_ymd}).\nTheater kaunsa check karun?",
            ],
            last,
        )

    named = _named_theaters(message, list(availability))
    if not named and not details:
        total = sum(len(ranges) for ranges in availability.values())
        return pick_non_repeating(
            [
                f"{date_ymd} ko slots available hain (total ~{total}).\nKaunsa theater check karun?",
                f"{date_ymd} ko slots mil rahe hain (~{total}).\nKaunsa theater chahiye?",
            ],
            last,
        )

    theater_name = named[0] if named else next(iter(availability))
    slots = availability[theater_name][: 4 if details else 2]
    if not slots:
        return pick_non_repeating(
            [
                f"{theater_name} me {date_ymd} ko abhi slots booked hain.\nAap alternate time/date chahoge?",
                f"{theater_name} ({date_ymd}) me availability tight hai.\nAap next slot/date batao?",
            ],
            last,
        )
    return pick_non_repeating(
        [
            f"{theater_name} ({date_ymd}) available: {', '.join(slots)}\nBooking kar du?",
            f"{theater_name} ({date_ymd}) slots: {', '.join(slots)}\nKaunsa slot confirm karna hai?",
        ],
        last,
    )


def _contact_reply(contact: dict[str, str], last: str) -> str:
    phone = (contact.get("sitePhone") or "").strip()
    whatsapp = (contact.get("siteWhatsapp") or "").strip()
    address = (contact.get("siteAddress") or "").strip() or "N/A"
    if not phone and not whatsapp:
        return (
            "Arre yaar, contact info abhi available nahi hai! 😅 "
            "Please check our website ya phir admin se contact karo for contact details."
        )
    phone = phone or "N/A"
    whatsapp = whatsapp or "N/A"
    return pick_non_repeating(
        [
            f"Bilkul! 😊\n📞 {phone} | 💬 {whatsapp}\n📍 {address}\nAap booking karna chahte ho ya pricing/time slots puchne hain?",
            f"Sure 😊\n📞 {phone} | 💬 {whatsapp}\n📍 {address}\nDate + theater name bata doge?",
            f"Done 😊\n📞 {phone} | 💬 {whatsapp}\n📍 {address}\nAapko aaj ke slots check karu?",
        ],
        last,
    )


def _faq_reply(entry: dict, message: str, details: bool, last: str) -> str:
    answer = str(entry.get("answer") or "").strip()
    if not answer:
        return "Haan ji 😊 Aapko exactly kya puchna hai?\nDate + theater bata doge?"
    if details:
        return answer

    if CANCEL_HELP.search(message):
        follow_ups = ["BookingId aur date share kar doge?", "Kis date ka booking hai? BookingId bata do."]
    elif PAYMENT_HELP.search(message):
        follow_ups = ["Payment UPI/cash me karna hai?", "Advance payment kaunse mode me karoge?"]
    elif BOOKING_HELP.search(message):
        follow_ups = ["Date + time slot bata doge?", "Kaunsi date aur kaunsa slot chahiye?"]
    else:
        follow_ups = ["Aapki booking date aur theater kaunsa hai?", "Date aur theater name bata do?"]
    return f"{shorten_text(answer, 160)}\n{pick_non_repeating(follow_ups, last)}"


async def generate_local_response(
    message: str,
    memory: AssistantMemory,
    contact: dict[str, str] | None = None,
    last_assistant_message: str = "",
    slot_lookup: SlotLookup | None = None,
) -> str:
    """
    Answer a chat message without a language model.

    Args:
        message: The user's message
        memory: Business knowledge to answer from
        contact: Site contact details from system settings
        last_assistant_message: Previous reply, never repeated verbatim
        slot_lookup: Coroutine returning free slot ranges per theater for a date
    """
    lowered = message.lower().strip()
    contact = contact or {}
    last = last_assistant_message
    details = wants_details(message)
    business = (
        is_business_query(message)
        or bool(BOOKING_HELP.search(message))
        or bool(CANCEL_HELP.search(message))
        or bool(PAYMENT_HELP.search(message))
    )

    if GREETING.match(lowered):
        if details:
            variants = [
                "Welcome! I'm Ankit. I'm here to help you.",
                "Hi! I'm Ankit. What would you like details on?",
            ]
        else:
            variants = [
                "Welcome! I'm Ankit. I'm here to help you.",
                "Hi! I'm Ankit. How can I help you?",
                "Hello! I'm Ankit. Tell me what you need.",
            ]
        return pick_non_repeating(variants, last)

    if not business:
        if IDENTITY.search(message):
            return pick_non_repeating(
                ["Main Ankit hun 😊\nAap kaise ho?", "Main Ankit hun 😊\nAapko kis cheez me help chahiye?"],
                last,
            )
        return pick_non_repeating(
            [
                "Hi 😊 Main theek hun.\nAapko kis cheez me help chahiye?",
                "Hello 😊 Main yahin hun.\nAap kya puchna chahte ho?",
                "I'm good 😊\nAap booking, pricing ya slots me se kispe help chahte ho?",
                "Bilkul 😊\nAap apna question thoda detail me bata doge?",
            ],
            last,
        )

    if CONTACT.search(lowered) or WHERE.search(message):
        return _contact_reply(contact, last)

    if SLOTS_QUERY.search(lowered):
        return await _slots_reply(message, details, slot_lookup, last)

    if memory.faq:
        entry = find_faq(message, memory.faq)
        if entry is not None:
            return _faq_reply(entry, message, details, last)

    if re.search(r"(theater|hall|cinema|movie|screen|booking|book)", lowered) and memory.theaters:
        matched = find_theaters(message, memory.theaters)
        if not details:
            return "Haan ji 😊 Private theaters available hain.\nKitne log (couple/friends) aur date/time kya chahiye?"
        lines = ["Perfect! 😊 Top options:"]
        for index, theater in enumerate(matched[:2], start=1):
            lines.append(f"{index}) {theater.get('name')} (₹{theater.get('price')})")
        lines.append("Kitne log hain aur kaunsi date/time chahiye?")
        return "\n".join(lines)

    if re.search(r"(occasion|celebration|birthday|anniversary|proposal|date|romantic)", lowered) and memory.occasions:
        matched = find_occasions(message, memory.occasions)
        if not details:
            return "Aww nice! 🎉\nOccasion kaunsa hai aur kitne log aa rahe hain?"
        lines = ["Aww nice! 🎉 Options:"]
        for index, occasion in enumerate(matched[:2], start=1):
            lines.append(f"{index}) {occasion.get('name')}")
        lines.append("Occasion kaunsa hai aur kitne log?")
        return "\n".join(lines)

    if re.search(r"(price|cost|fee|charges|how much|pricing|rate)", lowered) and memory.theaters:
        if not details:
            prices = []
            for theater in memory.theaters:
                try:
                    prices.append(float(theater.get("price")))
                except (TypeError, ValueError):
                    continue
            minimum = f"{min(prices):g}" if prices else "..."
            return f"Pricing starts from ₹{minimum} (theater pe depend).\nKitne log aur kaunsa time slot chahiye?"
        lines = ["Pricing quick view (base):"]
        for theater in memory.theaters[:3]:
            lines.append(f"- {theater.get('name')}: ₹{theater.get('price')}")
        lines.append("Kaunsa theater aur kitne log?")
        return "\n".join(lines)

    if re.search(r"(service|food|decoration|gift|cake|add.on|extra)", lowered) and (memory.services or memory.gifts):
        if not details:
            return "Haan ji 😊 Add-ons available hain (decoration/cake/food/gifts).\nAapko exactly kya chahiye?"
        lines = ["Haan ji 😊 Options:"]
        if memory.services:
            lines.append("Services: " + ", ".join(str(s.get("name")) for s in memory.services[:2]))
        if memory.gifts:
            lines.append(
                "Add-ons: " + ", ".join(f"{g.get('name')} (₹{g.get('price')})" for g in memory.gifts[:2])
            )
        lines.append("Aapko decoration chahiye ya cake/food?")
        return "\n".join(lines)

    if memory.admin:
        snippets = relevant_snippets(message, memory.admin, 4 if details else 2)
        if snippets:
            short = "\n".join(shorten_text(snippet, 220 if details else 140) for snippet in snippets)
            return pick_non_repeating(
                [
                    f"{short}\nAap kis cheez pe focus karna chahte ho?",
                    f"{short}\nAapko booking/pricing/slots me se kispe help chahiye?",
                ],
                last,
            )

    return pick_non_repeating(DEFAULT_RESPONSES, last)
