from hostline.business import WEEKDAYS, BusinessProfile
from hostline.session import ReservationDraft, Turn

PERSONA = """You are {bot_name}, the phone assistant for {business_name}.

VOICE & STYLE
- Tone: {tone_description}.
- Short, to-the-point answers: 2-3 sentences maximum.
- ONE question at a time. NEVER repeat yourself.
- Reply in the caller's language.

RULES
1. If the caller wants a reservation, collect: date, time, number of guests, name, phone.
2. NEVER re-ask something already known (see KNOWN INFO).
3. NEVER confirm a reservation yourself; the system confirms it once it is booked.
4. If you don't understand, politely ask the caller to repeat.
5. If the question is outside what you know, refer the caller to the business phone number.
6. Always close on a positive note."""


def _tone_description(tone: str) -> str:
    if tone == "professional":
        return "professional and courteous"
    return "friendly and warm"


def _business_section(business: BusinessProfile) -> str:
    lines = [
        "BUSINESS INFO",
        f"- Name: {business.name}",
        f"- Type: {business.business_type}",
    ]
    if business.address:
        lines.append(f"- Address: {business.address}")
    if business.phone_number:
        lines.append(f"- Phone: {business.phone_number}")
    if business.website:
        lines.append(f"- Website: {business.website}")
    return "\n".join(lines)


def _hours_section(business: BusinessProfile, now: float) -> str:
    lines = ["OPENING HOURS"]
    for day in WEEKDAYS:
        h = business.hours_for(day)
        if h is None or not h.is_open:
            lines.append(f"- {day.capitalize()}: closed")
        else:
            lines.append(f"- {day.capitalize()}: {h.open_time}-{h.close_time}")
    lines.append(f"Current status: {'OPEN' if business.is_open(now) else 'CLOSED'}")
    return "\n".join(lines)


def _reservations_section(business: BusinessProfile) -> str:
    settings = business.reservations
    if not settings.enabled:
        return "RESERVATIONS\n- Reservations are not taken by phone."
    return (
        "RESERVATIONS\n"
        f"- Reservations are accepted up to {settings.advance_booking_days} days ahead.\n"
        f"- Maximum {settings.max_party_size} guests per time slot."
    )


def _menu_section(business: BusinessProfile) -> str:
    if not business.menu:
        return "MENU\n- No menu configured."
    items = "\n".join(f"- {item.name}: {item.price:g}" for item in business.menu[:10])
    return f"MENU\n{items}"


def _faq_section(business: BusinessProfile) -> str:
    if not business.faqs:
        return ""
    pairs = "\n\n".join(f"Q: {f.question}\nA: {f.answer}" for f in business.faqs[:5])
    return f"FREQUENT QUESTIONS\n{pairs}"


def _context_section(draft: ReservationDraft, current_intent: str | None) -> str:
    parts = []
    if current_intent:
        parts.append(f"Previous intent: {current_intent}")
    known = draft.to_dict()
    for name, value in known.items():
        parts.append(f"Reservation {name.replace('_', ' ')}: {value}")
    if not parts:
        return ""
    return "KNOWN INFO:\n" + "\n".join(f"- {p}" for p in parts)


def build_system_prompt(
    business: BusinessProfile,
    now: float,
    draft: ReservationDraft | None = None,
    current_intent: str | None = None,
) -> str:
    persona = PERSONA.format(
        bot_name=business.personality.bot_name,
        business_name=business.name,
        tone_description=_tone_description(business.personality.tone),
    )
    sections = [
        persona,
        _business_section(business),
        _hours_section(business, now),
        _reservations_section(business),
        _menu_section(business),
        _faq_section(business),
        _context_section(draft or ReservationDraft(), current_intent),
        business.personality.custom_instructions,
    ]
    return "\n\n".join(s for s in sections if s)


def build_messages(system_prompt: str, history: list[Turn], utterance: str) -> list[dict]:
    """Chat messages: system prompt, prior turns, then the new utterance."""
    messages = [{"role": "system", "content": system_prompt}]
    for turn in history:
        messages.append({
            "role": "user" if turn.role == "caller" else "assistant",
            "content": turn.text,
        })
    messages.append({"role": "user", "content": utterance})
    return messages
