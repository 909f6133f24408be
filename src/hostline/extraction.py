import logging
import re
from datetime import date, datetime

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """Extract reservation details from this phone exchange.
Return ONLY valid JSON. Only extract what the CALLER explicitly said; ignore the assistant's suggestions.

Fields:
- date: Reservation date as "YYYY-MM-DD". Today is {today}; resolve "tomorrow", weekday names etc. against it.
- time: Reservation time as 24-hour "HH:MM".
- partySize: Number of guests as an integer.
- customerName: The caller's name only. Not a phone number.
- customerPhone: A phone number the caller gave for the reservation.
- specialRequests: Anything else the caller asked for (high chair, allergy, birthday, seating).

Use null for any field the caller did not mention.
Do not guess or fabricate values."""

SENTINEL_VALUES = {
    "not provided", "n/a", "na", "unknown", "none", "null", "tbd",
    "customer", "caller", "guest",
}

_DRAFT_KEYS = {
    "date": "date",
    "time": "time",
    "partySize": "party_size",
    "party_size": "party_size",
    "customerName": "customer_name",
    "customer_name": "customer_name",
    "customerPhone": "customer_phone",
    "customer_phone": "customer_phone",
    "specialRequests": "special_requests",
    "special_requests": "special_requests",
}


def validate_date(value) -> str | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value).strip()).isoformat()
    except ValueError:
        return None


def validate_time(value) -> str | None:
    if not value:
        return None
    text = str(value).strip().lower()
    for fmt in ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I %p", "%I:%M%p", "%I%p"):
        try:
            return datetime.strptime(text, fmt).strftime("%H:%M")
        except ValueError:
            continue
    return None


def validate_party_size(value) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        size = int(str(value).strip())
    except ValueError:
        return None
    return size if size > 0 else None


def validate_name(value) -> str | None:
    if not value:
        return None
    cleaned = str(value).strip()
    if cleaned.lower() in SENTINEL_VALUES:
        return None
    # Reject phone numbers used as names
    if re.match(r"^[\d+\-() ]{7,}$", cleaned):
        return None
    return cleaned


def validate_phone(value) -> str | None:
    if not value:
        return None
    cleaned = re.sub(r"[^\d+]", "", str(value))
    digits = cleaned.lstrip("+")
    if len(digits) < 7 or not digits.isdigit():
        return None
    return cleaned


def validate_text(value) -> str | None:
    if not value:
        return None
    cleaned = str(value).strip()
    if not cleaned or cleaned.lower() in SENTINEL_VALUES:
        return None
    return cleaned


_VALIDATORS = {
    "date": validate_date,
    "time": validate_time,
    "party_size": validate_party_size,
    "customer_name": validate_name,
    "customer_phone": validate_phone,
    "special_requests": validate_text,
}


def normalize_fields(raw: dict) -> dict:
    """Map a model's JSON output onto draft fields, dropping anything invalid.

    Only non-null, valid values survive, so merging the result into a draft
    never erases a field that was already known.
    """
    if not isinstance(raw, dict):
        return {}
    fields = {}
    for key, value in raw.items():
        name = _DRAFT_KEYS.get(key)
        if name is None:
            continue
        cleaned = _VALIDATORS[name](value)
        if cleaned is not None:
            fields[name] = cleaned
        elif value not in (None, ""):
            logger.debug("Dropped invalid extracted %s=%r", name, value)
    return fields
