"""Rule-based intent classification.

Rules are an ordered list of (category, matcher) pairs.  The first rule that
matches wins, so declaration order is the tie-break.  Matching runs on
normalized text: case-folded, with diacritics (Latin accents and Hebrew
niqqud alike) stripped.
"""

import re
import unicodedata
from typing import Callable

Matcher = Callable[[str], bool]

GENERAL = "general"

INFORMATIONAL_INTENTS = frozenset({"hours", "location", "menu", "faq"})
SIMPLE_INTENTS = frozenset({"hours", "location", "confirm", "deny", "faq", "farewell"})
COMPLEX_INTENTS = frozenset({"reservation", "complaint", "cancel"})

_PUNCTUATION = re.compile(r"[?!.,;:\"]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Case- and diacritic-insensitive form of ``text`` used for matching and cache keys."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    folded = stripped.casefold().replace("’", "'")
    folded = _PUNCTUATION.sub("", folded)
    return _WHITESPACE.sub(" ", folded).strip()


def keywords(*phrases: str) -> Matcher:
    """Match when any of ``phrases`` appears anywhere in the text.

    Substring matching lets Hebrew keywords match through attached prefixes
    (ה, ו, ב, ל, ש) and English ones through compounds ("rebook").
    """
    needles = [normalize_text(p) for p in phrases]

    def match(normalized: str) -> bool:
        return any(n in normalized for n in needles)

    return match


def words(*tokens: str) -> Matcher:
    """Match short tokens only as whole words ("no" must not fire on "know")."""
    compiled = [re.compile(rf"(?<!\w){re.escape(normalize_text(t))}(?!\w)") for t in tokens]

    def match(normalized: str) -> bool:
        return any(p.search(normalized) for p in compiled)

    return match


def pattern(regex: str) -> Matcher:
    compiled = re.compile(regex)

    def match(normalized: str) -> bool:
        return bool(compiled.search(normalized))

    return match


INTENT_RULES: list[tuple[str, Matcher]] = [
    ("cancel", keywords(
        "cancel", "cancellation", "reschedule", "change my reservation", "move my reservation",
        "לבטל", "ביטול", "לשנות הזמנה", "לדחות",
    )),
    ("reservation", keywords(
        "reservation", "reserve", "book", "booking", "a table", "table for",
        "הזמנה", "להזמין", "שולחן", "מקום", "תור", "ריזרב", "בוקינג",
    )),
    ("reservation", pattern(r"רוצ[הי] להזמין|אפשר (להזמין|לקבוע)")),
    ("hours", keywords(
        "hours", "open", "opening", "close", "closing", "what time", "until when",
        "שעות פתיחה", "מתי פתוח", "מתי סוגר", "שעות פעילות", "פתוח היום", "פתוחים", "עד מתי", "משעה",
    )),
    ("menu", keywords(
        "menu", "dishes", "food", "vegetarian", "vegan", "kosher", "gluten", "allergy", "price", "prices",
        "תפריט", "מנות", "אוכל", "מה יש", "מחירים", "צמחוני", "טבעוני", "כשר", "אלרגיה",
    )),
    ("location", keywords(
        "where", "address", "location", "directions", "parking", "how do i get",
        "איפה", "כתובת", "מיקום", "איך מגיעים", "חניה", "נווט", "וויז", "גוגל מפות",
    )),
    ("complaint", keywords(
        "complaint", "complain", "problem", "unhappy", "terrible", "awful", "manager",
        "תלונה", "בעיה", "לא מרוצה", "גרוע", "נורא", "מתלונן", "רוצה מנהל",
    )),
    ("farewell", keywords(
        "bye", "goodbye", "that's all", "that is all", "nothing else", "that's it",
        "להתראות", "ביי", "תודה זהו", "סיימתי",
    )),
    ("confirm", words("yes", "yeah", "yep", "sure", "okay", "ok", "כן")),
    ("confirm", keywords(
        "correct", "exactly", "sounds good",
        "נכון", "בסדר", "מאשר", "אישור", "בדיוק", "טוב",
    )),
    ("deny", words("no", "nope", "לא")),
    ("deny", keywords("not really", "i don't want", "לא רוצה")),
    ("faq", keywords(
        "do you", "is there", "can i", "are you", "do you have",
        "יש", "האם", "אפשר", "מקבלים", "עובד",
    )),
]


def classify_intent(text: str, rules: list[tuple[str, Matcher]] = INTENT_RULES) -> str:
    normalized = normalize_text(text)
    if not normalized:
        return GENERAL
    for category, matcher in rules:
        if matcher(normalized):
            return category
    return GENERAL
