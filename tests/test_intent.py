import pytest

from hostline.intent import classify_intent, keywords, normalize_text


class TestNormalize:
    def test_case_and_accents(self):
        assert normalize_text("  CAFÉ   Crème ") == "cafe creme"

    def test_strips_hebrew_niqqud(self):
        assert normalize_text("שָׁלוֹם") == "שלום"

    def test_strips_punctuation(self):
        assert normalize_text("Hours?!") == "hours"

    def test_empty(self):
        assert normalize_text("") == ""


class TestClassify:
    @pytest.mark.parametrize("text,intent", [
        ("I'd like to book a table for four", "reservation"),
        ("אני רוצה להזמין שולחן", "reservation"),
        ("I need to cancel my reservation", "cancel"),
        ("What are your opening hours?", "hours"),
        ("מתי פתוח היום?", "hours"),
        ("Do you have vegan dishes?", "menu"),
        ("Where are you located?", "location"),
        ("I want to speak to a manager", "complaint"),
        ("Thanks, goodbye!", "farewell"),
        ("להתראות", "farewell"),
        ("Yes please", "confirm"),
        ("No", "deny"),
        ("Do you accept credit cards?", "faq"),
        ("Tell me a story", "general"),
        ("", "general"),
    ])
    def test_intents(self, text, intent):
        assert classify_intent(text) == intent

    def test_case_insensitive(self):
        assert classify_intent("WHAT ARE YOUR HOURS") == "hours"

    def test_first_rule_wins(self):
        rules = [("a", keywords("table")), ("b", keywords("table"))]
        assert classify_intent("a table", rules) == "a"

    @pytest.mark.parametrize("text,intent", [
        ("רציתי לשאול על ההזמנה שלי", "reservation"),
        ("i want to rebook for friday", "reservation"),
        ("ושעות פתיחה?", "hours"),
        ("I'm calling about my booking", "reservation"),
    ])
    def test_keywords_match_inside_words(self, text, intent):
        assert classify_intent(text) == intent

    @pytest.mark.parametrize("text", ["I know nothing", "let me look at my calendar", "I'm ready, מוכן"])
    def test_short_tokens_need_whole_words(self, text):
        assert classify_intent(text) not in ("confirm", "deny")

    def test_short_tokens_still_match_alone(self):
        assert classify_intent("ok") == "confirm"
        assert classify_intent("no thanks") == "deny"
        assert classify_intent("כן") == "confirm"
