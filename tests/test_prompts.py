from conftest import FIXED_NOW, make_business
from hostline.business import Personality, ReservationSettings
from hostline.prompts import build_messages, build_system_prompt
from hostline.session import ReservationDraft, Turn


class TestSystemPrompt:
    def test_includes_business_details(self, business):
        prompt = build_system_prompt(business, FIXED_NOW)
        assert "You are Gina, the phone assistant for Trattoria Roma." in prompt
        assert "- Address: 12 Harbor Street" in prompt
        assert "- Thursday: 12:00-23:00" in prompt
        assert "- Sunday: closed" in prompt
        assert "- Margherita: 48" in prompt
        assert "Q: Do you have parking?" in prompt

    def test_open_status_follows_clock(self, business):
        # 08:53 UTC, before opening
        assert "Current status: CLOSED" in build_system_prompt(business, FIXED_NOW)
        assert "Current status: OPEN" in build_system_prompt(business, FIXED_NOW + 4 * 3600)

    def test_known_info_lists_draft(self, business):
        draft = ReservationDraft(date="2025-10-10", party_size=4)
        prompt = build_system_prompt(business, FIXED_NOW, draft, "reservation")
        assert "KNOWN INFO:" in prompt
        assert "- Previous intent: reservation" in prompt
        assert "- Reservation party size: 4" in prompt
        assert "Reservation time" not in prompt

    def test_no_known_info_section_when_empty(self, business):
        assert "KNOWN INFO:" not in build_system_prompt(business, FIXED_NOW)

    def test_reservations_disabled(self):
        business = make_business(reservations=ReservationSettings(enabled=False))
        assert "not taken by phone" in build_system_prompt(business, FIXED_NOW)

    def test_professional_tone_and_custom_instructions(self):
        business = make_business(personality=Personality(
            bot_name="Max", tone="professional", custom_instructions="Never discuss prices.",
        ))
        prompt = build_system_prompt(business, FIXED_NOW)
        assert "professional and courteous" in prompt
        assert prompt.endswith("Never discuss prices.")


def test_build_messages_maps_roles():
    history = [
        Turn(role="agent", text="Hello!", timestamp=1.0),
        Turn(role="caller", text="Are you open?", timestamp=2.0),
    ]
    messages = build_messages("sys", history, "And tomorrow?")
    assert messages == [
        {"role": "system", "content": "sys"},
        {"role": "assistant", "content": "Hello!"},
        {"role": "user", "content": "Are you open?"},
        {"role": "user", "content": "And tomorrow?"},
    ]
