import pytest

from hostline.extraction import (
    normalize_fields,
    validate_date,
    validate_name,
    validate_party_size,
    validate_phone,
    validate_time,
)


class TestValidators:
    def test_date(self):
        assert validate_date("2025-10-10") == "2025-10-10"
        assert validate_date("tomorrow") is None
        assert validate_date(None) is None

    @pytest.mark.parametrize("raw,expected", [
        ("19:00", "19:00"),
        ("7:30 pm", "19:30"),
        ("7pm", "19:00"),
        ("19:00:00", "19:00"),
        ("evening", None),
    ])
    def test_time(self, raw, expected):
        assert validate_time(raw) == expected

    def test_party_size(self):
        assert validate_party_size(4) == 4
        assert validate_party_size("6") == 6
        assert validate_party_size(0) is None
        assert validate_party_size("a few") is None
        assert validate_party_size(True) is None

    def test_name_rejects_sentinels_and_numbers(self):
        assert validate_name("Dana") == "Dana"
        assert validate_name("not provided") is None
        assert validate_name("050-123-4567") is None

    def test_phone(self):
        assert validate_phone("+972 50-123-4567") == "+972501234567"
        assert validate_phone("12") is None


class TestNormalizeFields:
    def test_maps_camel_case_and_drops_nulls(self):
        fields = normalize_fields({
            "date": "2025-10-10",
            "time": "8pm",
            "partySize": 3,
            "customerName": None,
            "customerPhone": "0501234567",
            "specialRequests": "window seat",
        })
        assert fields == {
            "date": "2025-10-10",
            "time": "20:00",
            "party_size": 3,
            "customer_phone": "0501234567",
            "special_requests": "window seat",
        }

    def test_drops_invalid_and_unknown(self):
        assert normalize_fields({"partySize": "lots", "mood": "happy"}) == {}

    def test_non_dict(self):
        assert normalize_fields(["date"]) == {}
