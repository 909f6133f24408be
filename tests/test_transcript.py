from hostline.session import Turn
from hostline.transcript import to_json_array, to_plain_text, to_relative_timeline


def _conversation():
    return [
        Turn(role="agent", text="Good evening! How can I help?", timestamp=1000.0, source="system"),
        Turn(role="caller", text="A table for two", timestamp=1003.2, confidence=0.91),
        Turn(role="agent", text="For what time?", timestamp=1004.0, tokens_used=140, intent="reservation"),
    ]


def test_plain_text():
    assert to_plain_text(_conversation()) == (
        "Agent: Good evening! How can I help?\n"
        "Caller: A table for two\n"
        "Agent: For what time?"
    )


def test_plain_text_empty():
    assert to_plain_text([]) == ""


def test_json_array_drops_unset_fields():
    rows = to_json_array(_conversation())
    assert rows[1] == {"role": "caller", "text": "A table for two", "timestamp": 1003.2, "confidence": 0.91}
    assert "confidence" not in rows[2]


def test_relative_timeline():
    timeline = to_relative_timeline(_conversation(), start_time=999.0)
    assert [t["t"] for t in timeline] == [1.0, 4.2, 5.0]


def test_relative_timeline_without_start_uses_first_turn():
    timeline = to_relative_timeline(_conversation(), start_time=0)
    assert timeline[0]["t"] == 0.0
