from hostline.session import Turn


def to_plain_text(conversation: list[Turn]) -> str:
    """Render turns as "Caller:" / "Agent:" lines."""
    if not conversation:
        return ""

    lines = []
    for turn in conversation:
        if turn.role == "caller":
            lines.append(f"Caller: {turn.text}")
        elif turn.role == "agent":
            lines.append(f"Agent: {turn.text}")
    return "\n".join(lines)


def to_json_array(conversation: list[Turn]) -> list[dict]:
    """Turns as plain dicts for the call record, dropping unset fields."""
    return [turn.to_dict() for turn in conversation]


def to_relative_timeline(conversation: list[Turn], start_time: float) -> list[dict]:
    """Turns with timestamps converted to seconds since call start.

    If start_time is 0, the first turn's timestamp is used as the base.
    """
    if not conversation:
        return []
    base = start_time if start_time > 0 else conversation[0].timestamp
    return [
        {"t": round(turn.timestamp - base, 1), "role": turn.role, "text": turn.text}
        for turn in conversation
    ]
