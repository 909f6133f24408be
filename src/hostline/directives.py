"""Outbound instructions for the telephony layer.

The orchestrator returns an ordered list of these per webhook event; turning
them into carrier markup is the HTTP layer's job.
"""

from dataclasses import dataclass, field
from typing import Optional

SPEAK = "speak"
GATHER = "gather"
HANGUP = "hangup"
REDIRECT = "redirect"

RESPOND_ACTION = "respond"
TIMEOUT_ACTION = "timeout"


@dataclass(frozen=True)
class Directive:
    type: str
    payload: dict = field(default_factory=dict)

    @classmethod
    def speak(cls, text: str, audio_ref: Optional[str] = None) -> "Directive":
        payload = {"text": text}
        if audio_ref:
            payload["audio_ref"] = audio_ref
        return cls(SPEAK, payload)

    @classmethod
    def gather(cls, language: str, speech_timeout="auto", action: str = RESPOND_ACTION) -> "Directive":
        return cls(GATHER, {
            "input": "speech",
            "language": language,
            "speech_timeout": speech_timeout,
            "action": action,
        })

    @classmethod
    def hangup(cls) -> "Directive":
        return cls(HANGUP)

    @classmethod
    def redirect(cls, action: str = TIMEOUT_ACTION) -> "Directive":
        return cls(REDIRECT, {"action": action})

    def to_dict(self) -> dict:
        return {"type": self.type, **self.payload}
