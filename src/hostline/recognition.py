import asyncio
import logging
from typing import Protocol

from hostline.errors import RecognitionError

logger = logging.getLogger(__name__)


class Recognizer(Protocol):
    async def transcribe(self, audio: bytes) -> tuple[str, float]:
        """Return (text, confidence in [0, 1])."""
        ...


async def transcribe_or_raise(recognizer: Recognizer, audio: bytes, timeout: float) -> tuple[str, float]:
    """Run the recognizer under a timeout, mapping every failure to RecognitionError."""
    try:
        text, confidence = await asyncio.wait_for(recognizer.transcribe(audio), timeout)
    except Exception as e:
        raise RecognitionError(f"recognizer failed: {e!r}") from e
    if not text or not text.strip():
        raise RecognitionError("empty transcript")
    return text.strip(), float(confidence)
