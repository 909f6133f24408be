"""Speech synthesis collaborators.

``Synthesizer`` is the provider interface.  ``FallbackSynthesizer`` wraps a
primary and a fallback provider behind a circuit breaker, and
``CachingSynthesizer`` is what the orchestrator talks to: it consults the
audio cache, counts billable characters on a miss, and never raises: a
failed synthesis degrades to a text-only ``speak`` directive that the
carrier voices itself.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Optional, Protocol

from hostline.cache import AudioCache
from hostline.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoiceParams:
    gender: str = "female"
    language: str = "en-US"
    speaking_rate: float = 1.0
    pitch: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


class Synthesizer(Protocol):
    async def synthesize(self, text: str, voice_params: VoiceParams) -> str:
        """Return a reference (URL or storage key) to the rendered audio."""
        ...


@dataclass(frozen=True)
class SpokenText:
    text: str
    audio_ref: Optional[str] = None
    billed_characters: int = 0
    cached: bool = False


class FallbackSynthesizer:
    """Per-utterance failover from a primary to a fallback provider.

    The breaker skips the primary entirely after repeated failures; a slow
    primary counts as a failure once ``primary_timeout`` elapses.
    """

    def __init__(
        self,
        primary: Synthesizer,
        fallback: Synthesizer,
        primary_timeout: float = 3.0,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.primary = primary
        self.fallback = fallback
        self.primary_timeout = primary_timeout
        self._circuit = breaker or CircuitBreaker(label="TTS primary")

    async def synthesize(self, text: str, voice_params: VoiceParams) -> str:
        if self._circuit.should_try():
            try:
                ref = await asyncio.wait_for(
                    self.primary.synthesize(text, voice_params), self.primary_timeout
                )
                self._circuit.record_success()
                return ref
            except Exception as e:
                self._circuit.record_failure()
                logger.warning("Primary TTS failed, using fallback: %r", e)
        return await self.fallback.synthesize(text, voice_params)


class CachingSynthesizer:
    def __init__(self, synthesizer: Synthesizer, cache: AudioCache, timeout: float = 5.0):
        self.synthesizer = synthesizer
        self.cache = cache
        self.timeout = timeout

    async def speak(self, business_id: str, text: str, voice_params: VoiceParams) -> SpokenText:
        key = self.cache.key_for(business_id, text, voice_params.to_dict())
        cached = await self.cache.get(key)
        if cached:
            logger.debug("TTS cache hit %s", key[:20])
            return SpokenText(text=text, audio_ref=cached, cached=True)

        try:
            audio_ref = await asyncio.wait_for(
                self.synthesizer.synthesize(text, voice_params), self.timeout
            )
        except Exception as e:
            logger.error("TTS failed for business %s, falling back to carrier voice: %r", business_id, e)
            return SpokenText(text=text)

        await self.cache.set(key, audio_ref)
        return SpokenText(text=text, audio_ref=audio_ref, billed_characters=len(text))
