"""Per-turn response pipeline.

    utterance -> confidence floor -> intent -> FAQ cache -> tier -> Responder
              -> reservation extraction -> FAQ cache store

Raises ResponseGenerationError when the Responder fails; everything else
(cache errors, extraction errors) degrades silently.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from hostline.business import BusinessProfile
from hostline.cache import FAQCache
from hostline.config import Messages, PipelineConfig
from hostline.costs import CAPABLE_TIER, CHEAP_TIER
from hostline.intent import COMPLEX_INTENTS, INFORMATIONAL_INTENTS, SIMPLE_INTENTS, classify_intent
from hostline.prompts import build_system_prompt
from hostline.responder import Responder, ResponderContext
from hostline.session import ReservationDraft, Turn

logger = logging.getLogger(__name__)

SOURCE_GENERATED = "generated"
SOURCE_FAQ_CACHE = "faq_cache"
SOURCE_CLARIFICATION = "clarification"


@dataclass(frozen=True)
class PipelineResult:
    text: str
    intent: str
    source: str
    extracted_fields: dict = field(default_factory=dict)
    tokens_input: int = 0
    tokens_output: int = 0
    model: str = ""
    tier: Optional[str] = None
    response_time_ms: int = 0
    extraction_tokens: int = 0

    @property
    def tokens_used(self) -> int:
        return self.tokens_input + self.tokens_output + self.extraction_tokens


def select_tier(intent: str, utterance: str, history_len: int, config: PipelineConfig) -> str:
    """Pick the generation tier. Deterministic for identical inputs."""
    if intent in SIMPLE_INTENTS:
        return CHEAP_TIER
    if history_len < config.shallow_history_turns and len(utterance) < config.short_utterance_chars:
        return CHEAP_TIER
    if intent in COMPLEX_INTENTS and (
        history_len > config.deep_history_turns or len(utterance) > config.long_utterance_chars
    ):
        return CAPABLE_TIER
    return CHEAP_TIER


class ResponsePipeline:
    def __init__(
        self,
        responder: Responder,
        faq_cache: FAQCache,
        config: PipelineConfig = PipelineConfig(),
        messages: Messages = Messages(),
        clock: Callable[[], float] = time.time,
    ):
        self.responder = responder
        self.faq_cache = faq_cache
        self.config = config
        self.messages = messages
        self._clock = clock

    def model_for(self, tier: str) -> str:
        return self.config.capable_model if tier == CAPABLE_TIER else self.config.cheap_model

    async def run(
        self,
        utterance: str,
        confidence: Optional[float],
        business: BusinessProfile,
        history: list[Turn],
        draft: ReservationDraft,
        current_intent: Optional[str] = None,
    ) -> PipelineResult:
        started = time.monotonic()

        if confidence is not None and confidence < self.config.confidence_floor:
            logger.info("Low confidence %.2f, asking caller to repeat", confidence)
            return PipelineResult(
                text=self.messages.clarification,
                intent="clarify",
                source=SOURCE_CLARIFICATION,
            )

        intent = classify_intent(utterance)

        faq_key = None
        if intent in INFORMATIONAL_INTENTS:
            faq_key = self.faq_cache.key_for(business.id, utterance)
            cached = await self.faq_cache.get(faq_key)
            if cached:
                logger.debug("FAQ cache hit for business %s", business.id)
                return PipelineResult(
                    text=cached["answer"],
                    intent=cached.get("intent", intent),
                    source=SOURCE_FAQ_CACHE,
                    model="cache",
                    response_time_ms=int((time.monotonic() - started) * 1000),
                )

        tier = select_tier(intent, utterance, len(history), self.config)
        model = self.model_for(tier)
        now = self._clock()
        prompt = build_system_prompt(business, now, draft, current_intent)
        context = ResponderContext(
            history=history,
            utterance=utterance,
            intent=intent,
            model=model,
            max_tokens=business.ai.max_response_tokens,
            temperature=business.ai.temperature,
            today=business.local_now(now).date().isoformat(),
        )

        # ResponseGenerationError propagates to the orchestrator
        completion = await self.responder.generate(prompt, context)

        extracted = {}
        if intent == "reservation" and completion.extracted_fields:
            extracted = dict(completion.extracted_fields)

        if faq_key is not None:
            await self.faq_cache.set(faq_key, {
                "answer": completion.text,
                "intent": intent,
                "cached_at": datetime.fromtimestamp(now).isoformat(),
            })

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Response generated: intent=%s tier=%s model=%s tokens=%d time=%dms",
            intent, tier, completion.model or model, completion.tokens_used, elapsed_ms,
        )
        return PipelineResult(
            text=completion.text,
            intent=intent,
            source=SOURCE_GENERATED,
            extracted_fields=extracted,
            tokens_input=completion.tokens_input,
            tokens_output=completion.tokens_output,
            model=completion.model or model,
            tier=tier,
            response_time_ms=elapsed_ms,
            extraction_tokens=completion.extraction_tokens,
        )
