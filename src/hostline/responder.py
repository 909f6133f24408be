import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import httpx

from hostline.business import BusinessProfile
from hostline.circuit_breaker import CircuitBreaker
from hostline.errors import ResponseGenerationError
from hostline.extraction import EXTRACTION_PROMPT, normalize_fields
from hostline.prompts import build_messages
from hostline.session import Turn
from hostline.transcript import to_plain_text

logger = logging.getLogger(__name__)

SUMMARY_FALLBACK = "Summary unavailable."

SUMMARY_PROMPT = """Summarize the following phone call in 2-3 sentences.
Mention what the caller wanted and how it was resolved.

{conversation}

Summary:"""

MISSING_INFO_PROMPT = """Analyze this phone conversation and list information about the business that the caller asked for but the assistant could not provide.

Conversation:
{conversation}

Business info available:
- Hours: {has_hours}
- Menu: {has_menu}
- Reservations: {has_reservations}
- FAQs: {faq_count}

Return JSON: {{"missing": [{{"field": "fieldName", "context": "what the caller asked", "priority": "high|medium|low"}}]}}
Return {{"missing": []}} if nothing is missing."""


@dataclass(frozen=True)
class ResponderContext:
    history: list[Turn]
    utterance: str
    intent: str
    model: str
    max_tokens: int = 150
    temperature: float = 0.7
    today: str = ""


@dataclass(frozen=True)
class Completion:
    text: str
    intent: str
    extracted_fields: Optional[dict] = None
    tokens_input: int = 0
    tokens_output: int = 0
    model: str = ""
    # Field-extraction usage, always billed at the cheap rate
    extraction_tokens: int = 0

    @property
    def tokens_used(self) -> int:
        return self.tokens_input + self.tokens_output + self.extraction_tokens


class Responder(Protocol):
    async def generate(self, prompt: str, context: ResponderContext) -> Completion: ...

    async def summarize(self, conversation: list[Turn], business: BusinessProfile) -> str: ...

    async def detect_missing_info(self, conversation: list[Turn], business: BusinessProfile) -> list[dict]: ...


@dataclass
class _Usage:
    prompt_tokens: int = 0
    completion_tokens: int = 0


class OpenAIResponder:
    """Chat-completions client for reply generation, extraction and summaries.

    Reply generation raises ResponseGenerationError on any failure so the
    orchestrator can run its recovery path.  Extraction, summaries and
    missing-info detection are best effort and degrade to empty results.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        extraction_model: str = "gpt-4o-mini",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.extraction_model = extraction_model
        self._circuit = CircuitBreaker(failure_threshold=3, cooldown_seconds=60.0, label="OpenAI")
        if client is not None:
            self._client = client
        else:
            self._client = httpx.AsyncClient(
                base_url=base_url.rstrip("/"),
                headers={"Authorization": f"Bearer {api_key}"},
                timeout=timeout,
            )

    async def close(self):
        await self._client.aclose()

    async def _chat(self, payload: dict) -> tuple[str, _Usage]:
        resp = await self._client.post("/chat/completions", json=payload)
        resp.raise_for_status()
        body = resp.json()
        content = body["choices"][0]["message"]["content"] or ""
        usage = body.get("usage") or {}
        return content.strip(), _Usage(
            prompt_tokens=int(usage.get("prompt_tokens", 0)),
            completion_tokens=int(usage.get("completion_tokens", 0)),
        )

    async def generate(self, prompt: str, context: ResponderContext) -> Completion:
        if not self._circuit.should_try():
            raise ResponseGenerationError("OpenAI circuit breaker open")
        try:
            text, usage = await self._chat({
                "model": context.model,
                "messages": build_messages(prompt, context.history, context.utterance),
                "max_tokens": context.max_tokens,
                "temperature": context.temperature,
                "presence_penalty": 0.1,
                "frequency_penalty": 0.1,
            })
        except Exception as e:
            self._circuit.record_failure()
            logger.error("generate failed (model=%s): %s", context.model, e)
            raise ResponseGenerationError(str(e)) from e
        self._circuit.record_success()

        if not text:
            raise ResponseGenerationError("empty completion")

        extracted = None
        extraction_tokens = 0
        if context.intent == "reservation":
            extracted, extraction_usage = await self.extract(context.utterance, text, context.today)
            extraction_tokens = extraction_usage.prompt_tokens + extraction_usage.completion_tokens

        return Completion(
            text=text,
            intent=context.intent,
            extracted_fields=extracted,
            tokens_input=usage.prompt_tokens,
            tokens_output=usage.completion_tokens,
            model=context.model,
            extraction_tokens=extraction_tokens,
        )

    async def extract(self, utterance: str, reply: str, today: str = "") -> tuple[Optional[dict], _Usage]:
        """Pull reservation fields out of one exchange. Failures return (None, zero usage)."""
        try:
            content, usage = await self._chat({
                "model": self.extraction_model,
                "temperature": 0,
                "max_tokens": 200,
                "response_format": {"type": "json_object"},
                "messages": [
                    {"role": "system", "content": EXTRACTION_PROMPT.format(today=today or "unknown")},
                    {"role": "user", "content": f'Caller said: "{utterance}"\nAssistant replied: "{reply}"'},
                ],
            })
            return normalize_fields(json.loads(content)), usage
        except Exception as e:
            logger.debug("extraction failed: %s", e)
            return None, _Usage()

    async def summarize(self, conversation: list[Turn], business: BusinessProfile) -> str:
        if not conversation:
            return ""
        try:
            content, _ = await self._chat({
                "model": self.extraction_model,
                "temperature": 0.3,
                "max_tokens": 150,
                "messages": [{
                    "role": "user",
                    "content": SUMMARY_PROMPT.format(conversation=to_plain_text(conversation)),
                }],
            })
            return content or SUMMARY_FALLBACK
        except Exception as e:
            logger.error("summary failed: %s", e)
            return SUMMARY_FALLBACK

    async def detect_missing_info(self, conversation: list[Turn], business: BusinessProfile) -> list[dict]:
        if not conversation:
            return []
        try:
            content, _ = await self._chat({
                "model": self.extraction_model,
                "temperature": 0,
                "max_tokens": 200,
                "response_format": {"type": "json_object"},
                "messages": [{
                    "role": "user",
                    "content": MISSING_INFO_PROMPT.format(
                        conversation=to_plain_text(conversation),
                        has_hours="Yes" if business.hours else "No",
                        has_menu="Yes" if business.menu else "No",
                        has_reservations="Yes" if business.reservations.enabled else "No",
                        faq_count=len(business.faqs),
                    ),
                }],
            })
            missing = json.loads(content).get("missing", [])
        except Exception as e:
            logger.warning("missing-info detection failed: %s", e)
            return []
        return [m for m in missing if isinstance(m, dict) and m.get("field")]
