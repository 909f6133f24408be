"""Production wiring.

The HTTP layer calls ``create_orchestrator`` once at startup with the speech
providers it was deployed with, then forwards each webhook to the matching
``Orchestrator.handle_*`` method.
"""

import logging
from typing import Optional

from hostline.cache import AudioCache, FAQCache, MemoryCacheBackend, RedisCacheBackend
from hostline.config import Settings, configure_logging, load_settings, validate_config
from hostline.events import EventPublisher, InMemoryEventBus, WebhookEventBus
from hostline.orchestrator import Orchestrator
from hostline.pipeline import ResponsePipeline
from hostline.recognition import Recognizer
from hostline.reservations import ReservationArbitrator
from hostline.responder import OpenAIResponder
from hostline.session_store import InMemorySessionStore, SessionStore
from hostline.store import HttpStore
from hostline.synthesis import CachingSynthesizer, Synthesizer

logger = logging.getLogger(__name__)


def create_orchestrator(
    synthesizer: Synthesizer,
    recognizer: Optional[Recognizer] = None,
    settings: Optional[Settings] = None,
    sessions: Optional[SessionStore] = None,
) -> Orchestrator:
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    validate_config(settings)
    orch = settings.orchestrator

    responder = OpenAIResponder(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        extraction_model=settings.pipeline.cheap_model,
        timeout=orch.pipeline_timeout,
    )
    store = HttpStore(settings.store_url, settings.store_api_key, timeout=orch.store_timeout)

    bus = (
        WebhookEventBus(settings.events_url, settings.events_secret)
        if settings.events_url else InMemoryEventBus()
    )

    cache = settings.cache
    if cache.redis_url:
        shared = RedisCacheBackend.from_url(cache.redis_url)
        audio_cache = AudioCache(cache.audio_ttl_seconds, backend=shared)
        faq_cache = FAQCache(cache.faq_ttl_seconds, backend=shared)
    else:
        audio_cache = AudioCache(cache.audio_ttl_seconds, backend=MemoryCacheBackend(max_entries=cache.max_entries))
        faq_cache = FAQCache(cache.faq_ttl_seconds, backend=MemoryCacheBackend(max_entries=cache.max_entries))

    orchestrator = Orchestrator(
        sessions=sessions if sessions is not None else InMemorySessionStore(),
        store=store,
        pipeline=ResponsePipeline(responder, faq_cache, settings.pipeline, settings.messages),
        synthesizer=CachingSynthesizer(synthesizer, audio_cache, timeout=orch.synth_timeout),
        arbitrator=ReservationArbitrator(store, attempts=orch.booking_attempts),
        publisher=EventPublisher(bus),
        responder=responder,
        recognizer=recognizer,
        config=orch,
        rates=settings.rates,
        messages=settings.messages,
    )
    logger.info(
        "Orchestrator ready: store=%s events=%s cache=%s",
        settings.store_url, settings.events_url or "in-process", "redis" if cache.redis_url else "memory",
    )
    return orchestrator
