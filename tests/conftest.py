import asyncio

import pytest

from hostline.business import FAQ, BusinessProfile, MenuItem, OpeningHours, Personality, ReservationSettings
from hostline.cache import AudioCache, FAQCache
from hostline.config import OrchestratorConfig
from hostline.events import EventPublisher, InMemoryEventBus
from hostline.orchestrator import Orchestrator
from hostline.pipeline import ResponsePipeline
from hostline.reservations import ReservationArbitrator
from hostline.responder import Completion
from hostline.session_store import InMemorySessionStore
from hostline.store import InMemoryStore
from hostline.synthesis import CachingSynthesizer, VoiceParams

# Thursday 2025-10-09 08:53:20 UTC
FIXED_NOW = 1_760_000_000.0

BUSINESS_NUMBER = "+15550001111"
CALLER_NUMBER = "+15125551234"


class FakeClock:
    def __init__(self, now: float = FIXED_NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponder:
    """Scripted Responder. Each queued reply is a Completion or an exception to raise."""

    def __init__(self, replies=None, summary="Caller asked about the restaurant.", missing=None):
        self.replies = list(replies or [])
        self.summary = summary
        self.missing = missing or []
        self.calls = []
        self.summarize_calls = 0
        self.gate: asyncio.Event | None = None
        self.started = asyncio.Event()

    async def generate(self, prompt, context):
        self.calls.append((prompt, context))
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        reply = self.replies.pop(0) if self.replies else Completion(
            text="Sure, what else can I help with?",
            intent=context.intent,
            tokens_input=100,
            tokens_output=20,
            model=context.model,
        )
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def summarize(self, conversation, business):
        self.summarize_calls += 1
        return self.summary

    async def detect_missing_info(self, conversation, business):
        return list(self.missing)


class FakeSynthesizer:
    def __init__(self, fail: bool = False, delay: float = 0.0):
        self.fail = fail
        self.delay = delay
        self.calls: list[tuple[str, VoiceParams]] = []

    async def synthesize(self, text, voice_params):
        self.calls.append((text, voice_params))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("tts down")
        return f"audio://{len(self.calls)}"


async def no_sleep(_seconds):
    return None


def make_business(**overrides) -> BusinessProfile:
    fields = dict(
        id="biz-1",
        name="Trattoria Roma",
        phone_number=BUSINESS_NUMBER,
        address="12 Harbor Street",
        timezone="UTC",
        language="en-US",
        hours=tuple(
            OpeningHours(day=d, open_time="12:00", close_time="23:00")
            for d in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
        ) + (OpeningHours(day="sunday", is_open=False),),
        menu=(MenuItem("Margherita", 48), MenuItem("Tiramisu", 32)),
        faqs=(FAQ("Do you have parking?", "Yes, free parking behind the building."),),
        personality=Personality(bot_name="Gina"),
        reservations=ReservationSettings(max_party_size=50),
    )
    fields.update(overrides)
    return BusinessProfile(**fields)


class Harness:
    """An orchestrator wired to in-memory collaborators."""

    def __init__(self, business=None, responder=None, synthesizer=None, config=None, store=None, sessions=None):
        self.clock = FakeClock()
        self.business = business or make_business()
        self.store = store or InMemoryStore()
        self.store.add_business(self.business)
        self.responder = responder or FakeResponder()
        self.synthesizer = synthesizer or FakeSynthesizer()
        self.bus = InMemoryEventBus()
        self.publisher = EventPublisher(self.bus)
        self.sessions = sessions if sessions is not None else InMemorySessionStore()
        self.audio_cache = AudioCache(24 * 3600, clock=self.clock)
        self.faq_cache = FAQCache(3600, clock=self.clock)
        self.config = config or OrchestratorConfig(
            pipeline_timeout=1.0, lock_timeout=1.0, persistence_retry_delay=0,
        )
        self.pipeline = ResponsePipeline(self.responder, self.faq_cache, clock=self.clock)
        self.orchestrator = Orchestrator(
            sessions=self.sessions,
            store=self.store,
            pipeline=self.pipeline,
            synthesizer=CachingSynthesizer(self.synthesizer, self.audio_cache),
            arbitrator=ReservationArbitrator(self.store),
            publisher=self.publisher,
            responder=self.responder,
            config=self.config,
            clock=self.clock,
            sleep=no_sleep,
        )

    async def events(self, name):
        await self.publisher.drain()
        return self.bus.events(name)


@pytest.fixture
def business():
    return make_business()


@pytest.fixture
def harness():
    return Harness()


@pytest.fixture
def clock():
    return FakeClock()
