"""Runtime configuration.

Every tunable lives in an explicit dataclass with a default.  ``load_settings``
reads overrides from the environment (after loading ``.env``), and
``validate_config`` is the startup check on the result: a missing key or an
out-of-range limit fails at boot rather than mid-call.
"""

import logging
import os
import sys
from dataclasses import dataclass, field

from dotenv import load_dotenv

from hostline.costs import CostRates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrchestratorConfig:
    max_turns: int = 20
    max_timeouts: int = 2
    max_consecutive_failures: int = 2
    max_call_seconds: float = 600.0
    history_turns: int = 10
    lock_timeout: float = 20.0
    pipeline_timeout: float = 12.0
    recognizer_timeout: float = 8.0
    synth_timeout: float = 5.0
    store_timeout: float = 10.0
    persistence_retry_delay: float = 2.0
    booking_attempts: int = 3


@dataclass(frozen=True)
class PipelineConfig:
    confidence_floor: float = 0.5
    cheap_model: str = "gpt-4o-mini"
    capable_model: str = "gpt-4o"
    shallow_history_turns: int = 4
    short_utterance_chars: int = 50
    deep_history_turns: int = 6
    long_utterance_chars: int = 100


@dataclass(frozen=True)
class CacheConfig:
    audio_ttl_seconds: float = 24 * 3600
    faq_ttl_seconds: float = 3600
    max_entries: int = 10_000
    # Shared Redis backend; empty keeps both caches in process memory
    redis_url: str = ""


@dataclass(frozen=True)
class Messages:
    greeting: str = "You've reached {business_name}. How can I help you today?"
    goodbye: str = "Thanks for calling. Have a great day!"
    apology: str = "Sorry, I didn't catch that. Could you say it again?"
    clarification: str = "Sorry, I couldn't hear you clearly. Could you repeat that?"
    reprompt: str = "Are you still there?"
    no_input: str = "I didn't hear anything. Goodbye."
    unavailable: str = "Sorry, we're having a technical problem. Please try again later."
    booking_confirmed: str = (
        "You're booked for {party_size} on {date} at {time}. We look forward to seeing you!"
    )
    alternate_time: str = (
        "I'm sorry, that time is fully booked. Please call us back or choose another time "
        "and we'll be happy to help."
    )


@dataclass(frozen=True)
class Settings:
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    store_url: str = ""
    store_api_key: str = ""
    events_url: str = ""
    events_secret: str = ""
    log_level: str = "INFO"
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    rates: CostRates = field(default_factory=CostRates)
    messages: Messages = field(default_factory=Messages)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, raw)
        return default


def load_settings() -> Settings:
    """Build Settings from the environment, falling back to defaults."""
    load_dotenv()
    defaults = CostRates()
    rates = CostRates(
        telephony_per_minute=_float_env("COST_PER_MINUTE_TELEPHONY", defaults.telephony_per_minute),
        recognition_per_minute=_float_env("COST_PER_MINUTE_STT", defaults.recognition_per_minute),
        synthesis_per_million_chars=_float_env(
            "COST_PER_MILLION_CHARS_TTS", defaults.synthesis_per_million_chars
        ),
        cheap_per_1k_tokens=_float_env("COST_PER_1K_TOKENS_CHEAP", defaults.cheap_per_1k_tokens),
        capable_input_per_1k_tokens=_float_env(
            "COST_PER_1K_INPUT_TOKENS_CAPABLE", defaults.capable_input_per_1k_tokens
        ),
        capable_output_per_1k_tokens=_float_env(
            "COST_PER_1K_OUTPUT_TOKENS_CAPABLE", defaults.capable_output_per_1k_tokens
        ),
        currency_multiplier=_float_env("COST_CURRENCY_MULTIPLIER", defaults.currency_multiplier),
        currency=os.getenv("COST_CURRENCY", defaults.currency),
    )
    pipeline_defaults = PipelineConfig()
    pipeline = PipelineConfig(
        confidence_floor=_float_env("HOSTLINE_CONFIDENCE_FLOOR", pipeline_defaults.confidence_floor),
        cheap_model=os.getenv("HOSTLINE_MODEL_CHEAP", pipeline_defaults.cheap_model),
        capable_model=os.getenv("HOSTLINE_MODEL_CAPABLE", pipeline_defaults.capable_model),
    )
    orch_defaults = OrchestratorConfig()
    orchestrator = OrchestratorConfig(
        max_turns=int(_float_env("HOSTLINE_MAX_TURNS", orch_defaults.max_turns)),
        max_call_seconds=_float_env("HOSTLINE_MAX_CALL_SECONDS", orch_defaults.max_call_seconds),
    )
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        store_url=os.getenv("HOSTLINE_STORE_URL", ""),
        store_api_key=os.getenv("HOSTLINE_STORE_API_KEY", ""),
        events_url=os.getenv("HOSTLINE_EVENTS_URL", ""),
        events_secret=os.getenv("HOSTLINE_EVENTS_SECRET", ""),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        orchestrator=orchestrator,
        pipeline=pipeline,
        cache=CacheConfig(redis_url=os.getenv("REDIS_URL", "")),
        rates=rates,
    )


def validate_config(settings: Settings) -> None:
    """Check the loaded settings before any call is taken.

    Exits the process with a clear error if a required value is missing or a
    limit is out of range.  Logs warnings for optional integrations left unset.
    """
    problems = []
    if not settings.openai_api_key:
        problems.append("OPENAI_API_KEY is not set")
    if not settings.store_url:
        problems.append("HOSTLINE_STORE_URL is not set")
    if settings.orchestrator.max_turns < 1:
        problems.append(f"HOSTLINE_MAX_TURNS must be at least 1, got {settings.orchestrator.max_turns}")
    if settings.orchestrator.max_call_seconds <= 0:
        problems.append(
            f"HOSTLINE_MAX_CALL_SECONDS must be positive, got {settings.orchestrator.max_call_seconds}"
        )
    if not 0.0 <= settings.pipeline.confidence_floor <= 1.0:
        problems.append(
            f"HOSTLINE_CONFIDENCE_FLOOR must be between 0 and 1, got {settings.pipeline.confidence_floor}"
        )

    if problems:
        print(
            "\nFATAL: Invalid configuration:\n"
            + "".join(f"  {p}\n" for p in problems)
            + "\nSet them in .env or in the deployment's secrets.\n",
            file=sys.stderr,
        )
        sys.exit(1)

    if not settings.events_url:
        logger.warning("HOSTLINE_EVENTS_URL not set, events stay in process")
    if not settings.cache.redis_url:
        logger.warning("REDIS_URL not set, caches are per process")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
