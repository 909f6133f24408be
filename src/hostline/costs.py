"""Per-call cost ledger.

The ledger is a pure function of the call's metrics.  The orchestrator calls
``recompute()`` whenever duration or token/character counts change; nothing
recomputes implicitly on persistence.
"""

from dataclasses import asdict, dataclass

CAPABLE_TIER = "capable"
CHEAP_TIER = "cheap"


@dataclass(frozen=True)
class CostRates:
    telephony_per_minute: float = 0.02
    recognition_per_minute: float = 0.016
    synthesis_per_million_chars: float = 16.0
    cheap_per_1k_tokens: float = 0.002
    capable_input_per_1k_tokens: float = 0.01
    capable_output_per_1k_tokens: float = 0.03
    currency_multiplier: float = 3.7
    currency: str = "ILS"


@dataclass(frozen=True)
class CostLedger:
    telephony: float = 0.0
    recognition: float = 0.0
    synthesis: float = 0.0
    generation: float = 0.0
    total: float = 0.0
    currency: str = "ILS"

    def to_dict(self) -> dict:
        return asdict(self)


def _generation_cost(tokens_input: int, tokens_output: int, model_tier: str, rates: CostRates) -> float:
    if model_tier == CAPABLE_TIER:
        return (
            tokens_input / 1000 * rates.capable_input_per_1k_tokens
            + tokens_output / 1000 * rates.capable_output_per_1k_tokens
        )
    return (tokens_input + tokens_output) / 1000 * rates.cheap_per_1k_tokens


def recompute(
    duration_seconds: float,
    tokens_input: int,
    tokens_output: int,
    model_tier: str,
    characters_synthesized: int,
    rates: CostRates = CostRates(),
    extraction_tokens: int = 0,
) -> CostLedger:
    """Build the ledger for a call. Identical inputs always give an identical ledger.

    ``extraction_tokens`` come from the field-extraction model, which always
    runs on the cheap tier whatever tier the conversation escalated to.
    """
    minutes = max(duration_seconds, 0) / 60
    fx = rates.currency_multiplier

    telephony = round(minutes * rates.telephony_per_minute * fx, 6)
    recognition = round(minutes * rates.recognition_per_minute * fx, 6)
    synthesis = round(
        max(characters_synthesized, 0) / 1_000_000 * rates.synthesis_per_million_chars * fx, 6
    )
    generation = round(
        (
            _generation_cost(max(tokens_input, 0), max(tokens_output, 0), model_tier, rates)
            + max(extraction_tokens, 0) / 1000 * rates.cheap_per_1k_tokens
        ) * fx,
        6,
    )
    total = round(telephony + recognition + synthesis + generation, 6)

    return CostLedger(
        telephony=telephony,
        recognition=recognition,
        synthesis=synthesis,
        generation=generation,
        total=total,
        currency=rates.currency,
    )
