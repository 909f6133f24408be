from dataclasses import asdict, dataclass, field
from typing import Optional

from hostline.costs import CostLedger
from hostline.states import CallStatus

DRAFT_FIELDS = (
    "date",
    "time",
    "party_size",
    "customer_name",
    "customer_phone",
    "special_requests",
)


@dataclass
class Turn:
    role: str  # "caller" | "agent"
    text: str
    timestamp: float
    confidence: Optional[float] = None
    tokens_used: Optional[int] = None
    intent: Optional[str] = None
    response_time_ms: Optional[int] = None
    source: Optional[str] = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ReservationDraft:
    date: Optional[str] = None
    time: Optional[str] = None
    party_size: Optional[int] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    special_requests: Optional[str] = None

    def merge(self, fields: dict) -> list[str]:
        """Apply non-null fields, last writer wins. Returns the names that changed."""
        changed = []
        for name in DRAFT_FIELDS:
            value = fields.get(name)
            if value is None:
                continue
            if getattr(self, name) != value:
                setattr(self, name, value)
                changed.append(name)
        return changed

    @property
    def is_complete(self) -> bool:
        return bool(
            self.date and self.time and self.party_size
            and (self.customer_name or self.customer_phone)
        )

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class CallSession:
    id: str
    business_id: str
    caller_number: str = ""
    called_number: str = ""
    status: CallStatus = CallStatus.INITIATED

    conversation: list[Turn] = field(default_factory=list)
    turn_count: int = 0
    timeout_count: int = 0
    consecutive_failures: int = 0
    current_intent: Optional[str] = None

    reservation_draft: ReservationDraft = field(default_factory=ReservationDraft)
    booking_attempted: bool = False
    reservation_id: Optional[str] = None

    # Cost metrics
    start_time: float = 0.0
    duration_seconds: Optional[int] = None
    tokens_input: int = 0
    tokens_output: int = 0
    extraction_tokens: int = 0
    model_tier: str = "cheap"
    characters_synthesized: int = 0
    cost_ledger: CostLedger = field(default_factory=CostLedger)

    generation: int = 0
    end_reason: str = ""
    errors: list[dict] = field(default_factory=list)

    def add_caller_turn(self, text: str, timestamp: float, confidence: Optional[float]) -> Turn:
        turn = Turn(role="caller", text=text, timestamp=timestamp, confidence=confidence)
        self.conversation.append(turn)
        self.turn_count += 1
        return turn

    def add_agent_turn(self, text: str, timestamp: float, **extra) -> Turn:
        turn = Turn(role="agent", text=text, timestamp=timestamp, **extra)
        self.conversation.append(turn)
        return turn

    def recent_history(self, limit: int) -> list[Turn]:
        return self.conversation[-limit:] if limit > 0 else []

    @property
    def caller_turns(self) -> list[Turn]:
        return [t for t in self.conversation if t.role == "caller"]

    def elapsed(self, now: float) -> float:
        return max(0.0, now - self.start_time) if self.start_time > 0 else 0.0
