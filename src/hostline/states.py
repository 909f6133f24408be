from enum import Enum

LISTENING_STATES = {"greeting_sent", "awaiting_speech"}
TERMINAL_STATES = {"ending", "ended"}


class CallStatus(Enum):
    INITIATED = "initiated"
    GREETING_SENT = "greeting_sent"
    AWAITING_SPEECH = "awaiting_speech"
    PROCESSING_TURN = "processing_turn"
    ERROR_RECOVERY = "error_recovery"
    ENDING = "ending"
    ENDED = "ended"

    @property
    def accepts_speech(self) -> bool:
        return self.value in LISTENING_STATES

    @property
    def is_terminal(self) -> bool:
        return self.value in TERMINAL_STATES

    @property
    def is_live(self) -> bool:
        return self is not CallStatus.ENDED


# ERROR_RECOVERY -> AWAITING_SPEECH and AWAITING_SPEECH -> AWAITING_SPEECH
# (silence re-prompt) are the only backward edges.
TRANSITIONS = {
    CallStatus.INITIATED: {CallStatus.GREETING_SENT, CallStatus.ENDING},
    CallStatus.GREETING_SENT: {CallStatus.PROCESSING_TURN, CallStatus.AWAITING_SPEECH, CallStatus.ENDING},
    CallStatus.AWAITING_SPEECH: {CallStatus.PROCESSING_TURN, CallStatus.AWAITING_SPEECH, CallStatus.ENDING},
    CallStatus.PROCESSING_TURN: {CallStatus.AWAITING_SPEECH, CallStatus.ERROR_RECOVERY, CallStatus.ENDING},
    CallStatus.ERROR_RECOVERY: {CallStatus.AWAITING_SPEECH, CallStatus.ENDING},
    CallStatus.ENDING: {CallStatus.ENDED},
    CallStatus.ENDED: set(),
}

CARRIER_TERMINAL_STATUSES = frozenset({"completed", "failed", "busy", "no-answer", "canceled"})


def can_transition(current: CallStatus, new: CallStatus) -> bool:
    return new in TRANSITIONS.get(current, set())
