from hostline.states import CARRIER_TERMINAL_STATUSES, TRANSITIONS, CallStatus, can_transition


def test_all_states_have_transition_entries():
    assert set(TRANSITIONS) == set(CallStatus)


def test_ended_is_a_sink():
    assert TRANSITIONS[CallStatus.ENDED] == set()
    assert not any(can_transition(CallStatus.ENDED, s) for s in CallStatus)


def test_ending_only_goes_to_ended():
    assert TRANSITIONS[CallStatus.ENDING] == {CallStatus.ENDED}


def test_every_live_state_can_be_forced_to_ending():
    for status in CallStatus:
        if status.is_terminal:
            continue
        assert can_transition(status, CallStatus.ENDING), status


def test_error_recovery_returns_to_listening():
    assert can_transition(CallStatus.ERROR_RECOVERY, CallStatus.AWAITING_SPEECH)
    assert not can_transition(CallStatus.ERROR_RECOVERY, CallStatus.PROCESSING_TURN)


def test_processing_requires_listening_state():
    sources = {s for s in CallStatus if can_transition(s, CallStatus.PROCESSING_TURN)}
    assert sources == {CallStatus.GREETING_SENT, CallStatus.AWAITING_SPEECH}


def test_predicates():
    assert CallStatus.GREETING_SENT.accepts_speech
    assert CallStatus.AWAITING_SPEECH.accepts_speech
    assert not CallStatus.PROCESSING_TURN.accepts_speech
    assert CallStatus.ENDING.is_terminal
    assert CallStatus.ENDING.is_live
    assert not CallStatus.ENDED.is_live


def test_carrier_terminal_statuses():
    assert CARRIER_TERMINAL_STATUSES == {"completed", "failed", "busy", "no-answer", "canceled"}
