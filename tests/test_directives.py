from hostline.directives import Directive


def test_speak_with_and_without_audio():
    assert Directive.speak("Hi").to_dict() == {"type": "speak", "text": "Hi"}
    assert Directive.speak("Hi", "audio://1").to_dict() == {"type": "speak", "text": "Hi", "audio_ref": "audio://1"}


def test_gather_defaults():
    assert Directive.gather("he-IL").to_dict() == {
        "type": "gather",
        "input": "speech",
        "language": "he-IL",
        "speech_timeout": "auto",
        "action": "respond",
    }


def test_hangup_and_redirect():
    assert Directive.hangup().to_dict() == {"type": "hangup"}
    assert Directive.redirect().payload == {"action": "timeout"}
