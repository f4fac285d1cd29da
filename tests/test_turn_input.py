from kickoff.turn_input import (
    SpeechFailure,
    SpeechOptions,
    SpeechRecognitionError,
    TurnInput,
    listen_once,
    normalize_turn,
)


def test_normalize_collapses_whitespace():
    assert normalize_turn("  a \n web\tapp ") == TurnInput(text="a web app", is_voice=False)
    assert normalize_turn(None).is_empty


def test_normalize_keeps_voice_flag():
    assert normalize_turn("hello", is_voice=True).is_voice is True


def test_listen_once_returns_voice_turn(fake_speech):
    speech = fake_speech(utterance="  build a portfolio site ")

    heard = listen_once(speech, SpeechOptions(language="en-GB"))

    assert heard == TurnInput(text="build a portfolio site", is_voice=True)
    assert speech.options == [SpeechOptions(language="en-GB")]


def test_listen_once_defaults_options(fake_speech):
    speech = fake_speech(utterance="hi")

    listen_once(speech)

    assert speech.options[0].timeout_ms == 10000
    assert speech.options[0].continuous is False


def test_blank_utterance_is_no_speech(fake_speech):
    heard = listen_once(fake_speech(utterance="   "))

    assert isinstance(heard, SpeechFailure)
    assert heard.code == "no-speech"


def test_recognizer_errors_become_failures(fake_speech):
    heard = listen_once(fake_speech(error=SpeechRecognitionError("network", "connection dropped")))

    assert heard == SpeechFailure(code="network", message="connection dropped")


def test_timeout_becomes_failure(fake_speech):
    heard = listen_once(fake_speech(error=TimeoutError()))

    assert isinstance(heard, SpeechFailure)
    assert heard.code == "timeout"
