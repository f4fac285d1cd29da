from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

SPEECH_ERROR_MESSAGES: dict[str, str] = {
    "no-speech": "No speech was detected. Please try again.",
    "aborted": "Listening was stopped.",
    "audio-capture": "No microphone was found or it is not working.",
    "not-allowed": "Microphone access was denied.",
    "network": "A network error interrupted speech recognition.",
    "timeout": "Listening timed out before anything was recognized.",
    "unsupported": "Speech recognition is not available here.",
}


@dataclass(frozen=True, slots=True)
class TurnInput:
    text: str
    is_voice: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.text


@dataclass(frozen=True, slots=True)
class SpeechFailure:
    code: str
    message: str


@dataclass(frozen=True, slots=True)
class SpeechOptions:
    continuous: bool = False
    language: str = "en-US"
    timeout_ms: int = 10000


class SpeechCapability(Protocol):
    def start_listening(self, options: SpeechOptions) -> str: ...

    def stop_listening(self) -> None: ...


class SpeechRecognitionError(Exception):
    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code


def normalize_turn(text: str | None, *, is_voice: bool = False) -> TurnInput:
    """Collapse whitespace so typed and transcribed turns look the same downstream."""
    return TurnInput(text=_WHITESPACE.sub(" ", text or "").strip(), is_voice=is_voice)


def speech_failure(code: str, message: str | None = None) -> SpeechFailure:
    return SpeechFailure(code=code, message=message or SPEECH_ERROR_MESSAGES.get(code, f"Speech recognition failed ({code})."))


def listen_once(
    speech: SpeechCapability, options: SpeechOptions | None = None
) -> TurnInput | SpeechFailure:
    """
    Capture one utterance. Recognizer errors come back as a `SpeechFailure` value for
    the caller to show; they never reach the orchestrator.
    """
    try:
        utterance = speech.start_listening(options or SpeechOptions())
    except SpeechRecognitionError as e:
        logger.info("Speech recognition failed: %s", e.code)
        return speech_failure(e.code, str(e) if str(e) != e.code else None)
    except TimeoutError:
        return speech_failure("timeout")

    turn = normalize_turn(utterance, is_voice=True)
    if turn.is_empty:
        return speech_failure("no-speech")
    return turn
