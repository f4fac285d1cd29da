from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, TypeAlias


@dataclass(frozen=True, slots=True)
class TurnStartedEvent:
    session_id: str
    step: int
    message_id: int
    is_voice: bool = False


@dataclass(frozen=True, slots=True)
class AssistantDeltaEvent:
    message_id: int
    seq: int
    text: str


@dataclass(frozen=True, slots=True)
class AssistantMessageEvent:
    message_id: int
    content: str


@dataclass(frozen=True, slots=True)
class StepAdvancedEvent:
    session_id: str
    step: int


@dataclass(frozen=True, slots=True)
class SynthesisCompletedEvent:
    session_id: str
    project_name: str
    tasks: int


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    message: str
    source: str | None = None
    step: int | None = None


Event: TypeAlias = (
    TurnStartedEvent
    | AssistantDeltaEvent
    | AssistantMessageEvent
    | StepAdvancedEvent
    | SynthesisCompletedEvent
    | ErrorEvent
)
EventCallback: TypeAlias = Callable[[Event], None] | None


class EventEmitter:
    def __init__(self, callback: EventCallback = None):
        self._callback = callback

    def emit(self, event: Event) -> None:
        if self._callback is not None:
            self._callback(event)
