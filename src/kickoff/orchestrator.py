"""
Dialogue state machine for conversational project creation.

One orchestrator instance owns one session: the step counter, the transcript,
and the accumulated `ProjectContext`. Each accepted user turn is extracted,
answered by a streamed assistant message, and, after step 6, followed by the
synthesis call that produces the `GeneratedProject`.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from common.events import (
    AssistantDeltaEvent,
    AssistantMessageEvent,
    ErrorEvent,
    EventCallback,
    EventEmitter,
    StepAdvancedEvent,
    SynthesisCompletedEvent,
    TurnStartedEvent,
)
from kickoff.config import OrchestratorConfig
from kickoff.errors import GenerationError, TurnCancelled
from kickoff.extraction import ContextExtractor, HeuristicContextExtractor
from kickoff.generation import ConversationRequest, GenerationCapability
from kickoff.models import (
    CompletionResult,
    DialogueState,
    FailureReason,
    GeneratedProject,
    Message,
    MessageKind,
    ProjectContext,
    Role,
    Session,
)
from kickoff.streaming import FragmentEvent, StreamingAggregator
from kickoff.suggestions import (
    TOTAL_STEPS,
    WELCOME_MESSAGE,
    WELCOME_SUGGESTIONS,
    step_progress,
    step_title,
    suggestions_for_step,
)
from kickoff.synthesis import ProjectSynthesizer
from kickoff.turn_input import SpeechCapability, SpeechFailure, SpeechOptions, listen_once, normalize_turn

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = (
    "I ran into a problem generating a response. Please send your answer again, "
    "or continue with manual project creation."
)

CompletionCallback = Callable[[CompletionResult], None]


def summarize_project(project: GeneratedProject) -> str:
    context = project.generation_metadata.context
    lines = [f"Project created: **{project.name}**", "", project.description, ""]
    if project.tasks:
        lines.append("Generated tasks:")
        lines.extend(f"{i}. {task.name}" for i, task in enumerate(project.tasks, start=1))
    else:
        lines.append("No tasks could be read from the plan; you can add them after creation.")
    lines.append("")
    lines.append(f"Timeline: {context.timeline or 'Flexible'}")
    lines.append(f"Team: {context.team or 'Solo'}")
    return "\n".join(lines)


class ProjectCreationOrchestrator:
    def __init__(
        self,
        capability: GenerationCapability,
        *,
        config: OrchestratorConfig | None = None,
        extractor: ContextExtractor | None = None,
        on_event: EventCallback = None,
        on_complete: CompletionCallback | None = None,
    ):
        self.config = config or OrchestratorConfig()
        self.capability = capability
        self.extractor = extractor or HeuristicContextExtractor()
        self.synthesizer = ProjectSynthesizer(model=getattr(capability, "model", None) or self.config.model)
        self.session = Session()
        self._emitter = EventEmitter(on_event)
        self._on_complete = on_complete

        self._messages: list[Message] = []
        self._next_message_id = 1
        self._context = ProjectContext()
        self._state = DialogueState.IDLE
        self._in_flight = False
        self._cancelled = False
        self._failures: dict[int, int] = {}
        self._result: CompletionResult | None = None
        self._completion_timer: threading.Timer | None = None

        self._start()

    # observed state

    @property
    def session_id(self) -> str:
        return self.session.session_id

    @property
    def current_step(self) -> int:
        return self.session.current_step

    @property
    def state(self) -> DialogueState:
        return self._state

    @property
    def context(self) -> ProjectContext:
        return self._context

    @property
    def transcript(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def streaming_message(self) -> Message | None:
        for message in self._messages:
            if message.is_streaming:
                return message
        return None

    @property
    def is_busy(self) -> bool:
        return self._in_flight

    @property
    def result(self) -> CompletionResult | None:
        return self._result

    @property
    def step_title(self) -> str:
        return step_title(self.current_step)

    @property
    def progress(self) -> float:
        return step_progress(self.current_step)

    @property
    def accepts_turns(self) -> bool:
        return (
            not self._cancelled
            and self._result is None
            and self._state in (DialogueState.AWAITING_STEP, DialogueState.FAILED)
            and self.current_step <= TOTAL_STEPS
        )

    # inbound

    def submit_turn(self, text: str, is_voice: bool = False) -> bool:
        """
        Handle one user contribution for the current step.

        Returns False without touching any state when the text is blank, a turn is
        already in flight, or the session no longer takes turns.
        """
        turn = normalize_turn(text, is_voice=is_voice)
        if turn.is_empty:
            logger.debug("Ignoring empty turn for session %s", self.session_id)
            return False
        if self._in_flight:
            logger.debug("Ignoring turn while step %d is still streaming", self.current_step)
            return False
        if not self.accepts_turns:
            logger.debug("Ignoring turn in state %s", self._state.value)
            return False

        step = self.current_step
        self._in_flight = True
        try:
            self._append(Role.USER, turn.text, is_voice=turn.is_voice)
            candidate = self._context.merge(self.extractor.extract(step, turn.text))
            self._run_turn(step, turn.text, candidate, is_voice=turn.is_voice)
        finally:
            self._in_flight = False
        if self._cancelled:
            self._finish_cancelled()
        return True

    def on_suggestion_selected(self, suggestion: str) -> bool:
        return self.submit_turn(suggestion, False)

    def submit_voice_turn(
        self, speech: SpeechCapability, options: SpeechOptions | None = None
    ) -> bool | SpeechFailure:
        if not self.accepts_turns or self._in_flight:
            return False
        heard = listen_once(speech, options)
        if isinstance(heard, SpeechFailure):
            return heard
        return self.submit_turn(heard.text, is_voice=True)

    def cancel(self) -> None:
        if self._cancelled or self._result is not None:
            return
        self._cancelled = True
        logger.info("Session %s cancelled at step %d", self.session_id, self.current_step)
        if not self._in_flight:
            self._finish_cancelled()

    # turn handling

    def _start(self) -> None:
        self._append(
            Role.ASSISTANT,
            WELCOME_MESSAGE,
            suggestions=list(WELCOME_SUGGESTIONS),
            kind=MessageKind.WELCOME,
        )
        self._state = DialogueState.AWAITING_STEP
        logger.info("Project creation session %s started", self.session_id)

    def _run_turn(self, step: int, text: str, candidate: ProjectContext, *, is_voice: bool) -> None:
        message = self._append(Role.ASSISTANT, "", is_streaming=True)
        self._emitter.emit(
            TurnStartedEvent(
                session_id=self.session_id,
                step=step,
                message_id=message.id,
                is_voice=is_voice,
            )
        )
        request = ConversationRequest(
            step=step,
            user_input=text,
            project_context=candidate,
            session_id=self.session_id,
        )
        aggregator = self._aggregator_for(message.id)
        try:
            outcome = aggregator.run(request, step=step)
        except TurnCancelled:
            self._remove(message.id)
            self._finish_cancelled()
            return
        except GenerationError as e:
            self._fail(step, message.id, e, kind="generation")
            return
        if self._cancelled:
            self._remove(message.id)
            self._finish_cancelled()
            return

        self._context = candidate
        self._failures.pop(step, None)
        next_step = step + 1
        self._finalize(message.id, outcome.text, suggestions_for_step(next_step, candidate))
        self.session.current_step = next_step
        logger.info(
            "Session %s completed step %d (%d chars, %d fragments)",
            self.session_id,
            step,
            len(outcome.text),
            len(outcome.fragments),
        )

        if step < TOTAL_STEPS:
            self._state = DialogueState.AWAITING_STEP
            self._emitter.emit(StepAdvancedEvent(session_id=self.session_id, step=next_step))
            return

        self._state = DialogueState.SYNTHESIZING
        self._emitter.emit(StepAdvancedEvent(session_id=self.session_id, step=next_step))
        self._synthesize()

    def _synthesize(self) -> None:
        step = self.current_step
        message = self._append(Role.ASSISTANT, "", is_streaming=True, kind=MessageKind.SYNTHESIS)
        aggregator = self._aggregator_for(message.id)
        logger.info("Synthesizing project for session %s", self.session_id)
        try:
            project, text = self.synthesizer.synthesize(
                self._context, self.session_id, aggregator, step=step
            )
        except TurnCancelled:
            self._remove(message.id)
            self._finish_cancelled()
            return
        except GenerationError as e:
            self._fail(step, message.id, e, kind="synthesis")
            return
        if self._cancelled:
            self._remove(message.id)
            self._finish_cancelled()
            return

        self._finalize(message.id, text, [])
        self._append(Role.ASSISTANT, summarize_project(project), kind=MessageKind.SUMMARY)
        self._state = DialogueState.COMPLETE
        self._emitter.emit(
            SynthesisCompletedEvent(
                session_id=self.session_id,
                project_name=project.name,
                tasks=len(project.tasks),
            )
        )
        logger.info(
            "Session %s generated project %r with %d tasks",
            self.session_id,
            project.name,
            len(project.tasks),
        )
        self._complete(CompletionResult(project=project))

    def _fail(self, step: int, message_id: int, error: GenerationError, *, kind: str) -> None:
        self._remove(message_id)
        self._append(Role.SYSTEM, APOLOGY_MESSAGE, kind=MessageKind.FAILURE)
        self._state = DialogueState.FAILED
        failures = self._failures.get(step, 0) + 1
        self._failures[step] = failures
        logger.warning(
            "Generation failed for session %s at step %d (attempt %d): %s",
            self.session_id,
            step,
            failures,
            error,
        )
        self._emitter.emit(ErrorEvent(message=str(error), source=kind, step=step))

        if kind == "synthesis":
            self._complete(CompletionResult(failure=FailureReason(step=step, kind="synthesis", message=str(error))))
            return
        limit = self.config.max_retries_per_step
        if limit is not None and failures >= limit:
            logger.error("Giving up on session %s after %d failures at step %d", self.session_id, failures, step)
            self._complete(
                CompletionResult(
                    failure=FailureReason(step=step, kind="retries_exhausted", message=str(error))
                )
            )

    def _finish_cancelled(self) -> None:
        if self._result is not None:
            return
        self._state = DialogueState.CANCELLED
        self._complete(
            CompletionResult(
                failure=FailureReason(step=self.current_step, kind="cancelled", message="Session cancelled")
            )
        )

    def _complete(self, result: CompletionResult) -> None:
        self._result = result
        self._release_memory()
        if self._on_complete is None:
            return
        delay = self.config.completion_delay_s
        if result.ok and delay > 0:
            timer = threading.Timer(delay, self._on_complete, args=(result,))
            timer.daemon = True
            self._completion_timer = timer
            timer.start()
            return
        self._on_complete(result)

    def _release_memory(self) -> None:
        forget = getattr(self.capability, "forget", None)
        if callable(forget):
            forget(self.session_id)
            logger.debug("Released generation memory for session %s", self.session_id)

    # transcript

    def _aggregator_for(self, message_id: int) -> StreamingAggregator:
        def on_update(buffer: str, fragment: FragmentEvent) -> None:
            self._replace(message_id, content=buffer)
            self._emitter.emit(
                AssistantDeltaEvent(message_id=message_id, seq=fragment.seq, text=fragment.text)
            )

        return StreamingAggregator(
            self.capability,
            on_update=on_update,
            should_abort=lambda: self._cancelled,
        )

    def _append(
        self,
        role: Role,
        content: str,
        *,
        suggestions: list[str] | None = None,
        is_streaming: bool = False,
        is_voice: bool = False,
        kind: MessageKind = MessageKind.TURN,
    ) -> Message:
        if is_streaming and self.streaming_message is not None:
            raise RuntimeError("another message is already streaming")
        message = Message(
            id=self._next_message_id,
            role=role,
            content=content,
            suggestions=suggestions or [],
            is_streaming=is_streaming,
            is_voice=is_voice,
            kind=kind,
        )
        self._next_message_id += 1
        self._messages.append(message)
        return message

    def _index_of(self, message_id: int) -> int:
        for i, message in enumerate(self._messages):
            if message.id == message_id:
                return i
        raise KeyError(message_id)

    def _replace(self, message_id: int, **updates) -> Message:
        i = self._index_of(message_id)
        current = self._messages[i]
        if not current.is_streaming:
            raise RuntimeError(f"message {message_id} is already complete")
        updated = current.model_copy(update=updates)
        self._messages[i] = updated
        return updated

    def _finalize(self, message_id: int, content: str, suggestions: list[str]) -> None:
        self._replace(message_id, content=content, suggestions=suggestions, is_streaming=False)
        self._emitter.emit(AssistantMessageEvent(message_id=message_id, content=content))

    def _remove(self, message_id: int) -> None:
        del self._messages[self._index_of(message_id)]
