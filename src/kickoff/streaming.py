"""
Streaming aggregation for one generation call.

Fragments are recorded in an append-only log and the displayed text is a fold
over that log, so every intermediate buffer is a prefix of the final one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from kickoff.errors import GenerationError, TurnCancelled
from kickoff.generation import GenerationCapability, GenerationRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FragmentEvent:
    seq: int
    text: str


@dataclass(frozen=True, slots=True)
class StreamOutcome:
    text: str
    fragments: tuple[FragmentEvent, ...]


def fold_fragments(fragments: Iterable[FragmentEvent]) -> str:
    return "".join(fragment.text for fragment in fragments)


def replay(texts: Iterable[str]) -> list[str]:
    """Return every buffer an observer would see while `texts` stream in."""
    buffers: list[str] = []
    log: list[FragmentEvent] = []
    for seq, text in enumerate(texts):
        log.append(FragmentEvent(seq=seq, text=text))
        buffers.append(fold_fragments(log))
    return buffers


class StreamingAggregator:
    def __init__(
        self,
        capability: GenerationCapability,
        on_update: Callable[[str, FragmentEvent], None] | None = None,
        should_abort: Callable[[], bool] | None = None,
    ):
        self.capability = capability
        self.on_update = on_update
        self.should_abort = should_abort
        self._log: list[FragmentEvent] = []
        self._buffer = ""
        self._running = False

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def fragments(self) -> tuple[FragmentEvent, ...]:
        return tuple(self._log)

    def run(self, request: GenerationRequest, *, step: int | None = None) -> StreamOutcome:
        if self._running:
            raise RuntimeError("aggregator is already streaming")
        self._running = True
        self._log = []
        self._buffer = ""
        try:
            try:
                returned = self.capability.generate(request, self._append)
                text = self._settle(returned)
            except (TurnCancelled, GenerationError):
                raise
            except Exception as e:
                raise GenerationError(f"{type(e).__name__}: {e}", step=step) from e
            return StreamOutcome(text=text, fragments=tuple(self._log))
        finally:
            self._running = False

    def _append(self, chunk: str) -> None:
        if not self._running:
            logger.warning("Dropping fragment delivered after the stream ended")
            return
        if self.should_abort is not None and self.should_abort():
            raise TurnCancelled("turn cancelled while streaming")
        if not chunk:
            return
        event = FragmentEvent(seq=len(self._log), text=chunk)
        self._log.append(event)
        self._buffer += chunk
        if self.on_update is not None:
            self.on_update(self._buffer, event)

    def _settle(self, returned: str | None) -> str:
        folded = self._buffer
        if not returned or returned == folded:
            return folded
        if returned.startswith(folded):
            # the capability resolved with text it never streamed; keep it as a final fragment
            self._append(returned[len(folded):])
            return self._buffer
        logger.warning(
            "Capability returned text that does not extend the streamed prefix (%d vs %d chars); keeping streamed text",
            len(returned),
            len(folded),
        )
        return folded
