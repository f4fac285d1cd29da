"""
Generation capabilities: the external text generator the orchestrator streams from.

A capability receives a request plus a per-fragment callback, calls the callback
with each text fragment in order, and returns the complete text. Errors are
raised, never returned as text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Protocol, TypeAlias

from common import llm
from kickoff.config import OrchestratorConfig
from kickoff.models import ProjectContext, SynthesisInput
from kickoff.prompts import (
    CONVERSATION_SYSTEM_PROMPT,
    SYNTHESIS_SYSTEM_PROMPT,
    synthesis_prompt,
    turn_prompt,
)

logger = logging.getLogger(__name__)

FragmentCallback: TypeAlias = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class ConversationRequest:
    step: int
    user_input: str
    project_context: ProjectContext
    session_id: str


@dataclass(frozen=True, slots=True)
class SynthesisRequest:
    final_context: SynthesisInput
    session_id: str


GenerationRequest: TypeAlias = ConversationRequest | SynthesisRequest


class GenerationCapability(Protocol):
    """
    Anything that can stream a reply for a request.

    Capabilities that keep per-session state may also expose `forget(session_id)`;
    the orchestrator calls it once the session has ended.
    """

    def generate(self, request: GenerationRequest, on_fragment: FragmentCallback) -> str: ...


class LiteLLMGeneration:
    """Streams turns and synthesis through litellm, keeping a short per-session memory."""

    def __init__(self, config: OrchestratorConfig):
        self.config = config
        self._memory: dict[str, list[dict]] = {}

    @property
    def model(self) -> str:
        return self.config.model

    def generate(self, request: GenerationRequest, on_fragment: FragmentCallback) -> str:
        if isinstance(request, SynthesisRequest):
            messages = [
                {"role": "system", "content": SYNTHESIS_SYSTEM_PROMPT},
                {"role": "user", "content": synthesis_prompt(request.final_context)},
            ]
            logger.debug("Synthesis request for session %s", request.session_id)
            return llm.stream_text(
                model=self.config.model,
                messages=messages,
                on_delta=on_fragment,
                temperature=self.config.synthesis_temperature,
                max_tokens=self.config.synthesis_max_tokens,
            )

        user_message = {
            "role": "user",
            "content": turn_prompt(request.step, request.user_input, request.project_context),
        }
        history = self._memory.get(request.session_id, [])
        messages = [{"role": "system", "content": CONVERSATION_SYSTEM_PROMPT}, *history, user_message]
        logger.debug(
            "Turn request for session %s step %d (%d remembered messages)",
            request.session_id,
            request.step,
            len(history),
        )
        text = llm.stream_text(
            model=self.config.model,
            messages=messages,
            on_delta=on_fragment,
            temperature=self.config.turn_temperature,
            max_tokens=self.config.turn_max_tokens,
        )
        self._remember(request.session_id, user_message, text)
        return text

    def history(self, session_id: str) -> list[dict]:
        return list(self._memory.get(session_id, []))

    def forget(self, session_id: str) -> None:
        self._memory.pop(session_id, None)

    def _remember(self, session_id: str, user_message: dict, response: str) -> None:
        history = self._memory.setdefault(session_id, [])
        history.append(user_message)
        history.append({"role": "assistant", "content": response})
        limit = self.config.memory_messages
        if len(history) > limit:
            del history[: len(history) - limit]


SCRIPTED_REPLIES: dict[int, str] = {
    1: "That sounds like an exciting project! What's your main goal with this: learning something new, solving a specific problem, or creating something others will use?",
    2: "Great, I can see the vision taking shape. When would you like to have this completed? Are there specific deadlines, or is it more flexible?",
    3: "Good to know. Will you be working on this solo, or do you have team members who'll be involved?",
    4: "Excellent! What would make this project a success in your eyes? What are the key outcomes you want to achieve?",
    5: "Wonderful goals! Are there any constraints, technical preferences, or additional context that would help me build the best plan?",
    6: "Thank you for all that information! I have everything I need. Let me generate your project plan with tasks, timeline, and structure.",
}

SCRIPTED_PLAN_TASKS: tuple[tuple[str, str, str], ...] = (
    ("Project Initialization", "high", "1 day"),
    ("Requirements Analysis", "high", "2 days"),
    ("Design and Planning", "medium", "3 days"),
    ("Core Development", "medium", "2 weeks"),
    ("Testing and QA", "medium", "4 days"),
    ("Launch and Review", "low", "2 days"),
)

_FRAGMENT = re.compile(r"\S+\s*|\s+")


def split_fragments(text: str) -> list[str]:
    return _FRAGMENT.findall(text)


class ScriptedGeneration:
    """Offline capability: canned replies per step and a canned plan, emitted word by word."""

    model = "scripted"

    def __init__(self, replies: dict[int, str] | None = None, plan: str | None = None):
        self.replies = dict(SCRIPTED_REPLIES if replies is None else replies)
        self.plan = plan
        self.requests: list[GenerationRequest] = []

    def generate(self, request: GenerationRequest, on_fragment: FragmentCallback) -> str:
        self.requests.append(request)
        if isinstance(request, SynthesisRequest):
            text = self.plan if self.plan is not None else self._default_plan(request.final_context)
        else:
            text = self.replies.get(
                request.step, "Let me help you with the next step of your project planning."
            )
        for fragment in split_fragments(text):
            on_fragment(fragment)
        return text

    @staticmethod
    def _default_plan(brief: SynthesisInput) -> str:
        lines = [f"# {brief.name}", "", brief.description, "", "## Tasks"]
        for index, (name, priority, effort) in enumerate(SCRIPTED_PLAN_TASKS, start=1):
            lines.append(f"{index}. {name}")
            lines.append(f"   Priority: {priority}, effort: {effort}")
        return "\n".join(lines) + "\n"
