"""
Step-to-field extraction rules for the project intake conversation.

Each step owns one `ProjectContext` field (step 1 owns two: `type` and the
derived `name`). The rules are deliberately simple string heuristics and sit
behind the `ContextExtractor` protocol so another strategy can be swapped in
without touching the dialogue loop.
"""

from __future__ import annotations

import re
from typing import Protocol

from kickoff.models import ProjectContext

DEFAULT_PROJECT_NAME = "AI Generated Project"

# "build" is intentionally absent: it reads well as the first word of a name.
NAME_STOPWORDS: frozenset[str] = frozenset(
    {"i", "want", "to", "a", "the", "an", "for", "create", "make", "develop"}
)

NAME_TOKEN_LIMIT = 3

_GOAL_SEPARATORS = re.compile(r"[,.;]")
_WORD_CHAR = re.compile(r"\w")


class ContextExtractor(Protocol):
    def extract(self, step: int, raw_text: str) -> ProjectContext: ...


def derive_project_name(text: str) -> str:
    tokens = [
        token
        for token in (text or "").lower().split()
        if token not in NAME_STOPWORDS and _WORD_CHAR.search(token)
    ]
    name = " ".join(token[:1].upper() + token[1:] for token in tokens[:NAME_TOKEN_LIMIT])
    return name or DEFAULT_PROJECT_NAME


def extract_goals(text: str) -> list[str]:
    return [part.strip() for part in _GOAL_SEPARATORS.split(text or "") if part.strip()]


class HeuristicContextExtractor:
    """Default extractor: verbatim fields, plus name derivation (step 1) and goal splitting (step 5)."""

    def extract(self, step: int, raw_text: str) -> ProjectContext:
        text = (raw_text or "").strip()
        if step == 1:
            return ProjectContext(type=text, name=derive_project_name(text))
        if step == 2:
            return ProjectContext(description=text)
        if step == 3:
            return ProjectContext(timeline=text)
        if step == 4:
            return ProjectContext(team=text)
        if step == 5:
            return ProjectContext(goals=extract_goals(text))
        if step == 6:
            return ProjectContext(additional_context=text)
        return ProjectContext()
