from __future__ import annotations

import calendar
import logging
import re
from datetime import date, timedelta

from kickoff.extraction import DEFAULT_PROJECT_NAME
from kickoff.generation import SynthesisRequest
from kickoff.models import (
    GeneratedProject,
    GenerationMetadata,
    ProjectContext,
    ProjectTask,
    ProjectTimeline,
    SynthesisInput,
)
from kickoff.streaming import StreamingAggregator

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Generated with AI assistance"
DEFAULT_TYPE = "General"
DEFAULT_TIMELINE = "Flexible"
DEFAULT_TEAM = "Solo"
DEFAULT_EFFORT = "2-4 hours"

_TASK_MARKER = re.compile(r"^(?:\d+[.)]|[-*•])\s+")
_EFFORT = re.compile(r"\d+\s*(?:hour|day|week)s?")
_DETAIL_LOOKAHEAD = 2
_HIGH = re.compile(r"\bhigh\b")
_LOW = re.compile(r"\blow\b")
_URGENT = re.compile(r"\burgent\b")


def fill_defaults(context: ProjectContext) -> SynthesisInput:
    return SynthesisInput(
        name=context.name or DEFAULT_PROJECT_NAME,
        description=context.description or DEFAULT_DESCRIPTION,
        type=context.type or DEFAULT_TYPE,
        timeline=context.timeline or DEFAULT_TIMELINE,
        team=context.team or DEFAULT_TEAM,
        goals=list(context.goals or []),
        additional_context=context.additional_context,
    )


def _clean_task_name(line: str) -> str:
    name = _TASK_MARKER.sub("", line, count=1).strip()
    name = name.replace("**", "").replace("__", "").strip()
    return name.rstrip(":").strip()


def parse_tasks(text: str) -> list[ProjectTask]:
    """
    Pull tasks out of synthesized plan text.

    Numbered lines ("3. Write tests") and bullets ("- Write tests") become tasks. The
    two lines after each task, up to the next task, are scanned for a priority hint and an effort estimate.
    Text without any markers yields an empty list.
    """
    lines = (text or "").splitlines()
    tasks: list[ProjectTask] = []
    for i, raw in enumerate(lines):
        line = raw.strip()
        if not _TASK_MARKER.match(line):
            continue
        name = _clean_task_name(line)
        if not name:
            continue

        priority = "medium"
        effort = DEFAULT_EFFORT
        for detail in lines[i + 1 : i + 1 + _DETAIL_LOOKAHEAD]:
            lowered = detail.strip().lower()
            if _TASK_MARKER.match(lowered):
                break
            if "priority" in lowered and _HIGH.search(lowered):
                priority = "high"
            if "priority" in lowered and _LOW.search(lowered):
                priority = "low"
            if _URGENT.search(lowered):
                priority = "urgent"
            m = _EFFORT.search(lowered)
            if m:
                effort = m.group(0)

        tasks.append(
            ProjectTask(
                name=name,
                description=f"Task: {name}",
                priority=priority,
                estimated_effort=effort,
            )
        )
    return tasks


def derive_tags(brief: SynthesisInput) -> list[str]:
    tags = ["AI Generated"]
    kind = brief.type.lower()
    timeline = brief.timeline.lower()
    team = brief.team.lower()

    if "web" in kind:
        tags.append("Web Development")
    if "mobile" in kind or "app" in kind:
        tags.append("Mobile")
    if "ai" in kind or "ml" in kind:
        tags.append("AI/ML")
    if "learning" in kind:
        tags.append("Educational")
    if "business" in kind:
        tags.append("Business")

    if "week" in timeline:
        tags.append("Short-term")
    if "month" in timeline:
        tags.append("Medium-term")
    if "6" in timeline or "long" in timeline:
        tags.append("Long-term")

    if "solo" in team:
        tags.append("Solo")
    if "team" in team:
        tags.append("Team Project")
    return tags


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def estimate_timeline(timeline: str, today: date | None = None) -> ProjectTimeline:
    start = today or date.today()
    text = (timeline or "").lower()
    if "week" in text:
        weeks = 2 if ("1-2" in text or "two" in text) else 1
        end = start + timedelta(weeks=weeks)
    elif "month" in text and ("6" in text or "six" in text):
        end = _add_months(start, 6)
    elif "month" in text:
        months = 3 if ("3" in text or "three" in text) else 1
        end = _add_months(start, months)
    elif "6" in text or "six" in text:
        end = _add_months(start, 6)
    else:
        end = _add_months(start, 1)
    return ProjectTimeline(start=start, end=end)


class ProjectSynthesizer:
    """Runs the final generation call and turns its text into a `GeneratedProject`."""

    def __init__(self, model: str):
        self.model = model

    def request_for(self, context: ProjectContext, session_id: str) -> SynthesisRequest:
        return SynthesisRequest(final_context=fill_defaults(context), session_id=session_id)

    def synthesize(
        self,
        context: ProjectContext,
        session_id: str,
        aggregator: StreamingAggregator,
        *,
        step: int | None = None,
    ) -> tuple[GeneratedProject, str]:
        request = self.request_for(context, session_id)
        outcome = aggregator.run(request, step=step)
        project = self.build_project(request.final_context, context, session_id, outcome.text)
        return project, outcome.text

    def build_project(
        self,
        brief: SynthesisInput,
        context: ProjectContext,
        session_id: str,
        text: str,
        today: date | None = None,
    ) -> GeneratedProject:
        tasks = parse_tasks(text)
        if not tasks:
            logger.info("No task markers found in synthesized plan for session %s", session_id)
        return GeneratedProject(
            name=brief.name,
            description=brief.description,
            tasks=tasks,
            tags=derive_tags(brief),
            timeline=estimate_timeline(brief.timeline, today=today),
            generation_metadata=GenerationMetadata(
                session_id=session_id,
                model=self.model,
                context=context,
            ),
        )
