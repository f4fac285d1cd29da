from __future__ import annotations

from kickoff.models import ProjectContext

TOTAL_STEPS = 6

WELCOME_MESSAGE = (
    "Welcome to AI-powered project creation! I'll help you put together a detailed "
    "project plan through a short conversation. You can type or use voice input. "
    "What kind of project would you like to create?"
)

WELCOME_SUGGESTIONS: tuple[str, ...] = (
    "Web Application",
    "Mobile App",
    "AI/ML Project",
    "Learning Project",
    "Business Initiative",
    "Creative Project",
)

STEP_SUGGESTIONS: dict[int, tuple[str, ...]] = {
    2: (
        "Build a solution for users",
        "Learn new technologies",
        "Solve a specific problem",
        "Create something innovative",
    ),
    3: ("1-2 weeks", "1 month", "3 months", "6+ months", "Ongoing project"),
    4: ("Solo project", "Small team (2-3)", "Medium team (4-8)", "Large team (9+)"),
    5: (
        "Launch MVP",
        "Learn skills",
        "Generate revenue",
        "Solve user problems",
        "Build portfolio",
    ),
    6: (
        "Add technical details",
        "Specify constraints",
        "Mention preferences",
        "Include inspiration",
    ),
}

STEP_TITLES: dict[int, str] = {
    1: "Project Type",
    2: "Description & Goals",
    3: "Timeline",
    4: "Team Structure",
    5: "Success Criteria",
    6: "Additional Context",
    7: "Generating Project...",
}


def suggestions_for_step(step: int, context: ProjectContext | None = None) -> list[str]:
    # context is accepted so context-aware tables can replace this lookup later
    return list(STEP_SUGGESTIONS.get(step, ()))


def step_title(step: int) -> str:
    return STEP_TITLES.get(step, "Project Creation")


def step_progress(step: int) -> float:
    return min(max(step - 1, 0) / TOTAL_STEPS, 1.0)
