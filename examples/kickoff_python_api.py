#!/usr/bin/env python3
"""
Kickoff - Python API Examples

Drives the project creation conversation programmatically instead of via the CLI.
Example 1 runs offline with canned replies; Example 2 needs model credentials
(e.g. OPENAI_API_KEY) in the environment or a .env file.
"""

from dotenv import load_dotenv

from common.events import AssistantDeltaEvent, AssistantMessageEvent
from kickoff.config import OrchestratorConfig
from kickoff.generation import LiteLLMGeneration, ScriptedGeneration
from kickoff.models import CompletionResult, Role
from kickoff.orchestrator import ProjectCreationOrchestrator
from kickoff.storage import save_project

ANSWERS = [
    "I want to build a web application for scheduling",
    "Help small clinics book appointments online",
    "3 months",
    "Small team (2-3)",
    "Launch MVP, learn new skills, build a portfolio",
    "Use Python and keep hosting costs low",
]


def _print_stream(event) -> None:
    if isinstance(event, AssistantDeltaEvent):
        print(event.text, end="", flush=True)
    elif isinstance(event, AssistantMessageEvent):
        print("\n")


def example_offline_session():
    """Example 1: Full conversation with canned replies"""
    print("=== Example 1: Offline Session ===\n")

    results: list[CompletionResult] = []
    config = OrchestratorConfig(completion_delay_s=0.0)
    orchestrator = ProjectCreationOrchestrator(
        ScriptedGeneration(),
        config=config,
        on_event=_print_stream,
        on_complete=results.append,
    )

    for answer in ANSWERS:
        print(f"> {answer}")
        orchestrator.submit_turn(answer)

    result = results[0]
    if not result.ok:
        print(f"❌ Failed: {result.failure.message}")
        return None

    project = result.project
    print(f"✅ {project.name}: {len(project.tasks)} tasks, tags {', '.join(project.tags)}")
    return save_project(config.data_dir, project)


def example_model_session():
    """Example 2: Same conversation against a real model"""
    print("=== Example 2: Model Session ===\n")

    config = OrchestratorConfig.from_env(completion_delay_s=0.0)
    config.validate()
    orchestrator = ProjectCreationOrchestrator(
        LiteLLMGeneration(config),
        config=config,
        on_event=_print_stream,
    )

    for answer in ANSWERS:
        print(f"> {answer}")
        if not orchestrator.submit_turn(answer):
            break
        # a failed turn leaves the step in place, so resend once
        if orchestrator.current_step <= len(ANSWERS) and orchestrator.transcript[-1].role is Role.SYSTEM:
            orchestrator.submit_turn(answer)

    result = orchestrator.result
    if result is not None and result.ok:
        print(f"✅ {result.project.name}: {len(result.project.tasks)} tasks")
    return result


if __name__ == "__main__":
    load_dotenv()
    path = example_offline_session()
    if path is not None:
        print(f"Saved to {path}")
