from datetime import date

from kickoff.generation import ScriptedGeneration, SynthesisRequest
from kickoff.models import ProjectContext
from kickoff.streaming import StreamingAggregator
from kickoff.synthesis import (
    ProjectSynthesizer,
    derive_tags,
    estimate_timeline,
    fill_defaults,
    parse_tasks,
)


PLAN = """# Clinic Scheduler

A booking tool for small clinics.

## Tasks
1. **Set up repository**
   Priority: high, effort: 1 day
2. Design booking flow
   Priority: low
- Build calendar API
  This is urgent and needs 2 weeks
* Write user docs
"""


def test_fill_defaults_uses_documented_fallbacks():
    brief = fill_defaults(ProjectContext(name="Clinic Scheduler", goals=["Launch MVP"]))

    assert brief.name == "Clinic Scheduler"
    assert brief.description == "Generated with AI assistance"
    assert brief.type == "General"
    assert brief.timeline == "Flexible"
    assert brief.team == "Solo"
    assert brief.goals == ["Launch MVP"]
    assert brief.additional_context is None


def test_fill_defaults_on_empty_context():
    brief = fill_defaults(ProjectContext())
    assert brief.name == "AI Generated Project"
    assert brief.goals == []


def test_parse_tasks_reads_numbered_and_bulleted_lines():
    tasks = parse_tasks(PLAN)

    assert [t.name for t in tasks] == [
        "Set up repository",
        "Design booking flow",
        "Build calendar API",
        "Write user docs",
    ]
    assert tasks[0].priority == "high"
    assert tasks[0].estimated_effort == "1 day"
    assert tasks[1].priority == "low"
    assert tasks[2].priority == "urgent"
    assert tasks[2].estimated_effort == "2 weeks"
    assert tasks[3].priority == "medium"
    assert tasks[3].estimated_effort == "2-4 hours"
    assert all(t.status == "todo" for t in tasks)


def test_parse_tasks_details_stop_at_next_task():
    tasks = parse_tasks(
        "1. Draft wireframes\n"
        "2. Fix urgent login bug\n"
        "3. Write 3 day spike\n"
        "   Priority: high, follows design\n"
        "4. Review shallow copy\n"
        "   Priority: below average\n"
    )

    assert [t.priority for t in tasks] == ["medium", "medium", "high", "medium"]
    assert tasks[0].estimated_effort == "2-4 hours"
    assert tasks[1].estimated_effort == "2-4 hours"
    assert tasks[2].estimated_effort == "2-4 hours"


def test_parse_tasks_without_markers_is_empty():
    assert parse_tasks("A lovely plan written entirely as prose.\nNo lists here.") == []
    assert parse_tasks("") == []


def test_derive_tags_from_type_timeline_and_team():
    brief = fill_defaults(
        ProjectContext(type="Web Application", timeline="1 month", team="Small team (2-3)")
    )

    tags = derive_tags(brief)

    assert tags[0] == "AI Generated"
    assert "Web Development" in tags
    assert "Medium-term" in tags
    assert "Team Project" in tags
    assert "Solo" not in tags


def test_estimate_timeline_windows():
    today = date(2026, 1, 31)

    assert estimate_timeline("1-2 weeks", today).end == date(2026, 2, 14)
    assert estimate_timeline("1 month", today).end == date(2026, 2, 28)
    assert estimate_timeline("3 months", today).end == date(2026, 4, 30)
    assert estimate_timeline("6+ months", today).end == date(2026, 7, 31)
    assert estimate_timeline("Flexible", today).end == date(2026, 2, 28)
    assert estimate_timeline("Flexible", today).start == today


def test_synthesize_streams_and_builds_project():
    capability = ScriptedGeneration(plan=PLAN)
    synthesizer = ProjectSynthesizer(model="test-model")
    context = ProjectContext(name="Clinic Scheduler", type="Web Application", description="Bookings")

    project, text = synthesizer.synthesize(
        context, "project-creation-abc", StreamingAggregator(capability)
    )

    request = capability.requests[0]
    assert isinstance(request, SynthesisRequest)
    assert request.final_context.timeline == "Flexible"
    assert request.final_context.team == "Solo"
    assert text == PLAN
    assert project.name == "Clinic Scheduler"
    assert len(project.tasks) == 4
    assert project.generation_metadata.session_id == "project-creation-abc"
    assert project.generation_metadata.model == "test-model"
    assert project.generation_metadata.context == context


def test_synthesize_without_markers_returns_project_with_no_tasks():
    synthesizer = ProjectSynthesizer(model="test-model")

    project, _ = synthesizer.synthesize(
        ProjectContext(name="Notes"),
        "project-creation-abc",
        StreamingAggregator(ScriptedGeneration(plan="Keep it simple and ship soon.")),
    )

    assert project.name == "Notes"
    assert project.tasks == []
