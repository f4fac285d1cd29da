import pytest

from kickoff.config import OrchestratorConfig
from kickoff.generation import (
    SCRIPTED_REPLIES,
    ConversationRequest,
    LiteLLMGeneration,
    ScriptedGeneration,
    SynthesisRequest,
    split_fragments,
)
from kickoff.models import ProjectContext
from kickoff.orchestrator import ProjectCreationOrchestrator
from kickoff.prompts import CONVERSATION_SYSTEM_PROMPT, SYNTHESIS_SYSTEM_PROMPT
from kickoff.synthesis import fill_defaults


class _FakeDelta:
    def __init__(self, content):
        self.content = content


class _FakeChoice:
    def __init__(self, content):
        self.delta = _FakeDelta(content)


class _FakeChunk:
    def __init__(self, content):
        self.choices = [_FakeChoice(content)]


@pytest.fixture
def fake_litellm(monkeypatch):
    from common import llm as common_llm

    calls: list[dict] = []

    def fake_completion(**kwargs):
        calls.append(kwargs)
        return iter([_FakeChunk("Sounds "), _FakeChunk(None), _FakeChunk("good!")])

    monkeypatch.setattr(common_llm, "completion", fake_completion)
    return calls


def _turn(step: int, session_id: str = "project-creation-1") -> ConversationRequest:
    return ConversationRequest(
        step=step,
        user_input="a web app",
        project_context=ProjectContext(type="a web app", name="Web App"),
        session_id=session_id,
    )


def test_litellm_turn_streams_fragments(fake_litellm):
    config = OrchestratorConfig(model="test-model", turn_temperature=0.8, turn_max_tokens=1024)
    generation = LiteLLMGeneration(config)
    fragments: list[str] = []

    text = generation.generate(_turn(1), fragments.append)

    assert text == "Sounds good!"
    assert fragments == ["Sounds ", "good!"]
    [call] = fake_litellm
    assert call["model"] == "test-model"
    assert call["stream"] is True
    assert call["temperature"] == 0.8
    assert call["max_tokens"] == 1024
    assert call["messages"][0] == {"role": "system", "content": CONVERSATION_SYSTEM_PROMPT}
    assert "a web app" in call["messages"][-1]["content"]


def test_litellm_turns_include_session_memory(fake_litellm):
    generation = LiteLLMGeneration(OrchestratorConfig(model="test-model"))

    generation.generate(_turn(1), lambda chunk: None)
    generation.generate(_turn(2), lambda chunk: None)
    generation.generate(_turn(1, session_id="project-creation-2"), lambda chunk: None)

    second = fake_litellm[1]["messages"]
    assert [m["role"] for m in second] == ["system", "user", "assistant", "user"]
    assert second[2]["content"] == "Sounds good!"
    assert len(fake_litellm[2]["messages"]) == 2
    assert len(generation.history("project-creation-1")) == 4


def test_litellm_memory_is_bounded(fake_litellm):
    generation = LiteLLMGeneration(OrchestratorConfig(model="test-model", memory_messages=4))

    for step in range(1, 5):
        generation.generate(_turn(step), lambda chunk: None)

    assert len(generation.history("project-creation-1")) == 4
    generation.forget("project-creation-1")
    assert generation.history("project-creation-1") == []


def test_session_memory_is_released_when_session_completes(fake_litellm, answers):
    generation = LiteLLMGeneration(OrchestratorConfig(model="test-model"))
    results = []
    sessions = [
        ProjectCreationOrchestrator(
            generation,
            config=OrchestratorConfig(model="test-model", completion_delay_s=0.0),
            on_complete=results.append,
        )
        for _ in range(3)
    ]

    for orchestrator in sessions:
        for text in answers[:2]:
            orchestrator.submit_turn(text)
        assert len(generation.history(orchestrator.session_id)) == 4
        for text in answers[2:]:
            orchestrator.submit_turn(text)

    assert len(results) == 3
    assert all(result.ok for result in results)
    assert generation._memory == {}


def test_session_memory_is_released_when_session_is_cancelled(fake_litellm, answers):
    generation = LiteLLMGeneration(OrchestratorConfig(model="test-model"))
    orchestrator = ProjectCreationOrchestrator(
        generation, config=OrchestratorConfig(model="test-model", completion_delay_s=0.0)
    )
    orchestrator.submit_turn(answers[0])
    assert generation.history(orchestrator.session_id) != []

    orchestrator.cancel()

    assert generation.history(orchestrator.session_id) == []


def test_litellm_synthesis_uses_synthesis_settings(fake_litellm):
    config = OrchestratorConfig(model="test-model", synthesis_temperature=0.7, synthesis_max_tokens=4096)
    generation = LiteLLMGeneration(config)
    brief = fill_defaults(ProjectContext(name="Clinic Scheduler", goals=["Launch MVP"]))

    generation.generate(SynthesisRequest(final_context=brief, session_id="s"), lambda chunk: None)

    [call] = fake_litellm
    assert call["temperature"] == 0.7
    assert call["max_tokens"] == 4096
    assert call["messages"][0]["content"] == SYNTHESIS_SYSTEM_PROMPT
    assert "Project Name: Clinic Scheduler" in call["messages"][1]["content"]
    assert "Timeline: Flexible" in call["messages"][1]["content"]
    assert generation.history("s") == []


def test_litellm_errors_propagate(monkeypatch):
    from common import llm as common_llm

    def broken_completion(**kwargs):
        raise ConnectionError("rate limited")

    monkeypatch.setattr(common_llm, "completion", broken_completion)
    generation = LiteLLMGeneration(OrchestratorConfig(model="test-model"))

    with pytest.raises(ConnectionError):
        generation.generate(_turn(1), lambda chunk: None)
    assert generation.history("project-creation-1") == []


def test_scripted_generation_streams_canned_reply():
    generation = ScriptedGeneration()
    fragments: list[str] = []

    text = generation.generate(_turn(2), fragments.append)

    assert text == SCRIPTED_REPLIES[2]
    assert "".join(fragments) == text
    assert len(fragments) > 1


def test_split_fragments_covers_all_text():
    text = "  Plan:\n1. Setup\n   Priority: high\n"
    assert "".join(split_fragments(text)) == text
