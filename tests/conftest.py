import pytest

from kickoff.config import OrchestratorConfig
from kickoff.generation import GenerationRequest, ScriptedGeneration, SynthesisRequest
from kickoff.orchestrator import ProjectCreationOrchestrator
from kickoff.turn_input import SpeechOptions, SpeechRecognitionError


ANSWERS = [
    "I want to build a web application for scheduling",
    "Help small clinics book appointments online",
    "3 months",
    "Small team (2-3)",
    "Launch MVP, learn new skills, build a portfolio",
    "Use Python and keep hosting costs low",
]


class FlakyGeneration(ScriptedGeneration):
    """Scripted capability that fails a chosen number of times per step, after one fragment."""

    def __init__(
        self,
        fail_steps: dict[int, int] | None = None,
        fail_synthesis: bool = False,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.fail_steps = dict(fail_steps or {})
        self.fail_synthesis = fail_synthesis

    def generate(self, request: GenerationRequest, on_fragment) -> str:
        if isinstance(request, SynthesisRequest):
            if self.fail_synthesis:
                self.requests.append(request)
                on_fragment("# Draft ")
                raise ConnectionError("model quota exceeded")
        elif self.fail_steps.get(request.step, 0) > 0:
            self.requests.append(request)
            self.fail_steps[request.step] -= 1
            on_fragment("Partial ")
            raise TimeoutError("model timed out")
        return super().generate(request, on_fragment)


class FakeSpeech:
    def __init__(self, utterance: str = "", error: Exception | None = None):
        self.utterance = utterance
        self.error = error
        self.options: list[SpeechOptions] = []
        self.stopped = False

    def start_listening(self, options: SpeechOptions) -> str:
        self.options.append(options)
        if self.error is not None:
            raise self.error
        return self.utterance

    def stop_listening(self) -> None:
        self.stopped = True


@pytest.fixture
def answers() -> list[str]:
    return list(ANSWERS)


@pytest.fixture
def test_config(tmp_path) -> OrchestratorConfig:
    return OrchestratorConfig(
        model="test-model",
        completion_delay_s=0.0,
        max_retries_per_step=3,
        data_dir=str(tmp_path / "projects"),
    )


@pytest.fixture
def scripted() -> ScriptedGeneration:
    return ScriptedGeneration()


@pytest.fixture
def make_orchestrator(test_config):
    def _make(capability=None, **kwargs) -> ProjectCreationOrchestrator:
        kwargs.setdefault("config", test_config)
        return ProjectCreationOrchestrator(capability or ScriptedGeneration(), **kwargs)

    return _make


@pytest.fixture
def failing_speech() -> FakeSpeech:
    return FakeSpeech(error=SpeechRecognitionError("not-allowed"))


@pytest.fixture
def flaky():
    return FlakyGeneration


@pytest.fixture
def fake_speech():
    return FakeSpeech
