from kickoff.config import OrchestratorConfig
from kickoff.errors import ConfigError, GenerationError, KickoffError, TurnCancelled
from kickoff.generation import (
    ConversationRequest,
    GenerationCapability,
    LiteLLMGeneration,
    ScriptedGeneration,
    SynthesisRequest,
)
from kickoff.models import (
    CompletionResult,
    DialogueState,
    GeneratedProject,
    Message,
    ProjectContext,
    ProjectTask,
)
from kickoff.orchestrator import ProjectCreationOrchestrator

__all__ = [
    "OrchestratorConfig",
    "ConfigError",
    "GenerationError",
    "KickoffError",
    "TurnCancelled",
    "ConversationRequest",
    "GenerationCapability",
    "LiteLLMGeneration",
    "ScriptedGeneration",
    "SynthesisRequest",
    "CompletionResult",
    "DialogueState",
    "GeneratedProject",
    "Message",
    "ProjectContext",
    "ProjectTask",
    "ProjectCreationOrchestrator",
]
