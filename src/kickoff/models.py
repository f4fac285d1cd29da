from datetime import date, datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from common.ids import generate_id


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_session_id() -> str:
    return f"project-creation-{generate_id()}"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class MessageKind(str, Enum):
    TURN = "turn"
    WELCOME = "welcome"
    SYNTHESIS = "synthesis"
    SUMMARY = "summary"
    FAILURE = "failure"


class DialogueState(str, Enum):
    IDLE = "idle"
    AWAITING_STEP = "awaiting_step"
    SYNTHESIZING = "synthesizing"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    role: Role
    content: str = ""
    suggestions: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    is_streaming: bool = False
    is_voice: bool = False
    kind: MessageKind = MessageKind.TURN


class Session(BaseModel):
    session_id: str = Field(default_factory=new_session_id)
    current_step: int = 1
    started_at: datetime = Field(default_factory=utc_now)


class ProjectContext(BaseModel):
    """Accumulated project intent. Every field stays unset until its step answers it."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    description: str | None = None
    type: str | None = None
    timeline: str | None = None
    team: str | None = None
    goals: list[str] | None = None
    additional_context: str | None = None

    def merge(self, update: "ProjectContext") -> "ProjectContext":
        """Return a copy with `update`'s fields filled in where this context has none."""
        filled = {
            key: value
            for key, value in update.model_dump(exclude_none=True).items()
            if getattr(self, key) is None
        }
        if not filled:
            return self
        return self.model_copy(update=filled)

    def set_fields(self) -> list[str]:
        return list(self.model_dump(exclude_none=True).keys())


class ProjectTask(BaseModel):
    name: str
    description: str = ""
    priority: Literal["low", "medium", "high", "urgent"] = "medium"
    status: Literal["todo", "in_progress", "completed", "cancelled"] = "todo"
    estimated_effort: str = "2-4 hours"


class ProjectTimeline(BaseModel):
    start: date | None = None
    end: date | None = None


class GenerationMetadata(BaseModel):
    session_id: str
    model: str
    context: ProjectContext
    generated_at: datetime = Field(default_factory=utc_now)
    ai_generated: bool = True


class GeneratedProject(BaseModel):
    name: str
    description: str
    tasks: list[ProjectTask] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    timeline: ProjectTimeline = Field(default_factory=ProjectTimeline)
    generation_metadata: GenerationMetadata


class FailureReason(BaseModel):
    step: int
    kind: Literal["generation", "synthesis", "retries_exhausted", "cancelled"]
    message: str = ""


class CompletionResult(BaseModel):
    project: GeneratedProject | None = None
    failure: FailureReason | None = None

    @property
    def ok(self) -> bool:
        return self.project is not None


class SynthesisInput(BaseModel):
    """Complete context handed to the synthesis call, with every gap filled."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    type: str
    timeline: str
    team: str
    goals: list[str] = Field(default_factory=list)
    additional_context: str | None = None
