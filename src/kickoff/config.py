import logging
import os
from dataclasses import dataclass, field

from kickoff.errors import ConfigError

logger = logging.getLogger(__name__)


MODEL_ALIASES = {
    "sonnet": "claude-sonnet-4-20250514",
    "opus": "claude-opus-4-20250514",
    "haiku": "claude-3-5-haiku-20241022",
    "4o": "gpt-4o",
    "4": "gpt-4-turbo",
    "flash": "gemini/gemini-2.5-flash",
    "deepseek": "deepseek/deepseek-chat",
}


def resolve_model_alias(name: str) -> str:
    return MODEL_ALIASES.get(name.lower(), name)


def get_optional_env(name: str, default: str) -> str:
    return os.environ.get(name, default)


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class OrchestratorConfig:
    model: str = field(
        default_factory=lambda: resolve_model_alias(get_optional_env("KICKOFF_MODEL", "gpt-4o"))
    )
    completion_delay_s: float = field(
        default_factory=lambda: _float_env("KICKOFF_COMPLETION_DELAY", 3.0)
    )
    max_retries_per_step: int | None = 3
    turn_temperature: float = 0.8
    turn_max_tokens: int = 1024
    synthesis_temperature: float = 0.7
    synthesis_max_tokens: int = 4096
    memory_messages: int = 20
    data_dir: str = field(
        default_factory=lambda: get_optional_env("KICKOFF_DATA_DIR", "data/projects")
    )

    @classmethod
    def from_env(cls, **overrides) -> "OrchestratorConfig":
        config = cls()
        for key, value in overrides.items():
            if value is None:
                continue
            if not hasattr(config, key):
                raise ConfigError(f"Unknown config option: {key}")
            setattr(config, key, value)
        config.model = resolve_model_alias(config.model)
        return config

    def validate(self) -> None:
        if not self.model:
            raise ConfigError("model is required")
        if self.completion_delay_s < 0:
            raise ConfigError("completion_delay_s must be >= 0")
        if self.max_retries_per_step is not None and self.max_retries_per_step < 1:
            raise ConfigError("max_retries_per_step must be at least 1 when set")
        if not 0.0 <= self.turn_temperature <= 2.0:
            raise ConfigError("turn_temperature must be between 0 and 2")
        if not 0.0 <= self.synthesis_temperature <= 2.0:
            raise ConfigError("synthesis_temperature must be between 0 and 2")
        if self.turn_max_tokens < 1 or self.synthesis_max_tokens < 1:
            raise ConfigError("max_tokens settings must be at least 1")
        if self.memory_messages < 0:
            raise ConfigError("memory_messages must be >= 0")
        logger.debug("Configuration validated successfully")
