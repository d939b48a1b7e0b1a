"""Configuration management for SF-CICD."""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import yaml

logger = logging.getLogger("sf_cicd.config")

DEFAULT_AI_CONFIG_PATH = Path(".github/config/ai-config.yml")
DEFAULT_PROMPT_TEMPLATE_PATH = Path(".github/config/prompts/apex-code-review.md")
DEFAULT_CURSOR_API_URL = "https://api.cursor.sh/v1"


class AIProvider(str, Enum):
    """Supported AI backends."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    CURSOR = "cursor"


# Short names accepted wherever a provider is named
PROVIDER_ALIASES: dict[str, AIProvider] = {
    "anthropic": AIProvider.ANTHROPIC,
    "claude": AIProvider.ANTHROPIC,
    "openai": AIProvider.OPENAI,
    "gpt": AIProvider.OPENAI,
    "cursor": AIProvider.CURSOR,
}


def parse_provider(value: Any) -> AIProvider:
    """Map a provider name or alias onto ``AIProvider``."""
    if isinstance(value, AIProvider):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Provider must be a string, got {type(value).__name__}")
    provider = PROVIDER_ALIASES.get(value.strip().lower())
    if provider is None:
        supported = ", ".join(p.value for p in AIProvider)
        raise ValueError(f"Unknown AI provider '{value}'. Supported providers: {supported}")
    return provider


class Settings(BaseModel):
    """Settings for a single AI call.

    Immutable once resolved. Range checks live here so that adapters never
    receive an out-of-range temperature or token budget.
    """

    model_config = ConfigDict(frozen=True)

    provider: AIProvider = Field(default=AIProvider.CURSOR)
    model: str = Field(default="claude-3-5-sonnet-20241022", min_length=1)
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, gt=0)

    @field_validator("provider", mode="before")
    @classmethod
    def _normalize_provider(cls, value: Any) -> AIProvider:
        return parse_provider(value)

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a validated copy with the non-None overrides applied."""
        updates = {k: v for k, v in overrides.items() if v is not None}
        if not updates:
            return self
        return Settings.model_validate({**self.model_dump(), **updates})


SETTINGS_KEYS = tuple(Settings.model_fields)


class ReviewConfig(BaseModel):
    """Configuration for the AI Apex review run."""

    template_path: Path = Field(default=DEFAULT_PROMPT_TEMPLATE_PATH)
    output_file: Path = Field(default=Path("review-results.json"))
    raw_output_dir: Path = Field(default=Path("."), description="Where unparseable answers are saved")
    api_version: str = Field(default="60.0")
    org_type: str = Field(default="Sandbox")
    max_attempts: int = Field(default=3, ge=1, le=10)
    base_delay: float = Field(default=2.0, ge=0.0)
    high_issue_warning_threshold: int = Field(default=5, ge=0)


def _load_source(config_source: Path | str | Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    """Read the raw configuration mapping, or None when it is unusable."""
    if config_source is None:
        return None

    if isinstance(config_source, Mapping):
        return config_source

    path = Path(config_source)
    if not path.is_file():
        logger.debug(f"AI config not found at {path}, using defaults")
        return None

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning(f"Could not read AI config {path}: {e}; using defaults")
        return None

    if not isinstance(data, Mapping):
        logger.warning(f"AI config {path} is not a mapping; using defaults")
        return None

    return data


def resolve_settings(config_source: Path | str | Mapping[str, Any] | None = None) -> Settings:
    """Resolve Settings from an optional YAML file or mapping.

    Never raises on bad input: an unusable source yields the full defaults,
    and each unusable key (missing, null, wrong type, out of range) falls
    back to its own default. Unknown keys are ignored.
    """
    data = _load_source(config_source)
    if data is None:
        return Settings()

    accepted: dict[str, Any] = {}
    for key in SETTINGS_KEYS:
        if key not in data or data[key] is None:
            continue
        try:
            Settings.model_validate({key: data[key]})
        except ValidationError as e:
            reason = e.errors()[0].get("msg", "invalid value")
            logger.warning(f"Ignoring AI config key '{key}'={data[key]!r}: {reason}")
            continue
        accepted[key] = data[key]

    return Settings.model_validate(accepted)
