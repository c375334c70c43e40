"""Configuration system for probability-pulse.

Uses pydantic-settings for declarative, layered configuration:
init kwargs -> environment variables (PP_*) -> .env file -> field defaults.

Per-session overrides are applied via resolve_config() which creates a new
config instance without mutating the defaults. Infrastructure fields are
protected from per-session override.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from probability_pulse.exceptions import ConfigValidationError

# Fields that a single generation session may override. Infrastructure
# fields (model, credentials, timeouts, source types) are excluded.
_PER_SESSION_FIELDS: frozenset[str] = frozenset(
    {
        "top_k",
        "temperature",
        "main_threshold",
        "min_other_probability",
        "fold_unseen_mass",
        "other_strategy",
        "held_out_weighting",
        "normalization_tolerance",
        "strict_normalization",
        "ensure_leading_space",
        "log_level",
        "diagnostic_mode",
    }
)

# All known config field names (populated after class definition).
_ALL_FIELDS: frozenset[str] = frozenset()

DEFAULT_SYSTEM_INSTRUCTION = (
    "You are a text continuation engine. Your ONLY job is to continue the text that follows.\n"
    "Do not start a new sentence. Do not add punctuation. Do not be helpful.\n"
    "Simply predict what word or token comes immediately next in the sequence.\n"
    "Continue from exactly where the text ends, maintaining the same case and style."
)


class PulseConfig(BaseSettings):
    """Configuration for probability-pulse.

    Resolution order: init kwargs -> env vars (PP_*) -> .env file -> defaults.

    Fields are divided into two groups:
    - **Infrastructure**: log-probability source, credentials, timeouts and
      the entropy source. Not overridable per session.
    - **Distribution and selection**: thresholds, "other" resolution,
      normalization checks and logging. Overridable per session via
      resolve_config().
    """

    model_config = SettingsConfigDict(
        env_prefix="PP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Infrastructure (NOT per-session overridable) ---

    source_type: str = Field(
        default="gemini",
        description="Log-probability source identifier: 'gemini' or 'simulated'",
    )
    gemini_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="API key for the Gemini generateContent endpoint",
    )
    gemini_model: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model name",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Base URL of the Generative Language API",
    )
    request_timeout_s: float = Field(
        default=10.0,
        gt=0,
        description="HTTP timeout for one log-probability query in seconds",
    )
    retry_count: int = Field(
        default=2,
        ge=0,
        description="Number of retries after a transient source failure",
    )
    retry_backoff_s: float = Field(
        default=0.5,
        ge=0,
        description="Base backoff between retries; doubles on each attempt",
    )
    system_instruction: str = Field(
        default=DEFAULT_SYSTEM_INSTRUCTION,
        description="Instruction that keeps the model in pure continuation mode",
    )
    entropy_source_type: str = Field(
        default="system",
        description="Randomness source for draws: 'system' or 'mock_uniform'",
    )

    # --- Distribution (per-session overridable) ---

    top_k: int = Field(
        default=20,
        ge=1,
        le=20,
        description="Number of alternatives requested per position",
    )
    temperature: float = Field(
        default=1.0,
        gt=0,
        description="Softmax temperature applied while normalizing candidates",
    )
    main_threshold: float = Field(
        default=0.03,
        ge=0,
        le=1,
        description="Minimum probability for an outcome to be shown on its own",
    )
    min_other_probability: float = Field(
        default=0.01,
        ge=0,
        le=1,
        description="Minimum mass for the synthetic 'other' bucket to exist",
    )
    fold_unseen_mass: bool = Field(
        default=True,
        description="Scale candidates by covered mass so the unseen tail lands in 'other'",
    )
    normalization_tolerance: float = Field(
        default=1e-6,
        gt=0,
        description="Allowed deviation of a complete set's total from 1.0",
    )
    strict_normalization: bool = Field(
        default=False,
        description="Raise on normalization drift instead of renormalizing",
    )

    # --- Selection (per-session overridable) ---

    other_strategy: Literal["held_out", "requery"] = Field(
        default="held_out",
        description="How a drawn 'other' becomes a concrete token",
    )
    held_out_weighting: Literal["weighted", "uniform"] = Field(
        default="weighted",
        description="Weighting used by the held-out strategy",
    )
    ensure_leading_space: bool = Field(
        default=True,
        description="Prefix accepted tokens with a space when they lack one",
    )

    # --- Logging (per-session overridable) ---

    log_level: Literal["none", "summary", "full"] = Field(
        default="summary",
        description="Logging verbosity: 'none', 'summary', 'full'",
    )
    diagnostic_mode: bool = Field(
        default=False,
        description="Store all selection records in memory for analysis",
    )


# Populate _ALL_FIELDS now that the class is defined.
_ALL_FIELDS = frozenset(PulseConfig.model_fields.keys())


def validate_overrides(overrides: dict[str, Any]) -> None:
    """Validate override keys without creating a config.

    Args:
        overrides: Field names mapped to their override values.

    Raises:
        ConfigValidationError: If any key is unknown or non-overridable.
    """
    for key in overrides:
        if key not in _ALL_FIELDS:
            raise ConfigValidationError(f"Unknown config field: '{key}'")
        if key not in _PER_SESSION_FIELDS:
            raise ConfigValidationError(
                f"Field '{key}' is an infrastructure field and cannot be "
                f"overridden per session"
            )


def resolve_config(
    defaults: PulseConfig,
    overrides: dict[str, Any] | None,
) -> PulseConfig:
    """Create a new config instance merging defaults with session overrides.

    Args:
        defaults: The base configuration loaded from environment.
        overrides: Per-session overrides keyed by field name.

    Returns:
        A new PulseConfig with overrides applied, or *defaults* itself when
        there is nothing to override.

    Raises:
        ConfigValidationError: If any key is unknown, non-overridable, or
            its value fails validation.
    """
    if not overrides:
        return defaults

    validate_overrides(overrides)

    # model_copy(update=...) skips validation, so run the full validator
    # on a merged dict instead.
    merged = defaults.model_dump()
    merged.update(overrides)
    try:
        return PulseConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigValidationError(f"Invalid config override: {exc}") from exc
