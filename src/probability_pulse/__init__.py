"""probability-pulse: Turn a language model's next-token guess into a game of chance.

Queries a log-probability source for the top alternatives of the next token,
normalizes and merges them into a closed outcome set with one "other"
bucket, lays the set out on a chance-game surface and picks the winner with
a single weighted draw from an injectable randomness source.
"""

from __future__ import annotations

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("probability-pulse")
except PackageNotFoundError:
    __version__ = "0.0.0"

from probability_pulse.config import PulseConfig, resolve_config, validate_overrides
from probability_pulse.distribution.types import OTHER_ID, OTHER_TEXT, Outcome, OutcomeSet
from probability_pulse.engine import NextTokenEngine, PlayResult
from probability_pulse.exceptions import (
    ConfigValidationError,
    EmptyDistributionError,
    InvalidDistributionError,
    NormalizationDriftError,
    ProbabilityPulseError,
    SourceUnavailableError,
)
from probability_pulse.session import GenerationSession, GenerationState, QueryTicket

__all__ = [
    "OTHER_ID",
    "OTHER_TEXT",
    "ConfigValidationError",
    "EmptyDistributionError",
    "GenerationSession",
    "GenerationState",
    "InvalidDistributionError",
    "NextTokenEngine",
    "NormalizationDriftError",
    "Outcome",
    "OutcomeSet",
    "PlayResult",
    "ProbabilityPulseError",
    "PulseConfig",
    "QueryTicket",
    "SourceUnavailableError",
    "__version__",
    "resolve_config",
    "validate_overrides",
]
