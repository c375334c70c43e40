"""Log-probability source subsystem for probability-pulse.

Re-exports the ABC, registry, request/response types, and the built-in
sources::

    from probability_pulse.sources import GeminiLogProbSource, SourceRequest
"""

from probability_pulse.sources.base import LogProbSource
from probability_pulse.sources.gemini import GeminiLogProbSource
from probability_pulse.sources.registry import LogProbSourceRegistry, register_logprob_source
from probability_pulse.sources.simulated import SimulatedLogProbSource
from probability_pulse.sources.types import MAX_TOP_K, SourceRequest, SourceResponse

__all__ = [
    "MAX_TOP_K",
    "GeminiLogProbSource",
    "LogProbSource",
    "LogProbSourceRegistry",
    "SimulatedLogProbSource",
    "SourceRequest",
    "SourceResponse",
    "register_logprob_source",
]
