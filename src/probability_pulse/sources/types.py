"""Data types for the log-probability source subsystem."""

from __future__ import annotations

from dataclasses import dataclass

from probability_pulse.distribution.types import RawCandidate

MAX_TOP_K: int = 20
"""Largest number of alternatives the scoring API returns per position."""


@dataclass(frozen=True, slots=True)
class SourceRequest:
    """One next-token query.

    Attributes:
        prefix: Text to continue.
        top_k: Number of alternatives to return, in [1, 20]. ``None`` asks
            for the emitted token only, with no top-K restriction.
        max_output_tokens: Tokens to generate; always 1 for next-token
            queries.
    """

    prefix: str
    top_k: int | None = MAX_TOP_K
    max_output_tokens: int = 1

    def __post_init__(self) -> None:
        if self.top_k is not None and not 1 <= self.top_k <= MAX_TOP_K:
            raise ValueError(f"top_k must be in [1, {MAX_TOP_K}], got {self.top_k}")
        if self.max_output_tokens < 1:
            raise ValueError(f"max_output_tokens must be >= 1, got {self.max_output_tokens}")


@dataclass(frozen=True, slots=True)
class SourceResponse:
    """Successful answer to a SourceRequest.

    Attributes:
        chosen_text: Token the model emitted.
        candidates: Up to ``top_k`` alternatives in source rank order.
        chosen_log_probability: Log-probability of ``chosen_text``, if
            reported.
    """

    chosen_text: str
    candidates: tuple[RawCandidate, ...] = ()
    chosen_log_probability: float | None = None
