"""Data types for the diagnostic logging subsystem."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SelectionRecord:
    """Immutable record of one selection (spin, roll, drop or draw).

    Attributes:
        timestamp_ns: Wall-clock time of the selection (ns since epoch).
        prefix_chars: Length of the prefix the outcome set was built for.
        surface: Presentation surface the selection was made on.
        policy: Arrangement policy used for the layout.
        random_unit: Uniform value that decided the winner, in [0, 1).
        winner_id: Id of the winning outcome (-1 for "other").
        winner_text: Display text of the winning outcome.
        winner_probability: Probability of the winning outcome.
        is_other: True if "other" won and had to be resolved.
        resolved_text: Token appended to the sentence.
        num_outcomes: Number of outcomes laid out.
        other_probability: Mass of the "other" bucket (0.0 if none).
        covered_mass: Share of probability the returned candidates covered.
        shannon_entropy: Shannon entropy of the outcome set (nats).
        entropy_source_used: Name of the randomness source.
        selection_ms: Time to arrange, draw and resolve (milliseconds).
        config_hash: 16-char SHA-256 prefix of the active config.
    """

    # Timing
    timestamp_ns: int
    selection_ms: float

    # Context
    prefix_chars: int
    surface: str
    policy: str
    entropy_source_used: str

    # Distribution
    num_outcomes: int
    other_probability: float
    covered_mass: float
    shannon_entropy: float

    # Selection
    random_unit: float
    winner_id: int
    winner_text: str
    winner_probability: float
    is_other: bool
    resolved_text: str

    # Config snapshot
    config_hash: str
