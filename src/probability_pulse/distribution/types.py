"""Data types for the distribution subsystem."""

from __future__ import annotations

from dataclasses import dataclass

OTHER_ID: int = -1
"""Id reserved for the synthetic "other" outcome."""

OTHER_TEXT: str = "<OTHER>"
"""Display text of the synthetic "other" outcome."""


@dataclass(frozen=True, slots=True)
class RawCandidate:
    """One alternative returned by the source for a single token position.

    Attributes:
        text: Token text exactly as the source returned it.
        log_probability: Natural-log probability reported by the source.
    """

    text: str
    log_probability: float


@dataclass(frozen=True, slots=True)
class Outcome:
    """One selectable unit of probability mass.

    Attributes:
        display_text: Text shown for the outcome (and appended when chosen).
        probability: Normalized probability in [0, 1].
        log_probability: Natural-log probability carried from the source.
        is_other: True only for the synthetic "other" bucket.
        id: Source rank of the outcome, or ``OTHER_ID`` for the bucket.
    """

    display_text: str
    probability: float
    log_probability: float
    is_other: bool = False
    id: int = 0


@dataclass(frozen=True, slots=True)
class OutcomeSet:
    """Complete outcome set produced for one prefix.

    Attributes:
        prefix: Text the source was queried with.
        outcomes: Main outcomes in display order, "other" last if present.
        held_out: Individual outcomes folded into the "other" bucket.
        chosen_text: Token the model itself emitted for this prefix.
        covered_mass: Share of total probability the returned candidates
            account for (1.0 when unknown).
    """

    prefix: str
    outcomes: tuple[Outcome, ...] = ()
    held_out: tuple[Outcome, ...] = ()
    chosen_text: str = ""
    covered_mass: float = 1.0

    @property
    def main(self) -> tuple[Outcome, ...]:
        """Outcomes shown individually."""
        return tuple(o for o in self.outcomes if not o.is_other)

    @property
    def other(self) -> Outcome | None:
        """The synthetic "other" outcome, if the set has one."""
        for outcome in self.outcomes:
            if outcome.is_other:
                return outcome
        return None

    @property
    def total_probability(self) -> float:
        """Sum of all outcome probabilities (1.0 for a complete set)."""
        return sum(o.probability for o in self.outcomes)

    @property
    def is_empty(self) -> bool:
        """True when no prediction is available for the prefix."""
        return not self.outcomes
