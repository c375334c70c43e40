"""Data types for the layout subsystem."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from probability_pulse.distribution.types import Outcome


@dataclass(frozen=True, slots=True)
class LaidOutOutcome:
    """An outcome placed on a normalized [0, 1) layout extent.

    Surfaces map the fractions onto their own units: degrees of a wheel,
    width of a ball-drop board, faces of a die or symbols on a reel.

    Attributes:
        outcome: The outcome occupying the interval.
        start_fraction: Inclusive start of the interval.
        end_fraction: Exclusive end; ``end - start == outcome.probability``.
    """

    outcome: Outcome
    start_fraction: float
    end_fraction: float

    @property
    def width(self) -> float:
        """Interval width (the outcome's probability)."""
        return self.end_fraction - self.start_fraction

    def contains(self, position: float) -> bool:
        """Whether *position* falls inside ``[start, end)``."""
        return self.start_fraction <= position < self.end_fraction
