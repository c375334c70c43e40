"""Weighted random selection shared by every presentation surface.

One canonical algorithm, driven by an explicit uniform value ``u``:
build the cumulative sum of probabilities in the given order and pick the
first outcome whose inclusive cumulative sum exceeds ``u * total``. The
total is summed, not assumed, so small upstream drift is tolerated.

Semantic interpretation of u:
    u near 0.0: selects the first outcome in the given order
    u near 1.0: selects the last non-empty outcome
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from probability_pulse.exceptions import EmptyDistributionError, InvalidDistributionError
from probability_pulse.layout.arranger import locate

if TYPE_CHECKING:
    from collections.abc import Sequence

    from probability_pulse.distribution.types import Outcome
    from probability_pulse.layout.types import LaidOutOutcome


def _check_unit(random_unit: float) -> None:
    if not 0.0 <= random_unit < 1.0:
        raise ValueError(f"random_unit must be in [0, 1), got {random_unit!r}")


class WeightedSelector:
    """Stateless weighted selector.

    The random draw is always an argument, never read from a global source,
    so the same outcomes and the same ``u`` always give the same winner.
    """

    def select(self, outcomes: Sequence[Outcome], random_unit: float) -> Outcome:
        """Select one outcome with probability proportional to its weight.

        Args:
            outcomes: Outcomes in selection order.
            random_unit: Uniform random value in [0, 1).

        Returns:
            The winning outcome.

        Raises:
            EmptyDistributionError: If *outcomes* is empty.
            InvalidDistributionError: If a probability is negative or not
                finite, or the total is zero.
            ValueError: If *random_unit* is outside [0, 1).
        """
        if not outcomes:
            raise EmptyDistributionError("Cannot select from an empty outcome set")
        _check_unit(random_unit)
        probs = np.array([o.probability for o in outcomes], dtype=np.float64)
        return outcomes[self.select_index(probs, random_unit)]

    def pick(self, laid_out: Sequence[LaidOutOutcome], random_unit: float) -> Outcome:
        """Select one outcome from a layout.

        Scales *random_unit* to the layout's full extent and returns the
        outcome whose interval contains that position. Gives the same winner
        as ``select()`` over the outcomes in layout order.

        Args:
            laid_out: Layout produced by the arranger.
            random_unit: Uniform random value in [0, 1).

        Returns:
            The winning outcome.

        Raises:
            EmptyDistributionError: If *laid_out* is empty.
            InvalidDistributionError: If the layout has no extent.
            ValueError: If *random_unit* is outside [0, 1).
        """
        if not laid_out:
            raise EmptyDistributionError("Cannot pick from an empty layout")
        _check_unit(random_unit)
        total = laid_out[-1].end_fraction
        if not total > 0.0:
            raise InvalidDistributionError(f"Layout has no extent (total {total!r})")
        return locate(laid_out, random_unit * total).outcome

    @staticmethod
    def select_index(weights: np.ndarray, random_unit: float) -> int:
        """Return the index selected by *random_unit* over *weights*.

        Args:
            weights: 1-D array of non-negative weights (need not sum to 1).
            random_unit: Uniform random value in [0, 1).

        Returns:
            Index of the winner.

        Raises:
            EmptyDistributionError: If *weights* is empty.
            InvalidDistributionError: If a weight is negative or not finite,
                or all weights are zero.
        """
        if len(weights) == 0:
            raise EmptyDistributionError("Cannot select from an empty weight vector")
        if not np.all(np.isfinite(weights)) or np.any(weights < 0):
            raise InvalidDistributionError("Weights must be finite and non-negative")

        cdf = np.cumsum(weights)
        total = float(cdf[-1])
        if total <= 0.0:
            raise InvalidDistributionError("Cannot select from a zero-mass distribution")

        # First index whose cumulative sum is strictly greater than the target.
        idx = int(np.searchsorted(cdf, random_unit * total, side="right"))
        if idx < len(weights):
            return idx

        # Rounding at the upper boundary: the last non-empty outcome wins.
        positive = np.flatnonzero(weights > 0)
        return int(positive[-1])
