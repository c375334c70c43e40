"""Threshold split of an outcome set into main outcomes and "other".

Outcomes at or above the main threshold are shown individually. Everything
else, together with the probability mass the source never returned, is
gathered into one synthetic "other" outcome. No mass is ever dropped: if the
bucket would be too small to show, its members are folded back into the
main outcomes instead.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from probability_pulse.distribution.types import OTHER_ID, OTHER_TEXT, Outcome
from probability_pulse.exceptions import InvalidDistributionError

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(frozen=True, slots=True)
class SplitResult:
    """Result of a threshold split.

    Attributes:
        main: Outcomes shown individually, in input order.
        other: The synthetic "other" outcome, or ``None``.
        held_out: Individual outcomes folded into ``other``; these are the
            resolution candidates for the held-out strategy.
    """

    main: tuple[Outcome, ...]
    other: Outcome | None
    held_out: tuple[Outcome, ...]

    @property
    def outcomes(self) -> tuple[Outcome, ...]:
        """Main outcomes followed by "other" when present."""
        if self.other is None:
            return self.main
        return (*self.main, self.other)


def _check_probabilities(outcomes: Sequence[Outcome]) -> None:
    for outcome in outcomes:
        p = outcome.probability
        if not math.isfinite(p) or p < 0.0:
            raise InvalidDistributionError(
                f"Outcome {outcome.id} ({outcome.display_text!r}) has invalid probability {p!r}"
            )


def make_other(probability: float) -> Outcome:
    """Build the synthetic "other" outcome for *probability* mass."""
    log_p = math.log(probability) if probability > 0.0 else float("-inf")
    return Outcome(
        display_text=OTHER_TEXT,
        probability=probability,
        log_probability=log_p,
        is_other=True,
        id=OTHER_ID,
    )


def split(
    outcomes: Sequence[Outcome],
    main_threshold: float,
    min_other_probability: float,
    *,
    total_mass: float | None = None,
    max_main: int | None = None,
) -> SplitResult:
    """Split outcomes into main outcomes and one "other" bucket.

    Args:
        outcomes: Outcomes of one query, typically merged and sorted.
        main_threshold: Minimum probability for a main outcome.
        min_other_probability: Minimum mass for the bucket to be created.
        total_mass: Mass the complete set must reach (1.0 in the pipeline).
            The gap between it and the input total is the unseen vocabulary
            tail and is added to the bucket. ``None`` means no gap.
        max_main: Cap on the number of main outcomes. Overflow, lowest
            probability first, joins the bucket unconditionally. The cap
            also holds when a small pool is folded back.

    Returns:
        SplitResult whose total equals ``max(total_mass, input total)``.

    Raises:
        InvalidDistributionError: If a probability is negative or not finite.
    """
    _check_probabilities(outcomes)

    real = [o for o in outcomes if not o.is_other]
    carried = math.fsum(o.probability for o in outcomes if o.is_other)

    main_idx = [i for i, o in enumerate(real) if o.probability >= main_threshold]
    overflow: set[int] = set()
    if max_main is not None and len(main_idx) > max_main:
        by_prob = sorted(main_idx, key=lambda i: real[i].probability, reverse=True)
        overflow = set(by_prob[max(0, max_main):])
        main_idx = [i for i in main_idx if i not in overflow]

    main_set = set(main_idx)
    main = [real[i] for i in main_idx]
    pool_idx = [i for i in range(len(real)) if i not in main_set]
    pool = [real[i] for i in pool_idx]

    input_total = math.fsum(o.probability for o in outcomes)
    gap = 0.0
    if total_mass is not None:
        gap = max(0.0, total_mass - input_total)

    pool_mass = math.fsum(o.probability for o in pool) + carried + gap
    main_total = math.fsum(o.probability for o in main)

    if pool_mass > 0.0 and (
        pool_mass >= min_other_probability or overflow or main_total == 0.0
    ):
        return SplitResult(main=tuple(main), other=make_other(pool_mass), held_out=tuple(pool))

    residual = carried + gap
    if max_main is not None and len(real) > max_main:
        # Only as many pool members as the cap leaves room for come back;
        # the rest stay in the bucket however small it is.
        room = max(0, max_main - len(main_idx))
        by_prob = sorted(pool_idx, key=lambda i: real[i].probability, reverse=True)
        excess = set(by_prob[room:])
        rest = [real[i] for i in pool_idx if i in excess]
        rest_mass = math.fsum(o.probability for o in rest) + residual
        shown = tuple(o for i, o in enumerate(real) if i not in excess)
        if rest_mass > 0.0:
            return SplitResult(main=shown, other=make_other(rest_mass), held_out=tuple(rest))
        return SplitResult(main=shown, other=None, held_out=())

    # Bucket too small: fold the pool back in input order and spread any
    # residual unseen mass proportionally over the main outcomes.
    folded = list(real)
    if residual > 0.0:
        folded_total = math.fsum(o.probability for o in folded)
        factor = (folded_total + residual) / folded_total
        folded = [replace(o, probability=o.probability * factor) for o in folded]
    return SplitResult(main=tuple(folded), other=None, held_out=())
