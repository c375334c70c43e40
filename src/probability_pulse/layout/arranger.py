"""Outcome arrangement and interval layout.

Every presentation surface consumes the same layout: each outcome gets a
contiguous interval of a normalized [0, 1) extent whose width is its
probability. Arrangement policies only reorder the outcomes before layout;
they never change a probability. The "other" outcome is always laid out last.

Policies are registered by name::

    @register_policy("my_policy")
    def my_policy(outcomes):
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from probability_pulse.exceptions import InvalidDistributionError
from probability_pulse.layout.types import LaidOutOutcome

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from probability_pulse.distribution.types import Outcome

    ArrangementPolicy = Callable[[Sequence[Outcome]], list[Outcome]]

_POLICIES: dict[str, ArrangementPolicy] = {}


def register_policy(name: str) -> Callable[[ArrangementPolicy], ArrangementPolicy]:
    """Decorator that registers an arrangement policy under *name*.

    Args:
        name: Identifier used by surfaces and ``arrange()``.

    Returns:
        Decorator that registers the function and returns it unchanged.

    Raises:
        ValueError: If *name* is already registered.
    """

    def decorator(func: ArrangementPolicy) -> ArrangementPolicy:
        if name in _POLICIES:
            raise ValueError(f"Arrangement policy '{name}' is already registered")
        _POLICIES[name] = func
        return func

    return decorator


def get_policy(name: str) -> ArrangementPolicy:
    """Return the policy registered under *name*.

    Raises:
        KeyError: If *name* is not registered.
    """
    if name not in _POLICIES:
        available = ", ".join(sorted(_POLICIES)) or "(none)"
        raise KeyError(f"Unknown arrangement policy '{name}'. Available: {available}")
    return _POLICIES[name]


def list_policies() -> list[str]:
    """Return sorted list of registered policy names."""
    return sorted(_POLICIES)


def _partition(outcomes: Sequence[Outcome]) -> tuple[list[Outcome], list[Outcome]]:
    real = [o for o in outcomes if not o.is_other]
    others = [o for o in outcomes if o.is_other]
    return real, others


@register_policy("given")
def given_order(outcomes: Sequence[Outcome]) -> list[Outcome]:
    """Keep the input order, moving "other" to the end."""
    real, others = _partition(outcomes)
    return real + others


@register_policy("descending")
def descending_order(outcomes: Sequence[Outcome]) -> list[Outcome]:
    """Sort by probability, highest first (stable), "other" last."""
    real, others = _partition(outcomes)
    return sorted(real, key=lambda o: o.probability, reverse=True) + others


@register_policy("center")
def center_order(outcomes: Sequence[Outcome]) -> list[Outcome]:
    """Put the most probable outcome in the middle.

    Ranks alternate around it: odd ranks are prepended on the left, even
    ranks appended on the right, so mass falls off towards both edges of a
    ball-drop board. "other" stays last.
    """
    real, others = _partition(outcomes)
    if len(real) <= 1:
        return real + others

    ranked = sorted(real, key=lambda o: o.probability, reverse=True)
    left: list[Outcome] = []
    right: list[Outcome] = []
    for rank, outcome in enumerate(ranked[1:], start=1):
        if rank % 2 == 1:
            left.insert(0, outcome)
        else:
            right.append(outcome)
    return [*left, ranked[0], *right, *others]


def layout(outcomes: Sequence[Outcome]) -> list[LaidOutOutcome]:
    """Assign each outcome a contiguous interval in the given order.

    ``start`` of outcome *i* is the summed probability of outcomes before it
    and ``end = start + probability``. "other", if present, is moved to the
    final interval. Zero-probability outcomes get zero-width intervals.

    Args:
        outcomes: Outcomes to lay out.

    Returns:
        One LaidOutOutcome per input outcome.

    Raises:
        InvalidDistributionError: If a probability is negative or not finite.
    """
    result: list[LaidOutOutcome] = []
    start = 0.0
    for outcome in given_order(outcomes):
        p = outcome.probability
        if not p >= 0.0 or p == float("inf"):
            raise InvalidDistributionError(
                f"Cannot lay out outcome {outcome.id} with probability {p!r}"
            )
        end = start + p
        result.append(LaidOutOutcome(outcome=outcome, start_fraction=start, end_fraction=end))
        start = end
    return result


def arrange(outcomes: Sequence[Outcome], policy: str = "given") -> list[LaidOutOutcome]:
    """Reorder *outcomes* with the named policy, then lay them out.

    Args:
        outcomes: Outcomes to arrange.
        policy: Registered policy name.

    Returns:
        The laid-out outcomes; identical for identical inputs.
    """
    return layout(get_policy(policy)(outcomes))


def locate(laid_out: Sequence[LaidOutOutcome], position: float) -> LaidOutOutcome:
    """Find the interval a final animated position lands in.

    Uses the same boundary rule as the weighted selector: the first interval
    whose end exceeds *position* wins, and a position at or past the end of
    the extent resolves to the last non-empty interval.

    Args:
        laid_out: A layout produced by ``layout()`` or ``arrange()``.
        position: Position on the same scale as the fractions.

    Returns:
        The LaidOutOutcome containing *position*.

    Raises:
        ValueError: If *laid_out* is empty.
    """
    if not laid_out:
        raise ValueError("Cannot locate a position in an empty layout")
    for item in laid_out:
        if item.width > 0.0 and item.end_fraction > position:
            return item
    for item in reversed(laid_out):
        if item.width > 0.0:
            return item
    return laid_out[-1]
