"""Log-probability to probability conversion.

Turns the raw (token, log-probability) pairs of one source query into a
closed distribution with a numerically stable max-shift softmax. The share of
the full vocabulary the candidates really cover is computed separately by
``covered_mass()``; the pipeline uses it to fold the unseen tail into the
"other" bucket.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import TYPE_CHECKING

import numpy as np

from probability_pulse.distribution.types import Outcome
from probability_pulse.exceptions import InvalidDistributionError, NormalizationDriftError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from probability_pulse.distribution.types import RawCandidate

logger = logging.getLogger("probability_pulse")


def _log_probabilities(candidates: Sequence[RawCandidate]) -> np.ndarray:
    """Collect log-probabilities, rejecting NaN and +Infinity.

    Args:
        candidates: Raw candidates from one source query.

    Returns:
        1-D float64 array of log-probabilities in input order.

    Raises:
        InvalidDistributionError: If any value is NaN or +Infinity.
    """
    values = np.array([c.log_probability for c in candidates], dtype=np.float64)
    bad = np.isnan(values) | np.isposinf(values)
    if np.any(bad):
        idx = int(np.argmax(bad))
        raise InvalidDistributionError(
            f"Candidate {idx} ({candidates[idx].text!r}) has invalid "
            f"log-probability {candidates[idx].log_probability!r}"
        )
    return values


def normalize(candidates: Sequence[RawCandidate], temperature: float = 1.0) -> list[Outcome]:
    """Convert raw candidates into a closed probability distribution.

    Pipeline:
        1. m = max(log_probability)
        2. w_i = exp((log_probability_i - m) / temperature)
        3. p_i = w_i / sum(w)

    Args:
        candidates: Raw candidates in source rank order.
        temperature: Softmax temperature (1.0 leaves the slice unchanged).

    Returns:
        One Outcome per candidate, ``id`` equal to the input index. Empty
        when *candidates* is empty.

    Raises:
        InvalidDistributionError: On NaN/+Infinity input, a non-positive
            temperature, or when every log-probability is -Infinity.
    """
    if not candidates:
        return []
    if not temperature > 0:
        raise InvalidDistributionError(f"temperature must be > 0, got {temperature}")

    log_probs = _log_probabilities(candidates)
    finite_mask = np.isfinite(log_probs)
    if not np.any(finite_mask):
        raise InvalidDistributionError("All candidate log-probabilities are -inf")

    max_lp = np.max(log_probs[finite_mask])
    # -inf - max_lp is still -inf, exp(-inf) = 0. At least one term is exp(0).
    weights = np.exp((log_probs - max_lp) / temperature)
    probs = weights / np.sum(weights)

    return [
        Outcome(
            display_text=c.text,
            probability=float(p),
            log_probability=float(c.log_probability),
            is_other=False,
            id=i,
        )
        for i, (c, p) in enumerate(zip(candidates, probs))
    ]


def covered_mass(candidates: Sequence[RawCandidate]) -> float:
    """Estimate the share of total probability the candidates account for.

    Reads the source's log-probabilities as absolute values:
    ``min(1, sum(exp(log_probability)))``. ``1 - covered_mass`` is the
    unseen vocabulary tail.

    Args:
        candidates: Raw candidates from one source query.

    Returns:
        A value in [0, 1]; 0.0 for an empty input.

    Raises:
        InvalidDistributionError: On NaN/+Infinity input.
    """
    if not candidates:
        return 0.0
    log_probs = _log_probabilities(candidates)
    total = float(np.sum(np.exp(log_probs)))
    return min(1.0, max(0.0, total))


def scale(outcomes: Sequence[Outcome], mass: float) -> list[Outcome]:
    """Multiply every probability by *mass*.

    Args:
        outcomes: A closed distribution.
        mass: Share of total probability the distribution really covers.

    Returns:
        New outcomes; log-probabilities are left as reported by the source.

    Raises:
        InvalidDistributionError: If *mass* is outside [0, 1].
    """
    if not 0.0 <= mass <= 1.0:
        raise InvalidDistributionError(f"mass must be in [0, 1], got {mass}")
    return [replace(o, probability=o.probability * mass) for o in outcomes]


def ensure_normalized(
    outcomes: Sequence[Outcome],
    tolerance: float = 1e-6,
    strict: bool = False,
) -> list[Outcome]:
    """Check that a complete outcome set sums to 1 and correct small drift.

    Args:
        outcomes: A complete outcome set (main outcomes plus "other").
        tolerance: Allowed absolute deviation of the total from 1.0.
        strict: Raise instead of renormalizing.

    Returns:
        The outcomes unchanged when within tolerance, otherwise a
        renormalized copy.

    Raises:
        InvalidDistributionError: If the total is non-positive or not finite.
        NormalizationDriftError: If drift is detected and *strict* is set.
    """
    if not outcomes:
        return []

    total = math.fsum(o.probability for o in outcomes)
    if not math.isfinite(total) or total <= 0.0:
        raise InvalidDistributionError(f"Cannot normalize outcome set with total {total!r}")

    drift = total - 1.0
    if abs(drift) <= tolerance:
        return list(outcomes)

    if strict:
        raise NormalizationDriftError(
            f"Outcome probabilities sum to {total:.9f} (drift {drift:+.3e})"
        )

    logger.warning(
        "Normalization drift %+.3e across %d outcomes, renormalizing",
        drift,
        len(outcomes),
    )
    return [replace(o, probability=o.probability / total) for o in outcomes]


def compute_shannon_entropy(outcomes: Sequence[Outcome]) -> float:
    """Compute Shannon entropy H = -sum(p_i * ln(p_i)) of an outcome set.

    Args:
        outcomes: Outcomes whose probabilities sum to ~1.0.

    Returns:
        Entropy in nats; 0.0 for empty or single-outcome sets.
    """
    probs = np.array([o.probability for o in outcomes], dtype=np.float64)
    mask = probs > 0
    if not np.any(mask):
        return 0.0
    entropy = -float(np.sum(probs[mask] * np.log(probs[mask])))
    # Guard against floating-point artifacts producing tiny negatives.
    return max(0.0, entropy)
