"""Tests for softmax normalization, covered mass and drift correction."""

from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from probability_pulse.distribution.builder import (
    compute_shannon_entropy,
    covered_mass,
    ensure_normalized,
    normalize,
    scale,
)
from probability_pulse.distribution.types import Outcome, RawCandidate
from probability_pulse.exceptions import InvalidDistributionError, NormalizationDriftError


def _raw(*log_probs: float) -> list[RawCandidate]:
    return [RawCandidate(f"t{i}", lp) for i, lp in enumerate(log_probs)]


class TestNormalize:
    """Tests for the max-shift softmax."""

    @pytest.mark.parametrize(
        "log_probs",
        [
            [-0.1],
            [-0.1, -2.0, -3.0],
            [-50.0, -51.0, -900.0],
            [0.0, 0.0, 0.0, 0.0],
            [-1e-9, -30.0, float("-inf")],
        ],
    )
    def test_sums_to_one(self, log_probs: list[float]) -> None:
        """Probabilities of any non-empty finite input sum to 1."""
        outcomes = normalize(_raw(*log_probs))
        assert math.fsum(o.probability for o in outcomes) == pytest.approx(1.0, abs=1e-6)

    def test_random_inputs_sum_to_one(self) -> None:
        """Normalization holds across many random slices."""
        rng = np.random.default_rng(7)
        for _ in range(200):
            k = int(rng.integers(1, 21))
            outcomes = normalize(_raw(*rng.uniform(-40.0, 0.0, size=k)))
            assert math.fsum(o.probability for o in outcomes) == pytest.approx(1.0, abs=1e-6)

    def test_softmax_example(self) -> None:
        """[-0.1, -2, -3] follows the max-shift formula."""
        outcomes = normalize(_raw(-0.1, -2.0, -3.0))
        weights = [1.0, math.exp(-1.9), math.exp(-2.9)]
        expected = [w / sum(weights) for w in weights]
        probs = [o.probability for o in outcomes]
        assert probs == pytest.approx(expected, rel=1e-9)
        assert probs == pytest.approx([0.852, 0.115, 0.042], abs=0.025)

    def test_identical_inputs_are_uniform(self) -> None:
        """Equal log-probabilities give equal probabilities."""
        outcomes = normalize(_raw(-2.0, -2.0, -2.0, -2.0))
        assert all(o.probability == pytest.approx(0.25) for o in outcomes)

    def test_ids_and_log_probabilities_preserved(self) -> None:
        """Ids follow input rank and raw log-probabilities are kept."""
        outcomes = normalize(_raw(-0.5, -1.5))
        assert [o.id for o in outcomes] == [0, 1]
        assert [o.log_probability for o in outcomes] == [-0.5, -1.5]
        assert not any(o.is_other for o in outcomes)

    def test_empty_input(self) -> None:
        """No candidates yield no outcomes."""
        assert normalize([]) == []

    def test_negative_infinity_gets_zero(self) -> None:
        """-Infinity maps to probability zero without failing."""
        outcomes = normalize(_raw(-1.0, float("-inf")))
        assert outcomes[0].probability == pytest.approx(1.0)
        assert outcomes[1].probability == 0.0

    def test_all_negative_infinity_rejected(self) -> None:
        """A slice with no finite value cannot be normalized."""
        with pytest.raises(InvalidDistributionError):
            normalize(_raw(float("-inf"), float("-inf")))

    @pytest.mark.parametrize("bad", [float("nan"), float("inf")])
    def test_nan_and_positive_infinity_rejected(self, bad: float) -> None:
        """NaN and +Infinity raise InvalidDistributionError."""
        with pytest.raises(InvalidDistributionError):
            normalize(_raw(-1.0, bad))

    def test_temperature_flattens(self) -> None:
        """A higher temperature moves mass away from the top candidate."""
        cold = normalize(_raw(-0.1, -2.0, -3.0), temperature=0.5)
        hot = normalize(_raw(-0.1, -2.0, -3.0), temperature=2.0)
        assert cold[0].probability > hot[0].probability

    @pytest.mark.parametrize("temperature", [0.0, -1.0])
    def test_non_positive_temperature_rejected(self, temperature: float) -> None:
        """Temperature must be positive."""
        with pytest.raises(InvalidDistributionError):
            normalize(_raw(-1.0), temperature=temperature)


class TestCoveredMass:
    """Tests for the unseen-tail estimate."""

    def test_partial_coverage(self) -> None:
        """Absolute probabilities summing to 0.75 cover 0.75."""
        candidates = _raw(*(math.log(0.15) for _ in range(5)))
        assert covered_mass(candidates) == pytest.approx(0.75)

    def test_clamped_to_one(self) -> None:
        """Over-reporting sources never exceed full coverage."""
        assert covered_mass(_raw(0.0, 0.0)) == 1.0

    def test_empty(self) -> None:
        """Nothing returned covers nothing."""
        assert covered_mass([]) == 0.0


class TestScale:
    """Tests for scaling a closed distribution."""

    def test_scales_probabilities(self) -> None:
        """Every probability is multiplied by the mass."""
        outcomes = normalize(_raw(-1.0, -1.0))
        scaled = scale(outcomes, 0.6)
        assert [o.probability for o in scaled] == pytest.approx([0.3, 0.3])

    @pytest.mark.parametrize("mass", [-0.1, 1.5])
    def test_mass_out_of_range(self, mass: float) -> None:
        """Mass outside [0, 1] is rejected."""
        with pytest.raises(InvalidDistributionError):
            scale([], mass)


class TestEnsureNormalized:
    """Tests for drift detection and correction."""

    def test_within_tolerance_unchanged(self) -> None:
        """Sets summing to 1 pass through untouched."""
        outcomes = [Outcome("a", 0.6, -0.5), Outcome("b", 0.4, -0.9, id=1)]
        assert ensure_normalized(outcomes) == outcomes

    def test_drift_renormalized_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        """Drift beyond tolerance is corrected and logged."""
        outcomes = [Outcome("a", 0.6, -0.5), Outcome("b", 0.6, -0.5, id=1)]
        with caplog.at_level(logging.WARNING, logger="probability_pulse"):
            fixed = ensure_normalized(outcomes)
        assert [o.probability for o in fixed] == pytest.approx([0.5, 0.5])
        assert "drift" in caplog.text

    def test_strict_raises(self) -> None:
        """Strict mode refuses to correct drift."""
        outcomes = [Outcome("a", 0.6, -0.5), Outcome("b", 0.6, -0.5, id=1)]
        with pytest.raises(NormalizationDriftError):
            ensure_normalized(outcomes, strict=True)

    def test_zero_total_rejected(self) -> None:
        """A zero-mass set cannot be corrected."""
        with pytest.raises(InvalidDistributionError):
            ensure_normalized([Outcome("a", 0.0, float("-inf"))])

    def test_empty(self) -> None:
        """An empty set stays empty."""
        assert ensure_normalized([]) == []


class TestShannonEntropy:
    """Tests for compute_shannon_entropy()."""

    def test_uniform(self) -> None:
        """Uniform over four outcomes has entropy ln(4)."""
        outcomes = normalize(_raw(0.0, 0.0, 0.0, 0.0))
        assert compute_shannon_entropy(outcomes) == pytest.approx(math.log(4))

    def test_single_outcome(self) -> None:
        """A certain outcome has zero entropy."""
        assert compute_shannon_entropy(normalize(_raw(-3.0))) == 0.0
