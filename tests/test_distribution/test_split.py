"""Tests for the threshold split and "other" synthesis."""

from __future__ import annotations

import math

import numpy as np
import pytest

from probability_pulse.distribution.split import make_other, split
from probability_pulse.distribution.types import OTHER_ID, OTHER_TEXT, Outcome
from probability_pulse.exceptions import InvalidDistributionError


def _outcomes(*probs: float) -> list[Outcome]:
    return [Outcome(f" w{i}", p, math.log(p), id=i) for i, p in enumerate(probs)]


def _total(result_outcomes: tuple[Outcome, ...]) -> float:
    return math.fsum(o.probability for o in result_outcomes)


class TestSplit:
    """Tests for split()."""

    def test_pool_becomes_other(self) -> None:
        """Sub-threshold outcomes are gathered into one bucket."""
        result = split(_outcomes(0.5, 0.3, 0.1, 0.06, 0.04), 0.2, 0.01)
        assert [o.id for o in result.main] == [0, 1]
        assert result.other is not None
        assert result.other.probability == pytest.approx(0.2)
        assert [o.id for o in result.held_out] == [2, 3, 4]

    def test_other_outcome_shape(self) -> None:
        """The bucket carries the reserved id, label and log-probability."""
        other = split(_outcomes(0.9, 0.1), 0.5, 0.01).other
        assert other is not None
        assert other.id == OTHER_ID
        assert other.display_text == OTHER_TEXT
        assert other.is_other
        assert other.log_probability == pytest.approx(math.log(0.1))

    def test_other_is_last(self) -> None:
        """The bucket is the final outcome of the split."""
        result = split(_outcomes(0.05, 0.9, 0.05), 0.5, 0.01)
        assert result.outcomes[-1].is_other

    def test_small_pool_folded_back(self) -> None:
        """A pool below the minimum stays as ordinary outcomes."""
        result = split(_outcomes(0.6, 0.395, 0.005), 0.1, 0.01)
        assert result.other is None
        assert [o.id for o in result.main] == [0, 1, 2]
        assert result.held_out == ()

    def test_mass_conserved_without_total(self) -> None:
        """Without a target total, output mass equals input mass."""
        rng = np.random.default_rng(11)
        for _ in range(200):
            k = int(rng.integers(1, 21))
            probs = rng.dirichlet(np.full(k, 0.5)) * rng.uniform(0.3, 1.0)
            probs = np.maximum(probs, 1e-12)
            outcomes = _outcomes(*probs)
            result = split(
                outcomes,
                float(rng.uniform(0.0, 0.3)),
                float(rng.uniform(0.0, 0.05)),
            )
            assert _total(result.outcomes) == pytest.approx(_total(tuple(outcomes)), abs=1e-6)

    def test_unseen_gap_joins_other(self) -> None:
        """Five 0.15 outcomes under a 0.2 threshold give other=1.0, main=[]."""
        result = split(_outcomes(*([0.15] * 5)), 0.2, 0.01, total_mass=1.0)
        assert result.main == ()
        assert result.other is not None
        assert result.other.probability == pytest.approx(1.0)
        assert len(result.held_out) == 5

    def test_gap_added_to_pool(self) -> None:
        """Main outcomes stay; the bucket holds pool plus gap."""
        result = split(_outcomes(0.5, 0.2, 0.05), 0.1, 0.01, total_mass=1.0)
        assert [o.id for o in result.main] == [0, 1]
        assert result.other is not None
        assert result.other.probability == pytest.approx(0.3)
        assert _total(result.outcomes) == pytest.approx(1.0)

    def test_small_gap_spread_over_main(self) -> None:
        """A tiny residual gap is spread proportionally, not dropped."""
        result = split(_outcomes(0.6, 0.398), 0.1, 0.01, total_mass=1.0)
        assert result.other is None
        assert _total(result.outcomes) == pytest.approx(1.0)
        assert result.main[0].probability / result.main[1].probability == pytest.approx(0.6 / 0.398)

    def test_max_main_overflow(self) -> None:
        """Outcomes beyond the cap join the bucket, lowest first."""
        result = split(_outcomes(0.3, 0.25, 0.2, 0.15, 0.1), 0.05, 0.5, max_main=3)
        assert [o.id for o in result.main] == [0, 1, 2]
        assert result.other is not None
        assert result.other.probability == pytest.approx(0.25)
        assert [o.id for o in result.held_out] == [3, 4]

    def test_small_pool_respects_cap(self) -> None:
        """A pool too small to show is not folded back past the cap."""
        probs = (0.1655,) * 6 + (0.005,)
        result = split(_outcomes(*probs), 0.03, 0.01, total_mass=1.0, max_main=6)
        assert [o.id for o in result.main] == [0, 1, 2, 3, 4, 5]
        assert result.other is not None
        assert result.other.probability == pytest.approx(0.007)
        assert [o.id for o in result.held_out] == [6]
        assert _total(result.outcomes) == pytest.approx(1.0)

    def test_small_pool_partially_folded(self) -> None:
        """Free faces take the likeliest pool members, in input order."""
        result = split(_outcomes(0.5, 0.004, 0.49, 0.006), 0.1, 0.05, max_main=3)
        assert [o.id for o in result.main] == [0, 2, 3]
        assert result.other is not None
        assert result.other.probability == pytest.approx(0.004)
        assert [o.id for o in result.held_out] == [1]

    def test_existing_other_is_carried(self) -> None:
        """Re-splitting a complete set keeps the old bucket's mass."""
        first = split(_outcomes(0.4, 0.3, 0.2, 0.1), 0.15, 0.01)
        second = split(first.outcomes, 0.15, 0.01, max_main=2)
        assert second.other is not None
        assert second.other.probability == pytest.approx(0.3)
        assert _total(second.outcomes) == pytest.approx(1.0)

    def test_make_other_zero(self) -> None:
        """A zero-mass bucket has -inf log-probability."""
        assert make_other(0.0).log_probability == float("-inf")

    @pytest.mark.parametrize("bad", [-0.1, float("nan"), float("inf")])
    def test_invalid_probability_rejected(self, bad: float) -> None:
        """Negative or non-finite probabilities raise."""
        outcomes = [Outcome("a", 0.5, -0.7), Outcome("b", bad, 0.0, id=1)]
        with pytest.raises(InvalidDistributionError):
            split(outcomes, 0.1, 0.01)
