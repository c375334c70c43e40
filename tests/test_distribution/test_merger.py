"""Tests for merging identically rendered tokens."""

from __future__ import annotations

import math

import numpy as np
import pytest

from probability_pulse.distribution.merger import display_key, is_displayable, merge
from probability_pulse.distribution.split import make_other
from probability_pulse.distribution.types import Outcome


def _outcome(text: str, p: float, idx: int) -> Outcome:
    return Outcome(text, p, math.log(p), id=idx)


class TestMerge:
    """Tests for merge()."""

    def test_leading_space_variant_wins(self) -> None:
        """" Mat" and "mat" collapse into " Mat" with summed probability."""
        merged = merge([_outcome(" Mat", 0.10, 0), _outcome("mat", 0.05, 1)])
        assert len(merged) == 1
        assert merged[0].display_text == " Mat"
        assert merged[0].probability == pytest.approx(0.15)

    def test_space_variant_seen_later_still_preferred(self) -> None:
        """The leading-space text replaces an earlier bare variant."""
        merged = merge([_outcome("mat", 0.05, 0), _outcome(" Mat", 0.10, 1)])
        assert merged[0].display_text == " Mat"
        assert merged[0].id == 0

    def test_first_seen_wins_among_space_variants(self) -> None:
        """Two leading-space variants keep the first one's text."""
        merged = merge([_outcome(" mat", 0.2, 0), _outcome(" Mat", 0.3, 1)])
        assert merged[0].display_text == " mat"

    def test_log_probability_is_log_sum_exp(self) -> None:
        """Merged log-probability combines the variants."""
        merged = merge([_outcome(" a", 0.2, 0), _outcome("A", 0.1, 1)])
        assert merged[0].log_probability == pytest.approx(math.log(0.3))

    def test_resorted_descending(self) -> None:
        """A merged entry can overtake a single larger variant."""
        merged = merge(
            [_outcome(" dog", 0.3, 0), _outcome(" cat", 0.2, 1), _outcome("Cat", 0.15, 2)]
        )
        assert [o.display_text for o in merged] == [" cat", " dog"]

    def test_other_passes_through_last(self) -> None:
        """The "other" bucket is never merged and stays last."""
        other = make_other(0.4)
        merged = merge([other, _outcome(" a", 0.4, 0), _outcome("a", 0.2, 1)])
        assert merged[-1] is other
        assert len(merged) == 2

    def test_mass_conserved(self) -> None:
        """Merging never changes the total probability."""
        rng = np.random.default_rng(3)
        words = [" the", "The", "the ", " a", "A", " cat", "cat", " Cat", " dog"]
        for _ in range(100):
            k = int(rng.integers(1, len(words) + 1))
            picks = rng.choice(len(words), size=k, replace=False)
            probs = rng.dirichlet(np.ones(k))
            outcomes = [_outcome(words[int(w)], float(p), i) for i, (w, p) in enumerate(zip(picks, probs))]
            before = math.fsum(o.probability for o in outcomes)
            after = math.fsum(o.probability for o in merge(outcomes))
            assert after == pytest.approx(before, abs=1e-6)


class TestDisplayKey:
    """Tests for display_key()."""

    def test_trims_and_lowercases(self) -> None:
        """Keys ignore surrounding whitespace and case."""
        assert display_key("  Mat \n") == display_key("mat") == "mat"


class TestIsDisplayable:
    """Tests for is_displayable()."""

    @pytest.mark.parametrize("text", [" mat", "Mat", ",", " 42", "<"])
    def test_accepts_words(self, text: str) -> None:
        """Ordinary tokens and punctuation are shown."""
        assert is_displayable(text)

    @pytest.mark.parametrize("text", ["", "   ", "<ctrl100>", " <eos>", "\x07", "\\x0A"])
    def test_rejects_control_tokens(self, text: str) -> None:
        """Empty, control marker and byte-escape tokens are dropped."""
        assert not is_displayable(text)
