"""Offline log-probability source with deterministic, plausible answers.

Used for demos without credentials and for tests. Each prefix seeds its own
generator, so the same prefix always yields the same alternatives. The
vocabulary deliberately contains case and whitespace variants of the same
word so the merging step has something to do.
"""

from __future__ import annotations

import hashlib
import math
from typing import TYPE_CHECKING

import numpy as np

from probability_pulse.distribution.types import RawCandidate
from probability_pulse.exceptions import SourceUnavailableError
from probability_pulse.sources.base import LogProbSource
from probability_pulse.sources.registry import register_logprob_source
from probability_pulse.sources.types import SourceResponse

if TYPE_CHECKING:
    from collections.abc import Sequence

    from probability_pulse.config import PulseConfig
    from probability_pulse.sources.types import SourceRequest

DEFAULT_VOCABULARY: tuple[str, ...] = (
    " the", " The", "the", " a", " an", " to", " of", " and", " is", " was",
    " bright", " uncertain", " here", " now", " coming", " changing", " going",
    " helps", " enables", " permits", " lets", " allows", " will", " can",
    " not", " more", " less", " very", " already", " still", " in", " on",
    " about", " like", " shaped", " built", " written", " <eos>", ",", ".",
)

# Long-tail words only reachable through an unrestricted query.
TAIL_VOCABULARY: tuple[str, ...] = (
    " serendipitous", " labyrinthine", " quixotic", " ephemeral", " luminous",
    " granular", " recursive", " improbable", " tangential", " kaleidoscopic",
)


def _prefix_seed(prefix: str) -> int:
    digest = hashlib.sha256(prefix.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


@register_logprob_source("simulated")
class SimulatedLogProbSource(LogProbSource):
    """Deterministic offline source.

    Args:
        config: Unused; accepted for a uniform constructor signature.
        vocabulary: Words alternatives are drawn from.
        coverage: ``(low, high)`` range for the share of total probability
            the returned alternatives cover; the rest is unseen tail.
    """

    def __init__(
        self,
        config: PulseConfig | None = None,
        *,
        vocabulary: Sequence[str] = DEFAULT_VOCABULARY,
        coverage: tuple[float, float] = (0.7, 0.95),
    ) -> None:
        if not vocabulary:
            raise ValueError("vocabulary must not be empty")
        self._vocabulary = tuple(vocabulary)
        self._coverage = coverage
        self._closed = False

    @property
    def name(self) -> str:
        """Return ``'simulated'``."""
        return "simulated"

    @property
    def is_available(self) -> bool:
        """``True`` until the source is closed."""
        return not self._closed

    def fetch(self, request: SourceRequest) -> SourceResponse:
        """Produce alternatives for ``request.prefix``.

        Raises:
            SourceUnavailableError: If the source is closed.
        """
        if self._closed:
            raise SourceUnavailableError("Simulated source is closed")

        rng = np.random.default_rng(_prefix_seed(request.prefix))

        if request.top_k is None:
            # Unrestricted query: sample from the long tail.
            idx = int(rng.integers(len(TAIL_VOCABULARY)))
            return SourceResponse(
                chosen_text=TAIL_VOCABULARY[idx],
                chosen_log_probability=math.log(0.002),
            )

        k = min(request.top_k, len(self._vocabulary))
        picks = rng.choice(len(self._vocabulary), size=k, replace=False)
        mass = rng.uniform(*self._coverage)
        probs = np.sort(rng.dirichlet(np.full(k, 0.6)))[::-1] * mass
        # Dirichlet draws can underflow to exactly 0; keep log() finite.
        probs = np.maximum(probs, 1e-12)

        candidates = tuple(
            RawCandidate(text=self._vocabulary[int(i)], log_probability=float(math.log(p)))
            for i, p in zip(picks, probs)
        )
        return SourceResponse(
            chosen_text=candidates[0].text,
            candidates=candidates,
            chosen_log_probability=candidates[0].log_probability,
        )

    def close(self) -> None:
        """Mark the source closed."""
        self._closed = True
