"""Seeded entropy source for tests and reproducible demos."""

from __future__ import annotations

import numpy as np

from probability_pulse.entropy.base import EntropySource
from probability_pulse.entropy.registry import register_entropy_source


@register_entropy_source("mock_uniform")
class MockUniformSource(EntropySource):
    """Uniform bytes from a seeded numpy generator.

    Two sources built with the same *seed* produce the same sequence of
    draws, which makes whole generation sessions replayable.

    Args:
        seed: Optional RNG seed for reproducible output.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._seed = seed
        self._rng = np.random.default_rng(seed)

    @property
    def name(self) -> str:
        """Return ``'mock_uniform'``."""
        return "mock_uniform"

    @property
    def is_available(self) -> bool:
        """Always returns ``True``."""
        return True

    @property
    def seed(self) -> int | None:
        """Seed the generator was created with."""
        return self._seed

    def get_random_bytes(self, n: int) -> bytes:
        """Generate *n* uniform bytes from the seeded generator."""
        return self._rng.bytes(n)

    def close(self) -> None:
        """No-op, no resources to release."""
