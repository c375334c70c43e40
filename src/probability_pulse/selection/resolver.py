"""Resolution of a drawn "other" outcome into a concrete token.

Two strategies are available, chosen explicitly through
``PulseConfig.other_strategy``:

- ``held_out``: draw among the low-probability outcomes that were folded
  into "other" during the threshold split. No extra network round-trip, but
  the truly unseen vocabulary tail is underrepresented.
- ``requery``: ask the log-probability source again for the same prefix
  without a top-K restriction and accept the token the model emits. The
  token follows the model's full distribution, long tail included.

Whatever the strategy, the resolved token is decided once, synchronously.
Any cycling through guesses on screen is animation only.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

import numpy as np

from probability_pulse.distribution.merger import display_key
from probability_pulse.distribution.types import Outcome
from probability_pulse.exceptions import (
    ConfigValidationError,
    EmptyDistributionError,
    SourceUnavailableError,
)
from probability_pulse.selection.selector import WeightedSelector
from probability_pulse.sources.types import SourceRequest

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from probability_pulse.config import PulseConfig
    from probability_pulse.sources.base import LogProbSource

logger = logging.getLogger("probability_pulse")


class OtherResolver(ABC):
    """Abstract base for "other" resolution strategies."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy identifier (``'held_out'`` or ``'requery'``)."""

    @abstractmethod
    def resolve(
        self,
        candidates: Sequence[Outcome],
        draw: Callable[[], float],
        *,
        prefix: str = "",
    ) -> Outcome:
        """Turn a drawn "other" into a concrete outcome.

        Args:
            candidates: Outcomes held out when "other" was synthesized.
            draw: Returns a uniform random value in [0, 1).
            prefix: Text the outcome set was built for.

        Returns:
            A concrete (non-"other") outcome.
        """


class OtherResolverRegistry:
    """Registry mapping strategy names to OtherResolver classes.

    Built-in resolvers register via the ``@OtherResolverRegistry.register()``
    decorator. ``build()`` instantiates the one named by
    ``config.other_strategy``.
    """

    _registry: ClassVar[dict[str, type[OtherResolver]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[OtherResolver]], type[OtherResolver]]:
        """Decorator that registers an OtherResolver class under *name*.

        Raises:
            ValueError: If *name* is already registered.
        """

        def decorator(klass: type[OtherResolver]) -> type[OtherResolver]:
            if name in cls._registry:
                raise ValueError(f"Other resolver '{name}' is already registered")
            cls._registry[name] = klass
            return klass

        return decorator

    @classmethod
    def get(cls, name: str) -> type[OtherResolver]:
        """Return the resolver class registered under *name*.

        Raises:
            KeyError: If *name* is not registered.
        """
        if name not in cls._registry:
            available = ", ".join(sorted(cls._registry)) or "(none)"
            raise KeyError(f"Unknown other resolver '{name}'. Available: {available}")
        return cls._registry[name]

    @classmethod
    def build(cls, config: PulseConfig, source: LogProbSource | None = None) -> OtherResolver:
        """Instantiate the resolver named by *config.other_strategy*.

        Args:
            config: Active configuration.
            source: Log-probability source, required by ``requery``.

        Returns:
            A fully constructed OtherResolver.
        """
        klass = cls.get(config.other_strategy)
        return klass(config, source)  # type: ignore[call-arg]

    @classmethod
    def list_registered(cls) -> list[str]:
        """Return sorted list of registered resolver names."""
        return sorted(cls._registry)


@OtherResolverRegistry.register("held_out")
class HeldOutResolver(OtherResolver):
    """Draw among the held-out low-probability outcomes.

    With ``weighting='weighted'`` the draw goes through the same
    WeightedSelector as the main selection. ``'uniform'`` gives every held-out
    token the same chance.

    Args:
        config: Configuration providing ``held_out_weighting``.
        source: Unused; accepted for a uniform constructor signature.
    """

    def __init__(self, config: PulseConfig, source: LogProbSource | None = None) -> None:
        self._weighting = config.held_out_weighting
        self._selector = WeightedSelector()

    @property
    def name(self) -> str:
        """Return ``'held_out'``."""
        return "held_out"

    def resolve(
        self,
        candidates: Sequence[Outcome],
        draw: Callable[[], float],
        *,
        prefix: str = "",
    ) -> Outcome:
        """Draw one held-out outcome.

        Raises:
            EmptyDistributionError: If there are no held-out outcomes, which
                happens when "other" only holds unseen vocabulary mass.
        """
        pool = [c for c in candidates if not c.is_other]
        if not pool:
            raise EmptyDistributionError("No held-out outcomes to resolve 'other' from")

        if self._weighting == "uniform":
            weights = np.ones(len(pool), dtype=np.float64)
        else:
            weights = np.array([c.probability for c in pool], dtype=np.float64)
            if not np.any(weights > 0):
                weights = np.ones(len(pool), dtype=np.float64)

        u = draw()
        winner = pool[self._selector.select_index(weights, u)]
        logger.debug("Resolved 'other' from %d held-out tokens: %r", len(pool), winner.display_text)
        return winner


@OtherResolverRegistry.register("requery")
class RequeryResolver(OtherResolver):
    """Ask the source again, without a top-K restriction.

    The randomness comes from the model's own sampling, so *draw* is not
    consumed. A token matching a held-out candidate resolves to that
    candidate; otherwise it gets the first rank past the original top-K
    slice as its id.

    Args:
        config: Configuration providing ``top_k``.
        source: Source to re-query.

    Raises:
        ConfigValidationError: If *source* is ``None``.
    """

    def __init__(self, config: PulseConfig, source: LogProbSource | None = None) -> None:
        if source is None:
            raise ConfigValidationError("other_strategy='requery' requires a log-probability source")
        self._source = source
        self._unranked_id = config.top_k

    @property
    def name(self) -> str:
        """Return ``'requery'``."""
        return "requery"

    def resolve(
        self,
        candidates: Sequence[Outcome],
        draw: Callable[[], float],
        *,
        prefix: str = "",
    ) -> Outcome:
        """Re-query the source and wrap the emitted token.

        Raises:
            SourceUnavailableError: If the source fails or emits no text.
        """
        response = self._source.fetch(SourceRequest(prefix=prefix, top_k=None))
        text = response.chosen_text
        if not text or not text.strip():
            raise SourceUnavailableError("Source returned no token when re-queried for 'other'")

        key = display_key(text)
        for candidate in candidates:
            if not candidate.is_other and display_key(candidate.display_text) == key:
                return candidate

        lp = response.chosen_log_probability
        if lp is None or not math.isfinite(lp):
            probability, log_probability = 0.0, float("-inf")
        else:
            log_probability = min(lp, 0.0)
            probability = math.exp(log_probability)
        return Outcome(
            display_text=text,
            probability=probability,
            log_probability=log_probability,
            is_other=False,
            id=self._unranked_id,
        )

