"""Next-token engine, the presentation-facing interface of probability-pulse.

Orchestrates one step of the chance game:
    fetch -> filter -> normalize -> merge -> fold unseen mass -> split
    -> arrange -> draw -> pick -> resolve "other" -> log.

Every surface (wheel, plinko board, dice, slot machine, lottery, manual
list) goes through ``play()``; renderers only animate towards the interval
of the winner that was already decided here. The draw is made once and
never re-rolled.
"""

from __future__ import annotations

import hashlib
import inspect
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from probability_pulse.config import PulseConfig
from probability_pulse.distribution.builder import (
    compute_shannon_entropy,
    covered_mass,
    ensure_normalized,
    normalize,
    scale,
)
from probability_pulse.distribution.merger import is_displayable, merge
from probability_pulse.distribution.split import split
from probability_pulse.distribution.types import OutcomeSet
from probability_pulse.entropy.registry import EntropySourceRegistry
from probability_pulse.exceptions import EmptyDistributionError
from probability_pulse.layout.arranger import arrange
from probability_pulse.layout.surfaces import get_surface
from probability_pulse.logging.logger import SelectionLogger
from probability_pulse.logging.types import SelectionRecord
from probability_pulse.selection.resolver import OtherResolverRegistry
from probability_pulse.selection.selector import WeightedSelector
from probability_pulse.sources.registry import LogProbSourceRegistry
from probability_pulse.sources.types import SourceRequest

if TYPE_CHECKING:
    from collections.abc import Callable

    from probability_pulse.distribution.types import Outcome
    from probability_pulse.entropy.base import EntropySource
    from probability_pulse.layout.surfaces import Surface
    from probability_pulse.layout.types import LaidOutOutcome
    from probability_pulse.selection.resolver import OtherResolver
    from probability_pulse.sources.base import LogProbSource
    from probability_pulse.sources.types import SourceResponse

logger = logging.getLogger("probability_pulse")


def _config_hash(config: PulseConfig) -> str:
    """Compute a short hash of the config for logging.

    Args:
        config: The configuration to hash.

    Returns:
        First 16 hex characters of the SHA-256 digest of the config dump.
    """
    raw = config.model_dump_json().encode("utf-8")
    return hashlib.sha256(raw).hexdigest()[:16]


def _accepts_config(cls: type) -> bool:
    """Check if a class constructor takes a PulseConfig as first argument.

    Args:
        cls: The class to inspect.

    Returns:
        True if the first constructor parameter is annotated as
        ``PulseConfig`` or, unannotated, is named ``config``.
    """
    try:
        sig = inspect.signature(cls)
    except (ValueError, TypeError):
        return False

    for param in sig.parameters.values():
        annotation = param.annotation
        if annotation is inspect.Parameter.empty:
            return param.name == "config"
        return annotation is PulseConfig or (
            isinstance(annotation, str) and "PulseConfig" in annotation
        )
    return False


def _build_entropy_source(config: PulseConfig) -> EntropySource:
    """Build the entropy source named by *config.entropy_source_type*."""
    source_cls = EntropySourceRegistry.get(config.entropy_source_type)
    if _accepts_config(source_cls):
        return source_cls(config)  # type: ignore[call-arg]
    return source_cls()


def build_outcome_set(
    prefix: str,
    response: SourceResponse,
    config: PulseConfig,
    *,
    max_main: int | None = None,
) -> OutcomeSet:
    """Turn one source response into a complete outcome set.

    Pipeline:
        1. Drop undisplayable tokens (their mass joins the unseen tail)
        2. Softmax-normalize the rest at ``config.temperature``
        3. Merge tokens that render identically
        4. Scale to the covered mass when ``config.fold_unseen_mass``
        5. Split into main outcomes and "other" (complete set sums to 1)
        6. Check normalization, correcting or raising on drift

    Args:
        prefix: Text the response belongs to.
        response: Answer of the log-probability source.
        config: Thresholds, temperature and normalization settings.
        max_main: Cap on individually shown outcomes (e.g. six dice faces).

    Returns:
        The outcome set; empty when no displayable candidate was returned.
    """
    displayable = [c for c in response.candidates if is_displayable(c.text)]
    dropped = len(response.candidates) - len(displayable)
    if dropped:
        logger.debug("Dropped %d undisplayable candidate(s)", dropped)

    if not displayable:
        return OutcomeSet(prefix=prefix, chosen_text=response.chosen_text, covered_mass=0.0)

    covered = covered_mass(displayable)
    outcomes = merge(normalize(displayable, config.temperature))
    if config.fold_unseen_mass:
        outcomes = scale(outcomes, covered)

    result = split(
        outcomes,
        config.main_threshold,
        config.min_other_probability,
        total_mass=1.0,
        max_main=max_main,
    )
    complete = ensure_normalized(
        result.outcomes,
        tolerance=config.normalization_tolerance,
        strict=config.strict_normalization,
    )
    return OutcomeSet(
        prefix=prefix,
        outcomes=tuple(complete),
        held_out=result.held_out,
        chosen_text=response.chosen_text,
        covered_mass=covered,
    )


def fit_to_surface(outcome_set: OutcomeSet, surface: Surface, config: PulseConfig) -> OutcomeSet:
    """Fold main outcomes beyond ``surface.max_main`` into "other".

    Sets that already fit are returned unchanged.
    """
    if surface.max_main is None or len(outcome_set.main) <= surface.max_main:
        return outcome_set

    result = split(
        outcome_set.outcomes,
        config.main_threshold,
        config.min_other_probability,
        max_main=surface.max_main,
    )
    return OutcomeSet(
        prefix=outcome_set.prefix,
        outcomes=result.outcomes,
        held_out=(*outcome_set.held_out, *result.held_out),
        chosen_text=outcome_set.chosen_text,
        covered_mass=outcome_set.covered_mass,
    )


@dataclass(frozen=True, slots=True)
class PlayResult:
    """Outcome of one spin, roll, drop or draw.

    Attributes:
        surface: Name of the surface the selection was made on.
        laid_out: Layout the renderer animates over.
        winner: Outcome whose interval the draw landed in (may be "other").
        token: Concrete token to append; never the "other" label.
        random_unit: The draw that decided the winner.
    """

    surface: str
    laid_out: tuple[LaidOutOutcome, ...]
    winner: Outcome
    token: str
    random_unit: float


class NextTokenEngine:
    """Builds outcome sets and plays them on chance-game surfaces.

    Collaborators not passed explicitly are built from *config* through the
    source and entropy registries.

    Args:
        config: Engine defaults; ``PulseConfig()`` (environment) if omitted.
        source: Log-probability source to query.
        entropy: Randomness source for draws.
    """

    def __init__(
        self,
        config: PulseConfig | None = None,
        *,
        source: LogProbSource | None = None,
        entropy: EntropySource | None = None,
    ) -> None:
        self._config = config if config is not None else PulseConfig()
        self._source = source if source is not None else LogProbSourceRegistry.build(self._config)
        self._entropy = entropy if entropy is not None else _build_entropy_source(self._config)
        self._selector = WeightedSelector()
        self._resolver = OtherResolverRegistry.build(self._config, self._source)
        self._logger = SelectionLogger(self._config)
        self._config_hash = _config_hash(self._config)

        logger.info(
            "NextTokenEngine initialized: source=%s, entropy_source=%s, other_strategy=%s",
            self._source.name,
            self._entropy.name,
            self._config.other_strategy,
        )

    @property
    def config(self) -> PulseConfig:
        """Default configuration of this engine."""
        return self._config

    @property
    def source(self) -> LogProbSource:
        """The log-probability source."""
        return self._source

    @property
    def entropy_source(self) -> EntropySource:
        """The randomness source used for draws."""
        return self._entropy

    @property
    def selection_logger(self) -> SelectionLogger:
        """Logger holding diagnostic records of every play."""
        return self._logger

    def get_outcome_set(
        self,
        prefix: str,
        *,
        max_main: int | None = None,
        config: PulseConfig | None = None,
    ) -> OutcomeSet:
        """Query the source for *prefix* and build its outcome set.

        Raises:
            SourceUnavailableError: If the source cannot answer.
        """
        cfg = config if config is not None else self._config
        t0 = time.perf_counter()
        response = self._source.fetch(SourceRequest(prefix=prefix, top_k=cfg.top_k))
        query_ms = (time.perf_counter() - t0) * 1000.0
        logger.debug(
            "Fetched %d candidate(s) for prefix of %d chars in %.1fms",
            len(response.candidates),
            len(prefix),
            query_ms,
        )
        return build_outcome_set(prefix, response, cfg, max_main=max_main)

    def build_outcome_set(
        self,
        prefix: str,
        response: SourceResponse,
        *,
        max_main: int | None = None,
        config: PulseConfig | None = None,
    ) -> OutcomeSet:
        """Build an outcome set from a response the caller already holds."""
        cfg = config if config is not None else self._config
        return build_outcome_set(prefix, response, cfg, max_main=max_main)

    def arrange(self, outcome_set: OutcomeSet, policy: str = "given") -> list[LaidOutOutcome]:
        """Lay *outcome_set* out with the named arrangement policy."""
        return arrange(outcome_set.outcomes, policy)

    def pick_winner(
        self,
        laid_out: list[LaidOutOutcome] | tuple[LaidOutOutcome, ...],
        random_unit: float | None = None,
    ) -> Outcome:
        """Pick the winning interval, drawing from the entropy source if needed."""
        u = self._entropy.random_unit() if random_unit is None else random_unit
        return self._selector.pick(laid_out, u)

    def resolve_if_other(
        self,
        outcome_set: OutcomeSet,
        outcome: Outcome,
        draw: Callable[[], float] | None = None,
        *,
        config: PulseConfig | None = None,
    ) -> str:
        """Return the token to append for a winning *outcome*.

        A real outcome yields its display text. "other" is resolved with the
        configured strategy. When the held-out strategy has nothing to draw
        from, because "other" holds only unseen vocabulary mass, the source
        is re-queried instead.

        Raises:
            SourceUnavailableError: If re-querying the source fails.
        """
        if not outcome.is_other:
            return outcome.display_text

        cfg = config if config is not None else self._config
        resolver = self._resolver_for(cfg)
        if resolver.name == "held_out" and not any(not o.is_other for o in outcome_set.held_out):
            logger.warning("No held-out tokens behind 'other', re-querying the source")
            resolver = OtherResolverRegistry.get("requery")(cfg, self._source)  # type: ignore[call-arg]

        draw_fn = draw if draw is not None else self._entropy.random_unit
        resolved = resolver.resolve(outcome_set.held_out, draw_fn, prefix=outcome_set.prefix)
        return resolved.display_text

    def _resolver_for(self, config: PulseConfig) -> OtherResolver:
        if config is self._config:
            return self._resolver
        return OtherResolverRegistry.build(config, self._source)

    def play(
        self,
        outcome_set: OutcomeSet,
        surface: str = "wheel",
        *,
        config: PulseConfig | None = None,
    ) -> PlayResult:
        """Play one round on *surface*: arrange, draw once, pick, resolve.

        Args:
            outcome_set: Set built for the current prefix.
            surface: Registered surface name.
            config: Per-session configuration, engine defaults if omitted.

        Returns:
            PlayResult with the layout, winner and resolved token.

        Raises:
            EmptyDistributionError: If *outcome_set* is empty.
            KeyError: If *surface* is unknown.
        """
        if outcome_set.is_empty:
            raise EmptyDistributionError(
                f"No outcomes to play for prefix of {len(outcome_set.prefix)} chars"
            )
        cfg = config if config is not None else self._config
        surf = get_surface(surface)

        t0 = time.perf_counter()
        fitted = fit_to_surface(outcome_set, surf, cfg)
        laid_out = self.arrange(fitted, surf.policy)
        u = self._entropy.random_unit()
        winner = self.pick_winner(laid_out, u)
        token = self.resolve_if_other(fitted, winner, config=cfg)
        selection_ms = (time.perf_counter() - t0) * 1000.0

        other = fitted.other
        record = SelectionRecord(
            timestamp_ns=time.time_ns(),
            selection_ms=selection_ms,
            prefix_chars=len(fitted.prefix),
            surface=surf.name,
            policy=surf.policy,
            entropy_source_used=self._entropy.name,
            num_outcomes=len(laid_out),
            other_probability=other.probability if other is not None else 0.0,
            covered_mass=fitted.covered_mass,
            shannon_entropy=compute_shannon_entropy(fitted.outcomes),
            random_unit=u,
            winner_id=winner.id,
            winner_text=winner.display_text,
            winner_probability=winner.probability,
            is_other=winner.is_other,
            resolved_text=token,
            config_hash=self._config_hash if cfg is self._config else _config_hash(cfg),
        )
        self._logger.log_selection(record)

        return PlayResult(
            surface=surf.name,
            laid_out=tuple(laid_out),
            winner=winner,
            token=token,
            random_unit=u,
        )

    def close(self) -> None:
        """Release the source and entropy source."""
        self._source.close()
        self._entropy.close()
        logger.info("NextTokenEngine closed")
