"""Sentence-building session on top of the engine.

A session owns the growing sentence, the outcome set for its current prefix
and the per-session configuration. It is strictly sequential: one query is
outstanding at a time, identified by a ticket, and an answer whose ticket is
no longer current (the sentence changed or was reset meanwhile) is dropped.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from probability_pulse.config import resolve_config
from probability_pulse.layout.surfaces import get_surface

if TYPE_CHECKING:
    from probability_pulse.config import PulseConfig
    from probability_pulse.distribution.types import OutcomeSet
    from probability_pulse.engine import NextTokenEngine, PlayResult
    from probability_pulse.layout.surfaces import Surface

logger = logging.getLogger("probability_pulse")


@dataclass(frozen=True, slots=True)
class GenerationState:
    """Immutable snapshot of the sentence being built.

    Attributes:
        seed_text: Text the user started from.
        appended_tokens: Tokens accepted so far, in order.
    """

    seed_text: str
    appended_tokens: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        """Seed text followed by every appended token."""
        return self.seed_text + "".join(self.appended_tokens)

    def append(self, token: str) -> GenerationState:
        """Return a new state with *token* appended."""
        return replace(self, appended_tokens=(*self.appended_tokens, token))

    def reset(self, seed: str | None = None) -> GenerationState:
        """Return a state without appended tokens, optionally re-seeded."""
        return GenerationState(seed_text=self.seed_text if seed is None else seed)


@dataclass(frozen=True, slots=True)
class QueryTicket:
    """Identifies one outstanding query of a session."""

    request_id: int
    prefix: str


class GenerationSession:
    """One user's sentence-building game.

    Args:
        engine: Engine shared by any number of sessions.
        seed_text: Starting sentence.
        overrides: Per-session config overrides (see ``resolve_config``).
        surface: Surface the session plays on.

    Raises:
        ConfigValidationError: If *overrides* are invalid.
        KeyError: If *surface* is unknown.
    """

    def __init__(
        self,
        engine: NextTokenEngine,
        seed_text: str,
        *,
        overrides: dict[str, Any] | None = None,
        surface: str = "wheel",
    ) -> None:
        self._engine = engine
        self._config = resolve_config(engine.config, overrides)
        self._surface = get_surface(surface)
        self._state = GenerationState(seed_text=seed_text)
        self._outcome_set: OutcomeSet | None = None
        self._ids = itertools.count(1)
        self._current_request: int | None = None

    @property
    def config(self) -> PulseConfig:
        """Resolved configuration of this session."""
        return self._config

    @property
    def surface(self) -> Surface:
        """Surface the session plays on."""
        return self._surface

    @property
    def state(self) -> GenerationState:
        """Current sentence state."""
        return self._state

    @property
    def text(self) -> str:
        """Current sentence."""
        return self._state.text

    @property
    def outcome_set(self) -> OutcomeSet | None:
        """Outcome set for the current sentence, if one has been fetched."""
        return self._outcome_set

    @property
    def has_pending_query(self) -> bool:
        """Whether a query has been issued and not yet completed."""
        return self._current_request is not None

    def begin_query(self) -> QueryTicket:
        """Issue a ticket for a query on the current sentence.

        Any earlier outstanding ticket becomes stale.
        """
        request_id = next(self._ids)
        self._current_request = request_id
        return QueryTicket(request_id=request_id, prefix=self._state.text)

    def complete(self, ticket: QueryTicket, outcome_set: OutcomeSet) -> bool:
        """Apply the answer to *ticket* if it is still current.

        Returns:
            True if the outcome set was applied, False if it was stale.
        """
        if ticket.request_id != self._current_request or ticket.prefix != self._state.text:
            logger.debug(
                "Discarding stale outcome set for request %d (current: %s)",
                ticket.request_id,
                self._current_request,
            )
            return False
        self._outcome_set = outcome_set
        self._current_request = None
        return True

    def refresh(self) -> OutcomeSet:
        """Fetch the outcome set for the current sentence.

        Raises:
            SourceUnavailableError: If the source fails; the sentence and
                the previous outcome set are left untouched.
        """
        ticket = self.begin_query()
        try:
            outcome_set = self._engine.get_outcome_set(
                ticket.prefix,
                max_main=self._surface.max_main,
                config=self._config,
            )
        except Exception:
            if self._current_request == ticket.request_id:
                self._current_request = None
            raise
        self.complete(ticket, outcome_set)
        return outcome_set

    def accept(self, token: str) -> GenerationState:
        """Append *token* to the sentence.

        With ``ensure_leading_space`` a space is prefixed when the token has
        none. The current outcome set and any outstanding ticket are dropped.
        """
        if self._config.ensure_leading_space and token and not token[0].isspace():
            token = " " + token
        self._state = self._state.append(token)
        self._outcome_set = None
        self._current_request = None
        return self._state

    def play(self) -> PlayResult:
        """Play the current outcome set and append the resolved token.

        Fetches the outcome set first if none is loaded.

        Raises:
            EmptyDistributionError: If the source has no prediction.
            SourceUnavailableError: If fetching or re-querying fails.
        """
        outcome_set = self._outcome_set if self._outcome_set is not None else self.refresh()
        result = self._engine.play(outcome_set, self._surface.name, config=self._config)
        self.accept(result.token)
        return result

    def reset(self, seed: str | None = None) -> GenerationState:
        """Discard appended tokens, the outcome set and outstanding tickets."""
        self._state = self._state.reset(seed)
        self._outcome_set = None
        self._current_request = None
        return self._state
