"""Abstract base class for log-probability sources.

A source answers "what comes after this prefix?" with the token the model
emitted and up to K alternatives with natural-log probabilities. It is the
only network-facing collaborator of the engine. Every failure mode (transport
errors, HTTP errors, responses without log-probability data) surfaces as
:class:`~probability_pulse.exceptions.SourceUnavailableError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from probability_pulse.sources.types import SourceRequest, SourceResponse


class LogProbSource(ABC):
    """Abstract base for all log-probability sources."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Source identifier (e.g., ``'gemini'``, ``'simulated'``)."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether the source can currently answer queries."""

    @abstractmethod
    def fetch(self, request: SourceRequest) -> SourceResponse:
        """Answer one next-token query.

        Args:
            request: Prefix and top-K setting.

        Returns:
            The emitted token and its alternatives.

        Raises:
            SourceUnavailableError: If the query fails or the answer carries
                no usable log-probability data.
        """

    @abstractmethod
    def close(self) -> None:
        """Release resources (HTTP clients, connections)."""

    def health_check(self) -> dict[str, Any]:
        """Return a status dictionary for this source.

        Returns:
            Dictionary with at least ``'source'`` and ``'healthy'`` keys.
        """
        return {"source": self.name, "healthy": self.is_available}
