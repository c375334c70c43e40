"""Shared pytest fixtures for probability-pulse tests.

Provides reusable configuration objects, seeded entropy sources, a scripted
log-probability source and small outcome sets used across test modules.
"""

from __future__ import annotations

import math

import pytest

from probability_pulse.config import PulseConfig
from probability_pulse.distribution.types import Outcome, RawCandidate
from probability_pulse.entropy.mock import MockUniformSource
from probability_pulse.exceptions import SourceUnavailableError
from probability_pulse.sources.base import LogProbSource
from probability_pulse.sources.simulated import SimulatedLogProbSource
from probability_pulse.sources.types import SourceRequest, SourceResponse


class FixedUnitSource(MockUniformSource):
    """Entropy source that returns pre-set uniform values in order."""

    def __init__(self, *units: float) -> None:
        super().__init__(seed=0)
        self._units = list(units)
        self.calls = 0

    def random_unit(self) -> float:
        self.calls += 1
        if len(self._units) > 1:
            return self._units.pop(0)
        return self._units[0]


class ScriptedLogProbSource(LogProbSource):
    """Source returning canned responses and recording every request."""

    def __init__(
        self,
        candidates: list[tuple[str, float]] | None = None,
        *,
        chosen_text: str = " cat",
        requery_text: str = " zebra",
        requery_log_probability: float | None = math.log(0.004),
    ) -> None:
        self._candidates = candidates or []
        self._chosen_text = chosen_text
        self._requery_text = requery_text
        self._requery_lp = requery_log_probability
        self.requests: list[SourceRequest] = []
        self.closed = False
        self.fail = False

    @property
    def name(self) -> str:
        return "scripted"

    @property
    def is_available(self) -> bool:
        return not self.closed

    def fetch(self, request: SourceRequest) -> SourceResponse:
        self.requests.append(request)
        if self.fail:
            raise SourceUnavailableError("scripted failure")
        if request.top_k is None:
            return SourceResponse(
                chosen_text=self._requery_text,
                chosen_log_probability=self._requery_lp,
            )
        return SourceResponse(
            chosen_text=self._chosen_text,
            candidates=tuple(RawCandidate(t, lp) for t, lp in self._candidates),
        )

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def default_config() -> PulseConfig:
    """Return a PulseConfig with all default values."""
    return PulseConfig(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def silent_config() -> PulseConfig:
    """Offline config with no logging for noise-free tests."""
    return PulseConfig(
        _env_file=None,
        source_type="simulated",
        entropy_source_type="mock_uniform",
        log_level="none",  # type: ignore[call-arg]
    )


@pytest.fixture
def diagnostic_config() -> PulseConfig:
    """Offline config with diagnostic mode and full logging enabled."""
    return PulseConfig(
        _env_file=None,
        source_type="simulated",
        entropy_source_type="mock_uniform",
        log_level="full",
        diagnostic_mode=True,  # type: ignore[call-arg]
    )


@pytest.fixture
def mock_entropy_source() -> MockUniformSource:
    """Seeded MockUniformSource for reproducible draws."""
    return MockUniformSource(seed=42)


@pytest.fixture
def simulated_source() -> SimulatedLogProbSource:
    """Deterministic offline log-probability source."""
    return SimulatedLogProbSource()


@pytest.fixture
def cat_candidates() -> list[tuple[str, float]]:
    """Candidates for "The cat sat on the": variants, a tail and a control token."""
    return [
        (" mat", math.log(0.40)),
        (" floor", math.log(0.20)),
        ("Mat", math.log(0.10)),
        (" couch", math.log(0.08)),
        (" bed", math.log(0.05)),
        (" rug", math.log(0.02)),
        (" sofa", math.log(0.01)),
        ("<ctrl100>", math.log(0.01)),
    ]


@pytest.fixture
def scripted_source(cat_candidates: list[tuple[str, float]]) -> ScriptedLogProbSource:
    """Scripted source answering with ``cat_candidates``."""
    return ScriptedLogProbSource(cat_candidates)


@pytest.fixture
def three_outcomes() -> list[Outcome]:
    """Outcomes A=0.5, B=0.3, C=0.2 in that order."""
    return [
        Outcome("A", 0.5, math.log(0.5), id=0),
        Outcome("B", 0.3, math.log(0.3), id=1),
        Outcome("C", 0.2, math.log(0.2), id=2),
    ]


@pytest.fixture
def fixed_units() -> type[FixedUnitSource]:
    """Factory for entropy sources returning pre-set draws."""
    return FixedUnitSource


@pytest.fixture
def make_source() -> type[ScriptedLogProbSource]:
    """Factory for scripted log-probability sources."""
    return ScriptedLogProbSource
