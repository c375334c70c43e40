"""Registry of log-probability sources.

Built-ins register with ``@register_logprob_source``; other distributions
can add sources through the ``probability_pulse.logprob_sources``
entry-point group.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from probability_pulse.registry import PluginRegistry

if TYPE_CHECKING:
    from probability_pulse.config import PulseConfig
    from probability_pulse.sources.base import LogProbSource


class LogProbSourceRegistry(PluginRegistry):
    """Maps names (``'gemini'``, ``'simulated'``) to LogProbSource classes."""

    entry_point_group = "probability_pulse.logprob_sources"
    kind = "log-probability source"

    @classmethod
    def build(cls, config: PulseConfig) -> LogProbSource:
        """Instantiate the source named by *config.source_type*.

        Args:
            config: Active configuration; passed to the source constructor.

        Returns:
            A fully constructed LogProbSource.
        """
        klass = cls.get(config.source_type)
        return klass(config)


register_logprob_source = LogProbSourceRegistry.register
