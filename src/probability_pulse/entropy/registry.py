"""Registry of entropy sources.

Built-ins register with ``@register_entropy_source``; other distributions
can add sources through the ``probability_pulse.entropy_sources``
entry-point group.
"""

from __future__ import annotations

from probability_pulse.registry import PluginRegistry


class EntropySourceRegistry(PluginRegistry):
    """Maps names (``'system'``, ``'mock_uniform'``) to EntropySource classes."""

    entry_point_group = "probability_pulse.entropy_sources"
    kind = "entropy source"


register_entropy_source = EntropySourceRegistry.register
