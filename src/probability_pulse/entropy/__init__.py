"""Entropy source subsystem for probability-pulse.

Re-exports the ABC, registry, and all built-in source implementations::

    from probability_pulse.entropy import EntropySource, SystemEntropySource
"""

from probability_pulse.entropy.base import EntropySource
from probability_pulse.entropy.mock import MockUniformSource
from probability_pulse.entropy.registry import EntropySourceRegistry, register_entropy_source
from probability_pulse.entropy.system import SystemEntropySource

__all__ = [
    "EntropySource",
    "EntropySourceRegistry",
    "MockUniformSource",
    "SystemEntropySource",
    "register_entropy_source",
]
