"""System entropy source using ``os.urandom()``.

This is the default source for draws. It is cryptographically secure and
always available on all platforms.
"""

from __future__ import annotations

import os

from probability_pulse.entropy.base import EntropySource
from probability_pulse.entropy.registry import register_entropy_source


@register_entropy_source("system")
class SystemEntropySource(EntropySource):
    """``os.urandom()`` wrapper, always available."""

    @property
    def name(self) -> str:
        """Return ``'system'``."""
        return "system"

    @property
    def is_available(self) -> bool:
        """Always returns ``True``."""
        return True

    def get_random_bytes(self, n: int) -> bytes:
        """Return *n* bytes from the OS CSPRNG."""
        return os.urandom(n)

    def close(self) -> None:
        """No-op, no resources to release."""
