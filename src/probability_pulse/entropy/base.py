"""Abstract base class for all entropy sources.

Every randomness source used for draws implements this interface. The ABC
provides ``random_unit()``, which turns eight bytes from
``get_random_bytes()`` into a uniform float in [0, 1), and a concrete
``health_check()``. Subclasses must implement the four abstract members:
``name``, ``is_available``, ``get_random_bytes()``, and ``close()``.

``random_unit`` is the draw callable handed to the selector and the
"other" resolver.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

# 53 bits fill the mantissa of a float64 exactly.
_MANTISSA_BITS = 53
_UNIT_SCALE = 1.0 / (1 << _MANTISSA_BITS)


class EntropySource(ABC):
    """Abstract base for all entropy sources.

    Implementations must provide random bytes on demand. Bytes are only
    requested when a draw is actually made, i.e. when the user triggers a
    spin, roll, drop or draw.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable source identifier (e.g., ``'system'``)."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether the source can currently provide entropy."""

    @abstractmethod
    def get_random_bytes(self, n: int) -> bytes:
        """Return exactly *n* random bytes.

        Args:
            n: Number of random bytes to generate.

        Returns:
            Exactly *n* bytes of entropy.
        """

    def random_unit(self) -> float:
        """Return a uniform random float in [0, 1).

        Reads eight bytes, keeps the top 53 bits and scales them by 2**-53,
        so 1.0 is never produced.

        Returns:
            A float in [0, 1).
        """
        raw = int.from_bytes(self.get_random_bytes(8), "big")
        return (raw >> (64 - _MANTISSA_BITS)) * _UNIT_SCALE

    @abstractmethod
    def close(self) -> None:
        """Release resources (connections, file handles)."""

    def health_check(self) -> dict[str, Any]:
        """Return a status dictionary for this source.

        Returns:
            Dictionary with at least ``'source'`` and ``'healthy'`` keys.
        """
        return {"source": self.name, "healthy": self.is_available}
