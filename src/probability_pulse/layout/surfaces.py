"""Chance-game surfaces.

A surface is a thin description of how a presentation metaphor consumes a
layout: which arrangement policy it uses, how many outcomes it can show
individually, and the native extent its fractions map onto. Renderers only
need ``to_extent()`` and ``locate()``; none of them samples on its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from probability_pulse.layout.types import LaidOutOutcome


@dataclass(frozen=True, slots=True)
class Surface:
    """Descriptor of one presentation surface.

    Attributes:
        name: Identifier (``'wheel'``, ``'plinko'``, ...).
        policy: Arrangement policy name used before layout.
        max_main: Maximum number of individually shown outcomes, or ``None``.
        extent: Size of the native extent (360 degrees, board width, ...).
        origin: Native coordinate of fraction 0.
    """

    name: str
    policy: str
    max_main: int | None = None
    extent: float = 1.0
    origin: float = 0.0


_SURFACES: dict[str, Surface] = {
    s.name: s
    for s in (
        # Wedges start at the top of the wheel.
        Surface(name="wheel", policy="descending", extent=360.0, origin=-90.0),
        Surface(name="plinko", policy="center", extent=700.0),
        Surface(name="dice", policy="descending", max_main=6),
        Surface(name="slot_machine", policy="descending", max_main=12),
        Surface(name="lottery", policy="given", max_main=10),
        Surface(name="manual", policy="descending"),
    )
}


def get_surface(name: str) -> Surface:
    """Return the surface registered under *name*.

    Raises:
        KeyError: If *name* is unknown.
    """
    if name not in _SURFACES:
        available = ", ".join(sorted(_SURFACES))
        raise KeyError(f"Unknown surface '{name}'. Available: {available}")
    return _SURFACES[name]


def list_surfaces() -> list[str]:
    """Return sorted list of surface names."""
    return sorted(_SURFACES)


def to_extent(
    laid_out: Sequence[LaidOutOutcome],
    surface: Surface,
) -> list[tuple[float, float]]:
    """Map layout fractions onto a surface's native coordinates.

    Args:
        laid_out: Layout to convert.
        surface: Target surface.

    Returns:
        ``(start, end)`` pairs in the surface's units, one per interval.
    """
    return [
        (
            surface.origin + item.start_fraction * surface.extent,
            surface.origin + item.end_fraction * surface.extent,
        )
        for item in laid_out
    ]
