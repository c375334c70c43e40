"""Layout subsystem for probability-pulse.

Lays an outcome set out on a normalized extent, with pluggable arrangement
policies and descriptors for each chance-game surface.
"""

from probability_pulse.layout.arranger import (
    arrange,
    get_policy,
    layout,
    list_policies,
    locate,
    register_policy,
)
from probability_pulse.layout.surfaces import Surface, get_surface, list_surfaces, to_extent
from probability_pulse.layout.types import LaidOutOutcome

__all__ = [
    "LaidOutOutcome",
    "Surface",
    "arrange",
    "get_policy",
    "get_surface",
    "layout",
    "list_policies",
    "list_surfaces",
    "locate",
    "register_policy",
    "to_extent",
]
