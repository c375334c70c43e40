"""Selection subsystem for probability-pulse.

One weighted selector shared by every surface, plus the strategies that turn
a drawn "other" into a concrete token.
"""

from probability_pulse.selection.resolver import (
    HeldOutResolver,
    OtherResolver,
    OtherResolverRegistry,
    RequeryResolver,
)
from probability_pulse.selection.selector import WeightedSelector

__all__ = [
    "HeldOutResolver",
    "OtherResolver",
    "OtherResolverRegistry",
    "RequeryResolver",
    "WeightedSelector",
]
