"""Distribution subsystem for probability-pulse.

Softmax normalization of raw log-probabilities, merging of identically
rendered tokens, and the threshold split that synthesizes the "other" bucket.
"""

from probability_pulse.distribution.builder import (
    compute_shannon_entropy,
    covered_mass,
    ensure_normalized,
    normalize,
    scale,
)
from probability_pulse.distribution.merger import display_key, is_displayable, merge
from probability_pulse.distribution.split import SplitResult, split
from probability_pulse.distribution.types import (
    OTHER_ID,
    OTHER_TEXT,
    Outcome,
    OutcomeSet,
    RawCandidate,
)

__all__ = [
    "OTHER_ID",
    "OTHER_TEXT",
    "Outcome",
    "OutcomeSet",
    "RawCandidate",
    "SplitResult",
    "compute_shannon_entropy",
    "covered_mass",
    "display_key",
    "ensure_normalized",
    "is_displayable",
    "merge",
    "normalize",
    "scale",
    "split",
]
