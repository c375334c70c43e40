"""Exception hierarchy for probability-pulse.

All exceptions derive from ProbabilityPulseError, enabling broad catch patterns
at the application boundary while allowing fine-grained handling internally.
"""


class ProbabilityPulseError(Exception):
    """Base exception for all probability-pulse errors."""


class InvalidDistributionError(ProbabilityPulseError):
    """Log-probabilities or probabilities are malformed.

    Raised when a candidate carries a NaN or +Infinity log-probability, when
    an outcome has a negative or non-finite probability, or when a set's
    total mass is zero and cannot be renormalized.
    """


class EmptyDistributionError(ProbabilityPulseError):
    """There are no outcomes to select from."""


class SourceUnavailableError(ProbabilityPulseError):
    """The log-probability source failed or returned no usable data.

    Recoverable: the caller should keep the sentence as it is and allow a
    retry with the same prefix.
    """


class NormalizationDriftError(ProbabilityPulseError):
    """Probabilities of a complete outcome set do not sum to 1.

    Only raised in strict mode. By default the drift is logged and corrected
    by a final renormalization pass.
    """


class ConfigValidationError(ProbabilityPulseError):
    """Configuration field validation failed.

    Raised when per-session overrides contain unknown keys, attempt to
    override infrastructure fields, or fail type validation.
    """
