"""Diagnostic logging subsystem for probability-pulse.

Provides immutable per-selection records and a configurable logger that
supports none/summary/full verbosity and in-memory diagnostic mode.
"""

from probability_pulse.logging.logger import SelectionLogger
from probability_pulse.logging.types import SelectionRecord

__all__ = [
    "SelectionLogger",
    "SelectionRecord",
]
