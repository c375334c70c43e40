"""Diagnostic logger for selection events.

Uses the standard ``logging`` module with the ``"probability_pulse"`` logger.
No ``print()`` statements. Supports three verbosity levels and an
in-memory diagnostic mode for post-hoc analysis.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from probability_pulse.config import PulseConfig
    from probability_pulse.logging.types import SelectionRecord

logger = logging.getLogger("probability_pulse")


class SelectionLogger:
    """Per-selection diagnostic logger.

    Log levels:
        ``"none"``: No logging output. Records are still stored if
        ``diagnostic_mode=True``.

        ``"summary"``: One line per selection with the winner, its
        probability, the draw and whether "other" was resolved.

        ``"full"``: Full JSON dump of all record fields.

    Diagnostic mode stores all records in memory so that observed winner
    frequencies can be compared against the displayed probabilities.
    """

    def __init__(self, config: PulseConfig) -> None:
        self._log_level = config.log_level
        self._diagnostic_mode = config.diagnostic_mode
        self._records: list[SelectionRecord] = []

    def log_selection(self, record: SelectionRecord) -> None:
        """Log a single selection event.

        Args:
            record: Immutable record of the selection.
        """
        if self._diagnostic_mode:
            self._records.append(record)

        if self._log_level == "none":
            return

        if self._log_level == "summary":
            logger.info(
                "surface=%s winner=%r id=%d prob=%.4f u=%.6f%s outcomes=%d "
                "other=%.4f covered=%.4f entropy=%.3f source=%s total=%.2fms",
                record.surface,
                record.resolved_text,
                record.winner_id,
                record.winner_probability,
                record.random_unit,
                " [OTHER]" if record.is_other else "",
                record.num_outcomes,
                record.other_probability,
                record.covered_mass,
                record.shannon_entropy,
                record.entropy_source_used,
                record.selection_ms,
            )
        elif self._log_level == "full":
            logger.info("selection_record: %s", json.dumps(asdict(record), default=str))

    def get_diagnostic_data(self) -> list[SelectionRecord]:
        """Return all stored records (requires ``diagnostic_mode=True``)."""
        return list(self._records)

    def get_summary_stats(self) -> dict[str, Any]:
        """Compute summary statistics over all stored records.

        Returns:
            Dictionary with aggregate stats, or empty dict if no records.
        """
        if not self._records:
            return {}

        n = len(self._records)
        units = [r.random_unit for r in self._records]
        probs = [r.winner_probability for r in self._records]
        times = [r.selection_ms for r in self._records]
        other_count = sum(1 for r in self._records if r.is_other)
        surfaces: dict[str, int] = {}
        for r in self._records:
            surfaces[r.surface] = surfaces.get(r.surface, 0) + 1

        return {
            "total_selections": n,
            "mean_u": sum(units) / n,
            "min_u": min(units),
            "max_u": max(units),
            "mean_winner_prob": sum(probs) / n,
            "mean_entropy": sum(r.shannon_entropy for r in self._records) / n,
            "mean_selection_ms": sum(times) / n,
            "max_selection_ms": max(times),
            "other_count": other_count,
            "other_rate": other_count / n,
            "by_surface": surfaces,
        }
