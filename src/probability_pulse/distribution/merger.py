"""Merging of tokens that render identically.

Sources often return several variants of the same word (``" Mat"``,
``"mat"``, ``"Mat"``). They are collapsed into one display entry whose
probability is the sum of the variants.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

    from probability_pulse.distribution.types import Outcome

# Control markers such as <ctrl100>, <0x0A>, <eos>, <pad>.
_CONTROL_MARKER = re.compile(r"^<.*>$", re.DOTALL)
_CONTROL_CHARS = re.compile(r"^[\x00-\x1f\x7f]+$")
_BYTE_ESCAPE = re.compile(r"^\\x[0-9a-fA-F]+$")


def display_key(text: str) -> str:
    """Return the key under which token variants are merged."""
    return text.strip().lower()


def is_displayable(text: str) -> bool:
    """Whether a token can be shown and appended to the sentence.

    Rejects empty or whitespace-only text, control markers, bare control
    characters and ``\\xNN`` byte escapes.

    Args:
        text: Token text as returned by the source.

    Returns:
        True if the token is suitable for display.
    """
    trimmed = text.strip()
    if not trimmed:
        return False
    if _CONTROL_MARKER.match(trimmed):
        return False
    if _CONTROL_CHARS.match(trimmed):
        return False
    return not _BYTE_ESCAPE.match(trimmed)


def merge(outcomes: Sequence[Outcome]) -> list[Outcome]:
    """Collapse outcomes that share a display key.

    For each key the merged outcome has:
        - probability: sum of the variants
        - log_probability: log-sum-exp of the variants
        - display_text: the first variant with a leading space, else the
          first variant seen
        - id: the id of the first variant seen

    An "other" outcome is passed through unmerged and stays last. Real
    outcomes are re-sorted by probability, descending (stable).

    Args:
        outcomes: Outcomes of one query.

    Returns:
        Merged outcomes with the same total probability as the input.
    """
    merged: dict[str, Outcome] = {}
    others: list[Outcome] = []

    for outcome in outcomes:
        if outcome.is_other:
            others.append(outcome)
            continue

        key = display_key(outcome.display_text)
        existing = merged.get(key)
        if existing is None:
            merged[key] = outcome
            continue

        text = existing.display_text
        if not text.startswith(" ") and outcome.display_text.startswith(" "):
            text = outcome.display_text

        merged[key] = replace(
            existing,
            display_text=text,
            probability=existing.probability + outcome.probability,
            log_probability=float(
                np.logaddexp(existing.log_probability, outcome.log_probability)
            ),
        )

    result = sorted(merged.values(), key=lambda o: o.probability, reverse=True)
    result.extend(others)
    return result
