# File: utils/math_utils.py
"""Math and calculation utilities for RemindMe reports.

Pure Python math functions with no engine or store dependencies.

Functions:
    - adherence_score: taken / (taken + missed) as a whole-number percentage
"""

from __future__ import annotations

# Default adherence when nothing has been due yet
DEFAULT_ADHERENCE_SCORE = 100


def adherence_score(
    taken: int, missed: int, default: int = DEFAULT_ADHERENCE_SCORE
) -> int:
    """Return the adherence score for a reporting window.

    Upcoming and snoozed instances are excluded from the denominator so
    future doses never lower the score.

    Examples:
        adherence_score(3, 1) → 75
        adherence_score(2, 1) → 67
        adherence_score(0, 0) → 100
    """
    denominator = taken + missed
    if denominator <= 0:
        return default
    # Half-up rounding (round() would give banker's rounding on .5)
    return int(taken * 100 / denominator + 0.5)
