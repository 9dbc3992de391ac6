# File: utils/search_utils.py
"""Free-text search helpers for RemindMe.

Functions:
    - expand_query: Query plus its synonym spellings ("dr" <-> "doctor")
    - matches_any: Case-insensitive substring match against several fields
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


def expand_query(query: str, synonyms: Mapping[str, Iterable[str]]) -> list[str]:
    """Lower-case a query and add one variant per matching synonym.

    Examples:
        expand_query("Dr visit", {"dr": ["doctor"]}) → ["dr visit", "doctor visit"]
    """
    lowered = query.lower()
    terms = [lowered]
    for word, alternatives in synonyms.items():
        if word in lowered:
            terms.extend(lowered.replace(word, alt) for alt in alternatives)
    return terms


def matches_any(terms: Iterable[str], *fields: object) -> bool:
    """Return True if any string field contains any term (case-insensitive)."""
    term_list = list(terms)
    for field in fields:
        if not field or not isinstance(field, str):
            continue
        text = field.lower()
        if any(term in text for term in term_list):
            return True
    return False
