# File: utils/__init__.py
"""Pure Python utilities for RemindMe.

Submodules:
    - dt_utils: Clock parsing, calendar arithmetic, timestamp normalisation
    - math_utils: Adherence score calculation
    - search_utils: Synonym-aware free-text matching

Usage:
    from . import dt_utils
    from .math_utils import adherence_score
"""

from . import dt_utils, math_utils, search_utils

__all__ = ["dt_utils", "math_utils", "search_utils"]
