"""Test selection for regsuite."""

from .filters import (
    TestFilter,
    CachingTestFilter,
    FilterChain,
    FilterFaults,
    ModulesFilter,
    RequiresFilter,
    TimeLimitFilter,
    ExcludeListFilter,
    MatchListFilter,
    KeywordFilter,
    PriorStatusFilter,
)
from .exclude_list import ExcludeList, ExcludeEntry
from .keywords import KeywordExpression
from .selector import Selector, SelectionResult, create_selector

__all__ = [
    # Filters
    "TestFilter",
    "CachingTestFilter",
    "FilterChain",
    "FilterFaults",
    "ModulesFilter",
    "RequiresFilter",
    "TimeLimitFilter",
    "ExcludeListFilter",
    "MatchListFilter",
    "KeywordFilter",
    "PriorStatusFilter",
    # Lists and keywords
    "ExcludeList",
    "ExcludeEntry",
    "KeywordExpression",
    # Test Selection
    "Selector",
    "SelectionResult",
    "create_selector",
]
