"""Test selection: apply a filter chain to scanned test descriptions."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..core.log import get_logger
from ..finder.description import TestDescription
from .filters import FilterChain, FilterFaults, KeywordFilter, TestFilter

logger = get_logger(__name__)


@dataclass
class SelectionResult:
    """Result of test selection process."""

    selected: List[TestDescription]
    rejected: Dict[str, List[TestDescription]]
    total: int
    ignored: List[TestDescription] = field(default_factory=list)
    faults: Dict[str, str] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def selected_count(self) -> int:
        """Number of selected tests."""
        return len(self.selected)

    @property
    def rejected_count(self) -> int:
        """Number of rejected tests, over all filters."""
        return sum(len(tests) for tests in self.rejected.values())

    @property
    def selection_rate(self) -> float:
        """Percentage of tests selected."""
        if self.total == 0:
            return 0.0
        return self.selected_count / self.total * 100

    def summary(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "selected": self.selected_count,
            "rejected": {name: len(tests) for name, tests in self.rejected.items()},
            "ignored": len(self.ignored),
            "faults": len(self.faults),
            "errors": len(self.errors),
        }


class Selector:
    """Runs descriptions through an ordered filter chain."""

    def __init__(self, chain: Optional[FilterChain] = None, faults: Optional[FilterFaults] = None,
                 logger_factory=None):
        """Initialize test selector.

        Args:
            chain: filters applied in order; the first rejecting filter is reported
            faults: side table the filters record evaluation problems in
            logger_factory: Optional logger factory for dependency injection
        """
        if logger_factory:
            self.logger = logger_factory.create_logger("test_selector")
        else:
            self.logger = logger
        self.chain = chain if chain is not None else FilterChain()
        self.faults = faults if faults is not None else FilterFaults()

    def add_filter(self, test_filter: Optional[TestFilter]) -> "Selector":
        """Append a filter; None is ignored.

        Returns:
            Self for chaining
        """
        if test_filter is not None:
            self.chain.add(test_filter)
            self.logger.debug("Added filter: %s", test_filter.name)
        return self

    def select(self, descriptions: Sequence[TestDescription]) -> SelectionResult:
        """Select tests accepted by every filter.

        A test rejected by the keyword filter that carries the ``ignore``
        keyword is also listed in ``ignored``. Descriptions with a parse
        error are still selected, and their error is listed in ``errors``.
        """
        self.logger.info("Selecting tests from %s scanned tests", len(descriptions))
        selected: List[TestDescription] = []
        rejected: Dict[str, List[TestDescription]] = {}
        ignored: List[TestDescription] = []
        errors: Dict[str, str] = {}

        for desc in descriptions:
            if desc.error:
                errors[desc.url] = desc.error
            rejecting = self.chain.rejecting_filter(desc)
            if rejecting is None:
                selected.append(desc)
                continue
            rejected.setdefault(rejecting.name, []).append(desc)
            if isinstance(rejecting, KeywordFilter) and "ignore" in desc.keywords:
                ignored.append(desc)

        urls = {desc.url for desc in descriptions}
        faults = {url: message for url, message in self.faults.items() if url in urls}
        result = SelectionResult(
            selected=selected,
            rejected=rejected,
            total=len(descriptions),
            ignored=ignored,
            faults=faults,
            errors=errors,
        )
        self.logger.info(
            "Test selection complete: %s/%s selected (%.1f%%)",
            result.selected_count, result.total, result.selection_rate,
        )
        for url, message in faults.items():
            self.logger.warning("%s: %s", url, message)
        return result

    def get_filter_summary(self) -> Dict[str, Any]:
        """Get summary of configured filters."""
        return {
            "total_filters": len(self.chain),
            "filters": [
                {"name": f.name, "description": f.description, "reason": f.reason}
                for f in self.chain
            ],
        }


def create_selector(filters: Sequence[Optional[TestFilter]], faults: Optional[FilterFaults] = None) -> Selector:
    """Create a selector over ``filters``, skipping None entries."""
    selector = Selector(faults=faults)
    for test_filter in filters:
        selector.add_filter(test_filter)
    return selector
