"""Test filters: memoizing accept/reject predicates over test descriptions."""

import threading
from pathlib import Path
from typing import AbstractSet, Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import yaml

from ..core.enums import TestStatus
from ..core.errors import ConfigurationError, ExprFault, FilesystemError, FilterFault, ModuleSpecError
from ..core.log import get_logger, log_filter_event
from ..finder.description import TestDescription
from ..finder.modules import module_names
from ..requires.expr import ExpressionCache, ValueSource
from ..utils.filesystem import read_text
from .exclude_list import ExcludeList
from .keywords import KeywordExpression

logger = get_logger(__name__)


class TestFilter:
    """Accept/reject predicate with a name, a description and a rejection reason."""

    __test__ = False

    name = "TestFilter"
    description = ""
    reason = ""

    def accepts(self, desc: TestDescription) -> bool:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class CacheEntry(NamedTuple):
    """A memoized decision and the first description that produced it."""

    desc: TestDescription
    value: bool


class CachingTestFilter(TestFilter):
    """Filter whose decision is computed once per cache key.

    Subclasses supply ``cache_key`` and ``compute_value``. A fault raised
    by ``compute_value`` is not cached and propagates to the caller.
    """

    def __init__(self) -> None:
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def cache_key(self, desc: TestDescription) -> str:
        raise NotImplementedError

    def compute_value(self, desc: TestDescription) -> bool:
        raise NotImplementedError

    def accepts(self, desc: TestDescription) -> bool:
        key = self.cache_key(desc)
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                entry = CacheEntry(desc, self.compute_value(desc))
                self._cache[key] = entry
            return entry.value

    def entries(self) -> List[CacheEntry]:
        with self._lock:
            return list(self._cache.values())

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


class FilterFaults:
    """Problems filters met while deciding, keyed by test URL."""

    def __init__(self) -> None:
        self._faults: Dict[str, str] = {}
        self._lock = threading.Lock()

    def record(self, url: str, message: str) -> None:
        with self._lock:
            self._faults[url] = message

    def get(self, url: str) -> Optional[str]:
        with self._lock:
            return self._faults.get(url)

    def items(self) -> List[Tuple[str, str]]:
        with self._lock:
            return sorted(self._faults.items())

    def clear(self) -> None:
        with self._lock:
            self._faults.clear()

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._faults

    def __len__(self) -> int:
        with self._lock:
            return len(self._faults)


class ModulesFilter(CachingTestFilter):
    name = "ModulesFilter"
    description = "Select tests for which all required modules are available"
    reason = "A required module is not available"

    def __init__(self, installed_modules: AbstractSet[str]) -> None:
        super().__init__()
        self.installed_modules = frozenset(installed_modules)

    def cache_key(self, desc: TestDescription) -> str:
        return " ".join(desc.modules)

    def compute_value(self, desc: TestDescription) -> bool:
        try:
            specs = desc.module_specs()
        except ModuleSpecError as e:
            raise FilterFault(f"Invalid @modules value: {e.message}", self.name, desc.url) from e
        return all(name in self.installed_modules for name in module_names(specs))

    def accepts(self, desc: TestDescription) -> bool:
        # a malformed value is already reported as the test's parse error
        try:
            return super().accepts(desc)
        except FilterFault as e:
            log_filter_event(logger, "fault", self.name, test_url=desc.url, fault=e.message)
            return True


class RequiresFilter(CachingTestFilter):
    """Evaluates ``@requires`` against the run's context.

    An expression that cannot be evaluated does not reject the test: the
    fault is recorded against the test's URL and the test is accepted, so
    the problem is reported instead of the test silently disappearing.
    """

    name = "RequiresFilter"
    description = "Select tests that satisfy a given set of platform requirements"
    reason = "The platform does not meet the specified requirements"

    def __init__(self, context: ValueSource, expressions: ExpressionCache, faults: FilterFaults) -> None:
        super().__init__()
        self.context = context
        self.expressions = expressions
        self.faults = faults

    def cache_key(self, desc: TestDescription) -> str:
        return desc.requires or ""

    def compute_value(self, desc: TestDescription) -> bool:
        if not desc.requires:
            return True
        return self.expressions.get(desc.requires).evaluate(self.context)

    def accepts(self, desc: TestDescription) -> bool:
        try:
            return super().accepts(desc)
        except ExprFault as e:
            message = f"Error evaluating expression: {e.message}"
            self.faults.record(desc.url, message)
            log_filter_event(logger, "fault", self.name, test_url=desc.url, fault=message)
            return True


class TimeLimitFilter(CachingTestFilter):
    name = "TimeLimitFilter"
    description = "Select tests that do not exceed a specified timeout value"
    reason = "Test declares a timeout which exceeds the requested time limit"

    def __init__(self, time_limit: int) -> None:
        super().__init__()
        self.time_limit = time_limit

    def cache_key(self, desc: TestDescription) -> str:
        return str(desc.max_timeout)

    def compute_value(self, desc: TestDescription) -> bool:
        timeout = desc.max_timeout
        return timeout is None or 0 < timeout <= self.time_limit


class ExcludeListFilter(CachingTestFilter):
    name = "ExcludeListFilter"
    description = "Select tests which are not excluded on any exclude list"
    reason = "Test has been excluded by an exclude list"

    def __init__(self, exclude_list: ExcludeList, platforms: AbstractSet[str]) -> None:
        super().__init__()
        self.exclude_list = exclude_list
        self.platforms = frozenset(platforms)

    def cache_key(self, desc: TestDescription) -> str:
        return desc.url

    def compute_value(self, desc: TestDescription) -> bool:
        entry = self.exclude_list.lookup(desc.url)
        return entry is None or not entry.applies_to(self.platforms)


class MatchListFilter(CachingTestFilter):
    name = "MatchListFilter"
    description = "Select tests which are listed on a match list"
    reason = "Test is not listed on any match list"

    def __init__(self, match_list: ExcludeList, platforms: AbstractSet[str]) -> None:
        super().__init__()
        self.match_list = match_list
        self.platforms = frozenset(platforms)

    def cache_key(self, desc: TestDescription) -> str:
        return desc.url

    def compute_value(self, desc: TestDescription) -> bool:
        entry = self.match_list.lookup(desc.url)
        return entry is not None and entry.applies_to(self.platforms)


class KeywordFilter(TestFilter):
    """Keyword expression over each description's keywords. Not cached."""

    name = "KeywordsFilter"
    description = "Select tests which match a keyword expression"
    reason = "Test's keywords do not match the keyword expression"

    def __init__(self, expression: KeywordExpression) -> None:
        self.expression = expression

    def accepts(self, desc: TestDescription) -> bool:
        return self.expression.accepts(desc.keywords)


class PriorStatusFilter(CachingTestFilter):
    name = "PriorStatusFilter"
    description = "Select tests whose prior status is in a specified set"
    reason = "Test's prior status is not one of the requested values"

    def __init__(self, statuses: Iterable[TestStatus], prior: Dict[str, TestStatus]) -> None:
        super().__init__()
        self.statuses = frozenset(statuses)
        self.prior = prior

    def cache_key(self, desc: TestDescription) -> str:
        return desc.url

    def compute_value(self, desc: TestDescription) -> bool:
        return self.prior.get(desc.url, TestStatus.NOT_RUN) in self.statuses


def load_prior_status(path: Path) -> Dict[str, TestStatus]:
    """Read a YAML (or JSON) mapping of test URL to status name.

    Raises:
        ConfigurationError: if the file cannot be read or is malformed
    """
    try:
        data = yaml.safe_load(read_text(path)) or {}
    except (FilesystemError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load prior status from {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Prior status file must contain a mapping: {path}")
    try:
        return {str(url): TestStatus(str(status).lower()) for url, status in data.items()}
    except ValueError as e:
        raise ConfigurationError(f"Unknown status in {path}: {e}") from e


class FilterChain:
    """Ordered conjunction of filters."""

    def __init__(self, filters: Sequence[TestFilter] = ()) -> None:
        self.filters: List[TestFilter] = list(filters)

    def add(self, test_filter: Optional[TestFilter]) -> "FilterChain":
        if test_filter is not None:
            self.filters.append(test_filter)
        return self

    def rejecting_filter(self, desc: TestDescription) -> Optional[TestFilter]:
        """The first filter that rejects ``desc``, or None if all accept."""
        for test_filter in self.filters:
            if not test_filter.accepts(desc):
                return test_filter
        return None

    def accepts(self, desc: TestDescription) -> bool:
        return self.rejecting_filter(desc) is None

    def find(self, name: str) -> Optional[TestFilter]:
        return next((f for f in self.filters if f.name == name), None)

    def clear(self) -> None:
        for test_filter in self.filters:
            if isinstance(test_filter, CachingTestFilter):
                test_filter.clear()

    def __iter__(self) -> Iterator[TestFilter]:
        return iter(self.filters)

    def __len__(self) -> int:
        return len(self.filters)
