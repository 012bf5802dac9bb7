"""Run context: every per-run object, created explicitly and passed around.

A ``RunContext`` owns the caches of one run configuration, so nothing in
the harness keeps mutable module-level state. Create one per suite and
target JDK:

    config = initialize_config(load_config(suite_root=Path("test/jdk")))
    ctx = RunContext.create(config, jdk_properties=props, installed_modules=mods)
    result = ctx.select(paths=[Path("java/lang")])

For tests, ``RunContext.for_testing(root)`` uses fixed host facts.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .errors import ConfigurationError
from .log import Logger, get_logger
from .types import JdkInfo, RegsuiteConfig
from ..finder.comments import CommentStrategyRegistry
from ..finder.description import TestDescription
from ..finder.finder import ErrorSink, TestFinder
from ..groups.manager import GroupManager
from ..requires.context import ExprContext
from ..requires.expr import ExpressionCache
from ..requires.host import OSInfo
from ..suite.properties import SuiteProperties
from ..test_management.exclude_list import host_platforms, read_list
from ..test_management.filters import (
    ExcludeListFilter,
    FilterChain,
    FilterFaults,
    KeywordFilter,
    MatchListFilter,
    ModulesFilter,
    PriorStatusFilter,
    RequiresFilter,
    TimeLimitFilter,
    load_prior_status,
)
from ..test_management.keywords import KeywordExpression
from ..test_management.selector import SelectionResult, Selector
from ..utils.filesystem import is_ancestor


@dataclass(frozen=True)
class RunContext:
    """Immutable container for the objects of one run configuration.

    Attributes:
        config: harness configuration, with ``suite_root`` set
        jdk: facts about the target JDK
        logger: logger for run-level messages
        os_info: host facts used for ``os.*`` names and list platforms
        context: full name/value table for ``@requires`` evaluation
        expressions: parsed expressions keyed by source text
        suite: per-directory suite properties
        finder: test finder for the suite
        faults: filter faults keyed by test URL
        chain: the ordered filter chain
    """

    config: RegsuiteConfig
    jdk: JdkInfo
    logger: Logger
    os_info: OSInfo
    context: ExprContext
    expressions: ExpressionCache
    suite: SuiteProperties
    finder: TestFinder
    faults: FilterFaults
    chain: FilterChain
    _lazy: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def create(
        cls,
        config: RegsuiteConfig,
        *,
        jdk_properties: Optional[Mapping[str, str]] = None,
        vm_options: Optional[Sequence[str]] = None,
        installed_modules: Optional[Iterable[str]] = None,
        os_info: Optional[OSInfo] = None,
        extra_properties: Optional[Mapping[str, str]] = None,
        error_sink: Optional[ErrorSink] = None,
        logger: Optional[Logger] = None,
    ) -> "RunContext":
        """Create a run context; keyword arguments override ``config.jdk``.

        Raises:
            ConfigurationError: if ``config.suite_root`` is unset or is not a suite
        """
        if config.suite_root is None:
            raise ConfigurationError("suite_root must be set; call initialize_config() first")

        jdk = JdkInfo(
            properties={**config.jdk.properties, **(jdk_properties or {})},
            installed_modules=(
                list(installed_modules) if installed_modules is not None else config.jdk.installed_modules
            ),
            vm_options=list(vm_options) if vm_options is not None else list(config.jdk.vm_options),
        )
        logger = logger or get_logger("regsuite")
        os_info = os_info or OSInfo.from_properties(jdk.properties)

        context = ExprContext.build(
            jdk_properties=jdk.properties,
            vm_options=jdk.vm_options,
            test_thread_factory=config.test_thread_factory,
            os_info=os_info,
            extra=extra_properties,
        )
        suite = SuiteProperties(Path(config.suite_root), error_sink=error_sink)
        finder = TestFinder(
            suite,
            strategies=CommentStrategyRegistry.default().restrict(config.allowed_extensions),
            ignored_dirs=config.ignored_dirs,
            check_bug_ids=config.check_bug_ids,
            reject_trailing_build=config.reject_trailing_build,
            context=context,
            error_sink=error_sink,
        )
        expressions = ExpressionCache()
        faults = FilterFaults()
        chain = build_filter_chain(config, jdk, context, expressions, faults, os_info)
        logger.debug("Created run context for %s with %d filters", suite.root, len(chain))

        return cls(
            config=config,
            jdk=jdk,
            logger=logger,
            os_info=os_info,
            context=context,
            expressions=expressions,
            suite=suite,
            finder=finder,
            faults=faults,
            chain=chain,
            _lazy={"error_sink": error_sink},
        )

    @classmethod
    def for_testing(
        cls,
        suite_root: Path,
        config: Optional[RegsuiteConfig] = None,
        **overrides: Any,
    ) -> "RunContext":
        """Create a run context with fixed host facts, for tests.

        Example:
            >>> ctx = RunContext.for_testing(tmp_path, jdk_properties={"java.specification.version": "17"})
        """
        if config is None:
            config = RegsuiteConfig(suite_root=Path(suite_root))
        elif config.suite_root is None:
            config = config.model_copy(update={"suite_root": Path(suite_root)})
        overrides.setdefault(
            "os_info",
            OSInfo(name="Linux", arch="amd64", version="5.15.0", processors=4,
                   max_memory=8 * 1024 ** 3, max_swap=2 * 1024 ** 3),
        )
        return cls.create(config, **overrides)

    @property
    def groups(self) -> GroupManager:
        """Group definitions named by the suite's ``groups`` property, loaded on first use."""
        manager = self._lazy.get("groups")
        if manager is None:
            manager = GroupManager.load(
                self.suite.root,
                self.suite.group_files,
                allowed_extensions=self.config.allowed_extensions,
                ignored_dirs=self.config.ignored_dirs,
                error_sink=self._lazy.get("error_sink"),
            )
            self._lazy["groups"] = manager
        return manager

    def scan(self, paths: Sequence[Path] = (), groups: Sequence[str] = ()) -> List[TestDescription]:
        """Scan ``paths`` (or the suite), keeping only tests inside ``groups`` if given.

        Raises:
            GroupError: if a group is unknown
            InvalidGroupError: if a group is invalid
        """
        if not groups:
            return self.finder.scan(paths)

        group_files: Set[Path] = set()
        for name in groups:
            group_files |= self.groups.files_for(name)
        if not paths:
            return self.finder.scan(sorted(group_files))
        return [
            desc for desc in self.finder.scan(paths)
            if any(is_ancestor(g, desc.file) for g in group_files)
        ]

    def select(self, paths: Sequence[Path] = (), groups: Sequence[str] = ()) -> SelectionResult:
        """Scan and run the filter chain over the result."""
        descriptions = self.scan(paths, groups)
        return Selector(self.chain, self.faults).select(descriptions)

    def clear_caches(self) -> None:
        self.expressions.clear()
        self.chain.clear()
        self.faults.clear()
        self.suite.clear()
        self._lazy.pop("groups", None)


def build_filter_chain(
    config: RegsuiteConfig,
    jdk: JdkInfo,
    context: ExprContext,
    expressions: ExpressionCache,
    faults: FilterFaults,
    os_info: OSInfo,
) -> FilterChain:
    """Filters in evaluation order; filters with nothing to check are left out."""
    chain = FilterChain()
    if jdk.has_modules:
        chain.add(ModulesFilter(set(jdk.installed_modules or ())))
    chain.add(RequiresFilter(context, expressions, faults))
    if config.time_limit > 0:
        chain.add(TimeLimitFilter(config.time_limit))
    if config.exclude_lists or config.match_lists:
        platforms = host_platforms(os_info)
        if config.exclude_lists:
            chain.add(ExcludeListFilter(read_list(config.exclude_lists), platforms))
        if config.match_lists:
            chain.add(MatchListFilter(read_list(config.match_lists), platforms))
    if config.keywords:
        chain.add(KeywordFilter(KeywordExpression.parse(config.keywords)))
    if config.prior_status:
        chain.add(PriorStatusFilter(config.prior_status, load_prior_status(config.prior_status_file)))
    return chain
