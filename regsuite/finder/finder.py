"""Scan a suite tree for test-declaring comments."""

import re
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..core.errors import FilesystemError, RegsuiteError
from ..core.log import get_logger, log_finder_event
from ..core.types import DEFAULT_IGNORED_DIRS
from ..requires.context import ExprContext
from ..suite.properties import DirectoryProperties, SuiteProperties
from ..utils.filesystem import list_dir, read_text, root_relative
from .comments import BlockCommentStrategy, CommentStrategyRegistry
from .description import TestDescription
from .normalizer import JUNIT_CLASS, TESTNG_CLASS, Normalizer
from .tags import ERROR, LIBRARY, PARSE_MULTIPLE_COMMENTS_NOT_ALLOWED, TagProcessor, scan_tags

logger = get_logger(__name__)

ErrorSink = Callable[[str], None]

_ID = re.compile(r"id=([A-Za-z0-9_-]+)\b.*")
_PACKAGE = re.compile(r"^\s*package\s+([\w.]+)\s*;", re.MULTILINE)
_JUNIT_IMPORT = re.compile(r"^\s*import\s+(?:static\s+)?org\.junit", re.MULTILINE)
_NOT_TESTS = ("module-info.java", "package-info.java")


class TestFinder:
    """Produces test descriptions for files and directories of one suite.

    Errors that prevent a file from being read, or that make a description
    unusable, go to ``error_sink``; problems inside a description are
    recorded in its ``error`` value instead and the test is still produced.
    """

    __test__ = False

    def __init__(
        self,
        suite: SuiteProperties,
        strategies: Optional[CommentStrategyRegistry] = None,
        ignored_dirs: Iterable[str] = DEFAULT_IGNORED_DIRS,
        check_bug_ids: bool = True,
        reject_trailing_build: bool = True,
        context: Optional[ExprContext] = None,
        error_sink: Optional[ErrorSink] = None,
    ) -> None:
        self.suite = suite
        self.root = suite.root
        self.strategies = strategies or CommentStrategyRegistry.default()
        self.ignored_dirs = frozenset(ignored_dirs)
        self.check_bug_ids = check_bug_ids and suite.check_bug_ids
        self.context = context if context is not None else ExprContext.build()
        self.normalizer = Normalizer(reject_trailing_build)
        self.errors: List[str] = []
        self._error_sink = error_sink
        self._paths: Dict[str, TestDescription] = {}
        self._processors: Dict[Path, TagProcessor] = {}

    def scan(self, paths: Sequence[Path] = ()) -> List[TestDescription]:
        """Descriptions for ``paths`` (files or directories), or the whole suite."""
        self._paths = {}
        found: List[TestDescription] = []
        targets = [Path(p) for p in paths] or [self.root]
        for target in targets:
            target = target if target.is_absolute() else self.root / target
            if target.is_dir():
                found.extend(self._scan_directory(target.resolve()))
            elif target.is_file():
                found.extend(self._scan_file(target.resolve()))
            else:
                self._error(f"File not found: {target}")
        log_finder_event(logger, "scanned", self.root, tests=len(found))
        return found

    def scan_file(self, path: Path) -> List[TestDescription]:
        return self.scan([path])

    def _scan_directory(self, directory: Path) -> List[TestDescription]:
        found: List[TestDescription] = []
        try:
            entries = list_dir(directory)
        except FilesystemError as e:
            self._error(e.message)
            return found
        for entry in entries:
            if entry.name in self.ignored_dirs:
                continue
            if entry.is_dir():
                found.extend(self._scan_directory(entry))
            elif entry.suffix and entry.name[entry.name.index("."):] in self.strategies:
                found.extend(self._scan_file(entry))
        return found

    def _scan_file(self, file: Path) -> List[TestDescription]:
        # SCCS leftovers
        if file.name.startswith(","):
            return []
        try:
            props = self.suite.for_file(file)
        except RegsuiteError as e:
            self._error(f"Cannot read test properties: {e.message}")
            return []

        framework_root = props.testng_root or props.junit_root
        if framework_root is not None:
            return self._scan_framework_file(framework_root, file, props)

        dot = file.name.find(".")
        if dot == -1:
            return []
        extension = file.name[dot:]
        strategy = self.strategies.for_extension(extension)
        if strategy is None:
            self._error(f"No parser for extension {extension}: {file}")
            return []
        try:
            source = read_text(file, encoding="latin-1")
        except FilesystemError as e:
            self._error(e.message)
            return []

        processor = self._processor(props)
        comments = [(scan_tags(c.text), c.line) for c in strategy.comments(source)]
        comments = [(entries, line) for entries, line in comments if entries]

        found: List[TestDescription] = []
        multiple = len(comments) > 1
        for number, (entries, line) in enumerate(comments):
            tags = processor.process(entries)
            test_value = tags.pop("test", "")
            test_id = None
            if multiple:
                match = _ID.fullmatch(test_value)
                test_id = match.group(1) if match else f"id{number}"
            self._found(found, file, line, test_id, tags, props)
        return found

    def _scan_framework_file(self, framework_root: Path, file: Path,
                             props: DirectoryProperties) -> List[TestDescription]:
        """Files under TestNG or JUnit directories are tests by location."""
        if not file.name.endswith(".java") or file.name in _NOT_TESTS:
            return []
        try:
            source = read_text(file, encoding="latin-1")
        except FilesystemError as e:
            self._error(e.message)
            return []

        processor = self._processor(props)
        found: List[TestDescription] = []
        tags: Optional[Dict[str, str]] = None
        index = 1
        for comment in BlockCommentStrategy().comments(source):
            entries = scan_tags(comment.text)
            if not entries:
                continue
            values = processor.process(entries)
            values.pop("test", None)
            if tags is None:
                tags = values
            else:
                values[ERROR] = PARSE_MULTIPLE_COMMENTS_NOT_ALLOWED
                self._found(found, file, 0, str(index), values, props)
                index += 1

        tags = tags if tags is not None else {}
        tags["packageRoot"] = root_relative(self.root, framework_root) + "/"
        class_name = infer_class_name(framework_root, file, source)
        if class_name is None:
            tags[ERROR] = "cannot determine class name"
        if props.testng_root is not None:
            tags[TESTNG_CLASS] = class_name or file.stem
        else:
            tags[JUNIT_CLASS] = class_name or file.stem
        if imports_junit(source):
            tags["importsJUnit"] = "true"
        if props.lib_dirs:
            tags[LIBRARY] = " ".join(props.lib_dirs)
        self._found(found, file, 0, None, tags, props)
        return found

    def _found(self, found: List[TestDescription], file: Path, line: int,
               test_id: Optional[str], tags: Dict[str, str], props: DirectoryProperties) -> None:
        values = self.normalizer.normalize(file.name, tags, props)
        desc = TestDescription(self.root, file, line, test_id, values)
        wrp = desc.work_relative_path
        other = self._paths.get(wrp)
        if other is not None:
            if other.url != desc.url:
                self._error(f"Tests {desc.file} and {other.file} would use the same result file {wrp}")
            return
        self._paths[wrp] = desc
        found.append(desc)

    def _processor(self, props: DirectoryProperties) -> TagProcessor:
        processor = self._processors.get(props.directory)
        if processor is None:
            processor = TagProcessor(
                valid_keys=props.valid_keys,
                requires_names=self.context.restricted(props.requires_properties),
                check_bug_ids=self.check_bug_ids,
            )
            self._processors[props.directory] = processor
        return processor

    def _error(self, message: str) -> None:
        self.errors.append(message)
        if self._error_sink is not None:
            self._error_sink(message)
        else:
            logger.error(message)


def infer_class_name(framework_root: Path, file: Path, source: str) -> Optional[str]:
    """Fully qualified class for ``file`` if its package matches its location."""
    match = _PACKAGE.search(source)
    package = match.group(1) if match else None
    relative = file.relative_to(framework_root).as_posix()
    expected = file.name if package is None else package.replace(".", "/") + "/" + file.name
    qualified = file.stem if package is None else f"{package}.{file.stem}"
    if relative.lower() == expected.lower():
        return qualified
    if relative.lower().endswith("/" + expected.lower()):
        # leading directories name a module
        return relative[:len(relative) - len(expected)] + qualified
    return None


def imports_junit(source: str) -> bool:
    return _JUNIT_IMPORT.search(source) is not None
