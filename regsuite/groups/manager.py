"""Named test groups: load, validate and resolve group definition files.

A group file is a ``.properties`` file mapping group names to whitespace
separated items::

    tier1 = :core :langtools -:slow
    core = java/lang java/util -java/util/concurrent
    slow = java/lang/Huge.java

An item is a path (a leading ``/`` is suite-root relative, as is any other
path) or a ``:group`` reference; a leading ``-`` turns either into an
exclusion. The same group may be defined in several files; each definition
adds an entry.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Set

from ..core.errors import CodecError, FilesystemError, GroupError, InvalidGroupError
from ..core.log import get_logger, log_group_event
from ..core.types import DEFAULT_EXTENSIONS, DEFAULT_IGNORED_DIRS
from ..utils.codec import parse_properties
from ..utils.filesystem import is_ancestor, list_dir, read_text
from ..utils.graph import strongly_connected_components

logger = get_logger(__name__)

GROUP_PREFIX = ":"
EXCLUDE_PREFIX = "-"

_GROUP_NAME = re.compile(r"[A-Za-z][A-Za-z0-9_]*")

ErrorSink = Callable[[str], None]


@dataclass
class GroupEntry:
    """One definition of a group, from one file."""

    origin: Path
    include_files: List[Path] = field(default_factory=list)
    exclude_files: List[Path] = field(default_factory=list)
    include_groups: List[str] = field(default_factory=list)
    exclude_groups: List[str] = field(default_factory=list)

    @classmethod
    def parse(cls, origin: Path, root: Path, definition: str) -> "GroupEntry":
        entry = cls(origin)
        for item in definition.split():
            exclude = item.startswith(EXCLUDE_PREFIX)
            if exclude:
                item = item[1:]
            if item.startswith(GROUP_PREFIX):
                target = entry.exclude_groups if exclude else entry.include_groups
                name = item[1:]
                if name not in target:
                    target.append(name)
            else:
                name = item.strip("/")
                path = root / name if name else root
                target_files = entry.exclude_files if exclude else entry.include_files
                if path not in target_files:
                    target_files.append(path)
        return entry

    @property
    def referenced_groups(self) -> List[str]:
        return self.include_groups + self.exclude_groups


@dataclass
class Group:
    name: str
    entries: List[GroupEntry] = field(default_factory=list)
    invalid: bool = False
    errors: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.entries


class GroupManager:
    """Group definitions of one suite, resolved lazily and memoized.

    Every problem found while loading marks the affected group invalid and
    is reported to ``error_sink``; loading itself never fails on bad
    definitions. Resolving an invalid group raises ``InvalidGroupError``.
    """

    def __init__(
        self,
        root: Path,
        allowed_extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        ignored_dirs: Iterable[str] = DEFAULT_IGNORED_DIRS,
        error_sink: Optional[ErrorSink] = None,
    ) -> None:
        self.root = Path(root)
        self.allowed_extensions: FrozenSet[str] = frozenset(allowed_extensions)
        self.ignored_dirs: FrozenSet[str] = frozenset(ignored_dirs)
        self.errors: List[str] = []
        self._error_sink = error_sink
        self._groups: Dict[str, Group] = {}
        self._files: Dict[str, Set[Path]] = {}

    @classmethod
    def load(
        cls,
        root: Path,
        files: Iterable[str],
        allowed_extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        ignored_dirs: Iterable[str] = DEFAULT_IGNORED_DIRS,
        error_sink: Optional[ErrorSink] = None,
    ) -> "GroupManager":
        """Read group files named relative to ``root``; ``[name]`` marks an optional file.

        A required file that cannot be read is reported and skipped.
        """
        manager = cls(root, allowed_extensions, ignored_dirs, error_sink)
        for name in files:
            optional = name.startswith("[") and name.endswith("]")
            if optional:
                name = name[1:-1]
            path = manager.root / name
            if optional and not path.exists():
                continue
            manager.add_file(path)
        manager.validate()
        return manager

    def add_file(self, path: Path) -> None:
        try:
            definitions = parse_properties(read_text(path, encoding="latin-1"))
        except (FilesystemError, CodecError) as e:
            self._report(f"Cannot read group file {path}: {e.message}")
            return
        for name, definition in definitions.items():
            self._group(name).entries.append(GroupEntry.parse(path, self.root, definition))
        self._files.clear()
        log_group_event(logger, "file_loaded", None, path=str(path), groups=len(definitions))

    def names(self) -> Set[str]:
        return set(self._groups)

    @property
    def invalid(self) -> bool:
        """True if any group is invalid."""
        return any(g.invalid for g in self._groups.values())

    def invalid_groups(self) -> Set[str]:
        return {name for name, g in self._groups.items() if g.invalid}

    def group(self, name: str) -> Group:
        try:
            return self._groups[name]
        except KeyError:
            raise GroupError(f"Unknown group: {name}") from None

    def files_for(self, name: str) -> Set[Path]:
        """Files and directories making up ``name``.

        A directory in the result stands for every test below it.

        Raises:
            GroupError: if no such group is defined
            InvalidGroupError: if the group was marked invalid
        """
        group = self.group(name)
        if group.invalid:
            raise InvalidGroupError(f"Invalid group: {name}: {'; '.join(group.errors)}", name)
        return set(self._resolve(group))

    def validate(self) -> None:
        """Check names, paths and references, then reject reference cycles."""
        for group in list(self._groups.values()):
            if not _GROUP_NAME.fullmatch(group.name):
                self._error(group, "invalid name for group")
            for entry in group.entries:
                for path in entry.include_files + entry.exclude_files:
                    if not path.exists():
                        self._error(group, f"file not found: {_relative(self.root, path)}", entry.origin)
                for ref in entry.include_groups:
                    target = self._groups.get(ref)
                    if target is None or target.is_empty():
                        self._error(group, f"group not found: {ref}", entry.origin)
                if group.name in entry.referenced_groups:
                    self._error(group, "group includes itself", entry.origin)

        names = list(self._groups)
        components = strongly_connected_components(
            names, lambda n: [r for e in self._groups[n].entries for r in e.referenced_groups if r in self._groups]
        )
        for component in components:
            if len(component) > 1:
                members = ", ".join(component)
                for name in component:
                    self._error(self._groups[name], f"cycle detected: {members}")

        # a group that depends on an invalid group cannot be resolved either
        changed = True
        while changed:
            changed = False
            for group in self._groups.values():
                if group.invalid:
                    continue
                bad = [r for e in group.entries for r in e.referenced_groups
                       if r in self._groups and self._groups[r].invalid]
                if bad:
                    self._error(group, f"depends on invalid group: {bad[0]}")
                    changed = True

    def _group(self, name: str) -> Group:
        group = self._groups.get(name)
        if group is None:
            group = self._groups[name] = Group(name)
        return group

    def _error(self, group: Group, message: str, origin: Optional[Path] = None) -> None:
        if origin is None and group.entries:
            origin = group.entries[0].origin
        text = f"{origin}: group {group.name}: {message}" if origin else f"group {group.name}: {message}"
        group.invalid = True
        group.errors.append(message)
        log_group_event(logger, "invalid", group.name, reason=message)
        self._report(text)

    def _report(self, text: str) -> None:
        self.errors.append(text)
        if self._error_sink is not None:
            self._error_sink(text)
        else:
            logger.error(text)

    def _resolve(self, group: Group) -> Set[Path]:
        files = self._files.get(group.name)
        if files is not None:
            return files

        includes: List[Path] = []
        excludes: List[Path] = []
        for entry in group.entries:
            includes.extend(entry.include_files)
            for ref in entry.include_groups:
                includes.extend(self._resolve_ref(ref))
            excludes.extend(entry.exclude_files)
            for ref in entry.exclude_groups:
                excludes.extend(self._resolve_ref(ref))

        result: List[Path] = []
        self._add_files(result, includes, excludes)
        files = set(result)
        self._files[group.name] = files
        return files

    def _resolve_ref(self, name: str) -> Set[Path]:
        target = self._groups.get(name)
        return set() if target is None else self._resolve(target)

    def _add_files(self, files: List[Path], includes: Iterable[Path], excludes: List[Path]) -> None:
        for path in includes:
            if _covered(files, path) or _covered(excludes, path):
                continue
            if path.is_file():
                _add_file(files, path)
            elif path.is_dir():
                inside = [e for e in excludes if is_ancestor(path, e)]
                if not inside:
                    _add_file(files, path)
                else:
                    self._add_files(files, self._children(path), inside)

    def _children(self, directory: Path) -> List[Path]:
        children = []
        for child in list_dir(directory):
            if child.is_dir():
                if child.name not in self.ignored_dirs:
                    children.append(child)
            elif child.is_file() and child.suffix in self.allowed_extensions:
                children.append(child)
        return children


def _covered(paths: Iterable[Path], path: Path) -> bool:
    return any(is_ancestor(p, path) for p in paths)


def _add_file(files: List[Path], path: Path) -> None:
    files[:] = [f for f in files if not is_ancestor(path, f)]
    files.append(path)


def _relative(root: Path, path: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)
