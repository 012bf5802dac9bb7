"""Suite and per-directory settings from ``TEST.ROOT`` and ``TEST.properties``."""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, FrozenSet, Mapping, Optional, Tuple

from ..core.errors import ConfigurationError, FilesystemError, KeywordError, CodecError
from ..core.log import get_logger
from ..test_management.keywords import validate_key
from ..utils.codec import parse_properties
from ..utils.filesystem import is_ancestor, read_text

logger = get_logger(__name__)

ROOT_FILE = "TEST.ROOT"
DIR_FILE = "TEST.properties"

ErrorSink = Callable[[str], None]


def _split(value: Optional[str]) -> Tuple[str, ...]:
    return tuple(value.split()) if value else ()


@dataclass(frozen=True)
class DirectoryProperties:
    """Settings effective for one directory of a suite."""

    directory: Path
    properties: Mapping[str, str]
    valid_keys: FrozenSet[str] = frozenset()
    requires_properties: FrozenSet[str] = frozenset()
    modules: Tuple[str, ...] = ()
    lib_dirs: Tuple[str, ...] = ()
    othervm_dirs: FrozenSet[Path] = frozenset()
    testng_dirs: FrozenSet[Path] = frozenset()
    junit_dirs: FrozenSet[Path] = frozenset()
    use_othervm: bool = False
    testng_root: Optional[Path] = None
    junit_root: Optional[Path] = None
    enable_preview: bool = False
    parent: Optional["DirectoryProperties"] = field(default=None, repr=False, compare=False)

    @property
    def is_testng(self) -> bool:
        return self.testng_root is not None

    @property
    def is_junit(self) -> bool:
        return self.junit_root is not None


class SuiteProperties:
    """Lazily computed, cached ``DirectoryProperties`` for a suite tree.

    Each directory inherits from its parent. A directory without a readable
    ``TEST.properties`` shares its parent's settings; one with the file
    widens each set-valued property only when the local value is non-empty.
    """

    def __init__(self, root: Path, error_sink: Optional[ErrorSink] = None) -> None:
        self.root = Path(root).resolve()
        self._error_sink = error_sink or logger.error
        self._cache: Dict[Path, DirectoryProperties] = {}
        self._lock = threading.RLock()

        root_file = self.root / ROOT_FILE
        if not root_file.is_file():
            raise ConfigurationError(f"{ROOT_FILE} not found in {self.root}")

        top = self.for_directory(self.root)
        self._root_properties = top.properties

        bug = top.properties.get("checkBugID")
        self.check_bug_ids = bug is None or bug.strip() != "false"
        self.group_files: Tuple[str, ...] = _split(top.properties.get("groups"))
        self.required_version: Optional[str] = top.properties.get("requiredVersion")

    @property
    def valid_keys(self) -> FrozenSet[str]:
        """Keys declared at the suite root."""
        return self.for_directory(self.root).valid_keys

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Raw value of a ``TEST.ROOT`` property."""
        return self._root_properties.get(name, default)

    def for_file(self, path: Path) -> DirectoryProperties:
        return self.for_directory(Path(path).resolve().parent)

    def for_directory(self, directory: Path) -> DirectoryProperties:
        """Snapshot for ``directory``, which must lie inside the suite root."""
        directory = Path(directory).resolve()
        with self._lock:
            cached = self._cache.get(directory)
            if cached is not None:
                return cached
            if directory == self.root:
                entry = self._load(None, directory)
            elif is_ancestor(self.root, directory):
                entry = self._load(self.for_directory(directory.parent), directory)
            else:
                raise ConfigurationError(f"{directory} is not inside suite {self.root}")
            self._cache[directory] = entry
            return entry

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def _load(self, parent: Optional[DirectoryProperties], directory: Path) -> DirectoryProperties:
        path = directory / (ROOT_FILE if parent is None else DIR_FILE)
        local = self._read(path) if path.is_file() else None

        if local is None:
            if parent is None:
                raise ConfigurationError(f"{ROOT_FILE} not found in {directory}")
            return DirectoryProperties(
                directory=directory,
                properties=parent.properties,
                valid_keys=parent.valid_keys,
                requires_properties=parent.requires_properties,
                modules=parent.modules,
                lib_dirs=parent.lib_dirs,
                othervm_dirs=parent.othervm_dirs,
                testng_dirs=parent.testng_dirs,
                junit_dirs=parent.junit_dirs,
                use_othervm=parent.use_othervm or _under(directory, parent.othervm_dirs),
                testng_root=parent.testng_root or _root_under(directory, parent.testng_dirs),
                junit_root=parent.junit_root or _root_under(directory, parent.junit_dirs),
                enable_preview=parent.enable_preview,
                parent=parent,
            )

        merged: Dict[str, str] = dict(parent.properties) if parent else {}
        merged.update(local)

        othervm_dirs = self._dir_set(parent.othervm_dirs if parent else None, local, "othervm.dirs", directory)
        testng_dirs = self._dir_set(parent.testng_dirs if parent else None, local, "TestNG.dirs", directory)
        junit_dirs = self._dir_set(parent.junit_dirs if parent else None, local, "JUnit.dirs", directory)

        preview = local.get("enablePreview")
        if preview is not None:
            enable_preview = preview.strip() == "true"
        else:
            enable_preview = parent.enable_preview if parent else False

        if parent is None:
            # The suite root itself is never classified.
            use_othervm, testng_root, junit_root = False, None, None
        else:
            use_othervm = parent.use_othervm or _under(directory, othervm_dirs)
            testng_root = parent.testng_root or _root_under(directory, testng_dirs)
            junit_root = parent.junit_root or _root_under(directory, junit_dirs)

        return DirectoryProperties(
            directory=directory,
            properties=merged,
            valid_keys=self._key_set(parent.valid_keys if parent else None, local, path),
            requires_properties=_widen(parent.requires_properties if parent else None,
                                       _split(local.get("requires.properties"))),
            modules=_widen_ordered(parent.modules if parent else None, _split(local.get("modules"))),
            lib_dirs=self._lib_dirs(parent.lib_dirs if parent else None, local, directory),
            othervm_dirs=othervm_dirs,
            testng_dirs=testng_dirs,
            junit_dirs=junit_dirs,
            use_othervm=use_othervm,
            testng_root=testng_root,
            junit_root=junit_root,
            enable_preview=enable_preview,
            parent=parent,
        )

    def _read(self, path: Path) -> Optional[Dict[str, str]]:
        try:
            return parse_properties(read_text(path, encoding="latin-1"))
        except (FilesystemError, CodecError) as e:
            self._error_sink(f"Cannot read {path}: {e.message}")
            return None

    def _key_set(self, inherited: Optional[FrozenSet[str]], local: Mapping[str, str], path: Path) -> FrozenSet[str]:
        values = _split(local.get("keys"))
        if inherited is not None and not values:
            return inherited
        keys = set(inherited or ())
        for value in values:
            try:
                keys.add(validate_key(value))
            except KeywordError as e:
                self._error_sink(f"{path}: bad keyword {value!r}: {e.message}")
        return frozenset(keys)

    def _dir_set(self, inherited: Optional[FrozenSet[Path]], local: Mapping[str, str],
                 name: str, directory: Path) -> FrozenSet[Path]:
        values = _split(local.get(name))
        if inherited is not None and not values:
            return inherited
        dirs = set(inherited or ())
        for value in values:
            dirs.add(self._resolve(directory, value))
        return frozenset(dirs)

    def _lib_dirs(self, inherited: Optional[Tuple[str, ...]], local: Mapping[str, str],
                  directory: Path) -> Tuple[str, ...]:
        values = _split(local.get("lib.dirs"))
        if inherited is not None and not values:
            return inherited
        libs = list(inherited or ())
        for value in values:
            if not value.startswith("/"):
                resolved = self._resolve(directory, value)
                value = "/" + resolved.relative_to(self.root).as_posix() if is_ancestor(self.root, resolved) else value
            if value not in libs:
                libs.append(value)
        return tuple(libs)

    def _resolve(self, directory: Path, value: str) -> Path:
        """Suite path for a property value; a leading ``/`` is root-relative."""
        if value.startswith("/"):
            return (self.root / value.lstrip("/")).resolve()
        return (directory / value).resolve()


def _widen(inherited: Optional[FrozenSet[str]], values: Tuple[str, ...]) -> FrozenSet[str]:
    if inherited is not None and not values:
        return inherited
    return frozenset(inherited or ()) | frozenset(values)


def _widen_ordered(inherited: Optional[Tuple[str, ...]], values: Tuple[str, ...]) -> Tuple[str, ...]:
    if inherited is not None and not values:
        return inherited
    merged = list(inherited or ())
    merged.extend(v for v in values if v not in merged)
    return tuple(merged)


def _under(directory: Path, dirs: FrozenSet[Path]) -> bool:
    return any(is_ancestor(d, directory) for d in dirs)


def _root_under(directory: Path, dirs: FrozenSet[Path]) -> Optional[Path]:
    for d in sorted(dirs):
        if is_ancestor(d, directory):
            return d
    return None
