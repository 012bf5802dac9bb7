"""Exclude ("problem") lists and match lists."""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..core.errors import ExcludeListError, FilesystemError
from ..core.log import get_logger
from ..finder.tags import BUG_ID
from ..requires.host import OSInfo
from ..utils.filesystem import read_text

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExcludeEntry:
    """One listed test: ``<url>[#id] <bugid>[,...] <platform>[,...]``."""

    path: str
    id: Optional[str] = None
    bug_ids: Tuple[str, ...] = ()
    platforms: Tuple[str, ...] = ()
    source: Optional[str] = None
    line: int = 0

    @property
    def url(self) -> str:
        return self.path if self.id is None else f"{self.path}#{self.id}"

    def applies_to(self, platforms: FrozenSet[str]) -> bool:
        """Whether this entry excludes on a host described by ``platforms``.

        An entry without platforms applies everywhere. Older lists put the
        platforms in the bug id column; that column is read as platforms
        when none of its values looks like a bug id.
        """
        listed = self.platforms
        if not listed and self.bug_ids and not any(BUG_ID.fullmatch(b) for b in self.bug_ids):
            listed = self.bug_ids
        if not listed:
            return True
        return any(p.lower() in platforms for p in listed)


def host_platforms(os_info: Optional[OSInfo] = None) -> FrozenSet[str]:
    """Platform names, lower case, that list entries may use for this host.

    ``generic-all``, ``generic-ARCH``, ``OSNAME-all``, ``OSNAME-ARCH`` and
    ``OSNAME-REV``, where OSNAME is the full name, the name without spaces,
    or the family.
    """
    info = os_info or OSInfo.current()
    names = (info.name, "".join(info.name.split()), info.family, "generic")
    qualifiers = (None, info.arch, info.simple_arch, info.version, info.simple_version, "all")
    result = set()
    for name in names:
        for qualifier in qualifiers:
            result.add((name if qualifier is None else f"{name}-{qualifier}").lower())
    return frozenset(result)


class ExcludeList:
    """Entries of one or more list files, looked up by test URL."""

    def __init__(self, entries: Iterable[ExcludeEntry] = ()) -> None:
        self._entries: Dict[str, ExcludeEntry] = {}
        for entry in entries:
            self.add(entry)

    @classmethod
    def load(cls, files: Iterable[Path], strict: bool = False) -> "ExcludeList":
        """Read list files in order; later entries for a URL replace earlier ones.

        Raises:
            PathError: if a file does not exist
            ExcludeListError: on a malformed line when ``strict``
        """
        result = cls()
        for path in files:
            for entry in parse_exclude_list(read_text(Path(path)), str(path), strict):
                result.add(entry)
        return result

    def add(self, entry: ExcludeEntry) -> None:
        self._entries[entry.url] = entry

    def lookup(self, url: str) -> Optional[ExcludeEntry]:
        """Entry for ``url``, or for its file when the entry names no id."""
        entry = self._entries.get(url)
        if entry is None and "#" in url:
            entry = self._entries.get(url.split("#", 1)[0])
        return entry

    def __contains__(self, url: str) -> bool:
        return self.lookup(url) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries.values())


def parse_exclude_list(text: str, source: Optional[str] = None, strict: bool = False) -> List[ExcludeEntry]:
    entries: List[ExcludeEntry] = []
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        fields = line.split()
        url = fields[0]
        if url.startswith("/") or url.endswith("/"):
            message = f"Invalid test URL: {url}"
            if strict:
                raise ExcludeListError(message, path=source, line=number)
            logger.warning("%s:%d: %s", source or "<list>", number, message)
            continue
        path, _, test_id = url.partition("#")
        entries.append(ExcludeEntry(
            path=path,
            id=test_id or None,
            bug_ids=tuple(b for b in fields[1].split(",") if b) if len(fields) > 1 else (),
            platforms=tuple(p for p in fields[2].split(",") if p) if len(fields) > 2 else (),
            source=source,
            line=number,
        ))
    return entries


def read_list(files: Iterable[Path]) -> ExcludeList:
    """Load list files, wrapping IO failures as list errors."""
    try:
        return ExcludeList.load(files)
    except FilesystemError as e:
        raise ExcludeListError(f"Cannot read list: {e.message}") from e
