"""Immutable test description records."""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from .modules import ModuleSpec, parse_modules


@dataclass(frozen=True, eq=False)
class TestDescription:
    """Normalized tags of one declared test plus where it was declared."""

    __test__ = False

    root: Path
    file: Path
    line: int
    id: Optional[str]
    values: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    @property
    def root_relative_path(self) -> str:
        return self.file.relative_to(self.root).as_posix()

    @property
    def url(self) -> str:
        """Root-relative URL, ``dir/File.java`` or ``dir/File.java#id``."""
        path = self.root_relative_path
        return path if self.id is None else f"{path}#{self.id}"

    @property
    def work_relative_path(self) -> str:
        """Result-file path; two descriptions sharing it would overwrite each other."""
        path = self.root_relative_path
        dot = path.rfind(".")
        if dot > path.rfind("/"):
            path = path[:dot]
        if self.id is not None:
            path = f"{path}_{self.id}"
        return path + ".jtr"

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(name, default)

    @property
    def title(self) -> str:
        return self.values.get("title", " ")

    @property
    def keywords(self) -> FrozenSet[str]:
        return frozenset(self.values.get("keywords", "").split())

    @property
    def requires(self) -> Optional[str]:
        return self.values.get("requires")

    @property
    def modules(self) -> Tuple[str, ...]:
        return tuple(self.values.get("modules", "").split())

    def module_specs(self) -> Tuple[ModuleSpec, ...]:
        """Parsed ``modules``. Raises ModuleSpecError if a value is malformed."""
        return parse_modules(self.values.get("modules"))

    @property
    def max_timeout(self) -> Optional[int]:
        """Largest declared ``/timeout``; 0 means unlimited, None means none declared."""
        value = self.values.get("maxTimeout")
        return None if value is None else int(value)

    @property
    def error(self) -> Optional[str]:
        return self.values.get("error")

    @property
    def run(self) -> Tuple[str, ...]:
        return tuple(line for line in self.values.get("run", "").split("\n") if line)

    @property
    def libraries(self) -> Tuple[str, ...]:
        return tuple(self.values.get("library", "").split())

    @property
    def enable_preview(self) -> bool:
        return self.values.get("enablePreview") == "true"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "file": self.file.as_posix(),
            "line": self.line,
            "id": self.id,
            "values": dict(self.values),
        }

    def __hash__(self) -> int:
        return hash((self.file, self.id))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TestDescription):
            return NotImplemented
        return (self.file, self.id, dict(self.values)) == (other.file, other.id, dict(other.values))
