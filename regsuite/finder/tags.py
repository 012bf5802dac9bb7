"""Tag scanning and per-tag validation of test-declaring comments."""

import re
from typing import AbstractSet, Callable, Dict, List, Optional, Tuple

from ..core.enums import ActionReason
from ..core.errors import ExprFault, ModuleSpecError
from ..requires.expr import NameSet, parse
from .modules import ModuleSpec

TEST = "test"
AUTHOR = "author"
BUG = "bug"
BUILD = "build"
CLEAN = "clean"
COMMENT = "comment"
COMPILE = "compile"
ENABLE_PREVIEW = "enablePreview"
ERROR = "error"
IGNORE = "ignore"
KEY = "key"
LIBRARY = "library"
MODULES = "modules"
REQUIRES = "requires"
RUN = "run"
SUMMARY = "summary"

RUN_SHORTHANDS = (COMPILE, CLEAN, BUILD, IGNORE)
BASE_TAGS = frozenset({
    TEST, BUG, SUMMARY, AUTHOR, LIBRARY, MODULES, CLEAN, COMPILE,
    IGNORE, RUN, BUILD, REQUIRES, COMMENT, ENABLE_PREVIEW,
})

LINESEP = "\n"

PARSE_TAG_BAD = "Invalid tag: "
PARSE_BUG_EMPTY = "No value provided for `@bug'"
PARSE_BUG_INVALID = "Invalid or unrecognized bugid: "
PARSE_KEY_EMPTY = "No value provided for `@key'"
PARSE_KEY_BAD = "Invalid key: "
PARSE_LIB_EMPTY = "No value provided for `@library'"
PARSE_LIB_AFTER_RUN = "`@library' must appear before first action tag"
PARSE_MODULES_EMPTY = "No values provided for @modules"
PARSE_BAD_MODULE = "Invalid item in @modules: "
PARSE_BAD_RUN = "Explicit action tag not allowed"
PARSE_REQUIRES_EMPTY = "No expression for @requires"
PARSE_REQUIRES_SYNTAX = "Syntax error in @requires expression: "
PARSE_RUN_ENDS_WITH_BUILD = "No action after @build"
PARSE_MULTIPLE_COMMENTS_NOT_ALLOWED = "Multiple test descriptions not allowed"
PARSE_INVALID_ENABLE_PREVIEW = "invalid value for @enablePreview: "

BUG_ID = re.compile(r"(?:[A-Z]+-)?[0-9]{7}|14[0-9]{6}")
_TAG_START = re.compile(r"^\s*@(\S*)\s*(.*)$")

TagEntry = Tuple[str, str]


def scan_tags(comment: str, first_tag: str = TEST) -> List[TagEntry]:
    """Split a comment into ``(name, value)`` entries.

    A value extends to the next line whose first non-blank character is
    ``@``; continuation lines are joined with single spaces. A comment whose
    first tag is not ``first_tag`` yields nothing.
    """
    entries: List[TagEntry] = []
    name: Optional[str] = None
    value: List[str] = []
    for line in comment.split("\n"):
        match = _TAG_START.match(line)
        if match:
            if name is not None:
                entries.append((name, " ".join(value).strip()))
            name = match.group(1)
            value = [match.group(2).strip()] if match.group(2).strip() else []
        elif name is not None:
            text = line.strip()
            if text:
                value.append(text)
        elif line.strip():
            # text before the first tag means this is not a test comment
            return []
    if name is not None:
        entries.append((name, " ".join(value).strip()))
    if not entries or entries[0][0] != first_tag:
        return []
    return entries


class TagProcessor:
    """Builds a flat tag map from scanned entries, recording the first error.

    Args:
        valid_keys: keys the suite declares; ``@key`` is legal only when non-empty
        requires_names: names that ``@requires`` expressions may reference
        check_bug_ids: whether ``@bug`` values must look like bug ids
    """

    def __init__(
        self,
        valid_keys: AbstractSet[str] = frozenset(),
        requires_names: Optional[NameSet] = None,
        check_bug_ids: bool = True,
    ) -> None:
        self.valid_keys = valid_keys
        self.requires_names = requires_names
        self.check_bug_ids = check_bug_ids
        self.valid_tags = BASE_TAGS | {KEY} if valid_keys else BASE_TAGS
        self._handlers: Dict[str, Callable[[Dict[str, str], str], None]] = {
            RUN: self._run,
            BUG: self._bug,
            REQUIRES: self._requires,
            KEY: self._key,
            MODULES: self._modules,
            LIBRARY: self._library,
            COMMENT: lambda tags, value: None,
            ENABLE_PREVIEW: self._enable_preview,
        }

    def process(self, entries: List[TagEntry]) -> Dict[str, str]:
        tags: Dict[str, str] = {}
        for name, value in entries:
            self.process_entry(tags, name, value)
        return tags

    def process_entry(self, tags: Dict[str, str], name: str, value: str) -> None:
        # SCCS keyword expansions such as @(#)File.java
        if name.startswith("(#)"):
            return
        if name.startswith(RUN_SHORTHANDS):
            value = f"{name} {value}".rstrip()
            name = RUN

        if name not in self.valid_tags:
            parse_error(tags, PARSE_TAG_BAD + name)
            return
        handler = self._handlers.get(name)
        if handler is not None:
            handler(tags, value)
        else:
            tags[name] = value

    def _run(self, tags: Dict[str, str], value: str) -> None:
        tags[RUN] = tags.get(RUN, "") + f"{ActionReason.USER_SPECIFIED.value} {value}{LINESEP}"

    def _bug(self, tags: Dict[str, str], value: str) -> None:
        if not value.strip():
            parse_error(tags, PARSE_BUG_EMPTY)
            return
        bugs = tags[BUG].split() if BUG in tags else []
        for bug_id in value.split():
            if self.check_bug_ids and not BUG_ID.fullmatch(bug_id):
                parse_error(tags, PARSE_BUG_INVALID + bug_id)
                continue
            bugs.append("bug" + bug_id)
        if bugs:
            tags[BUG] = " ".join(bugs)

    def _requires(self, tags: Dict[str, str], value: str) -> None:
        if not value.strip():
            parse_error(tags, PARSE_REQUIRES_EMPTY)
            return
        try:
            parse(value, self.requires_names)
        except ExprFault as e:
            parse_error(tags, PARSE_REQUIRES_SYNTAX + e.message)
            return
        old = tags.get(REQUIRES)
        tags[REQUIRES] = value if old is None else f"({old}) & ({value})"

    def _key(self, tags: Dict[str, str], value: str) -> None:
        if not value.strip():
            parse_error(tags, PARSE_KEY_EMPTY)
            return
        keys = []
        for key in value.split():
            normalized = key.replace("-", "_")
            if normalized not in self.valid_keys:
                parse_error(tags, PARSE_KEY_BAD + key)
                continue
            keys.append(normalized)
        if keys:
            tags[KEY] = " ".join(keys)

    def _modules(self, tags: Dict[str, str], value: str) -> None:
        if not value.strip():
            parse_error(tags, PARSE_MODULES_EMPTY)
            return
        add_modules(tags, value.split())

    def _library(self, tags: Dict[str, str], value: str) -> None:
        if RUN in tags:
            parse_error(tags, PARSE_LIB_AFTER_RUN)
        elif not value.strip():
            parse_error(tags, PARSE_LIB_EMPTY)
        else:
            old = tags.get(LIBRARY)
            tags[LIBRARY] = value.strip() if old is None else f"{value.strip()} {old}"

    def _enable_preview(self, tags: Dict[str, str], value: str) -> None:
        value = value.strip()
        if not value:
            tags[ENABLE_PREVIEW] = "true"
        elif value in ("true", "false"):
            tags[ENABLE_PREVIEW] = value
        else:
            parse_error(tags, PARSE_INVALID_ENABLE_PREVIEW + value)


def add_modules(tags: Dict[str, str], modules: List[str]) -> None:
    """Append validated module items; one bad item rejects the whole list."""
    for item in modules:
        try:
            ModuleSpec.parse(item)
        except ModuleSpecError as e:
            parse_error(tags, PARSE_BAD_MODULE + e.message)
            return
    joined = " ".join(modules)
    old = tags.get(MODULES)
    tags[MODULES] = joined if old is None else f"{old} {joined}"


def parse_error(tags: Dict[str, str], message: str) -> None:
    report_error(tags, "Parse Exception: " + message)


def report_error(tags: Dict[str, str], message: str) -> None:
    """Record ``message`` unless an earlier error is already recorded."""
    tags.setdefault(ERROR, message)
