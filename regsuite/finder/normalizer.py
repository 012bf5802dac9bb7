"""Turn a raw tag map into the normalized values of a test description."""

import re
from typing import Dict, List, Mapping, Optional

from ..core.enums import ActionReason, TestKind
from ..suite.properties import DirectoryProperties
from .tags import (
    BUG, ENABLE_PREVIEW, ERROR, KEY, LINESEP, MODULES, PARSE_BAD_RUN,
    PARSE_RUN_ENDS_WITH_BUILD, RUN, SUMMARY, add_modules,
)

TESTNG_CLASS = "testngClass"
JUNIT_CLASS = "junitClass"

_USER = ActionReason.USER_SPECIFIED.value
_ASSUMED = ActionReason.ASSUMED_ACTION.value
_TIMEOUT = re.compile(r"/timeout=([0-9]+)(?:/| )")
_SENTENCE_END = re.compile(r"\.[ \n\r\t\f\b]")


def _option(name: str) -> "re.Pattern[str]":
    return re.compile(rf"/{re.escape(name)}[/= \t]")


def _action(name: str) -> "re.Pattern[str]":
    return re.compile(rf"(?:{_USER}|{_ASSUMED}) {re.escape(name)}\b")


# keyword -> patterns over the assembled run value, any of which implies it
IMPLICIT_KEYWORDS = (
    ("othervm", (_option("othervm"), _option("bootclasspath"))),
    ("manual", (_option("manual"),)),
    ("native", (_option("native"),)),
    ("shell", (_action("shell"),)),
    ("junit", (_action("junit"),)),
    ("testng", (_action("testng"),)),
    ("driver", (_action("driver"),)),
    ("ignore", (_action("ignore"),)),
)


def first_sentence(summary: str) -> str:
    match = _SENTENCE_END.search(summary)
    return summary if match is None else summary[:match.start() + 1]


def default_kind(file_name: str, tags: Mapping[str, str]) -> TestKind:
    if TESTNG_CLASS in tags:
        return TestKind.TESTNG
    if JUNIT_CLASS in tags:
        return TestKind.JUNIT
    if file_name.endswith(".sh"):
        return TestKind.SHELL
    if file_name.endswith(".java"):
        return TestKind.MAIN
    return TestKind.APPLET


def default_run(file_name: str, tags: Mapping[str, str]) -> str:
    kind = default_kind(file_name, tags)
    if kind is TestKind.TESTNG:
        target = tags[TESTNG_CLASS]
    elif kind is TestKind.JUNIT:
        target = tags[JUNIT_CLASS]
    elif kind is TestKind.MAIN:
        target = file_name[:file_name.rfind(".")]
    else:
        target = file_name
    return f"{_ASSUMED} {kind.value} {target}{LINESEP}"


def max_timeout(run: str) -> Optional[int]:
    """Largest ``/timeout=N`` in ``run``; 0 if any is unlimited, None if none is declared."""
    largest = None
    for match in _TIMEOUT.finditer(run):
        value = int(match.group(1))
        if value == 0:
            return 0
        largest = value if largest is None else max(largest, value)
    return largest


class Normalizer:
    """Fills defaults and derives implied values for one suite directory."""

    def __init__(self, reject_trailing_build: bool = True) -> None:
        self.reject_trailing_build = reject_trailing_build

    def normalize(self, file_name: str, tags: Dict[str, str], props: DirectoryProperties) -> Dict[str, str]:
        framework = TESTNG_CLASS in tags or JUNIT_CLASS in tags
        if framework and RUN in tags:
            tags.setdefault(ERROR, PARSE_BAD_RUN)

        result: Dict[str, str] = {
            "title": " ",
            "source": file_name,
            RUN: default_run(file_name, tags),
        }
        keywords: List[str] = []
        for name, value in tags.items():
            if name == SUMMARY:
                result["title"] = first_sentence(value)
            elif name in (BUG, KEY):
                keywords.extend(value.split())
            elif framework and name == RUN:
                continue
            else:
                result[name] = value

        run = result[RUN]
        for keyword, patterns in IMPLICIT_KEYWORDS:
            if any(p.search(run) for p in patterns) and keyword not in keywords:
                keywords.append(keyword)
        if TESTNG_CLASS in tags and "testng" not in keywords:
            keywords.append("testng")
        if JUNIT_CLASS in tags and "junit" not in keywords:
            keywords.append("junit")
        result["keywords"] = " ".join(dict.fromkeys(keywords))

        if self.reject_trailing_build:
            last = run.rstrip(LINESEP).rsplit(LINESEP, 1)[-1]
            if last.startswith(f"{_USER} build"):
                result.setdefault(ERROR, PARSE_RUN_ENDS_WITH_BUILD)

        timeout = max_timeout(run)
        if timeout is not None:
            result["maxTimeout"] = str(timeout)

        if not result.get(MODULES) and props.modules:
            add_modules(result, list(props.modules))
        if ENABLE_PREVIEW not in result and props.enable_preview:
            result[ENABLE_PREVIEW] = "true"
        return result
