"""Core enumerations for regsuite.

Kept apart from types.py so that leaf modules can import them without
pulling in pydantic models.
"""

from enum import Enum


class ActionReason(Enum):
    """Why an action line appears in a test's ``run`` value."""

    USER_SPECIFIED = "USER_SPECIFIED"
    ASSUMED_ACTION = "ASSUMED_ACTION"


class TestKind(Enum):
    """How a test file is run when it declares no explicit action."""

    __test__ = False

    MAIN = "main"
    SHELL = "shell"
    APPLET = "applet"
    TESTNG = "testng"
    JUNIT = "junit"


class TestStatus(Enum):
    """Outcome of a previous run, used by the prior-status filter."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"
    NOT_RUN = "not_run"
