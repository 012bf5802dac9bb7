"""
regsuite: regression test-suite metadata harness

Extracts test descriptions embedded as tag comments in source files,
evaluates ``@requires`` platform expressions and keyword/list filters to
decide which tests are eligible to run, and resolves named test groups
into concrete file sets.
"""

__version__ = "1.0.0"

# Core exports
from .core.enums import ActionReason, TestKind, TestStatus
from .core.types import JdkInfo, RegsuiteConfig

__all__ = [
    "__version__",
    "ActionReason",
    "TestKind",
    "TestStatus",
    "JdkInfo",
    "RegsuiteConfig",
]
