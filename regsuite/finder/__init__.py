"""Test finder: tag comments to test descriptions.

``TestFinder`` lives in ``regsuite.finder.finder``; it depends on suite
properties, so it is not re-exported here.
"""

from .comments import CommentStrategyRegistry
from .description import TestDescription
from .modules import ModuleSpec

__all__ = ["CommentStrategyRegistry", "TestDescription", "ModuleSpec"]
