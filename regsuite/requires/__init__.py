"""Requirement expressions and the contexts they are evaluated against."""

from .expr import Expr, ExpressionCache, parse, truth
from .context import ExprContext, error_value
from .host import OSInfo

__all__ = ["Expr", "ExpressionCache", "parse", "truth", "ExprContext", "error_value", "OSInfo"]
