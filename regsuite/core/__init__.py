"""Core harness components."""

from .errors import RegsuiteError, ConfigurationError, ParseError, ExprFault, FilterFault, GroupError

__all__ = ["RegsuiteError", "ConfigurationError", "ParseError", "ExprFault", "FilterFault", "GroupError"]
