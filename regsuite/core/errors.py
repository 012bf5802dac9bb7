"""Error hierarchy and exception system for the regsuite harness."""

from typing import Optional, Dict, Any


class RegsuiteError(Exception):
    """Base exception for all regsuite errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# Configuration and Setup Errors
class ConfigurationError(RegsuiteError):
    """Error in harness or suite configuration."""


# Filesystem and IO Errors
class FilesystemError(RegsuiteError):
    """Filesystem operation error."""


class PathError(FilesystemError):
    """Path resolution or validation error."""


# Data and Codec Errors
class CodecError(RegsuiteError):
    """Data encoding/decoding error."""


class SerializationError(CodecError):
    """Data serialization error."""


class DeserializationError(CodecError):
    """Data deserialization error."""


# Test Description Parsing Errors
class ParseError(RegsuiteError):
    """Malformed content in a test description or suite file."""


class ModuleSpecError(ParseError):
    """Malformed ``module[/package[:modifier,...]]`` specification."""


class KeywordError(ParseError):
    """Malformed keyword expression."""


class ExcludeListError(ParseError):
    """Malformed exclude or match list."""

    def __init__(self, message: str, path: Optional[str] = None, line: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.path = path
        self.line = line


# Requirement Expression Errors
class ExprFault(RegsuiteError):
    """Syntax or evaluation failure in a requirement expression."""


# Test Filter Errors
class FilterFault(RegsuiteError):
    """A test filter could not reach a decision for a test."""

    def __init__(self, message: str, filter_name: str, test_url: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.filter_name = filter_name
        self.test_url = test_url


# Group Resolution Errors
class GroupError(RegsuiteError):
    """Group definition error."""


class InvalidGroupError(GroupError):
    """A group marked invalid during loading was resolved."""

    def __init__(self, message: str, group_name: str,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.group_name = group_name
