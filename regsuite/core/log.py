"""Structured logging with JSON output and rich terminal formatting."""

import logging
from typing import Any, Dict, Optional, Union, Protocol
from pathlib import Path

from .log_formatters import StructuredFormatter, _log_context
from .logger_factory import IsolatedLogManager


class Logger(Protocol):
    """Protocol for logger instances to enable dependency injection."""

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log debug message."""

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log info message."""

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message."""

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log error message."""


class LogManager:
    """Central logging configuration on top of an IsolatedLogManager."""

    def __init__(self) -> None:
        self._manager = IsolatedLogManager("global", context=_log_context)
        self._configured = False

    @property
    def is_configured(self) -> bool:
        return self._configured

    def configure(
        self,
        level: Union[int, str] = logging.INFO,
        log_file: Optional[Path] = None,
        enable_json: bool = True,
        enable_console: bool = True,
        console_level: Optional[Union[int, str]] = None,
    ) -> None:
        """Configure logging system. Subsequent calls are ignored until reset."""
        if self._configured:
            return

        self._manager.configure(
            level=level,
            log_file=log_file,
            enable_json=enable_json,
            enable_console=enable_console,
            console_level=console_level,
        )
        self._configured = True

    def add_file_handler(self, log_file: Path, level: Union[int, str]) -> None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            StructuredFormatter(
                include_context=True,
                context_getter=self._manager.get_context,
            )
        )
        file_handler.setLevel(level)
        self._manager.add_handler(file_handler)

    def get_logger(self, name: str) -> logging.Logger:
        """Get a logger instance."""
        return self._manager.create_logger(name)

    def shutdown(self) -> None:
        """Shutdown logging system."""
        self._manager.reset()
        self._configured = False

    def reset_configuration(self) -> None:
        """Reset configuration to allow reconfiguration (used for test isolation)."""
        self._configured = False
        self._manager.reset()


# Global log manager instance
_log_manager = LogManager()


def configure_logging(**kwargs: Any) -> None:
    """Configure the global logging system."""
    _log_manager.configure(**kwargs)


def add_file_logging(log_file: Path, level: Union[int, str] = logging.DEBUG) -> None:
    """Add JSON-lines file logging to an already configured logging system.

    Args:
        log_file: Path to the log file
        level: Logging level for the file handler
    """
    _log_manager.add_file_handler(log_file, level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return _log_manager.get_logger(name)


def shutdown_logging() -> None:
    """Shutdown the logging system."""
    _log_manager.shutdown()


def reset_logging() -> None:
    """Reset logging configuration to allow reconfiguration."""
    _log_manager.reset_configuration()


def log_event(
    logger: Logger, event_type: str, message: str, **kwargs: Any
) -> None:
    """Log a structured event with context."""
    logger.info(message, extra={"event_type": event_type, **kwargs})


def log_test_event(
    logger: Logger, event: str, test_url: Optional[str] = None, **kwargs: Any
) -> None:
    """Log an event about a single test description."""
    extra: Dict[str, Any] = {"event_type": "test", "test_event": event}
    if test_url is not None:
        extra["test_url"] = test_url
    extra.update(kwargs)
    logger.info("Test %s %s", test_url, event, extra=extra)


def log_finder_event(
    logger: Logger, event: str, path: Optional[Union[str, Path]] = None, **kwargs: Any
) -> None:
    """Log a test-finder event (scan start, file skipped, clash)."""
    extra: Dict[str, Any] = {"event_type": "finder", "finder_event": event}
    if path is not None:
        extra["path"] = str(path)
    extra.update(kwargs)
    logger.info("Finder %s %s", event, path, extra=extra)


def log_filter_event(
    logger: Logger, event: str, filter_name: str, **kwargs: Any
) -> None:
    """Log a test-filter event."""
    extra: Dict[str, Any] = {
        "event_type": "filter",
        "filter_event": event,
        "filter_name": filter_name,
    }
    extra.update(kwargs)
    logger.info("Filter %s %s", filter_name, event, extra=extra)


def log_group_event(
    logger: Logger, event: str, group: Optional[str] = None, **kwargs: Any
) -> None:
    """Log a group-resolution event."""
    extra: Dict[str, Any] = {"event_type": "group", "group_event": event}
    if group is not None:
        extra["group"] = group
    extra.update(kwargs)
    logger.info("Group %s %s", group, event, extra=extra)


# Context management shortcuts
def set_log_context(**kwargs: Any) -> None:
    """Set logging context for current thread."""
    _log_context.set_context(**kwargs)


def get_log_context() -> Dict[str, Any]:
    """Get current logging context."""
    return _log_context.get_context()


def clear_log_context() -> None:
    """Clear current logging context."""
    _log_context.clear_context()


def log_context(**kwargs: Any) -> Any:
    """Context manager for temporary logging context."""
    return _log_context.context(**kwargs)
