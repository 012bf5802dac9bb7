"""Logger factory for creating isolated logging environments."""

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from .log_formatters import LogContext, RegsuiteRichHandler, StructuredFormatter

Level = Union[int, str]


class LoggerFactory(Protocol):
    """Anything that hands out loggers, e.g. for injection into a Selector."""

    def create_logger(self, name: str) -> logging.Logger:
        ...

    def shutdown(self) -> None:
        ...


class IsolatedLogManager:
    """Owns a set of namespaced, non-propagating loggers and their handlers.

    Handlers configured here reach every logger created before or after the
    call, so module-level loggers obtained at import time pick up a later
    ``configure()``.
    """

    def __init__(self, namespace: str = "", context: Optional[LogContext] = None) -> None:
        """
        Args:
            namespace: prefix for logger names, keeping managers apart
            context: thread-local fields for JSON output; private if omitted
        """
        self._namespace = namespace
        self._context = context or LogContext()
        self._loggers: Dict[str, logging.Logger] = {}
        self._handlers: List[logging.Handler] = []
        self._configured = False
        self._lock = threading.RLock()

    @property
    def is_configured(self) -> bool:
        return self._configured

    def configure(self,
                  level: Level = logging.INFO,
                  log_file: Optional[Path] = None,
                  enable_json: bool = True,
                  enable_console: bool = True,
                  console_level: Optional[Level] = None) -> None:
        """Replace the current handlers with console and/or JSON-lines file output."""
        with self._lock:
            self._drop_handlers()
            if enable_json and log_file:
                self.add_handler(self._json_handler(Path(log_file), level))
            if enable_console:
                console = RegsuiteRichHandler(show_time=True, show_path=False, markup=False)
                console.setLevel(console_level or level)
                self.add_handler(console)
            self._configured = True

    def add_handler(self, handler: logging.Handler) -> None:
        with self._lock:
            self._handlers.append(handler)
            for logger in self._loggers.values():
                logger.addHandler(handler)

    def create_logger(self, name: str) -> logging.Logger:
        """Logger ``<namespace>.<name>``, created once and reused."""
        full_name = f"{self._namespace}.{name}" if self._namespace else name
        with self._lock:
            logger = self._loggers.get(full_name)
            if logger is None:
                logger = logging.getLogger(full_name)
                logger.propagate = False
                logger.setLevel(logging.DEBUG)
                for handler in self._handlers:
                    if handler not in logger.handlers:
                        logger.addHandler(handler)
                self._loggers[full_name] = logger
            return logger

    def get_context(self) -> Dict[str, Any]:
        return self._context.get_context()

    @contextmanager
    def context(self, **kwargs: Any):
        with self._context.context(**kwargs):
            yield

    def reset(self) -> None:
        """Drop handlers but keep registered loggers so reconfiguration reaches them."""
        with self._lock:
            self._drop_handlers()

    def shutdown(self) -> None:
        with self._lock:
            self._drop_handlers()
            self._loggers.clear()
            self._context.clear_context()

    def _json_handler(self, log_file: Path, level: Level) -> logging.Handler:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file)
        handler.setFormatter(StructuredFormatter(include_context=True, context_getter=self._context.get_context))
        handler.setLevel(level)
        return handler

    def _drop_handlers(self) -> None:
        for logger in self._loggers.values():
            for handler in self._handlers:
                logger.removeHandler(handler)
        for handler in self._handlers:
            try:
                handler.close()
            except (OSError, RuntimeError):
                logging.getLogger(__name__).debug("Handler %r failed to close", handler)
        self._handlers = []
        self._configured = False


class StandardLoggerFactory:
    """LoggerFactory backed by its own configured IsolatedLogManager."""

    def __init__(self,
                 namespace: Optional[str] = None,
                 level: Level = logging.INFO,
                 log_file: Optional[Path] = None,
                 enable_json: bool = True,
                 enable_console: bool = True,
                 console_level: Optional[Level] = None) -> None:
        self._manager = IsolatedLogManager(namespace or "")
        self._manager.configure(
            level=level,
            log_file=log_file,
            enable_json=enable_json,
            enable_console=enable_console,
            console_level=console_level,
        )

    def create_logger(self, name: str) -> logging.Logger:
        return self._manager.create_logger(name)

    def shutdown(self) -> None:
        self._manager.shutdown()

    @contextmanager
    def context(self, **kwargs: Any):
        with self._manager.context(**kwargs):
            yield
