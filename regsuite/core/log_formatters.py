"""Shared logging formatters and context management."""

import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from contextlib import contextmanager

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text
from rich.theme import Theme


class LogContext:
    """Per-thread key/value fields attached to structured log records."""

    def __init__(self) -> None:
        self._local = threading.local()

    def _fields(self) -> Dict[str, Any]:
        fields = getattr(self._local, "fields", None)
        if fields is None:
            fields = self._local.fields = {}
        return fields

    def set_context(self, **kwargs: Any) -> None:
        self._fields().update(kwargs)

    def get_context(self) -> Dict[str, Any]:
        """Copy of the calling thread's fields."""
        return dict(self._fields())

    def clear_context(self) -> None:
        self._fields().clear()

    @contextmanager
    def context(self, **kwargs: Any):
        """Add ``kwargs`` for the duration of the block, then restore the previous fields."""
        saved = self.get_context()
        self.set_context(**kwargs)
        try:
            yield
        finally:
            fields = self._fields()
            fields.clear()
            fields.update(saved)


# Shared by the global log manager and the module-level helpers in log.py
_log_context = LogContext()

# Attributes every LogRecord carries; anything else on a record came from ``extra``
_RESERVED_RECORD_KEYS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """JSON-lines formatter for structured logging."""

    def __init__(
        self,
        include_context: bool = True,
        context_getter: Optional[Callable[[], Dict[str, Any]]] = None,
    ) -> None:
        super().__init__()
        self.include_context = include_context
        self._context_getter = context_getter or _log_context.get_context

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_KEYS
        }
        if extra_fields:
            log_entry["fields"] = extra_fields

        if self.include_context:
            context = self._context_getter()
            if context:
                log_entry["context"] = context

        return json.dumps(log_entry, default=str)


class RegsuiteRichHandler(RichHandler):
    """Rich handler that colours finder, filter and group events."""

    STYLE_MAP = {
        "finder": "regsuite.finder",
        "filter": "regsuite.filter",
        "group": "regsuite.group",
        "test": "regsuite.test",
        "event": "regsuite.event",
    }

    def __init__(self, *args, **kwargs):
        theme = Theme(
            {
                "logging.level.debug": "dim cyan",
                "logging.level.info": "dim blue",
                "logging.level.warning": "yellow",
                "logging.level.error": "red",
                "logging.level.critical": "bold red",
                "regsuite.event": "bright_green",
                "regsuite.finder": "bright_blue",
                "regsuite.filter": "bright_yellow",
                "regsuite.group": "bright_cyan",
                "regsuite.test": "bright_magenta",
            }
        )

        console = Console(theme=theme, stderr=True)
        super().__init__(*args, console=console, **kwargs)

    def render_message(self, record: logging.LogRecord, message: str) -> Text:
        """Render message with event-type styling."""
        text = Text(message)
        event_type = getattr(record, "event_type", None)
        if event_type in self.STYLE_MAP:
            text.stylize(self.STYLE_MAP[event_type])
        return text
