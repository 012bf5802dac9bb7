"""Configuration initialization with side effects separated from validation.

``RegsuiteConfig`` validation is pure. ``initialize_config()`` performs the
filesystem work a run needs before a ``RunContext`` can be built:

- locating the suite root (the nearest directory holding ``TEST.ROOT``)
- normalizing exclude/match list paths
- attaching file logging when a log file is configured
"""

from pathlib import Path
from typing import Optional

from .types import RegsuiteConfig
from .errors import ConfigurationError, PathError
from .log import get_logger, add_file_logging

logger = get_logger(__name__)

SUITE_ROOT_MARKER = "TEST.ROOT"


def find_suite_root(start: Path) -> Optional[Path]:
    """Return the nearest directory at or above ``start`` containing TEST.ROOT."""
    current = Path(start).resolve()
    if current.is_file():
        current = current.parent
    for candidate in (current, *current.parents):
        if (candidate / SUITE_ROOT_MARKER).is_file():
            return candidate
    return None


def initialize_config(config: RegsuiteConfig, start: Optional[Path] = None) -> RegsuiteConfig:
    """Initialize configuration with side effects.

    Args:
        config: Validated configuration object
        start: Where to begin the upward search for TEST.ROOT when
            ``config.suite_root`` is unset (defaults to the current directory)

    Returns:
        The same configuration with ``suite_root`` resolved

    Raises:
        ConfigurationError: If no suite root can be determined
        PathError: If a configured list file does not exist
    """
    logger.debug("Initializing configuration")

    if config.suite_root is None:
        detected = find_suite_root(start or Path.cwd())
        if detected is None:
            raise ConfigurationError(
                f"No {SUITE_ROOT_MARKER} found at or above {start or Path.cwd()}"
            )
        config.suite_root = detected
        logger.info("Auto-detected suite root: %s", detected)
    else:
        root = Path(config.suite_root).resolve()
        if not (root / SUITE_ROOT_MARKER).is_file():
            raise ConfigurationError(f"{root} is not a suite root: {SUITE_ROOT_MARKER} missing")
        config.suite_root = root

    for attr in ("exclude_lists", "match_lists"):
        resolved = []
        for list_file in getattr(config, attr):
            list_path = Path(list_file).resolve()
            if not list_path.is_file():
                raise PathError(f"List file not found: {list_path}")
            resolved.append(list_path)
        setattr(config, attr, resolved)

    if config.log_file is not None:
        add_file_logging(config.log_file)
        logger.debug("Writing structured log to %s", config.log_file)

    logger.debug("Configuration initialization complete")
    return config
