"""Filesystem helpers with regsuite error mapping."""

from pathlib import Path
from typing import List

from ..core.errors import FilesystemError, PathError
from ..core.log import get_logger

logger = get_logger(__name__)


def read_text(path: Path, encoding: str = "utf-8") -> str:
    """Read text file with proper error handling."""
    try:
        return Path(path).read_text(encoding=encoding)
    except FileNotFoundError as e:
        raise PathError(f"File not found: {path}") from e
    except PermissionError as e:
        raise FilesystemError(f"Permission denied reading {path}") from e
    except UnicodeDecodeError as e:
        raise FilesystemError(f"Encoding error reading {path}: {e}") from e
    except OSError as e:
        raise FilesystemError(f"Error reading {path}: {e}") from e


def list_dir(directory: Path) -> List[Path]:
    """List directory entries in name order."""
    try:
        directory = Path(directory)
        if not directory.is_dir():
            raise PathError(f"Directory not found: {directory}")
        return sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise FilesystemError(f"Error listing files in {directory}: {e}") from e


def is_ancestor(ancestor: Path, path: Path) -> bool:
    """True if ``ancestor`` is ``path`` or one of its parent directories."""
    return ancestor == path or ancestor in path.parents


def root_relative(root: Path, path: Path) -> str:
    """Slash-separated path of ``path`` relative to ``root``."""
    try:
        return Path(path).relative_to(root).as_posix()
    except ValueError as e:
        raise PathError(f"{path} is not inside {root}") from e
