"""Test configuration and fixtures for framework unit tests."""

import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Callable, Dict
from unittest.mock import patch

from regsuite.core.types import RegsuiteConfig
from regsuite.requires.host import OSInfo


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp(prefix="regsuite_test_"))
    try:
        yield temp_path
    finally:
        if temp_path.exists():
            shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def write_files() -> Callable[[Path, Dict[str, str]], Path]:
    """Write a mapping of relative path to content below a directory."""

    def _write(base: Path, files: Dict[str, str]) -> Path:
        for relative, content in files.items():
            path = base / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="latin-1")
        return base

    return _write


@pytest.fixture
def suite_root(temp_dir, write_files):
    """A minimal suite: an empty TEST.ROOT and nothing else."""
    return write_files(temp_dir, {"TEST.ROOT": ""})


@pytest.fixture
def linux_host():
    """Fixed host facts so tests do not depend on the machine."""
    return OSInfo(
        name="Linux",
        arch="amd64",
        version="5.15.0-91-generic",
        processors=8,
        max_memory=16 * 1024 ** 3,
        max_swap=2 * 1024 ** 3,
    )


@pytest.fixture
def mock_config(temp_dir):
    """Provide a configuration for testing."""
    return RegsuiteConfig(suite_root=temp_dir, log_level="WARNING")


@pytest.fixture
def isolated_environment(temp_dir):
    """Provide an isolated environment for tests."""
    with patch.dict("os.environ", {}, clear=True):
        yield temp_dir

