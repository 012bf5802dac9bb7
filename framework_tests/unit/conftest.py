"""
Pytest configuration and fixtures for framework unit tests.
Keeps the global logging and configuration state from leaking between tests.
"""

import pytest
from typing import Generator


@pytest.fixture(autouse=True)
def cleanup_logging() -> Generator[None, None, None]:
    """Reset the global logging configuration after each test."""
    yield

    from regsuite.core.log import reset_logging

    reset_logging()


@pytest.fixture(autouse=True)
def reset_global_config() -> Generator[None, None, None]:
    """Forget configuration loaded through the module-level helpers."""
    yield

    from regsuite.core import config

    config._config_manager._config = None
