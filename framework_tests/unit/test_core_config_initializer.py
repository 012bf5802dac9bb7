"""Tests for configuration initialization."""

import pytest

from regsuite.core.config_initializer import find_suite_root, initialize_config
from regsuite.core.errors import ConfigurationError, PathError
from regsuite.core.types import RegsuiteConfig


class TestFindSuiteRoot:
    """Test upward search for TEST.ROOT."""

    def test_from_nested_directory(self, suite_root):
        """Test the nearest marker wins."""
        nested = suite_root / "a" / "b"
        nested.mkdir(parents=True)
        assert find_suite_root(nested) == suite_root.resolve()

    def test_from_file(self, suite_root):
        """Test starting at a file."""
        test_file = suite_root / "T.java"
        test_file.write_text("class T {}\n")
        assert find_suite_root(test_file) == suite_root.resolve()

    def test_nested_suite(self, suite_root):
        """Test an inner suite shadows the outer one."""
        inner = suite_root / "inner"
        inner.mkdir()
        (inner / "TEST.ROOT").write_text("")
        assert find_suite_root(inner / "x") == inner.resolve()

    def test_not_found(self, temp_dir):
        """Test a tree with no marker."""
        assert find_suite_root(temp_dir) is None


class TestInitializeConfig:
    """Test initialize_config side effects."""

    def test_explicit_root(self, suite_root):
        """Test a configured root is resolved."""
        config = initialize_config(RegsuiteConfig(suite_root=suite_root))
        assert config.suite_root == suite_root.resolve()

    def test_auto_detect(self, suite_root):
        """Test the root is found from a start directory."""
        start = suite_root / "dir"
        start.mkdir()
        config = initialize_config(RegsuiteConfig(), start=start)
        assert config.suite_root == suite_root.resolve()

    def test_auto_detect_fails(self, temp_dir):
        """Test no root above the start directory."""
        with pytest.raises(ConfigurationError, match="No TEST.ROOT"):
            initialize_config(RegsuiteConfig(), start=temp_dir)

    def test_not_a_suite(self, temp_dir):
        """Test a configured root without TEST.ROOT."""
        with pytest.raises(ConfigurationError, match="not a suite root"):
            initialize_config(RegsuiteConfig(suite_root=temp_dir))

    def test_list_files_resolved(self, suite_root):
        """Test exclude and match lists must exist."""
        problems = suite_root / "ProblemList.txt"
        problems.write_text("")
        config = initialize_config(RegsuiteConfig(suite_root=suite_root, exclude_lists=[problems]))
        assert config.exclude_lists == [problems.resolve()]

        with pytest.raises(PathError, match="List file not found"):
            initialize_config(RegsuiteConfig(suite_root=suite_root, match_lists=[suite_root / "missing.txt"]))

    def test_log_file(self, suite_root):
        """Test a log file is attached."""
        log_file = suite_root / "regsuite.log"
        initialize_config(RegsuiteConfig(suite_root=suite_root, log_file=log_file))
        assert log_file.exists()
