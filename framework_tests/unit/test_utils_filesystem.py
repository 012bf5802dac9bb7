"""Tests for filesystem helpers."""

from pathlib import Path

import pytest

from regsuite.core.errors import FilesystemError, PathError
from regsuite.utils.filesystem import is_ancestor, list_dir, read_text, root_relative


class TestReadText:
    """Test read_text error mapping."""

    def test_read(self, temp_dir):
        """Test reading with an explicit encoding."""
        path = temp_dir / "TEST.properties"
        path.write_bytes("keys=café\n".encode("latin-1"))
        assert read_text(path, encoding="latin-1") == "keys=café\n"

    def test_missing(self, temp_dir):
        """Test a missing file."""
        with pytest.raises(PathError, match="File not found"):
            read_text(temp_dir / "missing.txt")

    def test_bad_encoding(self, temp_dir):
        """Test undecodable content."""
        path = temp_dir / "bad.txt"
        path.write_bytes(b"\xff\xfe\xfa")
        with pytest.raises(FilesystemError, match="Encoding error"):
            read_text(path)


class TestListDir:
    """Test list_dir."""

    def test_sorted(self, temp_dir):
        """Test entries come back in name order."""
        for name in ("b.java", "a", "c.sh"):
            (temp_dir / name).touch()
        assert [p.name for p in list_dir(temp_dir)] == ["a", "b.java", "c.sh"]

    def test_missing(self, temp_dir):
        """Test a missing directory."""
        with pytest.raises(PathError, match="Directory not found"):
            list_dir(temp_dir / "nope")


class TestPathHelpers:
    """Test path predicates."""

    def test_is_ancestor(self):
        """Test ancestry includes the path itself."""
        root = Path("/suite")
        assert is_ancestor(root, root)
        assert is_ancestor(root, root / "a" / "B.java")
        assert not is_ancestor(root / "a", root / "ab")

    def test_root_relative(self):
        """Test slash-separated relative paths."""
        assert root_relative(Path("/suite"), Path("/suite/a/B.java")) == "a/B.java"
        with pytest.raises(PathError):
            root_relative(Path("/suite"), Path("/other/B.java"))
