"""Tests for JSON output and properties decoding."""

from pathlib import Path

import pytest

from regsuite.core.enums import TestStatus
from regsuite.core.errors import DeserializationError, SerializationError
from regsuite.utils.codec import iter_properties, parse_properties, to_json_string


class TestParseProperties:
    """Test .properties decoding."""

    def test_separators(self):
        """Test '=', ':' and whitespace separators."""
        assert parse_properties("a=1\nb : 2\nc 3\nd\n") == {"a": "1", "b": "2", "c": "3", "d": ""}

    def test_comments_and_blanks(self):
        """Test comment lines are skipped."""
        text = "# hash\n! bang\n   # indented\n\nkey=value\n"
        assert parse_properties(text) == {"key": "value"}

    def test_continuation(self):
        """Test a trailing backslash joins the next line."""
        assert parse_properties("keys=a \\\n    b \\\n    c\n") == {"keys": "a b c"}

    def test_continuation_at_end_of_input(self):
        """Test a dangling continuation is dropped."""
        assert parse_properties("a=x\\") == {"a": "x"}

    def test_escaped_backslash_does_not_continue(self):
        """Test an even run of backslashes is literal."""
        assert parse_properties("a=x\\\\\nb=y\n") == {"a": "x\\", "b": "y"}

    def test_escapes(self):
        """Test escaped separators and control characters."""
        assert parse_properties("k\\ ey=v\\tal\\=ue") == {"k ey": "v\tal=ue"}

    def test_unicode_escape(self):
        """Test \\uXXXX escapes."""
        assert parse_properties("name=\\u0041\\u00e9") == {"name": "Aé"}

    def test_malformed_unicode_escape(self):
        """Test a bad \\u escape."""
        with pytest.raises(DeserializationError, match="Malformed"):
            parse_properties("name=\\u00zz")

    def test_duplicate_keeps_position(self):
        """Test a redefinition replaces the value in place."""
        assert list(parse_properties("a=1\nb=2\na=3\n").items()) == [("a", "3"), ("b", "2")]

    def test_line_numbers(self):
        """Test each entry reports its first line."""
        assert iter_properties("a=1\n\nb=\\\n 2\nc=3\n") == [("a", "1", 1), ("b", "2", 3), ("c", "3", 5)]


class TestToJsonString:
    """Test JSON output."""

    def test_custom_types(self):
        """Test paths, enums and sets."""
        text = to_json_string({"path": Path("a/b"), "status": TestStatus.FAILED, "keys": {"z", "a"}})
        assert text == (
            '{\n  "keys": [\n    "a",\n    "z"\n  ],\n  "path": "a/b",\n  "status": "failed"\n}'
        )

    def test_to_dict(self):
        """Test objects exposing to_dict."""
        class Item:
            def to_dict(self):
                return {"url": "a/B.java"}

        assert to_json_string([Item()]) == '[\n  {\n    "url": "a/B.java"\n  }\n]'

    def test_unsupported(self):
        """Test objects that cannot be encoded."""
        with pytest.raises(SerializationError):
            to_json_string({"x": object()})
