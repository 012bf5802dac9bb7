"""Tests for the @requires expression language."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from regsuite.core.errors import ExprFault
from regsuite.requires.context import ExprContext, error_value
from regsuite.requires.expr import (
    BinaryExpr,
    ExpressionCache,
    NameExpr,
    NotExpr,
    ParenExpr,
    Token,
    parse,
    truth,
)


def evaluate(text, **values):
    return parse(text).evaluate(ExprContext(values))


class TestTruth:
    """Test boolean reading of property values."""

    def test_true_and_false(self):
        """Test the literal spellings."""
        assert truth("true") is True
        assert truth("TRUE") is True
        assert truth("false") is False

    def test_null_and_empty_are_false(self):
        """Test that unset values read as false."""
        assert truth("null") is False
        assert truth("") is False

    def test_other_values_are_true(self):
        """Test that any other value counts as set."""
        assert truth("G1") is True
        assert truth("0") is True


class TestParsing:
    """Test expression parsing and tree shape."""

    def test_name(self):
        """Test a bare property name."""
        expr = parse("vm.hasJFR")
        assert isinstance(expr, NameExpr)
        assert expr.name == "vm.hasJFR"
        assert expr.source == "vm.hasJFR"

    def test_and_binds_tighter_than_or(self):
        """Test operator precedence of & over |."""
        expr = parse("a | b & c")
        assert isinstance(expr, BinaryExpr)
        assert expr.op is Token.OR
        assert isinstance(expr.right, BinaryExpr)
        assert expr.right.op is Token.AND

    def test_not_applies_to_term(self):
        """Test that ! binds to the following term only."""
        expr = parse("!a & b")
        assert isinstance(expr, BinaryExpr)
        assert isinstance(expr.left, NotExpr)

    def test_parentheses_are_kept(self):
        """Test that grouping survives in the tree."""
        expr = parse("(a | b) & c")
        assert isinstance(expr.left, ParenExpr)
        assert str(expr) == "(a | b) & c"

    def test_names_in_source_order(self):
        """Test that referenced names are reported in order."""
        assert list(parse('os.arch == "x" | vm.gc ~= "G1" & !jdk.debug').names()) == [
            "os.arch", "vm.gc", "jdk.debug",
        ]

    @pytest.mark.parametrize(
        "text",
        ["", "a &", "a = b", "(a", "a)", "a ~ b", '"unterminated', "a $ b", '"bad\\q"'],
    )
    def test_syntax_errors(self, text):
        """Test that malformed expressions raise ExprFault."""
        with pytest.raises(ExprFault):
            parse(text)

    def test_validate_names_against_collection(self):
        """Test name validation against a set of known names."""
        known = {"os.family"}
        parse("os.family == \"linux\"", known)
        parse("vm.opt.UseZGC & null", known)
        with pytest.raises(ExprFault, match="invalid name: os.bogus"):
            parse("os.bogus", known)

    def test_validate_names_against_callable(self):
        """Test name validation with a predicate."""
        with pytest.raises(ExprFault):
            parse("a & b", lambda name: name == "a")


class TestEvaluation:
    """Test evaluation against a context."""

    def test_boolean_operators(self):
        """Test &, | and ! over property values."""
        assert evaluate("a & b", a="true", b="true") is True
        assert evaluate("a & b", a="true", b="false") is False
        assert evaluate("a | b", a="false", b="true") is True
        assert evaluate("!a", a="false") is True
        assert evaluate("true | false & false") is True

    def test_platform_and_gc(self):
        """Test a typical combined platform requirement."""
        text = 'os.family == "linux" & vm.gc == "G1"'
        assert evaluate(text, **{"os.family": "linux", "vm.gc": "G1"}) is True
        assert evaluate(text, **{"os.family": "windows"}) is False

    def test_undefined_name_is_null(self):
        """Test that an unknown name evaluates as null, hence false."""
        assert evaluate("missing") is False
        assert evaluate("missing == null", null="null") is True

    def test_equality_is_case_insensitive(self):
        """Test == and != ignore case."""
        assert evaluate('os.family == "LINUX"', **{"os.family": "linux"}) is True
        assert evaluate('os.family != "Linux"', **{"os.family": "linux"}) is False

    def test_regex_match_is_full(self):
        """Test ~= requires a full match."""
        values = {"vm.gc": "Parallel"}
        assert evaluate('vm.gc ~= "G1|Parallel"', **values) is True
        assert evaluate('vm.gc ~= "Par"', **values) is False

    def test_invalid_regex(self):
        """Test a bad pattern raises ExprFault."""
        with pytest.raises(ExprFault, match="invalid regular expression"):
            evaluate('a ~= "("', a="x")

    def test_numeric_comparison_and_scale(self):
        """Test numbers with k/m/g suffixes."""
        values = {"os.maxMemory": str(8 * 1024 ** 3)}
        assert evaluate("os.maxMemory >= 4g", **values) is True
        assert evaluate("os.maxMemory < 2048m", **values) is False
        assert evaluate("2k == 2048") is True

    def test_arithmetic(self):
        """Test integer arithmetic and precedence."""
        assert evaluate("1 + 2 * 3 == 7") is True
        assert evaluate("7 / 2 == 3") is True
        assert evaluate("7 % 4 == 3") is True

    def test_division_truncates_toward_zero(self):
        """Test negative quotient and remainder."""
        assert evaluate("(0 - 7) / 2 == 0 - 3") is True
        assert evaluate("(0 - 7) % 2 == 0 - 1") is True

    def test_division_by_zero(self):
        """Test division by zero is a fault."""
        with pytest.raises(ExprFault, match="division by zero"):
            evaluate("1 / 0 == 0")

    def test_non_numeric_operand(self):
        """Test ordering a non-numeric value is a fault."""
        with pytest.raises(ExprFault, match="invalid numeric value"):
            evaluate("a < 3", a="abc")

    def test_string_escapes(self):
        """Test escapes in string constants."""
        assert evaluate('a == "x\\"y"', a='x"y') is True

    def test_both_sides_evaluated(self):
        """Test a fault on the right of & surfaces even when the left is false."""
        with pytest.raises(ExprFault, match="x: boom"):
            evaluate("false & x", x=error_value("boom"))


class TestExpressionCache:
    """Test the per-run parse cache."""

    def test_get_returns_cached_tree(self):
        """Test the same text yields the same tree."""
        cache = ExpressionCache()
        first = cache.get("a & b")
        assert cache.get("a & b") is first
        assert "a & b" in cache
        assert len(cache) == 1

    def test_syntax_error_not_cached(self):
        """Test bad text raises on every lookup."""
        cache = ExpressionCache()
        for _ in range(2):
            with pytest.raises(ExprFault):
                cache.get("a &")
        assert len(cache) == 0

    def test_clear(self):
        """Test clearing the cache."""
        cache = ExpressionCache()
        cache.get("a")
        cache.clear()
        assert len(cache) == 0

    def test_shared_between_threads(self):
        """Test concurrent lookups agree on one tree per text."""
        cache = ExpressionCache()
        texts = [f"a{i % 5} & b" for i in range(200)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            trees = list(pool.map(cache.get, texts))
        assert len(cache) == 5
        assert all(text in cache for text in texts)
        assert all(tree is cache.get(text) for text, tree in zip(texts, trees))
