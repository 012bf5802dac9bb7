"""Keyword names and ``-k`` style keyword expressions."""

from dataclasses import dataclass
from typing import AbstractSet, Iterable

from ..core.errors import ExprFault, KeywordError
from ..requires.expr import BinaryExpr, Expr, NameExpr, NotExpr, ParenExpr, Token, parse


def validate_key(key: str) -> str:
    """Check a keyword declared by a suite or a test; returns the stored form.

    A key starts with a letter or ``_`` and continues with letters, digits,
    ``_`` or ``-``. The stored form has every ``-`` replaced by ``_``.

    Raises:
        KeywordError: if the key is empty or contains an invalid character
    """
    if not key:
        raise KeywordError("empty")
    first = key[0]
    if not (first.isalpha() or first == "_"):
        raise KeywordError(f"invalid character: {first}")
    for ch in key[1:]:
        if not (ch.isalnum() or ch in "_-"):
            raise KeywordError(f"invalid character: {ch}")
    return key.replace("-", "_")


class _KeywordSet:
    """Evaluation context answering keyword membership."""

    def __init__(self, keywords: Iterable[str]) -> None:
        self._keywords = frozenset(keywords)

    def get(self, name: str) -> str:
        return "true" if name in self._keywords else "false"

    def is_valid_name(self, name: str) -> bool:
        return True


@dataclass(frozen=True)
class KeywordExpression:
    """Boolean combination of keyword names with ``&``, ``|``, ``!`` and parentheses."""

    text: str
    expr: Expr

    @classmethod
    def parse(cls, text: str) -> "KeywordExpression":
        """Parse ``text``; ``-`` inside a name is read as ``_``.

        Raises:
            KeywordError: on a syntax error or a non-keyword operand
        """
        normalized = _normalize_names(text)
        try:
            expr = parse(normalized)
        except ExprFault as e:
            raise KeywordError(f"Invalid keyword expression: {text}: {e.message}") from e
        _check_keyword_only(expr, text)
        return cls(text, expr)

    def accepts(self, keywords: AbstractSet[str]) -> bool:
        return self.expr.evaluate(_KeywordSet(keywords))

    def __str__(self) -> str:
        return self.text


def _normalize_names(text: str) -> str:
    chars = list(text)
    for i, ch in enumerate(chars):
        if ch == "-" and 0 < i < len(chars) - 1:
            before, after = chars[i - 1], chars[i + 1]
            if (before.isalnum() or before == "_") and (after.isalnum() or after == "_"):
                chars[i] = "_"
    return "".join(chars)


def _check_keyword_only(expr: Expr, text: str) -> None:
    if isinstance(expr, NameExpr):
        return
    if isinstance(expr, NotExpr):
        _check_keyword_only(expr.operand, text)
    elif isinstance(expr, ParenExpr):
        _check_keyword_only(expr.inner, text)
    elif isinstance(expr, BinaryExpr) and expr.op in (Token.AND, Token.OR):
        _check_keyword_only(expr.left, text)
        _check_keyword_only(expr.right, text)
    else:
        raise KeywordError(f"Invalid keyword expression: {text}: unexpected term {expr}")
