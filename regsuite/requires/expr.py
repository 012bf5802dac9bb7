"""Requirement expressions: the ``@requires`` language.

An expression is parsed once into an immutable tree and then used in two
separate passes:

* ``Expr.validate_names(known)`` checks that every referenced property name
  is legal for the suite, before any target JDK exists;
* ``Expr.evaluate(context)`` resolves names against a full ``ExprContext``
  and yields a boolean.

Every value is a string. Arithmetic and ordering operators parse their
operands as integers; ``==`` and ``!=`` compare case-insensitively and
``~=`` is a full regular-expression match.
"""

import re
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Collection, Dict, Iterator, List, Optional, Protocol, Union

from ..core.errors import ExprFault

VM_OPT_PREFIX = "vm.opt."

_SCALES = {"k": 1024, "m": 1024 ** 2, "g": 1024 ** 3}
_STRING_ESCAPES = {
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    "'": "'",
    '"': '"',
}


class ValueSource(Protocol):
    """Anything an expression can be evaluated against."""

    def get(self, name: str) -> str:
        """Value of ``name``; ``"null"`` when undefined; ExprFault when erroring."""

    def is_valid_name(self, name: str) -> bool:
        """Whether ``name`` may appear in an expression."""


NameSet = Union[ValueSource, Collection[str], Callable[[str], bool]]


class Token(Enum):
    ADD = "+"
    AND = "&"
    DIV = "/"
    END = "<end-of-expression>"
    EQ = "=="
    FALSE = "false"
    GE = ">="
    GT = ">"
    LE = "<="
    LPAREN = "("
    LT = "<"
    MATCH = "~="
    MUL = "*"
    NAME = "<name>"
    NE = "!="
    NOT = "!"
    NUMBER = "<number>"
    OR = "|"
    REM = "%"
    RPAREN = ")"
    STRING = "<string>"
    SUB = "-"
    TRUE = "true"

    @property
    def text(self) -> str:
        return self.value if self.value.startswith("<") else f"'{self.value}'"


# Binding strength of each binary operator; higher binds tighter.
PRECEDENCE: Dict[Token, int] = {
    Token.OR: 0,
    Token.AND: 1,
    Token.EQ: 2,
    Token.NE: 2,
    Token.MATCH: 2,
    Token.LT: 3,
    Token.LE: 3,
    Token.GT: 3,
    Token.GE: 3,
    Token.ADD: 4,
    Token.SUB: 4,
    Token.MUL: 5,
    Token.DIV: 5,
    Token.REM: 5,
}


def truth(value: str) -> bool:
    """Boolean reading of a property value.

    ``"true"`` is true; ``"false"``, ``"null"`` and the empty string are
    false; any other value counts as set, hence true.
    """
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered in ("false", "null", ""):
        return False
    return True


def to_number(value: str) -> int:
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        raise ExprFault(f"invalid numeric value: {value}") from None


class Expr:
    """Base class of parsed requirement expressions."""

    source: Optional[str] = None

    def eval_value(self, context: ValueSource) -> str:
        raise NotImplementedError

    def evaluate(self, context: ValueSource) -> bool:
        """Evaluate against a full context. Raises ExprFault."""
        return truth(self.eval_value(context))

    def names(self) -> Iterator[str]:
        """Referenced property names, in source order."""
        return iter(())

    def validate_names(self, known: NameSet) -> "Expr":
        """Check every referenced name against ``known``. Returns self."""
        check = _name_checker(known)
        for name in self.names():
            if not check(name):
                raise ExprFault(f"invalid name: {name}")
        return self


@dataclass(frozen=True)
class NameExpr(Expr):
    name: str

    def eval_value(self, context: ValueSource) -> str:
        return context.get(self.name)

    def names(self) -> Iterator[str]:
        yield self.name

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class StringExpr(Expr):
    value: str

    def eval_value(self, context: ValueSource) -> str:
        return self.value

    def __str__(self) -> str:
        return f'"{self.value}"'


@dataclass(frozen=True)
class NumberExpr(Expr):
    literal: str

    def eval_value(self, context: ValueSource) -> str:
        scale = _SCALES.get(self.literal[-1].lower())
        if scale is None:
            return self.literal
        return str(to_number(self.literal[:-1]) * scale)

    def __str__(self) -> str:
        return self.literal


@dataclass(frozen=True)
class BooleanExpr(Expr):
    value: bool

    def eval_value(self, context: ValueSource) -> str:
        return "true" if self.value else "false"

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class NotExpr(Expr):
    operand: Expr

    def eval_value(self, context: ValueSource) -> str:
        return "false" if self.operand.evaluate(context) else "true"

    def names(self) -> Iterator[str]:
        return self.operand.names()

    def __str__(self) -> str:
        return f"!{self.operand}"


@dataclass(frozen=True)
class ParenExpr(Expr):
    inner: Expr

    def eval_value(self, context: ValueSource) -> str:
        return self.inner.eval_value(context)

    def names(self) -> Iterator[str]:
        return self.inner.names()

    def __str__(self) -> str:
        return f"({self.inner})"


@dataclass(frozen=True)
class BinaryExpr(Expr):
    op: Token
    left: Expr
    right: Expr

    def eval_value(self, context: ValueSource) -> str:
        op = self.op
        if op is Token.AND:
            # Both sides are evaluated so that faults on either side surface.
            left, right = self.left.evaluate(context), self.right.evaluate(context)
            return _bool(left and right)
        if op is Token.OR:
            left, right = self.left.evaluate(context), self.right.evaluate(context)
            return _bool(left or right)
        if op is Token.EQ:
            return _bool(_fold(self.left.eval_value(context)) == _fold(self.right.eval_value(context)))
        if op is Token.NE:
            return _bool(_fold(self.left.eval_value(context)) != _fold(self.right.eval_value(context)))
        if op is Token.MATCH:
            pattern = self.right.eval_value(context)
            try:
                return _bool(re.fullmatch(pattern, self.left.eval_value(context)) is not None)
            except re.error as e:
                raise ExprFault(f"invalid regular expression: {pattern}: {e}") from e

        left_n = to_number(self.left.eval_value(context))
        right_n = to_number(self.right.eval_value(context))
        if op is Token.LT:
            return _bool(left_n < right_n)
        if op is Token.LE:
            return _bool(left_n <= right_n)
        if op is Token.GT:
            return _bool(left_n > right_n)
        if op is Token.GE:
            return _bool(left_n >= right_n)
        if op is Token.ADD:
            return str(left_n + right_n)
        if op is Token.SUB:
            return str(left_n - right_n)
        if op is Token.MUL:
            return str(left_n * right_n)
        if right_n == 0:
            raise ExprFault(f"division by zero in expression {self}")
        # Integer division and remainder truncate toward zero.
        quotient = abs(left_n) // abs(right_n)
        if (left_n < 0) != (right_n < 0):
            quotient = -quotient
        if op is Token.DIV:
            return str(quotient)
        return str(left_n - quotient * right_n)

    def names(self) -> Iterator[str]:
        yield from self.left.names()
        yield from self.right.names()

    def __str__(self) -> str:
        return f"{self.left} {self.op.value} {self.right}"


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _fold(value: str) -> str:
    return value.casefold()


def _name_checker(known: NameSet) -> Callable[[str], bool]:
    if hasattr(known, "is_valid_name"):
        return known.is_valid_name  # type: ignore[union-attr]
    if callable(known):
        return known
    names = known
    return lambda name: name in names or name == "null" or name.startswith(VM_OPT_PREFIX)


class _Lexer:
    def __init__(self, text: str) -> None:
        self.text = text
        self.index = 0
        self.token = Token.END
        self.value = ""
        self.advance()

    def advance(self) -> None:
        text = self.text
        while self.index < len(text):
            c = text[self.index]
            self.index += 1
            if c in " \t\r\n":
                continue
            if c in "&|+-*/%()":
                self.token = Token(c)
                return
            if c in "<>":
                if self._peek("="):
                    self.token = Token.LE if c == "<" else Token.GE
                else:
                    self.token = Token.LT if c == "<" else Token.GT
                return
            if c == "~":
                if not self._peek("="):
                    raise ExprFault("unexpected character after `~'")
                self.token = Token.MATCH
                return
            if c == "=":
                if not self._peek("="):
                    raise ExprFault("unexpected character after `='")
                self.token = Token.EQ
                return
            if c == "!":
                self.token = Token.NE if self._peek("=") else Token.NOT
                return
            if c == '"':
                self.value = self._read_string()
                self.token = Token.STRING
                return
            if c.isalpha() or c == "_":
                start = self.index - 1
                while self.index < len(text) and (text[self.index].isalnum() or text[self.index] in "_."):
                    self.index += 1
                word = text[start:self.index]
                lowered = word.lower()
                if lowered == "true":
                    self.token = Token.TRUE
                elif lowered == "false":
                    self.token = Token.FALSE
                else:
                    self.token = Token.NAME
                self.value = word
                return
            if c.isdigit():
                start = self.index - 1
                while self.index < len(text) and text[self.index].isdigit():
                    self.index += 1
                if self.index < len(text) and text[self.index].lower() in _SCALES:
                    self.index += 1
                self.value = text[start:self.index]
                self.token = Token.NUMBER
                return
            raise ExprFault(f"unrecognized character: `{c}'")
        self.token = Token.END

    def _peek(self, expected: str) -> bool:
        if self.text.startswith(expected, self.index):
            self.index += len(expected)
            return True
        return False

    def _read_string(self) -> str:
        text = self.text
        chars: List[str] = []
        while self.index < len(text):
            c = text[self.index]
            self.index += 1
            if c == '"':
                return "".join(chars)
            if c == "\\":
                if self.index >= len(text):
                    break
                escaped = _STRING_ESCAPES.get(text[self.index])
                if escaped is None:
                    break
                self.index += 1
                c = escaped
            chars.append(c)
        raise ExprFault("invalid string constant")


class _Parser:
    def __init__(self, text: str) -> None:
        self.lexer = _Lexer(text)

    def parse(self) -> Expr:
        expr = self.parse_binary(0)
        self.expect(Token.END)
        return expr

    def parse_binary(self, min_precedence: int) -> Expr:
        left = self.parse_term()
        while True:
            op = self.lexer.token
            precedence = PRECEDENCE.get(op)
            if precedence is None or precedence < min_precedence:
                return left
            self.lexer.advance()
            right = self.parse_binary(precedence + 1)
            left = BinaryExpr(op, left, right)

    def parse_term(self) -> Expr:
        lexer = self.lexer
        token, value = lexer.token, lexer.value
        if token is Token.NAME:
            lexer.advance()
            return NameExpr(value)
        if token is Token.NOT:
            lexer.advance()
            return NotExpr(self.parse_term())
        if token is Token.NUMBER:
            lexer.advance()
            return NumberExpr(value)
        if token in (Token.TRUE, Token.FALSE):
            lexer.advance()
            return BooleanExpr(token is Token.TRUE)
        if token is Token.STRING:
            lexer.advance()
            return StringExpr(value)
        if token is Token.LPAREN:
            lexer.advance()
            inner = self.parse_binary(0)
            self.expect(Token.RPAREN)
            return ParenExpr(inner)
        raise ExprFault(f"{token.text} not expected")

    def expect(self, token: Token) -> None:
        if self.lexer.token is not token:
            raise ExprFault(f"{token.text} expected, but {self.lexer.token.text} found")
        self.lexer.advance()


def parse(text: str, known: Optional[NameSet] = None) -> Expr:
    """Parse ``text``; when ``known`` is given also validate referenced names.

    Raises:
        ExprFault: on a syntax error or an invalid name
    """
    expr = _Parser(text).parse()
    object.__setattr__(expr, "source", text)
    if known is not None:
        expr.validate_names(known)
    return expr


class ExpressionCache:
    """Parsed expressions keyed by source text, owned by one run.

    Syntax faults are not cached; re-parsing the same bad text raises again.
    """

    def __init__(self) -> None:
        self._cache: Dict[str, Expr] = {}
        self._lock = threading.Lock()

    def get(self, text: str) -> Expr:
        with self._lock:
            cached = self._cache.get(text)
        if cached is not None:
            return cached
        expr = parse(text)
        with self._lock:
            return self._cache.setdefault(text, expr)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, text: str) -> bool:
        with self._lock:
            return text in self._cache

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
