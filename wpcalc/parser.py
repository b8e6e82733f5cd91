"""wpcalc Parser: hand-rolled recursive descent over source substrings.

There is no token stream. Each rule trims its input, looks for the operator
that splits it at the top level (outside brackets) and recurses on the parts.

Statements:
  S := S ; S ; ...                                  -> Sequence
     | if ( P ) { S } else { S }                    -> Conditional
     | identifier := E                              -> Assignment

Predicates:
  P := P && P   (also ∧)                            -> Logical ∧
     | P || P   (also ∨)                            -> Logical ∨
     | ( P )
     | ¬ P      (also !)                            -> Not
     | true | false
     | E op E   op in >= <= == != > <               -> Comparison

Expressions (rightmost split gives left-associative trees):
  E := E + E | E - E | E * E | E / E | abs( E ) | - E | number | identifier | ( E )

Branch bodies of a conditional cannot contain braces, so conditionals do not
nest inside other conditionals.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from wpcalc.errors import ParseError, parse_error
from wpcalc.expressions import IDENTIFIER_RE, BinaryOp, Constant, Expression, UnaryOp, Variable
from wpcalc.predicates import (
    AND, COMPARISON_OPERATORS, FALSE, NOT_SIGN, OR, TRUE,
    Comparison, Logical, Not, Predicate,
)
from wpcalc.statements import Assignment, Conditional, Statement, sequence_of

logger = logging.getLogger(__name__)


DEFAULT_MAX_DEPTH = 200

CONDITIONAL_RE = re.compile(
    r"if\s*\((.+?)\)\s*\{([^{}]+)\}\s*else\s*\{([^{}]+)\}",
    re.DOTALL,
)
NUMBER_RE = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_EXPONENT_TAIL_RE = re.compile(r"(?:^|[^A-Za-z0-9_.])(?:\d+\.?\d*|\.\d+)[eE]$")

_AND_TOKENS = ("&&", AND)
_OR_TOKENS = ("||", OR)
_OPERATOR_CHARS = "+-*/("


def is_enclosed(text: str) -> bool:
    """True when the opening parenthesis at 0 is closed by the last character."""
    if not (text.startswith("(") and text.endswith(")")):
        return False
    depth = 0
    for i, c in enumerate(text):
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth == 0:
                return i == len(text) - 1
        if depth < 0:
            return False
    return False


def split_top_level_semicolons(text: str) -> List[str]:
    """Split on ';' outside of () and {}. A trailing empty part is dropped."""
    parts: List[str] = []
    current: List[str] = []
    depth = 0
    for c in text:
        if c in "({":
            depth += 1
        elif c in ")}":
            depth -= 1
        elif c == ";" and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(c)
    if "".join(current).strip():
        parts.append("".join(current))
    return parts


def split_top_level_logical(text: str, tokens: Tuple[str, ...]) -> Optional[Tuple[str, str]]:
    """Split at the first depth-zero occurrence of any of tokens."""
    depth = 0
    for i, c in enumerate(text):
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
        elif depth == 0:
            for token in tokens:
                if text.startswith(token, i):
                    return text[:i], text[i + len(token):]
    return None


def _operand(side: str, text: str) -> str:
    if not side.strip():
        raise parse_error("Missing operand", text)
    return side


def _is_unary_sign(text: str, index: int) -> bool:
    j = index - 1
    while j >= 0 and text[j].isspace():
        j -= 1
    if j < 0 or text[j] in _OPERATOR_CHARS:
        return True
    # the sign of an exponent, as in 1e-5
    return bool(text[j] in "eE" and _EXPONENT_TAIL_RE.search(text[: j + 1]))


def find_top_level_operator(text: str, operators: str, skip_unary: bool = False) -> int:
    """Index of the rightmost depth-zero operator at position > 0, or -1."""
    depth = 0
    for i in range(len(text) - 1, 0, -1):
        c = text[i]
        if c == ")":
            depth += 1
        elif c == "(":
            depth -= 1
        elif depth == 0 and c in operators:
            if skip_unary and _is_unary_sign(text, i):
                continue
            return i
    return -1


class Parser:
    """Recursive-descent parser with a bound on nesting depth."""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        self.max_depth = max_depth
        self._depth = 0

    def _enter(self, text: str) -> None:
        if self._depth >= self.max_depth:
            raise parse_error(f"Expression too deep (more than {self.max_depth} levels)", text)
        self._depth += 1

    def _leave(self) -> None:
        self._depth -= 1

    # -------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------

    def parse_statement(self, text: str) -> Statement:
        if text is None or not text.strip():
            raise ParseError("Empty statement", fragment=text or "")
        text = text.strip()
        self._enter(text)
        try:
            return self._statement(text)
        finally:
            self._leave()

    def _statement(self, text: str) -> Statement:
        if ";" in text:
            parts = split_top_level_semicolons(text)
            if len(parts) > 1:
                if any(not p.strip() for p in parts):
                    raise parse_error("Empty statement in sequence", text)
                logger.debug("sequence of %d statements", len(parts))
                return sequence_of([self.parse_statement(p) for p in parts])
            if len(parts) == 1:
                text = parts[0].strip()

        match = CONDITIONAL_RE.fullmatch(text)
        if match:
            return Conditional(
                self.parse_predicate(match.group(1)),
                self.parse_statement(_operand(match.group(2), text)),
                self.parse_statement(_operand(match.group(3), text)),
            )
        if re.match(r"if\s*\(", text):
            raise parse_error("Malformed conditional", text)

        if ":=" in text:
            index = text.index(":=")
            name = text[:index].strip()
            if not IDENTIFIER_RE.fullmatch(name):
                raise parse_error("Invalid assignment target", text)
            value = text[index + 2:]
            if not value.strip():
                raise parse_error("Missing assigned value", text)
            return Assignment(name, self.parse_expression(value))

        raise parse_error("Unknown statement", text)

    # -------------------------------------------------------------------
    # Predicates
    # -------------------------------------------------------------------

    def parse_predicate(self, text: str) -> Predicate:
        if text is None or not text.strip():
            raise ParseError("Empty predicate", fragment=text or "")
        text = text.strip()
        self._enter(text)
        try:
            return self._predicate(text)
        finally:
            self._leave()

    def _predicate(self, text: str) -> Predicate:
        parts = split_top_level_logical(text, _AND_TOKENS)
        if parts is not None:
            left, right = (_operand(p, text) for p in parts)
            return Logical(self.parse_predicate(left), AND, self.parse_predicate(right))

        parts = split_top_level_logical(text, _OR_TOKENS)
        if parts is not None:
            left, right = (_operand(p, text) for p in parts)
            return Logical(self.parse_predicate(left), OR, self.parse_predicate(right))

        if is_enclosed(text):
            return self.parse_predicate(_operand(text[1:-1], text))

        if text.startswith(NOT_SIGN) or (text.startswith("!") and not text.startswith("!=")):
            return Not(self.parse_predicate(_operand(text[1:], text)))

        if text == "true":
            return TRUE
        if text == "false":
            return FALSE

        # plain substring search, first operator in priority order
        for op in COMPARISON_OPERATORS:
            index = text.find(op)
            if index > 0:
                left = self.parse_expression(text[:index])
                right = self.parse_expression(_operand(text[index + len(op):], text))
                return Comparison(left, op, right)

        raise parse_error("Cannot parse predicate", text)

    # -------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------

    def parse_expression(self, text: str) -> Expression:
        if text is None or not text.strip():
            raise ParseError("Empty expression", fragment=text or "")
        text = text.strip()
        self._enter(text)
        try:
            return self._expression(text)
        finally:
            self._leave()

    def _expression(self, text: str) -> Expression:
        if is_enclosed(text):
            return self.parse_expression(_operand(text[1:-1], text))

        for operators, skip_unary in (("+-", True), ("*/", False)):
            index = find_top_level_operator(text, operators, skip_unary)
            if index > 0:
                return BinaryOp(
                    self.parse_expression(text[:index]),
                    text[index],
                    self.parse_expression(_operand(text[index + 1:], text)),
                )

        if text.startswith("abs(") and is_enclosed(text[3:]):
            return UnaryOp("abs", self.parse_expression(_operand(text[4:-1], text)))

        if text.startswith("-"):
            return UnaryOp("-", self.parse_expression(_operand(text[1:], text)))

        if NUMBER_RE.fullmatch(text):
            return Constant(float(text))

        if IDENTIFIER_RE.fullmatch(text):
            return Variable(text)

        raise parse_error("Cannot parse expression", text)


# ---------------------------------------------------------------------------
# Module-level entry points
# ---------------------------------------------------------------------------

def parse_statement(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Statement:
    """Parse program text into a Statement. Raises ParseError on malformed input."""
    return Parser(max_depth).parse_statement(text)


def parse_predicate(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Predicate:
    """Parse condition text into a Predicate. Raises ParseError on malformed input."""
    return Parser(max_depth).parse_predicate(text)


def parse_expression(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Expression:
    return Parser(max_depth).parse_expression(text)
