"""Arithmetic expression trees.

Expressions are immutable trees over four variants:

    Variable(name)                 x, max, _tmp1
    Constant(value)                5, 3.14
    BinaryOp(left, op, right)      op in + - * /
    UnaryOp(op, operand)           op in - abs

Every transformation (substitution, simplification) returns a new tree and
never mutates the receiver. Subtrees that a transformation leaves untouched are
returned by identity, so trees share structure freely.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Mapping, Tuple

from wpcalc.errors import EvaluationError, invalid_argument


IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

BINARY_OPERATORS = ("+", "-", "*", "/")
UNARY_OPERATORS = ("-", "abs")


def format_number(value: float) -> str:
    """Canonical decimal rendering: no trailing '.0', never exponent notation."""
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    text = repr(value)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    return text


def _unique(names) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for name in names:
        seen.setdefault(name, None)
    return tuple(seen)


class Expression:
    """Base class of all arithmetic expressions."""

    def to_text(self) -> str:
        raise NotImplementedError

    def substitute(self, name: str, replacement: Expression) -> Expression:
        raise NotImplementedError

    def free_variables(self) -> Tuple[str, ...]:
        raise NotImplementedError

    def is_defined_given(self, bindings: Mapping[str, float]) -> bool:
        raise NotImplementedError

    def simplify(self) -> Expression:
        raise NotImplementedError

    def evaluate(self, bindings: Mapping[str, float]) -> float:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.to_text()


def _require_expression(value, role: str) -> None:
    if not isinstance(value, Expression):
        raise invalid_argument(f"{role} must be an Expression, got {type(value).__name__}")


@dataclass(frozen=True)
class Variable(Expression):
    name: str

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise invalid_argument("Variable name must not be empty")
        if not IDENTIFIER_RE.fullmatch(self.name):
            raise invalid_argument(f"Invalid variable name '{self.name}'", name=self.name)

    def to_text(self) -> str:
        return self.name

    def substitute(self, name: str, replacement: Expression) -> Expression:
        if name == self.name:
            return replacement
        return self

    def free_variables(self) -> Tuple[str, ...]:
        return (self.name,)

    def is_defined_given(self, bindings: Mapping[str, float]) -> bool:
        return self.name in bindings

    def simplify(self) -> Expression:
        return self

    def evaluate(self, bindings: Mapping[str, float]) -> float:
        if self.name not in bindings:
            raise EvaluationError(f"Variable '{self.name}' is not bound", fragment=self.name)
        return float(bindings[self.name])


@dataclass(frozen=True)
class Constant(Expression):
    value: float

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise invalid_argument(f"Constant value must be a number, got {self.value!r}")
        object.__setattr__(self, "value", float(self.value))

    def to_text(self) -> str:
        return format_number(self.value)

    def substitute(self, name: str, replacement: Expression) -> Expression:
        return self

    def free_variables(self) -> Tuple[str, ...]:
        return ()

    def is_defined_given(self, bindings: Mapping[str, float]) -> bool:
        return True

    def simplify(self) -> Expression:
        return self

    def evaluate(self, bindings: Mapping[str, float]) -> float:
        return self.value


def _is_const(expr: Expression, value: float) -> bool:
    return isinstance(expr, Constant) and expr.value == value


def _fold(left: float, op: str, right: float) -> float:
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    return left / right


@dataclass(frozen=True)
class BinaryOp(Expression):
    left: Expression
    op: str
    right: Expression

    def __post_init__(self):
        _require_expression(self.left, "Left operand")
        if not self.op:
            raise invalid_argument("Operator must not be empty")
        if self.op not in BINARY_OPERATORS:
            raise invalid_argument(f"Unknown binary operator '{self.op}'", op=self.op)
        _require_expression(self.right, "Right operand")

    def to_text(self) -> str:
        return f"({self.left.to_text()} {self.op} {self.right.to_text()})"

    def substitute(self, name: str, replacement: Expression) -> Expression:
        left = self.left.substitute(name, replacement)
        right = self.right.substitute(name, replacement)
        if left is self.left and right is self.right:
            return self
        return BinaryOp(left, self.op, right)

    def free_variables(self) -> Tuple[str, ...]:
        return _unique(self.left.free_variables() + self.right.free_variables())

    def is_defined_given(self, bindings: Mapping[str, float]) -> bool:
        if self.op == "/" and _is_const(self.right.simplify(), 0.0):
            return False
        return self.left.is_defined_given(bindings) and self.right.is_defined_given(bindings)

    def simplify(self) -> Expression:
        left = self.left.simplify()
        right = self.right.simplify()
        op = self.op

        if isinstance(left, Constant) and isinstance(right, Constant):
            # x / 0 is undefined and stays in the tree
            if not (op == "/" and right.value == 0.0):
                return Constant(_fold(left.value, op, right.value))

        if op == "+":
            if _is_const(right, 0.0):
                return left
            if _is_const(left, 0.0):
                return right
        elif op == "-":
            if _is_const(right, 0.0):
                return left
        elif op == "*":
            if _is_const(left, 0.0) or _is_const(right, 0.0):
                return Constant(0.0)
            if _is_const(right, 1.0):
                return left
            if _is_const(left, 1.0):
                return right
        elif op == "/":
            if _is_const(right, 1.0):
                return left

        if left is self.left and right is self.right:
            return self
        return BinaryOp(left, op, right)

    def evaluate(self, bindings: Mapping[str, float]) -> float:
        left = self.left.evaluate(bindings)
        right = self.right.evaluate(bindings)
        if self.op == "/" and right == 0.0:
            raise EvaluationError(f"Division by zero in {self.to_text()}",
                                  fragment=self.to_text())
        return _fold(left, self.op, right)


@dataclass(frozen=True)
class UnaryOp(Expression):
    op: str
    operand: Expression

    def __post_init__(self):
        if not self.op:
            raise invalid_argument("Operator must not be empty")
        if self.op not in UNARY_OPERATORS:
            raise invalid_argument(f"Unknown unary operator '{self.op}'", op=self.op)
        _require_expression(self.operand, "Operand")

    def to_text(self) -> str:
        return f"{self.op}({self.operand.to_text()})"

    def substitute(self, name: str, replacement: Expression) -> Expression:
        operand = self.operand.substitute(name, replacement)
        if operand is self.operand:
            return self
        return UnaryOp(self.op, operand)

    def free_variables(self) -> Tuple[str, ...]:
        return self.operand.free_variables()

    def is_defined_given(self, bindings: Mapping[str, float]) -> bool:
        return self.operand.is_defined_given(bindings)

    def simplify(self) -> Expression:
        operand = self.operand.simplify()
        if isinstance(operand, Constant):
            if self.op == "-":
                return Constant(-operand.value)
            return Constant(abs(operand.value))
        if operand is self.operand:
            return self
        return UnaryOp(self.op, operand)

    def evaluate(self, bindings: Mapping[str, float]) -> float:
        value = self.operand.evaluate(bindings)
        if self.op == "-":
            return -value
        return abs(value)
