"""Boolean condition trees built over arithmetic expressions.

Variants:

    Comparison(left, op, right)    op in > < >= <= == !=
    Logical(left, op, right)       op in ∧ ∨ (&& and || are accepted and normalized)
    Not(operand)
    TRUE, FALSE                    process-wide singletons, compared by identity
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Tuple

from wpcalc.errors import invalid_argument
from wpcalc.expressions import Constant, Expression, _unique
from wpcalc.phrases import DEFAULT_LOCALE, phrase


EPSILON = 1e-9

AND = "∧"
OR = "∨"
NOT_SIGN = "¬"

COMPARISON_OPERATORS = (">=", "<=", "==", "!=", ">", "<")
LOGICAL_SYNONYMS = {"&&": AND, AND: AND, "||": OR, OR: OR}


def compare(left: float, op: str, right: float) -> bool:
    if op == "==":
        return abs(left - right) < EPSILON
    if op == "!=":
        return abs(left - right) >= EPSILON
    if op == ">":
        return left > right
    if op == "<":
        return left < right
    if op == ">=":
        return left >= right
    return left <= right


class Predicate:
    """Base class of all predicates."""

    def to_text(self) -> str:
        raise NotImplementedError

    def to_natural_language(self, locale: str = DEFAULT_LOCALE) -> str:
        raise NotImplementedError

    def substitute(self, name: str, replacement: Expression) -> Predicate:
        raise NotImplementedError

    def free_variables(self) -> Tuple[str, ...]:
        raise NotImplementedError

    def simplify(self) -> Predicate:
        raise NotImplementedError

    def evaluate(self, bindings: Mapping[str, float]) -> bool:
        raise NotImplementedError

    def conjuncts(self) -> Tuple[Predicate, ...]:
        """Top-level conjuncts of a ∧-chain; a single-element tuple otherwise."""
        return (self,)

    def __str__(self) -> str:
        return self.to_text()


class TruePredicate(Predicate):
    __slots__ = ()

    def to_text(self) -> str:
        return "true"

    def to_natural_language(self, locale: str = DEFAULT_LOCALE) -> str:
        return phrase("true", locale)

    def substitute(self, name: str, replacement: Expression) -> Predicate:
        return self

    def free_variables(self) -> Tuple[str, ...]:
        return ()

    def simplify(self) -> Predicate:
        return self

    def evaluate(self, bindings: Mapping[str, float]) -> bool:
        return True

    def conjuncts(self) -> Tuple[Predicate, ...]:
        return ()

    def __repr__(self) -> str:
        return "TRUE"

    def __reduce__(self):
        return "TRUE"


class FalsePredicate(Predicate):
    __slots__ = ()

    def to_text(self) -> str:
        return "false"

    def to_natural_language(self, locale: str = DEFAULT_LOCALE) -> str:
        return phrase("false", locale)

    def substitute(self, name: str, replacement: Expression) -> Predicate:
        return self

    def free_variables(self) -> Tuple[str, ...]:
        return ()

    def simplify(self) -> Predicate:
        return self

    def evaluate(self, bindings: Mapping[str, float]) -> bool:
        return False

    def __repr__(self) -> str:
        return "FALSE"

    def __reduce__(self):
        return "FALSE"


TRUE = TruePredicate()
FALSE = FalsePredicate()


def from_bool(value: bool) -> Predicate:
    return TRUE if value else FALSE


def _require_expression(value, role: str) -> None:
    if not isinstance(value, Expression):
        raise invalid_argument(f"{role} must be an Expression, got {type(value).__name__}")


def _require_predicate(value, role: str) -> None:
    if not isinstance(value, Predicate):
        raise invalid_argument(f"{role} must be a Predicate, got {type(value).__name__}")


@dataclass(frozen=True)
class Comparison(Predicate):
    left: Expression
    op: str
    right: Expression

    def __post_init__(self):
        _require_expression(self.left, "Left side")
        if not self.op:
            raise invalid_argument("Comparison operator must not be empty")
        if self.op not in COMPARISON_OPERATORS:
            raise invalid_argument(f"Unknown comparison operator '{self.op}'", op=self.op)
        _require_expression(self.right, "Right side")

    def to_text(self) -> str:
        return f"{self.left.to_text()} {self.op} {self.right.to_text()}"

    def to_natural_language(self, locale: str = DEFAULT_LOCALE) -> str:
        return f"{self.left.to_text()} {phrase(self.op, locale)} {self.right.to_text()}"

    def substitute(self, name: str, replacement: Expression) -> Predicate:
        left = self.left.substitute(name, replacement)
        right = self.right.substitute(name, replacement)
        if left is self.left and right is self.right:
            return self
        return Comparison(left, self.op, right)

    def free_variables(self) -> Tuple[str, ...]:
        return _unique(self.left.free_variables() + self.right.free_variables())

    def simplify(self) -> Predicate:
        left = self.left.simplify()
        right = self.right.simplify()
        if isinstance(left, Constant) and isinstance(right, Constant):
            return from_bool(compare(left.value, self.op, right.value))
        if left is self.left and right is self.right:
            return self
        return Comparison(left, self.op, right)

    def evaluate(self, bindings: Mapping[str, float]) -> bool:
        return compare(self.left.evaluate(bindings), self.op, self.right.evaluate(bindings))


@dataclass(frozen=True)
class Logical(Predicate):
    left: Predicate
    op: str
    right: Predicate

    def __post_init__(self):
        _require_predicate(self.left, "Left condition")
        if not self.op:
            raise invalid_argument("Logical operator must not be empty")
        normalized = LOGICAL_SYNONYMS.get(self.op)
        if normalized is None:
            raise invalid_argument(f"Unknown logical operator '{self.op}'", op=self.op)
        object.__setattr__(self, "op", normalized)
        _require_predicate(self.right, "Right condition")

    def to_text(self) -> str:
        return f"({self.left.to_text()} {self.op} {self.right.to_text()})"

    def to_natural_language(self, locale: str = DEFAULT_LOCALE) -> str:
        word = phrase("and" if self.op == AND else "or", locale)
        return (f"({self.left.to_natural_language(locale)}) {word} "
                f"({self.right.to_natural_language(locale)})")

    def substitute(self, name: str, replacement: Expression) -> Predicate:
        left = self.left.substitute(name, replacement)
        right = self.right.substitute(name, replacement)
        if left is self.left and right is self.right:
            return self
        return Logical(left, self.op, right)

    def free_variables(self) -> Tuple[str, ...]:
        return _unique(self.left.free_variables() + self.right.free_variables())

    def simplify(self) -> Predicate:
        left = self.left.simplify()
        right = self.right.simplify()
        if self.op == AND:
            if left is FALSE or right is FALSE:
                return FALSE
            if left is TRUE:
                return right
            if right is TRUE:
                return left
        else:
            if left is TRUE or right is TRUE:
                return TRUE
            if left is FALSE:
                return right
            if right is FALSE:
                return left
        if left is self.left and right is self.right:
            return self
        return Logical(left, self.op, right)

    def evaluate(self, bindings: Mapping[str, float]) -> bool:
        if self.op == AND:
            return self.left.evaluate(bindings) and self.right.evaluate(bindings)
        return self.left.evaluate(bindings) or self.right.evaluate(bindings)

    def conjuncts(self) -> Tuple[Predicate, ...]:
        if self.op != AND:
            return (self,)
        return self.left.conjuncts() + self.right.conjuncts()


@dataclass(frozen=True)
class Not(Predicate):
    operand: Predicate

    def __post_init__(self):
        _require_predicate(self.operand, "Negated condition")

    def to_text(self) -> str:
        return f"{NOT_SIGN}({self.operand.to_text()})"

    def to_natural_language(self, locale: str = DEFAULT_LOCALE) -> str:
        return f"{phrase('not', locale)} ({self.operand.to_natural_language(locale)})"

    def substitute(self, name: str, replacement: Expression) -> Predicate:
        operand = self.operand.substitute(name, replacement)
        if operand is self.operand:
            return self
        return Not(operand)

    def free_variables(self) -> Tuple[str, ...]:
        return self.operand.free_variables()

    def simplify(self) -> Predicate:
        if isinstance(self.operand, Not):
            return self.operand.operand.simplify()
        operand = self.operand.simplify()
        if operand is TRUE:
            return FALSE
        if operand is FALSE:
            return TRUE
        if isinstance(operand, Not):
            return operand.operand
        if operand is self.operand:
            return self
        return Not(operand)

    def evaluate(self, bindings: Mapping[str, float]) -> bool:
        return not self.operand.evaluate(bindings)


def conjoin(left: Predicate | None, right: Predicate | None) -> Predicate | None:
    """Join two optional conditions with ∧; an absent side yields the other."""
    if left is None:
        return right
    if right is None:
        return left
    return Logical(left, AND, right)
