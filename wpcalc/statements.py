"""Statements of the toy language and the weakest-precondition transformer.

Dijkstra's predicate transformer rules, applied backwards from the
postcondition R:

    wp(x := e, R)          = D(e) ∧ R[x/e]            D(e): every divisor != 0
    wp(S1; ...; Sn, R)     = wp(S1, wp(S2, ... wp(Sn, R)))
    wp(if B S1 else S2, R) = (B ∧ wp(S1, R)) ∨ (¬B ∧ wp(S2, R))

Every intermediate predicate is simplified after the rule that produced it, so
predicates stay compact while they travel through long sequences.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence as SequenceType, Tuple

from wpcalc.errors import UnsupportedStatement, invalid_argument
from wpcalc.expressions import IDENTIFIER_RE, BinaryOp, Constant, Expression, UnaryOp
from wpcalc.phrases import DEFAULT_LOCALE, phrase
from wpcalc.predicates import AND, OR, Comparison, Logical, Not, Predicate, conjoin
from wpcalc.trace import Trace, record

logger = logging.getLogger(__name__)


class Statement:
    """Base class of all statements."""

    def to_text(self) -> str:
        raise NotImplementedError

    def to_natural_language(self, locale: str = DEFAULT_LOCALE) -> str:
        raise NotImplementedError

    def execute(self, bindings: Mapping[str, float]) -> Dict[str, float]:
        raise NotImplementedError

    def weakest_precondition(self, postcondition: Predicate) -> Predicate:
        return weakest_precondition(self, postcondition)

    def __str__(self) -> str:
        return self.to_text()


@dataclass(frozen=True)
class Assignment(Statement):
    variable: str
    expr: Expression

    def __post_init__(self):
        if not isinstance(self.variable, str) or not self.variable:
            raise invalid_argument("Assigned variable name must not be empty")
        if not IDENTIFIER_RE.fullmatch(self.variable):
            raise invalid_argument(f"Invalid variable name '{self.variable}'",
                                   name=self.variable)
        if not isinstance(self.expr, Expression):
            raise invalid_argument("Assigned value must be an Expression")

    def to_text(self) -> str:
        return f"{self.variable} := {self.expr.to_text()}"

    def to_natural_language(self, locale: str = DEFAULT_LOCALE) -> str:
        return phrase("assign", locale).format(name=self.variable, value=self.expr.to_text())

    def execute(self, bindings: Mapping[str, float]) -> Dict[str, float]:
        state = dict(bindings)
        state[self.variable] = self.expr.evaluate(bindings)
        return state


@dataclass(frozen=True)
class Sequence(Statement):
    steps: Tuple[Statement, ...]

    def __post_init__(self):
        if self.steps is None:
            raise invalid_argument("Sequence requires a list of statements")
        steps = tuple(self.steps)
        if not steps:
            raise invalid_argument("Sequence cannot be empty")
        for step in steps:
            if not isinstance(step, Statement):
                raise invalid_argument(
                    f"Sequence items must be Statements, got {type(step).__name__}")
        object.__setattr__(self, "steps", steps)

    def to_text(self) -> str:
        return "; ".join(s.to_text() for s in self.steps)

    def to_natural_language(self, locale: str = DEFAULT_LOCALE) -> str:
        sep = f", {phrase('then', locale)} "
        return sep.join(s.to_natural_language(locale) for s in self.steps)

    def execute(self, bindings: Mapping[str, float]) -> Dict[str, float]:
        state = dict(bindings)
        for step in self.steps:
            state = step.execute(state)
        return state


@dataclass(frozen=True)
class Conditional(Statement):
    condition: Predicate
    then_branch: Statement
    else_branch: Statement

    def __post_init__(self):
        if not isinstance(self.condition, Predicate):
            raise invalid_argument("Condition must be a Predicate")
        if not isinstance(self.then_branch, Statement):
            raise invalid_argument("Then branch must be a Statement")
        if not isinstance(self.else_branch, Statement):
            raise invalid_argument("Else branch must be a Statement")

    def to_text(self) -> str:
        return (f"if ({self.condition.to_text()}) {{ {self.then_branch.to_text()} }} "
                f"else {{ {self.else_branch.to_text()} }}")

    def to_natural_language(self, locale: str = DEFAULT_LOCALE) -> str:
        return phrase("if", locale).format(
            cond=self.condition.to_natural_language(locale),
            then=self.then_branch.to_natural_language(locale),
            other=self.else_branch.to_natural_language(locale),
        )

    def execute(self, bindings: Mapping[str, float]) -> Dict[str, float]:
        if self.condition.evaluate(bindings):
            return self.then_branch.execute(bindings)
        return self.else_branch.execute(bindings)


# ---------------------------------------------------------------------------
# Definedness
# ---------------------------------------------------------------------------

def definedness(expr: Expression) -> Optional[Predicate]:
    """Condition under which evaluating expr cannot divide by zero.

    Returns None when expr contains no division at all.
    """
    if isinstance(expr, BinaryOp):
        inner = conjoin(definedness(expr.left), definedness(expr.right))
        if expr.op == "/":
            return conjoin(inner, Comparison(expr.right, "!=", Constant(0)))
        return inner
    if isinstance(expr, UnaryOp):
        return definedness(expr.operand)
    return None


# ---------------------------------------------------------------------------
# Transformer
# ---------------------------------------------------------------------------

def weakest_precondition(statement: Statement, postcondition: Predicate,
                         trace: Optional[Trace] = None,
                         locale: str = DEFAULT_LOCALE) -> Predicate:
    """Compute wp(statement, postcondition).

    When trace is a list, one TraceStep per rule application is appended to
    it. The returned predicate does not depend on whether a trace is kept.
    """
    if isinstance(statement, Assignment):
        return _wp_assignment(statement, postcondition, trace, locale)
    if isinstance(statement, Sequence):
        return _wp_sequence(statement, postcondition, trace, locale)
    if isinstance(statement, Conditional):
        return _wp_conditional(statement, postcondition, trace, locale)
    raise UnsupportedStatement(
        f"Unknown statement type: {type(statement).__name__}",
        details={"type": type(statement).__name__},
    )


def _wp_assignment(stmt: Assignment, post: Predicate, trace: Optional[Trace],
                   locale: str) -> Predicate:
    """wp(x := e, R) = D(e) ∧ R[x/e]"""
    substituted = post.substitute(stmt.variable, stmt.expr)
    record(trace, "Assignment", stmt.to_text(), post.to_text(), substituted.to_text(),
           f"Replace {stmt.variable} with {stmt.expr.to_text()} in {post.to_text()}")

    guard = definedness(stmt.expr)
    result = substituted.simplify()
    if guard is not None:
        result = Logical(guard, AND, result)
    result = result.simplify()
    logger.debug("wp(%s, %s) = %s", stmt.to_text(), post.to_text(), result.to_text())

    explanation = result.to_natural_language(locale)
    if guard is not None:
        explanation = f"{explanation} [definedness: {guard.to_text()}]"
    record(trace, "Assignment result", stmt.to_text(), substituted.to_text(),
           result.to_text(), explanation)
    return result


def _wp_sequence(stmt: Sequence, post: Predicate, trace: Optional[Trace],
                 locale: str) -> Predicate:
    """wp(S1; ...; Sn, R), folded from the last statement to the first."""
    record(trace, "Sequence", stmt.to_text(), post.to_text(),
           explanation="Process statements from last to first")
    current = post.simplify()
    count = len(stmt.steps)
    for i in range(count - 1, -1, -1):
        step = stmt.steps[i]
        record(trace, f"Statement {count - i} from the end", step.to_text(),
               current.to_text(),
               explanation=f"Current condition: {current.to_natural_language(locale)}")
        current = weakest_precondition(step, current, trace, locale).simplify()
    logger.debug("wp of %d-step sequence = %s", count, current.to_text())
    return current


def _wp_conditional(stmt: Conditional, post: Predicate, trace: Optional[Trace],
                    locale: str) -> Predicate:
    """wp(if B S1 else S2, R) = (B ∧ wp(S1, R)) ∨ (¬B ∧ wp(S2, R))"""
    record(trace, "Conditional", stmt.to_text(), post.to_text(),
           explanation="Apply the if-else rule: (B ∧ wp(S1,R)) ∨ (¬B ∧ wp(S2,R))")

    record(trace, "Then branch", stmt.then_branch.to_text(), post.to_text(),
           explanation="Compute wp for the then branch")
    then_wp = weakest_precondition(stmt.then_branch, post, trace, locale).simplify()

    record(trace, "Else branch", stmt.else_branch.to_text(), post.to_text(),
           explanation="Compute wp for the else branch")
    else_wp = weakest_precondition(stmt.else_branch, post, trace, locale).simplify()

    cond = stmt.condition
    combined = Logical(
        Logical(cond, AND, then_wp),
        OR,
        Logical(Not(cond), AND, else_wp),
    )
    result = combined.simplify()
    logger.debug("wp(if %s ...) = %s", cond.to_text(), result.to_text())

    record(trace, "Combine branches", stmt.to_text(), combined.to_text(), result.to_text(),
           f"({cond.to_natural_language(locale)} {phrase('and', locale)} "
           f"{then_wp.to_natural_language(locale)}) {phrase('or', locale)} "
           f"({phrase('not', locale)} ({cond.to_natural_language(locale)}) "
           f"{phrase('and', locale)} {else_wp.to_natural_language(locale)})")
    return result


def sequence_of(statements: SequenceType[Statement]) -> Statement:
    """A single statement stays itself; two or more become a Sequence."""
    if len(statements) == 1:
        return statements[0]
    return Sequence(tuple(statements))
