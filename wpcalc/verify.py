"""Hoare triple checking with the Z3 SMT solver.

A triple {P} S {Q} holds when P => wp(S, Q) is valid. The verifier builds that
verification condition and asks Z3 whether its negation, P ∧ ¬wp(S, Q), is
satisfiable:

    unsat    -> the triple is valid
    sat      -> the model is a counterexample state
    unknown  -> the solver gave up (timeout, non-linear arithmetic)

Variables are interpreted as mathematical reals, not IEEE doubles, so rounding
effects of the concrete interpreter are not modelled.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import z3

from wpcalc.errors import VerificationError
from wpcalc.expressions import BinaryOp, Constant, Expression, UnaryOp, Variable, format_number
from wpcalc.predicates import (
    AND, Comparison, FalsePredicate, Logical, Not, Predicate, TruePredicate,
)
from wpcalc.statements import Statement, weakest_precondition

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT_MS = 10000


class VerificationStatus(Enum):
    VALID = "valid"
    INVALID = "invalid"
    UNKNOWN = "unknown"


@dataclass
class VerificationCondition:
    """VC: precondition => obligation."""
    name: str
    precondition: Predicate
    obligation: Predicate

    def __str__(self) -> str:
        return f"VC[{self.name}]: {self.precondition} => {self.obligation}"


@dataclass
class VerificationResult:
    status: VerificationStatus
    vc: VerificationCondition
    counterexample: Dict[str, Any] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return self.status is VerificationStatus.VALID

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "status": self.status.value,
            "precondition": self.vc.precondition.to_text(),
            "obligation": self.vc.obligation.to_text(),
        }
        if self.counterexample:
            d["counterexample"] = self.counterexample
        return d


class TripleVerifier:
    """Discharges Hoare-triple verification conditions to Z3."""

    def __init__(self, timeout_ms: int = DEFAULT_TIMEOUT_MS):
        self.timeout_ms = timeout_ms

    def verify(self, precondition: Predicate, statement: Statement,
               postcondition: Predicate, name: str = "triple") -> VerificationResult:
        """Check {precondition} statement {postcondition}."""
        wp = weakest_precondition(statement, postcondition)
        vc = VerificationCondition(name=name, precondition=precondition, obligation=wp)
        return self.discharge(vc)

    def discharge(self, vc: VerificationCondition) -> VerificationResult:
        z3_vars: Dict[str, Any] = {}
        solver = self._solver()
        solver.add(self._to_z3(vc.precondition, z3_vars))
        solver.add(z3.Not(self._to_z3(vc.obligation, z3_vars)))
        outcome = self._check(solver)
        logger.debug("%s: %s", vc, outcome)

        if outcome == z3.unsat:
            return VerificationResult(VerificationStatus.VALID, vc)
        if outcome == z3.sat:
            return VerificationResult(VerificationStatus.INVALID, vc,
                                      self._counterexample(solver.model(), z3_vars))
        return VerificationResult(VerificationStatus.UNKNOWN, vc)

    def is_satisfiable(self, predicate: Predicate) -> Optional[bool]:
        """True/False when Z3 decides the question, None when it cannot."""
        solver = self._solver()
        solver.add(self._to_z3(predicate, {}))
        outcome = self._check(solver)
        if outcome == z3.unknown:
            return None
        return outcome == z3.sat

    def equivalent(self, left: Predicate, right: Predicate) -> Optional[bool]:
        """Whether two predicates agree on every real-valued state."""
        z3_vars: Dict[str, Any] = {}
        solver = self._solver()
        solver.add(z3.Not(self._to_z3(left, z3_vars) == self._to_z3(right, z3_vars)))
        outcome = self._check(solver)
        if outcome == z3.unknown:
            return None
        return outcome == z3.unsat

    # -------------------------------------------------------------------
    # Solver plumbing
    # -------------------------------------------------------------------

    def _solver(self) -> z3.Solver:
        solver = z3.Solver()
        solver.set("timeout", self.timeout_ms)
        return solver

    def _check(self, solver: z3.Solver):
        try:
            return solver.check()
        except z3.Z3Exception as e:
            raise VerificationError(f"Z3 failed: {e}") from e

    def _counterexample(self, model, z3_vars: Dict[str, Any]) -> Dict[str, Any]:
        failing: Dict[str, Any] = {}
        for name, var in z3_vars.items():
            val = model.evaluate(var, model_completion=True)
            if z3.is_rational_value(val):
                failing[name] = float(val.as_fraction())
            else:
                failing[name] = str(val)
        return failing

    # -------------------------------------------------------------------
    # Translation to Z3
    # -------------------------------------------------------------------

    def _to_z3(self, predicate: Predicate, z3_vars: Dict[str, Any]):
        if isinstance(predicate, TruePredicate):
            return z3.BoolVal(True)
        if isinstance(predicate, FalsePredicate):
            return z3.BoolVal(False)
        if isinstance(predicate, Comparison):
            left = self._expr_to_z3(predicate.left, z3_vars)
            right = self._expr_to_z3(predicate.right, z3_vars)
            ops = {
                "==": lambda l, r: l == r,
                "!=": lambda l, r: l != r,
                ">=": lambda l, r: l >= r,
                "<=": lambda l, r: l <= r,
                ">": lambda l, r: l > r,
                "<": lambda l, r: l < r,
            }
            return ops[predicate.op](left, right)
        if isinstance(predicate, Logical):
            left = self._to_z3(predicate.left, z3_vars)
            right = self._to_z3(predicate.right, z3_vars)
            if predicate.op == AND:
                return z3.And(left, right)
            return z3.Or(left, right)
        if isinstance(predicate, Not):
            return z3.Not(self._to_z3(predicate.operand, z3_vars))
        raise VerificationError(f"Cannot translate predicate {type(predicate).__name__}")

    def _expr_to_z3(self, expr: Expression, z3_vars: Dict[str, Any]):
        if isinstance(expr, Constant):
            if not math.isfinite(expr.value):
                raise VerificationError(f"Non-finite constant {expr.value} has no real value",
                                        fragment=expr.to_text())
            return z3.RealVal(format_number(expr.value))
        if isinstance(expr, Variable):
            if expr.name not in z3_vars:
                z3_vars[expr.name] = z3.Real(expr.name)
            return z3_vars[expr.name]
        if isinstance(expr, BinaryOp):
            left = self._expr_to_z3(expr.left, z3_vars)
            right = self._expr_to_z3(expr.right, z3_vars)
            if expr.op == "+":
                return left + right
            if expr.op == "-":
                return left - right
            if expr.op == "*":
                return left * right
            return left / right
        if isinstance(expr, UnaryOp):
            inner = self._expr_to_z3(expr.operand, z3_vars)
            if expr.op == "-":
                return -inner
            return z3.If(inner >= 0, inner, -inner)
        raise VerificationError(f"Cannot translate expression {type(expr).__name__}")


def verify_triple(precondition: Predicate, statement: Statement, postcondition: Predicate,
                  timeout_ms: int = DEFAULT_TIMEOUT_MS) -> VerificationResult:
    """Verify {precondition} statement {postcondition} with Z3."""
    return TripleVerifier(timeout_ms).verify(precondition, statement, postcondition)
