"""wpcalc Hoare Triple Verification Tests: VERIFY-001 through VERIFY-004."""

import pytest

from wpcalc.errors import VerificationError
from wpcalc.expressions import Constant, Variable
from wpcalc.parser import parse_predicate, parse_statement
from wpcalc.predicates import FALSE, TRUE, Comparison
from wpcalc.verify import (
    TripleVerifier, VerificationCondition, VerificationStatus, verify_triple,
)


def check(pre, code, post):
    return TripleVerifier().verify(parse_predicate(pre), parse_statement(code),
                                   parse_predicate(post))


class TestValidTriples:
    """VERIFY-001: P => wp(S, Q) is discharged as valid."""

    def test_assignment(self):
        result = check("x > 5", "x := x + 10", "x > 15")
        assert result.status is VerificationStatus.VALID
        assert result.valid
        assert result.counterexample == {}

    def test_maximum(self):
        result = check("true", "if (x1 >= x2) { max := x1 } else { max := x2 }",
                       "max >= x1 && max >= x2")
        assert result.valid

    def test_abs_is_non_negative(self):
        assert check("true", "y := abs(x)", "y >= 0").valid

    def test_sequence(self):
        assert check("x == 3", "x := x + 1; y := x * 2", "y == 8").valid

    def test_computed_wp_is_its_own_precondition(self):
        stmt = parse_statement("if (x >= 0) { y := x } else { y := -x }; z := y + 1")
        post = parse_predicate("z > 10")
        wp = stmt.weakest_precondition(post)
        assert verify_triple(wp, stmt, post).valid


class TestInvalidTriples:
    """VERIFY-002: Counterexamples for triples that do not hold."""

    def test_too_weak_precondition(self):
        result = check("x > 0", "x := x + 10", "x > 15")
        assert result.status is VerificationStatus.INVALID
        assert not result.valid
        assert 0 < result.counterexample["x"] <= 5

    def test_missing_division_guard(self):
        result = check("true", "r := a / b", "r == r")
        assert result.status is VerificationStatus.INVALID
        assert result.counterexample["b"] == 0

    def test_to_dict(self):
        d = check("x > 0", "x := x + 10", "x > 15").to_dict()
        assert d["status"] == "invalid"
        assert d["precondition"] == "x > 0"
        assert d["obligation"] == "(x + 10) > 15"
        assert "x" in d["counterexample"]


class TestSolverQueries:
    """VERIFY-003: Satisfiability and equivalence helpers."""

    def test_satisfiable(self):
        verifier = TripleVerifier()
        assert verifier.is_satisfiable(parse_predicate("x > 1")) is True
        assert verifier.is_satisfiable(parse_predicate("x > 1 && x < 0")) is False
        assert verifier.is_satisfiable(FALSE) is False
        assert verifier.is_satisfiable(TRUE) is True

    def test_equivalent(self):
        verifier = TripleVerifier()
        assert verifier.equivalent(parse_predicate("x > 1"), parse_predicate("¬(x <= 1)"))
        assert verifier.equivalent(parse_predicate("x > 1"), parse_predicate("x >= 1")) is False

    def test_simplification_preserves_meaning(self):
        pred = parse_predicate("(x * 1 + 0 > 2 && true) || false")
        assert TripleVerifier().equivalent(pred, pred.simplify())


class TestTranslation:
    """VERIFY-004: Translation limits and VC rendering."""

    def test_non_finite_constant(self):
        vc = VerificationCondition("inf", TRUE, Comparison(Variable("x"), "<", Constant(float("inf"))))
        with pytest.raises(VerificationError):
            TripleVerifier().discharge(vc)

    def test_vc_str(self):
        vc = VerificationCondition("triple", parse_predicate("x > 5"), parse_predicate("x > 0"))
        assert str(vc) == "VC[triple]: x > 5 => x > 0"

    def test_timeout_setting(self):
        assert TripleVerifier(timeout_ms=500).timeout_ms == 500
