"""wpcalc Parser Tests: PARSE-001 through PARSE-007."""

import pytest

from wpcalc.errors import ErrorKind, ParseError
from wpcalc.expressions import BinaryOp, Constant, UnaryOp, Variable
from wpcalc.parser import (
    Parser, find_top_level_operator, is_enclosed, parse_expression, parse_predicate,
    parse_statement, split_top_level_semicolons,
)
from wpcalc.predicates import AND, FALSE, OR, TRUE, Comparison, Logical, Not
from wpcalc.statements import Assignment, Conditional, Sequence


class TestExpressions:
    """PARSE-001: Expression grammar, precedence and associativity."""

    def test_left_associative_subtraction(self):
        assert parse_expression("a - b - c").to_text() == "((a - b) - c)"

    def test_left_associative_division(self):
        assert parse_expression("a / b * c").to_text() == "((a / b) * c)"

    def test_precedence(self):
        assert parse_expression("a + b * c").to_text() == "(a + (b * c))"
        assert parse_expression("(a + b) * c").to_text() == "((a + b) * c)"

    def test_leading_unary_minus(self):
        assert parse_expression("-x + 1") == BinaryOp(UnaryOp("-", Variable("x")), "+", Constant(1))

    def test_sign_after_operator(self):
        assert parse_expression("x * -3") == BinaryOp(Variable("x"), "*", UnaryOp("-", Constant(3)))
        assert parse_expression("x - -y").to_text() == "(x - -(y))"

    def test_exponent_literal(self):
        e = parse_expression("1e-5 + x")
        assert e == BinaryOp(Constant(1e-5), "+", Variable("x"))

    def test_abs(self):
        assert parse_expression("abs(x - 1)") == \
            UnaryOp("abs", BinaryOp(Variable("x"), "-", Constant(1)))

    def test_abs_call_inside_sum(self):
        assert parse_expression("abs(x) + abs(y)").to_text() == "(abs(x) + abs(y))"

    def test_redundant_parentheses(self):
        assert parse_expression("((x))") == Variable("x")

    def test_literals_and_identifiers(self):
        assert parse_expression("2.5") == Constant(2.5)
        assert parse_expression(".5") == Constant(0.5)
        assert parse_expression("  max_1 ") == Variable("max_1")

    def test_inf_is_an_identifier(self):
        assert parse_expression("inf") == Variable("inf")


class TestPredicates:
    """PARSE-002: Predicate grammar."""

    def test_comparison(self):
        assert parse_predicate("x >= 0") == Comparison(Variable("x"), ">=", Constant(0))
        assert parse_predicate("x <= y").op == "<="
        assert parse_predicate("x != y").op == "!="
        assert parse_predicate("x == y").op == "=="

    def test_comparison_with_negative_side(self):
        p = parse_predicate("x > -5")
        assert p.op == ">"
        assert p.right == UnaryOp("-", Constant(5))

    def test_and(self):
        p = parse_predicate("x > 0 && y < 3")
        assert isinstance(p, Logical) and p.op == AND

    def test_or(self):
        p = parse_predicate("x > 0 || y < 3")
        assert isinstance(p, Logical) and p.op == OR

    def test_and_is_split_before_or(self):
        p = parse_predicate("a > 0 && b > 0 || c > 0")
        assert p.op == AND
        assert p.right.op == OR

    def test_parentheses_group(self):
        p = parse_predicate("(a > 0 || b > 0) && c > 0")
        assert p.op == AND
        assert p.left.op == OR

    def test_unicode_connectives(self):
        assert parse_predicate("x > 0 ∧ y > 0") == parse_predicate("x > 0 && y > 0")
        assert parse_predicate("x > 0 ∨ y > 0") == parse_predicate("x > 0 || y > 0")

    def test_negation(self):
        assert parse_predicate("!(x > 0)") == Not(Comparison(Variable("x"), ">", Constant(0)))
        assert parse_predicate("¬(x > 0)") == parse_predicate("!(x > 0)")

    def test_constants(self):
        assert parse_predicate("true") is TRUE
        assert parse_predicate("(false)") is FALSE

    def test_conditional_condition_with_parentheses(self):
        stmt = parse_statement("if ((x + 1) > 0) { y := 1 } else { y := 2 }")
        assert stmt.condition.to_text() == "(x + 1) > 0"


class TestStatements:
    """PARSE-003: Statement grammar."""

    def test_assignment(self):
        assert parse_statement("x := x + 1") == \
            Assignment("x", BinaryOp(Variable("x"), "+", Constant(1)))

    def test_sequence(self):
        stmt = parse_statement("x := 1; y := 2; z := 3")
        assert isinstance(stmt, Sequence)
        assert [s.variable for s in stmt.steps] == ["x", "y", "z"]

    def test_trailing_semicolon(self):
        assert parse_statement("x := 1;") == Assignment("x", Constant(1))
        assert len(parse_statement("x := 1; y := 2;").steps) == 2

    def test_conditional(self):
        stmt = parse_statement("if (x > 0) { y := 1 } else { y := 2 }")
        assert isinstance(stmt, Conditional)
        assert stmt.then_branch == Assignment("y", Constant(1))

    def test_sequence_inside_branch(self):
        stmt = parse_statement("if (x > 0) { y := 1; z := 2 } else { y := 0 }")
        assert isinstance(stmt, Conditional)
        assert isinstance(stmt.then_branch, Sequence)

    def test_conditional_inside_sequence(self):
        stmt = parse_statement("x := 1; if (x > 0) { y := 1 } else { y := 2 }")
        assert isinstance(stmt.steps[1], Conditional)

    def test_multiline(self):
        code = "if (x1 >= x2)\n{\n  max := x1\n}\nelse\n{\n  max := x2\n}"
        assert isinstance(parse_statement(code), Conditional)


class TestErrors:
    """PARSE-004: Errors name the offending fragment; no partial trees."""

    def test_unparsable_expression(self):
        with pytest.raises(ParseError) as exc:
            parse_expression("x $ y")
        assert exc.value.fragment == "x $ y"
        assert "x $ y" in str(exc.value)
        assert exc.value.error.kind is ErrorKind.PARSE_ERROR

    def test_unbalanced_parenthesis(self):
        with pytest.raises(ParseError) as exc:
            parse_expression("(x")
        assert exc.value.fragment == "(x"

    def test_empty_inputs(self):
        for parse in (parse_statement, parse_predicate, parse_expression):
            with pytest.raises(ParseError):
                parse("   ")

    def test_missing_right_operand(self):
        with pytest.raises(ParseError):
            parse_statement("x :=")

    def test_bad_assignment_target(self):
        with pytest.raises(ParseError) as exc:
            parse_statement("1x := 2")
        assert exc.value.fragment == "1x := 2"

    def test_unknown_statement(self):
        with pytest.raises(ParseError) as exc:
            parse_statement("x = 5")
        assert "Unknown statement" in str(exc.value)

    def test_conditional_without_else(self):
        with pytest.raises(ParseError) as exc:
            parse_statement("if (x > 0) { y := 1 }")
        assert "Malformed conditional" in str(exc.value)

    def test_nested_conditional_unsupported(self):
        with pytest.raises(ParseError):
            parse_statement(
                "if (a > 0) { if (b > 0) { x := 1 } else { x := 2 } } else { x := 3 }")

    def test_empty_sequence_element(self):
        with pytest.raises(ParseError):
            parse_statement("x := 1;; y := 2")

    def test_error_deep_inside_sequence(self):
        with pytest.raises(ParseError) as exc:
            parse_statement("x := 1; y := 2 +; z := 3")
        assert exc.value.fragment == "2 +"
        assert "Missing operand" in str(exc.value)

    def test_dangling_logical_operator(self):
        with pytest.raises(ParseError) as exc:
            parse_predicate("x > 0 && ")
        assert exc.value.fragment == "x > 0 &&"

    @pytest.mark.parametrize("text, fragment", [
        ("x >", "x >"),
        ("!", "!"),
        ("|| y > 0", "|| y > 0"),
        ("()", "()"),
    ])
    def test_missing_predicate_operand_names_text(self, text, fragment):
        with pytest.raises(ParseError) as exc:
            parse_predicate(text)
        assert exc.value.fragment == fragment

    @pytest.mark.parametrize("text", ["x *", "-", "abs()", "x + ()"])
    def test_missing_expression_operand_is_located(self, text):
        with pytest.raises(ParseError) as exc:
            parse_expression(text)
        assert exc.value.fragment

    def test_missing_assigned_value(self):
        with pytest.raises(ParseError) as exc:
            parse_statement("x := 1; y :=")
        assert exc.value.fragment == "y :="

    def test_empty_sequence_element_names_sequence(self):
        with pytest.raises(ParseError) as exc:
            parse_statement("x := 1;; y := 2")
        assert exc.value.fragment == "x := 1;; y := 2"

    def test_predicate_without_operator(self):
        with pytest.raises(ParseError) as exc:
            parse_predicate("x")
        assert exc.value.fragment == "x"


class TestDepthBound:
    """PARSE-005: Nesting is bounded instead of exhausting the stack."""

    def test_bound_exceeded(self):
        text = "(" * 50 + "x" + ")" * 50
        with pytest.raises(ParseError) as exc:
            parse_expression(text, max_depth=10)
        assert "Expression too deep (more than 10 levels)" in str(exc.value)

    def test_default_bound_allows_reasonable_input(self):
        text = "(" * 50 + "x" + ")" * 50
        assert parse_expression(text) == Variable("x")

    def test_operator_chain_counts_toward_bound(self):
        text = " + ".join(f"x{i}" for i in range(250))
        with pytest.raises(ParseError) as exc:
            parse_expression(text)
        assert "Expression too deep" in str(exc.value)
        assert len(parse_expression(text, max_depth=300).free_variables()) == 250

    def test_parser_reusable_after_error(self):
        parser = Parser(max_depth=5)
        with pytest.raises(ParseError):
            parser.parse_expression("((((((x))))))")
        assert parser.parse_expression("x + 1").to_text() == "(x + 1)"


class TestHelpers:
    """PARSE-006: Scanning helpers."""

    def test_is_enclosed(self):
        assert is_enclosed("(a + b)")
        assert is_enclosed("((a) + (b))")
        assert not is_enclosed("(a) + (b)")
        assert not is_enclosed("a + b")

    def test_split_semicolons_respects_braces(self):
        parts = split_top_level_semicolons("a := 1; if (c) { b := 1; b := 2 } else { b := 3 }")
        assert len(parts) == 2

    def test_find_operator_rightmost(self):
        assert find_top_level_operator("a - b - c", "+-", True) == 6
        assert find_top_level_operator("(a - b)", "+-", True) == -1
        assert find_top_level_operator("-a", "+-", True) == -1


class TestRoundTrip:
    """PARSE-007: parse(to_text(node)) rebuilds the same tree."""

    @pytest.mark.parametrize("text", [
        "x := ((x + 1) * 2)",
        "x := -(y); y := abs((x - 3))",
        "if ((x >= 0 ∧ y != 2)) { y := x } else { y := -(x) }",
        "if (¬(x > 0)) { y := (x / 2) } else { y := 0 }; z := (y * -(1))",
    ])
    def test_statements(self, text):
        stmt = parse_statement(text)
        assert parse_statement(stmt.to_text()) == stmt

    @pytest.mark.parametrize("text", [
        "((x >= 0 ∧ x > 10) ∨ (¬(x >= 0) ∧ -(x) > 10))",
        "(b != 0 ∧ (a / b) > 0)",
        "¬(¬(true))",
        "(x > 1 ∨ (y < 2 ∧ z == 3))",
    ])
    def test_predicates(self, text):
        pred = parse_predicate(text)
        assert pred.to_text() == text
        assert parse_predicate(pred.to_text()) == pred
