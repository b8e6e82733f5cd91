"""wpcalc: weakest-precondition calculator for a small imperative language"""

__version__ = "0.1.0"

from wpcalc.errors import (
    ErrorKind, EvaluationError, InvalidArgument, ParseError, UnsupportedStatement,
    VerificationError, WpError, WpException,
)
from wpcalc.expressions import BinaryOp, Constant, Expression, UnaryOp, Variable
from wpcalc.predicates import FALSE, TRUE, Comparison, Logical, Not, Predicate
from wpcalc.statements import Assignment, Conditional, Sequence, Statement, weakest_precondition
from wpcalc.parser import Parser, parse_expression, parse_predicate, parse_statement
from wpcalc.calculator import WpResult, calculate
