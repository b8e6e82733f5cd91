"""Front-end driver: parse program and postcondition, trace the WP, report.

calculate() is what an interactive shell calls. Unlike the core functions it
does not raise on malformed input: errors are captured in the returned
WpResult so the caller can display them next to the input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from wpcalc.errors import WpError, WpException
from wpcalc.parser import DEFAULT_MAX_DEPTH, Parser
from wpcalc.phrases import DEFAULT_LOCALE, phrase
from wpcalc.predicates import Predicate
from wpcalc.statements import Statement, weakest_precondition
from wpcalc.trace import TraceStep, record

logger = logging.getLogger(__name__)


@dataclass
class WpResult:
    """Outcome of one WP calculation, with its step-by-step trace."""
    original_code: str = ""
    original_postcondition: str = ""
    statement: Optional[Statement] = None
    postcondition: Optional[Predicate] = None
    final_precondition: Optional[Predicate] = None
    steps: List[TraceStep] = field(default_factory=list)
    error: Optional[WpError] = None

    @property
    def has_errors(self) -> bool:
        return self.error is not None or self.final_precondition is None

    def hoare_triple(self, locale: str = DEFAULT_LOCALE) -> str:
        """Render {P} S {Q} with P and Q in natural language."""
        if self.has_errors:
            return "Cannot build a Hoare triple: the calculation failed"
        post = (self.postcondition.to_natural_language(locale)
                if self.postcondition is not None else phrase("unknown_post", locale))
        return (f"{{ {self.final_precondition.to_natural_language(locale)} }} "
                f"{self.original_code} {{ {post} }}")

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "code": self.original_code,
            "postcondition": self.original_postcondition,
            "ok": not self.has_errors,
        }
        if self.final_precondition is not None:
            d["precondition"] = self.final_precondition.to_text()
        if self.steps:
            d["steps"] = [s.to_dict() for s in self.steps]
        if self.error is not None:
            d["error"] = self.error.to_dict()
        return d


def calculate(code: str, postcondition: str, trace: bool = True,
              locale: str = DEFAULT_LOCALE,
              max_depth: int = DEFAULT_MAX_DEPTH) -> WpResult:
    """Parse code and postcondition and compute the weakest precondition."""
    result = WpResult(original_code=code, original_postcondition=postcondition)
    steps: Optional[List[TraceStep]] = result.steps if trace else None
    try:
        parser = Parser(max_depth)
        statement = parser.parse_statement(code)
        post = parser.parse_predicate(postcondition)
        result.statement = statement
        result.postcondition = post

        record(steps, "Input", statement.to_text(), post.to_text(),
               explanation=f"Postcondition: {post.to_natural_language(locale)}")
        final = weakest_precondition(statement, post, steps, locale)
        record(steps, "Final precondition", statement.to_text(), post.to_text(),
               final.to_text(), final.to_natural_language(locale))
        result.final_precondition = final
    except WpException as e:
        logger.warning("WP calculation failed: %s", e)
        result.error = e.error
        result.steps = []
    return result
