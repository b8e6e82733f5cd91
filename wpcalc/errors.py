"""Structured error objects for the wpcalc core.

Every error carries a kind, a message and, where one exists, the source
fragment that caused it. Errors are raised synchronously and propagate to the
immediate caller; the core never retries or swallows them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    PARSE_ERROR = "parse_error"
    INVALID_ARGUMENT = "invalid_argument"
    UNSUPPORTED_STATEMENT = "unsupported_statement"
    EVALUATION_ERROR = "evaluation_error"
    VERIFICATION_ERROR = "verification_error"
    CONFIG_ERROR = "config_error"


@dataclass
class WpError:
    kind: ErrorKind
    message: str
    fragment: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.fragment is not None:
            d["fragment"] = self.fragment
        if self.details:
            d["details"] = self.details
        return d

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def __str__(self) -> str:
        return f"[{self.kind.value}]: {self.message}"


class WpException(Exception):
    """Exception wrapping a single WpError."""

    kind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str, fragment: Optional[str] = None,
                 details: Optional[dict] = None):
        self.error = WpError(
            kind=self.kind,
            message=message,
            fragment=fragment,
            details=details or {},
        )
        super().__init__(message)

    @property
    def fragment(self) -> Optional[str]:
        return self.error.fragment

    def to_dict(self) -> dict[str, Any]:
        return self.error.to_dict()

    def to_json(self, indent: int = 2) -> str:
        return self.error.to_json(indent=indent)


class ParseError(WpException):
    """Malformed statement, predicate or expression text."""

    kind = ErrorKind.PARSE_ERROR


class InvalidArgument(WpException, ValueError):
    """Malformed tree construction: empty names, unknown operators, missing children."""

    kind = ErrorKind.INVALID_ARGUMENT


class UnsupportedStatement(WpException):
    """The transformer was asked for a statement variant it does not know."""

    kind = ErrorKind.UNSUPPORTED_STATEMENT


class EvaluationError(WpException):
    kind = ErrorKind.EVALUATION_ERROR


class VerificationError(WpException):
    kind = ErrorKind.VERIFICATION_ERROR


class ConfigError(WpException):
    kind = ErrorKind.CONFIG_ERROR


def parse_error(message: str, fragment: str) -> ParseError:
    return ParseError(f"{message}: '{fragment}'", fragment=fragment)


def invalid_argument(message: str, **details: Any) -> InvalidArgument:
    return InvalidArgument(message, details=details)
