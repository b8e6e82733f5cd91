"""Step records produced while computing a weakest precondition.

A trace is an ordered, append-only list of TraceStep records owned by the
caller. The transformer appends to it as it descends the statement tree; the
list has no influence on the predicate that is returned.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class TraceStep:
    label: str
    fragment: str
    before: str
    after: Optional[str] = None
    explanation: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        arrow = f" => {self.after}" if self.after is not None else ""
        return f"{self.label}: {self.fragment} | {self.before}{arrow}"


Trace = List[TraceStep]


def record(trace: Optional[Trace], label: str, fragment: str, before: str,
           after: Optional[str] = None, explanation: str = "") -> None:
    """Append a step when a trace is being collected; no-op otherwise."""
    if trace is not None:
        trace.append(TraceStep(label, fragment, before, after, explanation))


def format_trace(trace: Trace) -> str:
    lines = []
    for i, step in enumerate(trace, 1):
        lines.append(f"{i:>3}. {step.label}")
        lines.append(f"     statement:   {step.fragment}")
        lines.append(f"     before:      {step.before}")
        if step.after is not None:
            lines.append(f"     after:       {step.after}")
        if step.explanation:
            lines.append(f"     explanation: {step.explanation}")
    return "\n".join(lines)
