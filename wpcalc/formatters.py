"""wpcalc Output Formatters: terminal, Markdown and JSON renderings.

Provides three output modes:
    text     - colored plain text with the step trace (default)
    markdown - for pasting into notes and assignments
    json     - machine-readable
"""

from __future__ import annotations

import json
import os
import sys
from typing import List

from wpcalc.calculator import WpResult
from wpcalc.phrases import DEFAULT_LOCALE
from wpcalc.trace import format_trace
from wpcalc.verify import VerificationResult, VerificationStatus


# ── ANSI color helpers ───────────────────────────────────────────────────

_NO_COLOR = os.environ.get("NO_COLOR") is not None or not sys.stdout.isatty()


def _c(code: str, text: str) -> str:
    if _NO_COLOR:
        return text
    return f"\033[{code}m{text}\033[0m"


def red(t: str) -> str:
    return _c("31", t)


def yellow(t: str) -> str:
    return _c("33", t)


def green(t: str) -> str:
    return _c("32", t)


def bold(t: str) -> str:
    return _c("1", t)


def dim(t: str) -> str:
    return _c("2", t)


ICON_ERROR = red("✖")
ICON_OK = green("✔")
ICON_UNKNOWN = yellow("?")


# ── WP results ──────────────────────────────────────────────────────────

def format_text(result: WpResult, locale: str = DEFAULT_LOCALE) -> str:
    lines: List[str] = []
    if result.has_errors:
        message = result.error.message if result.error else "no precondition computed"
        lines.append(f"{ICON_ERROR} {bold('Error')}: {message}")
        return "\n".join(lines)

    if result.steps:
        lines.append(bold("Steps"))
        lines.append(format_trace(result.steps))
        lines.append("")
    lines.append(f"{ICON_OK} {bold('wp')} = {result.final_precondition.to_text()}")
    lines.append(dim(f"  {result.final_precondition.to_natural_language(locale)}"))
    lines.append(f"  {result.hoare_triple(locale)}")
    return "\n".join(lines)


def format_markdown(result: WpResult, locale: str = DEFAULT_LOCALE) -> str:
    lines: List[str] = ["## Weakest precondition", ""]
    lines.append(f"- **Program:** `{result.original_code}`")
    lines.append(f"- **Postcondition:** `{result.original_postcondition}`")
    if result.has_errors:
        message = result.error.message if result.error else "no precondition computed"
        lines.append(f"- **Error:** {message}")
        return "\n".join(lines)
    lines.append(f"- **Precondition:** `{result.final_precondition.to_text()}`")
    lines.append(f"- **Hoare triple:** {result.hoare_triple(locale)}")
    if result.steps:
        lines.append("")
        lines.append("| # | Step | Statement | Before | After |")
        lines.append("|---|------|-----------|--------|-------|")
        for i, step in enumerate(result.steps, 1):
            after = step.after if step.after is not None else ""
            lines.append(f"| {i} | {step.label} | `{step.fragment}` | `{step.before}` | `{after}` |")
    return "\n".join(lines)


def format_json(result: WpResult) -> str:
    return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)


def format_result(result: WpResult, fmt: str = "text", locale: str = DEFAULT_LOCALE) -> str:
    """Dispatch to the appropriate formatter."""
    if fmt == "json":
        return format_json(result)
    elif fmt == "markdown":
        return format_markdown(result, locale)
    return format_text(result, locale)


# ── Triple verification ─────────────────────────────────────────────────

def format_verification(result: VerificationResult, fmt: str = "text") -> str:
    if fmt == "json":
        return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)

    if result.status is VerificationStatus.VALID:
        head = f"{ICON_OK} {bold('valid')}"
    elif result.status is VerificationStatus.INVALID:
        head = f"{ICON_ERROR} {bold('invalid')}"
    else:
        head = f"{ICON_UNKNOWN} {bold('unknown')}"
    lines = [head, f"  {result.vc}"]
    if result.counterexample:
        state = ", ".join(f"{k} = {v}" for k, v in sorted(result.counterexample.items()))
        lines.append(f"  counterexample: {state}")
    return "\n".join(lines)
