"""wpcalc CLI: command-line front end for the weakest-precondition calculator.

Commands:
  wpcalc wp CODE POST                 Compute wp(CODE, POST)
  wpcalc presets                      List the built-in examples
  wpcalc preset NAME                  Run a built-in example
  wpcalc verify PRE CODE POST         Check the Hoare triple {PRE} CODE {POST} with Z3
  wpcalc eval PRED --var x=1 ...      Evaluate a predicate in a concrete state
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import Dict, List, Optional

from wpcalc import __version__
from wpcalc.calculator import calculate
from wpcalc.config import LOG_LEVELS, OUTPUT_FORMATS, WpConfig, load_config
from wpcalc.errors import WpException
from wpcalc.expressions import IDENTIFIER_RE
from wpcalc.formatters import format_result, format_verification
from wpcalc.parser import Parser
from wpcalc.phrases import locales
from wpcalc.presets import get_default_presets, get_preset
from wpcalc.verify import TripleVerifier


def _settings(args: argparse.Namespace) -> WpConfig:
    """Config file values, overridden by whatever was given on the command line."""
    config = replace(args.base_config)
    if getattr(args, "locale", None):
        config.locale = args.locale
    if getattr(args, "output_format", None):
        config.output_format = args.output_format
    if getattr(args, "trace", False):
        config.trace = True
    if getattr(args, "timeout", None) is not None:
        config.z3_timeout_ms = args.timeout
    return config


def _run_wp(code: str, post: str, config: WpConfig) -> int:
    result = calculate(code, post, trace=config.trace, locale=config.locale,
                       max_depth=config.max_depth)
    print(format_result(result, config.output_format, config.locale))
    return 1 if result.has_errors else 0


def cmd_wp(args: argparse.Namespace) -> int:
    """Compute the weakest precondition of a program."""
    return _run_wp(args.code, args.postcondition, _settings(args))


def cmd_presets(args: argparse.Namespace) -> int:
    """List the built-in examples."""
    presets = get_default_presets()
    if _settings(args).output_format == "json":
        print(json.dumps([p._asdict() for p in presets], indent=2, ensure_ascii=False))
        return 0
    for preset in presets:
        print(f"{preset.name}")
        print(f"    {preset.description}")
        print(f"    code: {preset.code}")
        print(f"    post: {preset.postcondition}")
    return 0


def cmd_preset(args: argparse.Namespace) -> int:
    """Run one of the built-in examples."""
    try:
        preset = get_preset(args.name)
    except KeyError:
        print(json.dumps({"error": f"Unknown preset: {args.name}"}))
        return 1
    return _run_wp(preset.code, preset.postcondition, _settings(args))


def cmd_verify(args: argparse.Namespace) -> int:
    """Check a Hoare triple with Z3."""
    config = _settings(args)
    parser = Parser(config.max_depth)
    pre = parser.parse_predicate(args.precondition)
    statement = parser.parse_statement(args.code)
    post = parser.parse_predicate(args.postcondition)
    result = TripleVerifier(config.z3_timeout_ms).verify(pre, statement, post)
    print(format_verification(result, "json" if config.output_format == "json" else "text"))
    return 0 if result.valid else 2


def _parse_bindings(pairs: List[str]) -> Dict[str, float]:
    bindings: Dict[str, float] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep:
            raise argparse.ArgumentTypeError(f"Expected NAME=VALUE, got '{pair}'")
        name = name.strip()
        if not IDENTIFIER_RE.fullmatch(name):
            raise argparse.ArgumentTypeError(f"Invalid variable name '{name}'")
        try:
            bindings[name] = float(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"Not a number: '{value}'") from None
    return bindings


def cmd_eval(args: argparse.Namespace) -> int:
    """Evaluate a predicate, optionally after running a program."""
    config = _settings(args)
    parser = Parser(config.max_depth)
    state = _parse_bindings(args.var or [])
    if args.code:
        state = parser.parse_statement(args.code).execute(state)
    value = parser.parse_predicate(args.predicate).evaluate(state)
    if config.output_format == "json":
        print(json.dumps({"value": value, "state": state}))
    else:
        print("true" if value else "false")
    return 0 if value else 3


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--locale", choices=locales(), help="Natural-language locale")
    p.add_argument("--format", dest="output_format", choices=OUTPUT_FORMATS,
                   help="Output format (default: text)")


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="wpcalc",
        description="wpcalc: weakest-precondition calculator for a small imperative language",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Path to a .wpcalcrc.yml/.json file")
    parser.add_argument("--log-level", dest="log_level", choices=LOG_LEVELS,
                        help="Logging level (default from config, else WARNING)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # wp
    p_wp = subparsers.add_parser("wp", help="Compute the weakest precondition")
    p_wp.add_argument("code", help="Program text, e.g. 'x := x + 1; y := x * 2'")
    p_wp.add_argument("postcondition", help="Postcondition, e.g. 'y > 20'")
    p_wp.add_argument("--trace", action="store_true", help="Show every calculation step")
    _add_common(p_wp)
    p_wp.set_defaults(func=cmd_wp)

    # presets
    p_presets = subparsers.add_parser("presets", help="List built-in examples")
    p_presets.add_argument("--format", dest="output_format", choices=OUTPUT_FORMATS,
                           help="Output format (default: text)")
    p_presets.set_defaults(func=cmd_presets)

    # preset
    p_preset = subparsers.add_parser("preset", help="Run a built-in example")
    p_preset.add_argument("name", help="Example name (see 'wpcalc presets')")
    p_preset.add_argument("--trace", action="store_true", help="Show every calculation step")
    _add_common(p_preset)
    p_preset.set_defaults(func=cmd_preset)

    # verify
    p_verify = subparsers.add_parser("verify", help="Check a Hoare triple with Z3")
    p_verify.add_argument("precondition", help="Precondition P")
    p_verify.add_argument("code", help="Program S")
    p_verify.add_argument("postcondition", help="Postcondition Q")
    p_verify.add_argument("--timeout", type=int, help="Z3 timeout in milliseconds")
    _add_common(p_verify)
    p_verify.set_defaults(func=cmd_verify)

    # eval
    p_eval = subparsers.add_parser("eval", help="Evaluate a predicate in a concrete state")
    p_eval.add_argument("predicate", help="Predicate text")
    p_eval.add_argument("--var", action="append", metavar="NAME=VALUE",
                        help="Variable binding (repeatable)")
    p_eval.add_argument("--code", help="Program to run before evaluating")
    _add_common(p_eval)
    p_eval.set_defaults(func=cmd_eval)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        args.base_config = load_config(args.config)
        config = args.base_config
        logging.basicConfig(level=args.log_level or config.log_level,
                            format="%(levelname)s %(name)s: %(message)s")
        status = args.func(args)
    except WpException as e:
        print(e.to_json())
        status = 1
    except argparse.ArgumentTypeError as e:
        print(json.dumps({"error": str(e)}))
        status = 1
    sys.exit(status)


if __name__ == "__main__":
    main()
