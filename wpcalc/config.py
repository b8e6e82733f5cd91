"""wpcalc Configuration: project-level .wpcalcrc.yml support.

Loads configuration from .wpcalcrc.yml (or .wpcalcrc.yaml, .wpcalcrc.json)
found in the working directory or one of its parents.

Example .wpcalcrc.yml:
    locale: ru              # natural-language rendering: en | ru
    trace: true             # record calculation steps by default
    output_format: text     # text | json | markdown
    max_depth: 200          # parser nesting bound
    z3_timeout_ms: 10000
    log_level: WARNING
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import yaml

from wpcalc.errors import ConfigError
from wpcalc.parser import DEFAULT_MAX_DEPTH
from wpcalc.phrases import DEFAULT_LOCALE, locales
from wpcalc.verify import DEFAULT_TIMEOUT_MS


OUTPUT_FORMATS = ("text", "json", "markdown")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class WpConfig:
    """User-level wpcalc configuration."""
    locale: str = DEFAULT_LOCALE
    trace: bool = False
    output_format: str = "text"
    max_depth: int = DEFAULT_MAX_DEPTH
    z3_timeout_ms: int = DEFAULT_TIMEOUT_MS
    log_level: str = "WARNING"


# ---------------------------------------------------------------------------
# Config file names (in priority order)
# ---------------------------------------------------------------------------

_CONFIG_FILES = [
    ".wpcalcrc.yml",
    ".wpcalcrc.yaml",
    ".wpcalcrc.json",
]


def find_config(start_dir: str = ".") -> Optional[str]:
    """Find the nearest config file by walking up from start_dir."""
    current = os.path.abspath(start_dir)
    while True:
        for name in _CONFIG_FILES:
            path = os.path.join(current, name)
            if os.path.isfile(path):
                return path
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Optional[str] = None, start_dir: str = ".") -> WpConfig:
    """Load configuration from a file.

    If no path is given, searches for a config file starting from start_dir.
    If no config file is found, returns defaults.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        return WpConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}", fragment=path) from e

    try:
        if path.endswith(".json"):
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Malformed config file {path}: {e}", fragment=path) from e

    if data is None:
        return WpConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping", fragment=path)
    return _dict_to_config(data)


def _dict_to_config(data: Dict[str, Any]) -> WpConfig:
    """Convert a parsed dict to WpConfig, validating every known key."""
    config = WpConfig()
    known = {f.name for f in fields(WpConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {unknown}")

    try:
        if "locale" in data:
            config.locale = str(data["locale"])
        if "trace" in data:
            config.trace = bool(data["trace"])
        if "output_format" in data:
            config.output_format = str(data["output_format"])
        if "max_depth" in data:
            config.max_depth = int(data["max_depth"])
        if "z3_timeout_ms" in data:
            config.z3_timeout_ms = int(data["z3_timeout_ms"])
        if "log_level" in data:
            config.log_level = str(data["log_level"]).upper()
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid config value: {e}") from e

    if config.locale not in locales():
        raise ConfigError(f"Unknown locale '{config.locale}'. Available: {locales()}")
    if config.output_format not in OUTPUT_FORMATS:
        raise ConfigError(f"Unknown output format '{config.output_format}'")
    if config.max_depth < 1:
        raise ConfigError("max_depth must be positive")
    if config.log_level not in LOG_LEVELS:
        raise ConfigError(f"Unknown log level '{config.log_level}'")
    return config
