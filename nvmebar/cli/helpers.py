"""Shared utilities for nvmebarctl CLI commands."""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Optional

import yaml

OUTPUT_FORMATS = ("table", "json", "yaml")
DEFAULT_FORMAT = "table"
DEFAULT_LOG_LEVEL = "WARNING"

# Environment overrides for defaults; explicit flags always win.
FORMAT_ENV = "NVMEBAR_FORMAT"
LOG_LEVEL_ENV = "NVMEBAR_LOG_LEVEL"

logger = logging.getLogger(__name__)


def _print(obj: Any, *, output: str) -> None:
    """Write a result to stdout in the requested format.

    Strings are printed as-is in table mode; anything else is serialized.
    """
    if output == "yaml":
        print(yaml.safe_dump(obj, sort_keys=False, default_flow_style=False), end="")
    elif output == "json" or not isinstance(obj, str):
        print(json.dumps(obj, indent=2))
    else:
        print(obj)


def _print_error(message: str, *, output: str) -> None:
    if output in ("json", "yaml"):
        _print({"error": message}, output=output)
    else:
        print(f"Error: {message}", file=sys.stderr)


def _resolve_output(flag: Optional[str]) -> str:
    """Output format from the command line, else $NVMEBAR_FORMAT, else table."""
    if flag:
        return flag
    env = os.environ.get(FORMAT_ENV, "").strip().lower()
    if not env:
        return DEFAULT_FORMAT
    if env not in OUTPUT_FORMATS:
        logger.warning("Ignoring %s=%r (expected one of %s)", FORMAT_ENV, env, ", ".join(OUTPUT_FORMATS))
        return DEFAULT_FORMAT
    return env


def _resolve_log_level(flag: Optional[str]) -> str:
    if flag:
        return flag
    return os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()


def _setup_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure the root logger on stderr so stdout stays parseable."""
    root = logging.getLogger()
    root.handlers.clear()

    lvl = getattr(logging, level.upper(), logging.WARNING)
    root.setLevel(lvl)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(lvl)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    root.addHandler(handler)
