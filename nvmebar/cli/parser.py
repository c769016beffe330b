"""Argument parser for nvmebarctl CLI."""

from __future__ import annotations

import argparse

from nvmebar import __version__

from .helpers import OUTPUT_FORMATS


def _build_parser() -> argparse.ArgumentParser:
    """Build the nvmebarctl argument parser."""
    parser = argparse.ArgumentParser(
        prog="nvmebarctl",
        description="Decode and validate an NVMe controller register (BAR0) dump",
        epilog=(
            "Input formats: hex dump (\"00000000: ff 3f 01 14 30 00 00 00 ...\") "
            "or raw binary. Reads stdin when no file is given."
        ),
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"%(prog)s {__version__} (nvmebar)",
    )
    parser.add_argument("file_pos", nargs="?", default=None, metavar="FILE", help="Input file (positional)")
    parser.add_argument("-f", "--file", default=None, dest="file_flag", help="Input file (hex dump or binary)")

    fmt = parser.add_mutually_exclusive_group()
    fmt.add_argument("-j", "--json", action="store_const", const="json", dest="output", help="JSON output")
    fmt.add_argument("--yaml", action="store_const", const="yaml", dest="output", help="YAML output")
    fmt.add_argument("--format", choices=OUTPUT_FORMATS, dest="output", help="Output format (default: table)")

    parser.add_argument(
        "--registers",
        nargs="?",
        const="",
        default=None,
        metavar="NAME",
        help="List the register map (or one register's fields) instead of decoding",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=False,
        help="Exit 1 when any error-level diagnostic is reported",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for stderr diagnostics (default: $NVMEBAR_LOG_LEVEL or WARNING)",
    )
    return parser
