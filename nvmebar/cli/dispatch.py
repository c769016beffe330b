"""Command dispatch for nvmebarctl CLI."""

from __future__ import annotations

import sys
from typing import Optional

from nvmebar.cli.helpers import _resolve_log_level, _resolve_output, _setup_logging
from nvmebar.cli.parser import _build_parser


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the ``nvmebarctl`` CLI.

    Args:
        argv: Argument list to parse.  Defaults to ``sys.argv[1:]``.

    Returns:
        Exit code: 0 on success, 1 on strict-mode errors, 2 on bad input.
    """
    if argv is None:
        argv = sys.argv[1:]

    # Late import to allow tests to monkeypatch nvmebar.cli.cmd_xxx
    import nvmebar.cli as cli

    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(_resolve_log_level(args.log_level))
    output = _resolve_output(args.output)

    if args.registers is not None:
        return cli.cmd_registers(name=args.registers or None, output=output)

    if args.file_pos and args.file_flag:
        parser.error("give the input file either positionally or with --file, not both")
    path = args.file_flag or args.file_pos

    return cli.cmd_decode(path=path, output=output, strict=args.strict)
