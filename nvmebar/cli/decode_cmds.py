"""Decode and register-map commands for nvmebarctl."""

from __future__ import annotations

import logging
from typing import Optional

from nvmebar.errors import Bar0Error
from nvmebar.ingest import parse_input, read_input
from nvmebar.register_maps import load_register_map
from nvmebar.validator import count_by_level

from .formatters import (
    format_register_info,
    format_register_map,
    format_table,
    register_def_to_dict,
    result_to_dict,
)
from .helpers import _print, _print_error

logger = logging.getLogger(__name__)


def cmd_decode(
    *,
    path: Optional[str],
    output: str,
    strict: bool = False,
) -> int:
    """Decode and validate a register dump from a file or stdin.

    Args:
        path: Hex-dump or binary file; stdin when None.
        output: "table", "json" or "yaml".
        strict: Treat error-level diagnostics as a failing exit status.

    Returns:
        Exit code: 0 on success, 1 if strict and errors were reported,
        2 if the input could not be decoded.
    """
    try:
        source = read_input(path)
        result = parse_input(source)
    except (Bar0Error, OSError) as e:
        logger.debug("Decode failed: %s", e)
        _print_error(str(e), output=output)
        return 2

    if output == "table":
        _print(format_table(result), output=output)
    else:
        _print(result_to_dict(result), output=output)

    errors = count_by_level(result.registers)["error"]
    if strict and errors:
        return 1
    return 0


def cmd_registers(*, name: Optional[str], output: str) -> int:
    """List the register map, or one register's fields.

    Returns:
        Exit code (0 = success, 2 = unknown register).
    """
    regmap = load_register_map()

    if name:
        reg = regmap.find_register(name.upper())
        if reg is None:
            _print_error(f"Register '{name}' not found in {regmap.name}", output=output)
            return 2
        _print(format_register_info(reg) if output == "table" else register_def_to_dict(reg), output=output)
        return 0

    if output == "table":
        _print(format_register_map(regmap), output=output)
    else:
        _print(
            {
                "map": regmap.name,
                "block_size": regmap.block_size,
                "registers": [
                    {
                        "name": r.name,
                        "offset": f"0x{r.offset:02X}",
                        "size": r.size,
                        "description": r.description,
                    }
                    for r in regmap.all_registers()
                ],
            },
            output=output,
        )
    return 0
