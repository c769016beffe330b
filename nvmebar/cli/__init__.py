"""
nvmebarctl: command-line front end for nvmebar.

Reads an NVMe BAR0 register dump (hex-dump text or raw binary, from a file
or stdin), decodes and validates it, and prints a register table, JSON or
YAML.

Usage:
    nvmebarctl dump.txt
    cat dump.txt | nvmebarctl --json
    nvmebarctl --registers CC

Entry points:
- nvmebarctl: installed console script
- Can also be called programmatically via main(argv)
"""

from __future__ import annotations

from nvmebar.cli.decode_cmds import cmd_decode, cmd_registers
from nvmebar.cli.dispatch import main

__all__ = [
    "main",
    "cmd_decode",
    "cmd_registers",
]
