"""Register map loader: packaged JSON into RegisterMap dataclasses.

Usage:
    from nvmebar.register_maps import load_register_map

    regmap = load_register_map("nvme_bar0")
    cc = regmap.find_register("CC")
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path

from .base import FORMATS, BitField, Register, RegisterGroup, RegisterMap

__all__ = [
    "DEFAULT_MAP",
    "load_register_map",
    "available_maps",
    "RegisterMap",
    "RegisterGroup",
    "Register",
    "BitField",
]

logger = logging.getLogger(__name__)

DEFAULT_MAP = "nvme_bar0"

# Directory containing JSON register map files
_MAPS_DIR = Path(__file__).parent


def _parse_bit_field(name: str, definition: dict) -> BitField:
    """Parse a bit field definition from JSON."""
    bit = definition.get("bit")
    bits_raw = definition.get("bits")
    bits = tuple(bits_raw) if bits_raw else None
    fmt = definition.get("format")
    if fmt is not None and fmt not in FORMATS:
        raise ValueError(f"Field '{name}' has unknown format '{fmt}'")
    return BitField(
        name=name,
        bit=bit,
        bits=bits,
        description=definition.get("description", ""),
        values=definition.get("values"),
        format=fmt,
        note=definition.get("note", ""),
    )


def _parse_register(name: str, definition: dict) -> Register:
    """Parse a register definition from JSON."""
    address_raw = definition.get("address", "0x0")
    if isinstance(address_raw, str):
        offset = int(address_raw, 16)
    else:
        offset = int(address_raw)

    bit_fields = []
    bits_section = definition.get("bits", {})
    for bf_name, bf_def in bits_section.items():
        bit_fields.append(_parse_bit_field(bf_name, bf_def))

    return Register(
        name=name,
        offset=offset,
        size=definition.get("size", 4),
        description=definition.get("description", ""),
        bit_fields=tuple(bit_fields),
        write_only=bool(definition.get("write_only", False)),
    )


def _parse_register_group(name: str, group_data: dict) -> RegisterGroup:
    """Parse a register group from JSON.

    A group is a dict where keys starting with '_' are metadata (ignored)
    and other keys are register definitions (dicts with 'address').
    """
    registers: dict[str, Register] = {}

    for key, value in group_data.items():
        if key.startswith("_"):
            continue
        if not isinstance(value, dict):
            continue
        if "address" not in value:
            continue
        registers[key] = _parse_register(key, value)

    return RegisterGroup(name=name, registers=registers)


def load_register_map(name: str = DEFAULT_MAP) -> RegisterMap:
    """Load a register map from a JSON file.

    Maps are parsed once and cached; every call for the same name returns
    the same read-only RegisterMap.

    Args:
        name: Map name matching a JSON file (e.g., "nvme_bar0").

    Returns:
        RegisterMap with all groups and registers loaded.

    Raises:
        FileNotFoundError: If no JSON file exists for the name.
        ValueError: If a register does not fit in the block or a field
            names an unknown format.
    """
    return _load(name)


@lru_cache(maxsize=None)
def _load(name: str) -> RegisterMap:
    json_path = _MAPS_DIR / f"{name}.json"
    if not json_path.exists():
        raise FileNotFoundError(
            f"No register map for '{name}'. "
            f"Expected: {json_path}"
        )

    with open(json_path) as f:
        data = json.load(f)

    # Top-level keys that aren't register groups
    meta_keys = {"map", "standard", "block_size"}
    block_size = int(data.get("block_size", 64))

    groups: dict[str, RegisterGroup] = {}
    for key, value in data.items():
        if key in meta_keys:
            continue
        if not isinstance(value, dict):
            continue
        group = _parse_register_group(key, value)
        for reg in group.registers.values():
            if reg.offset + reg.size > block_size:
                raise ValueError(
                    f"Register '{reg.name}' at 0x{reg.offset:02X} ({reg.size}B) "
                    f"does not fit in a {block_size}-byte block"
                )
        if group.registers:  # Skip groups with no parseable registers
            groups[key] = group

    regmap = RegisterMap(
        name=data.get("map", name),
        standard=data.get("standard", ""),
        block_size=block_size,
        groups=groups,
    )
    logger.debug("Loaded register map %s (%d registers)", regmap.name, len(regmap.all_registers()))
    return regmap


def available_maps() -> list[str]:
    """List available register map names."""
    return sorted(p.stem for p in _MAPS_DIR.glob("*.json"))
