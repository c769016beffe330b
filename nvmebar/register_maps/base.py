"""Register map data model for the NVMe controller register block.

Provides dataclasses for register definitions loaded from the package's JSON
register maps, plus the unit conversions the NVMe specification applies to
individual fields (entry counts, page-size exponents, timeout scaling).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Optional

# Field names starting with this prefix are reserved ("must be zero") ranges.
RESERVED_PREFIX = "Reserved"

PAGE_SIZE_BASE = 4096  # CAP.MPSMIN / CC.MPS are exponents over 4 KiB
TIMEOUT_UNIT_MS = 500  # CAP.TO is in 500 ms units


# =============================================================================
# Unit conversions
# =============================================================================

def queue_entries(raw: int) -> int:
    """Queue sizes are stored as size-minus-one."""
    return raw + 1


def page_size_bytes(exponent: int) -> int:
    """Memory page size for an MPS/MPSMIN/MPSMAX exponent."""
    return PAGE_SIZE_BASE * (2 ** exponent)


def timeout_ms(raw: int) -> int:
    return raw * TIMEOUT_UNIT_MS


def doorbell_stride_bytes(raw: int) -> int:
    return 4 << raw


def entry_size_bytes(exponent: int) -> int:
    """I/O queue entry size (IOSQES/IOCQES) for a power-of-two exponent."""
    return 2 ** exponent


_FORMATTERS: dict[str, Callable[[int, "BitField"], str]] = {
    "entries": lambda raw, bf: f"{queue_entries(raw)} entries",
    "timeout_ms": lambda raw, bf: f"{timeout_ms(raw)} ms",
    "stride": lambda raw, bf: f"{doorbell_stride_bytes(raw)} bytes",
    "page_size": lambda raw, bf: f"{page_size_bytes(raw)} B",
    "pow2_bytes": lambda raw, bf: f"{entry_size_bytes(raw)} bytes",
    "decimal": lambda raw, bf: str(raw),
    "selector": lambda raw, bf: f"0x{raw:X} ({bf.note})" if bf.note else f"0x{raw:X}",
}

FORMATS = frozenset(_FORMATTERS)


# =============================================================================
# Definitions
# =============================================================================

@dataclass(frozen=True)
class BitField:
    """A named bit or bit range within a register."""

    name: str
    bit: int | None = None  # Single bit position
    bits: tuple[int, int] | None = None  # (low, high) bit range, inclusive
    description: str = ""
    values: Mapping[str, str] | None = None  # Enum mapping: {"0": "No", "1": "Yes"}
    format: str | None = None  # Key into _FORMATTERS
    note: str = ""

    def __post_init__(self) -> None:
        if self.values is not None:
            object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    @property
    def low(self) -> int:
        if self.bit is not None:
            return self.bit
        if self.bits is not None:
            return self.bits[0]
        return 0

    @property
    def high(self) -> int:
        if self.bit is not None:
            return self.bit
        if self.bits is not None:
            return self.bits[1]
        return 0

    @property
    def width(self) -> int:
        return self.high - self.low + 1

    @property
    def mask(self) -> int:
        """Compute bitmask for this field."""
        return ((1 << self.width) - 1) << self.low

    @property
    def shift(self) -> int:
        """Bit position of the LSB."""
        return self.low

    @property
    def bit_range(self) -> str:
        """Bit range as written in the NVMe specification ("15:0" or "16")."""
        if self.high == self.low:
            return str(self.low)
        return f"{self.high}:{self.low}"

    @property
    def is_reserved(self) -> bool:
        return self.name.startswith(RESERVED_PREFIX)

    def extract(self, raw: int) -> int:
        """Extract this field's value from a raw register value."""
        return (raw & self.mask) >> self.shift

    def interpret(self, value: int) -> Optional[str]:
        """Human-readable meaning of an extracted field value.

        Returns None for reserved fields and fields without a defined
        interpretation.
        """
        if self.is_reserved:
            return None
        if self.values:
            return self.values.get(str(value), f"unknown({value})")
        if self.format:
            return _FORMATTERS[self.format](value, self)
        return None


@dataclass(frozen=True)
class Register:
    """A fixed-offset register in the controller block."""

    name: str
    offset: int
    size: int = 4  # bytes
    description: str = ""
    bit_fields: tuple[BitField, ...] = ()
    write_only: bool = False

    @property
    def width_bits(self) -> int:
        return self.size * 8

    def get_field(self, name: str) -> BitField | None:
        for bf in self.bit_fields:
            if bf.name == name:
                return bf
        return None


@dataclass(frozen=True)
class RegisterGroup:
    """A named group of related registers."""

    name: str
    registers: Mapping[str, Register] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "registers", MappingProxyType(dict(self.registers)))


@dataclass(frozen=True)
class RegisterMap:
    """Complete register map for a register block, loaded from JSON.

    Loaded maps are cached and shared by every decode, so the map and its
    groups are read-only.
    """

    name: str
    standard: str = ""
    block_size: int = 64
    groups: Mapping[str, RegisterGroup] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "groups", MappingProxyType(dict(self.groups)))

    def find_register(self, name: str) -> Register | None:
        """Find a register by name across all groups."""
        for grp in self.groups.values():
            if name in grp.registers:
                return grp.registers[name]
        return None

    def all_registers(self) -> list[Register]:
        """Flat list of all registers, in ascending offset order."""
        regs = []
        for grp in self.groups.values():
            regs.extend(grp.registers.values())
        return sorted(regs, key=lambda r: r.offset)
