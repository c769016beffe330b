"""Register decoder for the NVMe controller register block.

Takes the raw bytes of a BAR0 dump and decodes them using the register
definitions from a RegisterMap JSON. All multi-byte reads are little-endian,
as mandated by the NVMe specification regardless of host byte order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..errors import InputSizeError
from . import DEFAULT_MAP, load_register_map
from .base import BitField, Register, RegisterMap

logger = logging.getLogger(__name__)


class Level(str, Enum):
    """Severity of a ValidationItem."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class ValidationItem:
    """A leveled diagnostic attached to a register or field."""

    level: Level
    message: str

    def to_dict(self) -> dict:
        return {"level": self.level.value, "message": self.message}


@dataclass(frozen=True)
class RegisterValue:
    """Raw register value tagged with its bit width.

    ``raw`` is None for write-only registers, which have no readable value.
    """

    width: int  # 32 or 64
    raw: Optional[int] = None

    @property
    def is_absent(self) -> bool:
        return self.raw is None

    @property
    def hex(self) -> str:
        """Hex string zero-padded to the register width, or "N/A"."""
        if self.raw is None:
            return "N/A"
        return f"0x{self.raw:0{self.width // 4}X}"

    def to_json(self) -> int | str:
        """JSON-safe form: 64-bit values become decimal strings."""
        if self.raw is None:
            return "N/A"
        if self.width > 32:
            return str(self.raw)
        return self.raw


@dataclass
class DecodedField:
    """A single decoded bit field."""

    name: str
    bits: str
    raw: int
    width: int  # bit width of the parent register
    interpretation: Optional[str] = None
    description: str = ""
    reserved: bool = False
    diagnostics: list[ValidationItem] = field(default_factory=list)

    @property
    def hex_raw(self) -> str:
        return f"0x{self.raw:02X}"

    def add_diagnostic(self, level: Level, message: str) -> ValidationItem:
        item = ValidationItem(level, message)
        self.diagnostics.append(item)
        return item


@dataclass
class DecodedRegister:
    """A fully decoded register with all bit fields resolved."""

    name: str
    offset: int
    size: int
    value: RegisterValue
    description: str = ""
    fields: list[DecodedField] = field(default_factory=list)
    diagnostics: list[ValidationItem] = field(default_factory=list)

    @property
    def hex_value(self) -> str:
        """Format raw value as hex string matching register size."""
        return self.value.hex

    def get_field(self, name: str) -> DecodedField | None:
        """Look up a field by exact name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def add_diagnostic(self, level: Level, message: str) -> ValidationItem:
        item = ValidationItem(level, message)
        self.diagnostics.append(item)
        return item

    def all_diagnostics(self) -> list[ValidationItem]:
        """Register-level diagnostics followed by each field's, in order."""
        items = list(self.diagnostics)
        for f in self.fields:
            items.extend(f.diagnostics)
        return items


def bytes_to_int(data: bytes, size: int) -> int:
    """Convert raw little-endian bytes to an unsigned integer.

    Args:
        data: Raw bytes starting at the register offset.
        size: Register size in bytes.

    Raises:
        InputSizeError: If fewer than ``size`` bytes are available.
    """
    if len(data) < size:
        raise InputSizeError(len(data), size)
    return int.from_bytes(data[:size], byteorder="little", signed=False)


def decode_field(bf: BitField, raw_value: int, width: int) -> DecodedField:
    """Extract and interpret one bit field from a register value."""
    extracted = bf.extract(raw_value)
    return DecodedField(
        name=bf.name,
        bits=bf.bit_range,
        raw=extracted,
        width=width,
        interpretation=bf.interpret(extracted),
        description=bf.description,
        reserved=bf.is_reserved,
    )


def decode_register(register: Register, data: bytes) -> DecodedRegister:
    """Decode one register out of a register block.

    Args:
        register: Register definition.
        data: The whole register block (the register is read at its offset).

    Returns:
        DecodedRegister with all fields resolved. Write-only registers get an
        absent value and no fields.
    """
    width = register.width_bits
    if register.write_only:
        return DecodedRegister(
            name=register.name,
            offset=register.offset,
            size=register.size,
            value=RegisterValue(width),
            description=register.description,
        )

    raw_value = bytes_to_int(data[register.offset:register.offset + register.size], register.size)
    fields = [decode_field(bf, raw_value, width) for bf in register.bit_fields]

    return DecodedRegister(
        name=register.name,
        offset=register.offset,
        size=register.size,
        value=RegisterValue(width, raw_value),
        description=register.description,
        fields=fields,
    )


def decode(data: bytes, regmap: RegisterMap | None = None) -> list[DecodedRegister]:
    """Decode a controller register block into an ordered register list.

    Args:
        data: At least ``regmap.block_size`` (64) bytes. Extra bytes are
            ignored.
        regmap: Register map to decode with (default: NVMe BAR0).

    Returns:
        Decoded registers in ascending offset order, without diagnostics.

    Raises:
        InputSizeError: If ``data`` is shorter than the register block.
    """
    if regmap is None:
        regmap = load_register_map(DEFAULT_MAP)
    if len(data) < regmap.block_size:
        raise InputSizeError(len(data), regmap.block_size)

    data = bytes(data)
    registers = [decode_register(reg, data) for reg in regmap.all_registers()]
    logger.debug("Decoded %d registers from %d bytes", len(registers), len(data))
    return registers
