"""
nvmebar - NVMe controller register (BAR0) decoder

Decodes the 64-byte NVMe admin register block into named registers and
bit fields, then checks them against the NVMe specification's rules.
"""

from .errors import (
    Bar0Error,
    InputSizeError,
    MalformedHexDumpError,
    NoInputError,
    SchemaMismatchError,
)
from .register_maps.decoder import (
    DecodedField,
    DecodedRegister,
    Level,
    RegisterValue,
    ValidationItem,
    decode,
)
from .validator import count_by_level, decode_and_validate, validate
from .ingest import ParseResult, parse_binary, parse_hex_dump, parse_input, read_input

__version__ = "1.0.0"

__all__ = [
    "Bar0Error",
    "InputSizeError",
    "MalformedHexDumpError",
    "NoInputError",
    "SchemaMismatchError",
    "DecodedField",
    "DecodedRegister",
    "Level",
    "RegisterValue",
    "ValidationItem",
    "decode",
    "validate",
    "decode_and_validate",
    "count_by_level",
    "ParseResult",
    "parse_binary",
    "parse_hex_dump",
    "parse_input",
    "read_input",
]
