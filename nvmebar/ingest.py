"""Input handling: turn hex-dump text or raw binary into a register block.

Accepted hex-dump format (as produced by most register dump tools):

    00000000: ff ff 03 3c 30 00 00 00 00 04 01 00 00 00 00 00
    00000010: 00 00 00 00 01 40 46 00 00 00 00 00 09 00 00 00

Anything before the first colon on a line is an address and is discarded.
Lines without a colon are taken whole. Tokens are whitespace-separated hex
bytes; a single digit is treated as a zero-padded byte.
"""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .errors import InputSizeError, MalformedHexDumpError, NoInputError
from .register_maps.decoder import DecodedRegister
from .validator import decode_and_validate

logger = logging.getLogger(__name__)

MIN_BLOCK_SIZE = 64

_NON_HEX = re.compile(r"[^0-9a-fA-F]")


@dataclass
class ParseResult:
    """Annotated registers plus the bytes they were decoded from."""

    registers: list[DecodedRegister] = field(default_factory=list)
    data: bytes = b""

    def register_bytes(self, reg: DecodedRegister) -> bytes:
        """The raw bytes a register occupies, in memory order."""
        return self.data[reg.offset:reg.offset + reg.size]


def parse_hex_dump(text: str) -> bytes:
    """Parse hex-dump text into bytes.

    Raises:
        MalformedHexDumpError: If anything other than hex digits and
            whitespace remains after stripping addresses.
    """
    parts = []
    for line in text.split("\n"):
        if ":" in line:
            line = line.partition(":")[2]
        parts.append(line)

    tokens = " ".join(parts).split()
    hex_string = "".join(tok.rjust(2, "0") for tok in tokens)

    if _NON_HEX.search(hex_string):
        raise MalformedHexDumpError("Input contains invalid hexadecimal characters.")

    # A dangling nibble cannot form a byte
    usable = len(hex_string) - (len(hex_string) % 2)
    return bytes.fromhex(hex_string[:usable])


def parse_binary(data: Union[bytes, bytearray, memoryview]) -> bytes:
    return bytes(data)


def looks_like_text(data: bytes) -> bool:
    """True when every byte is printable ASCII, tab, LF or CR."""
    return all(32 <= b <= 126 or b in (9, 10, 13) for b in data)


def parse_input(source: Union[str, bytes, bytearray]) -> ParseResult:
    """Decode and validate a register block from text or binary input.

    Strings are parsed as hex dumps; bytes are taken as the raw block.

    Raises:
        InputSizeError: Fewer than 64 bytes after parsing.
        MalformedHexDumpError: Invalid characters in a hex dump.
    """
    if isinstance(source, str):
        data = parse_hex_dump(source)
        logger.debug("Parsed hex dump: %d bytes", len(data))
    else:
        data = parse_binary(source)
        logger.debug("Binary input: %d bytes", len(data))

    if len(data) < MIN_BLOCK_SIZE:
        raise InputSizeError(len(data), MIN_BLOCK_SIZE)

    return ParseResult(registers=decode_and_validate(data), data=data)


def _classify(raw: bytes) -> Union[str, bytes]:
    if looks_like_text(raw):
        logger.debug("Input detected as hex-dump text")
        return raw.decode("ascii")
    logger.debug("Input detected as binary")
    return raw


def read_input(path: Optional[Union[str, Path]] = None) -> Union[str, bytes]:
    """Read input from a file, or stdin when no path is given.

    Returns text when the content is entirely printable (a hex dump),
    otherwise the raw bytes.

    Raises:
        OSError: If the file cannot be read.
        NoInputError: If stdin is empty.
    """
    if path is not None:
        with open(path, "rb") as f:
            raw = f.read()
        logger.debug("Read %d bytes from %s", len(raw), path)
        return _classify(raw)

    raw = sys.stdin.buffer.read()
    if not raw:
        raise NoInputError("No input provided")
    return _classify(raw)
