"""Exceptions raised while ingesting, decoding or validating a register dump.

Anomalous register *values* are never exceptions; they are reported as
ValidationItem diagnostics. These exceptions abort the whole pass.
"""

from __future__ import annotations


class Bar0Error(Exception):
    """Base class for fatal nvmebar errors."""


class InputSizeError(Bar0Error, ValueError):
    """Raised when a buffer is too short to hold the register block."""

    def __init__(self, actual: int, required: int = 64):
        self.actual = actual
        self.required = required
        super().__init__(
            f"Data is insufficient. At least {required} bytes are required, "
            f"but only {actual} were found."
        )


class MalformedHexDumpError(Bar0Error, ValueError):
    """Raised when hex-dump text contains non-hexadecimal characters."""


class NoInputError(Bar0Error, ValueError):
    """Raised when stdin produced no data."""


class SchemaMismatchError(Bar0Error, RuntimeError):
    """Raised when decoded registers do not match what the validator expects."""
