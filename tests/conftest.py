"""Shared pytest fixtures for nvmebar tests."""

from __future__ import annotations

import pytest

from nvmebar.register_maps import load_register_map

# Register dump from a QEMU NVMe controller, as printed by a BAR0 hexdump.
SAMPLE_HEX_DUMP = """\
00000000: ff ff 03 3c 30 00 00 00 00 04 01 00 00 00 00 00
00000010: 00 00 00 00 01 40 46 00 00 00 00 00 09 00 00 00
00000020: 00 00 00 00 1f 00 1f 00 00 c0 a4 ff 00 00 00 00
00000030: 00 d0 a4 ff 00 00 00 00 00 00 00 00 00 00 00 00
"""


@pytest.fixture
def sample_hex_dump() -> str:
    return SAMPLE_HEX_DUMP


@pytest.fixture
def make_block():
    """Build a 64-byte register block from register values by mnemonic.

    Usage: make_block(CAP=0x..., CC=0x...) -> bytes
    """
    regmap = load_register_map()

    def _make(**values: int) -> bytes:
        data = bytearray(regmap.block_size)
        for name, value in values.items():
            reg = regmap.find_register(name)
            assert reg is not None, f"unknown register {name}"
            data[reg.offset:reg.offset + reg.size] = value.to_bytes(reg.size, "little")
        return bytes(data)

    return _make


@pytest.fixture
def healthy_values() -> dict[str, int]:
    """Register values that trigger no diagnostics at all."""
    return {
        "CAP": 0xFF | (1 << 37),  # MQES=255, NVM command set supported, MPSMIN=MPSMAX=0
        "VS": 0x00010400,  # 1.4.0
        "CC": 0x00460001,  # enabled, NVM, 4 KiB pages, 64B/16B entries
        "AQA": 0x001F001F,  # 32-entry admin queues
        "ASQ": 0x1000,
        "ACQ": 0x2000,
    }
