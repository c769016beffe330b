"""Tests for the nvmebarctl command-line interface."""

from __future__ import annotations

import io
import json
import logging

import pytest
import yaml

from nvmebar.cli import main
from nvmebar.cli.parser import _build_parser


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """main() reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("NVMEBAR_FORMAT", raising=False)
    monkeypatch.delenv("NVMEBAR_LOG_LEVEL", raising=False)


@pytest.fixture
def dump_file(tmp_path, sample_hex_dump):
    path = tmp_path / "bar0.txt"
    path.write_text(sample_hex_dump)
    return path


def _registers(doc):
    return {r["name"]: r for r in doc["registers"]}


# =============================================================================
# Parser
# =============================================================================


class TestParser:
    def test_defaults(self):
        args = _build_parser().parse_args([])
        assert args.file_pos is None
        assert args.file_flag is None
        assert args.output is None
        assert args.registers is None
        assert args.strict is False

    def test_json_flag(self):
        assert _build_parser().parse_args(["-j"]).output == "json"

    def test_format_flags_exclusive(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["--json", "--yaml"])

    def test_registers_without_name(self):
        assert _build_parser().parse_args(["--registers"]).registers == ""

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "nvmebarctl" in capsys.readouterr().out

    def test_help(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0


# =============================================================================
# Decode output
# =============================================================================


class TestDecodeTable:
    def test_table_output(self, dump_file, capsys):
        rc = main([str(dump_file)])
        out = capsys.readouterr().out
        assert rc == 0
        assert "Total bytes parsed: 64" in out
        assert "[0x00] CAP - Controller Capabilities" in out
        assert "Value: 0x000000303C03FFFF" in out
        assert "Bytes: ff ff 03 3c 30 00 00 00" in out
        assert "[0x20] NSSR - NVM Subsystem Reset (Write-Only)" in out
        assert "Value: N/A" in out
        assert "INFO: The controller is reporting that it is ready" in out
        assert "Summary: 0 error(s), 0 warning(s), 1 info" in out

    def test_field_lines(self, dump_file, capsys):
        main(["--file", str(dump_file)])
        out = capsys.readouterr().out
        assert "  MQES         [15:0    ] = 0xFFFF (65536 entries)" in out
        assert "  Reserved3    [63:56   ] = -" in out

    def test_register_order(self, dump_file, capsys):
        main([str(dump_file)])
        out = capsys.readouterr().out
        names = ["CAP", "VS", "INTMS", "INTMC", "CC", "CSTS", "NSSR", "AQA", "ASQ", "ACQ"]
        positions = [out.index(f"] {n} - ") for n in names]
        assert positions == sorted(positions)

    def test_field_diagnostics_rendered(self, tmp_path, make_block, capsys):
        path = tmp_path / "bad.bin"
        path.write_bytes(make_block(CAP=0xFF | (1 << 37), AQA=0x001F0000, ASQ=0x1000, ACQ=0x1001))
        rc = main([str(path)])
        out = capsys.readouterr().out
        assert rc == 0
        assert "    ERROR: ASQS must not be zero." in out
        assert "  ERROR: ACQ address (0x0000000000001001)" in out


class TestDecodeStructured:
    def test_json_output(self, dump_file, capsys):
        rc = main(["--json", str(dump_file)])
        doc = json.loads(capsys.readouterr().out)
        assert rc == 0
        assert doc["totalBytes"] == 64
        assert doc["summary"] == {"error": 0, "warning": 0, "info": 1}
        regs = _registers(doc)
        assert list(regs) == ["CAP", "VS", "INTMS", "INTMC", "CC", "CSTS", "NSSR", "AQA", "ASQ", "ACQ"]

    def test_json_64_bit_values_are_strings(self, dump_file, capsys):
        main(["-j", str(dump_file)])
        regs = _registers(json.loads(capsys.readouterr().out))
        assert regs["CAP"]["value"] == str(0x0000_0030_3C03_FFFF)
        assert regs["ASQ"]["value"] == str(0xFFA4C000)
        assert regs["VS"]["value"] == 0x00010400
        assert regs["NSSR"]["value"] == "N/A"
        mqes = regs["CAP"]["fields"][0]
        assert mqes == {
            "name": "MQES",
            "bits": "15:0",
            "raw": "65535",
            "interpretation": "65536 entries",
            "diagnostics": [],
        }
        assert regs["AQA"]["fields"][0]["raw"] == 0x1F

    def test_json_diagnostics(self, dump_file, capsys):
        main(["-j", str(dump_file)])
        regs = _registers(json.loads(capsys.readouterr().out))
        rdy = regs["CSTS"]["fields"][0]
        assert rdy["diagnostics"][0]["level"] == "info"

    def test_yaml_output(self, dump_file, capsys):
        rc = main(["--yaml", str(dump_file)])
        doc = yaml.safe_load(capsys.readouterr().out)
        assert rc == 0
        assert doc["totalBytes"] == 64
        assert _registers(doc)["CC"]["value"] == 0x00464001

    def test_format_from_environment(self, dump_file, capsys, monkeypatch):
        monkeypatch.setenv("NVMEBAR_FORMAT", "json")
        main([str(dump_file)])
        assert json.loads(capsys.readouterr().out)["totalBytes"] == 64

    def test_flag_overrides_environment(self, dump_file, capsys, monkeypatch):
        monkeypatch.setenv("NVMEBAR_FORMAT", "json")
        main(["--format", "table", str(dump_file)])
        assert "NVMe BAR0 Register Decode" in capsys.readouterr().out

    def test_bad_environment_format_falls_back(self, dump_file, capsys, monkeypatch):
        monkeypatch.setenv("NVMEBAR_FORMAT", "xml")
        assert main([str(dump_file)]) == 0
        assert "NVMe BAR0 Register Decode" in capsys.readouterr().out


# =============================================================================
# Input sources and errors
# =============================================================================


class TestInputs:
    def test_stdin(self, monkeypatch, capsys, sample_hex_dump):
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(sample_hex_dump.encode())))
        rc = main(["--json"])
        assert rc == 0
        assert json.loads(capsys.readouterr().out)["totalBytes"] == 64

    def test_binary_file(self, tmp_path, make_block, capsys):
        path = tmp_path / "bar0.bin"
        path.write_bytes(make_block(VS=0x00020000))
        main(["-j", str(path)])
        assert _registers(json.loads(capsys.readouterr().out))["VS"]["value"] == 0x00020000

    def test_short_input(self, tmp_path, capsys):
        path = tmp_path / "short.txt"
        path.write_text("00000000: ff ff 03 3c\n")
        rc = main([str(path)])
        captured = capsys.readouterr()
        assert rc == 2
        assert "Error: Data is insufficient. At least 64 bytes are required" in captured.err
        assert captured.out == ""

    def test_short_input_json(self, tmp_path, capsys):
        path = tmp_path / "short.txt"
        path.write_text("ff ff")
        rc = main(["--json", str(path)])
        assert rc == 2
        assert "At least 64 bytes" in json.loads(capsys.readouterr().out)["error"]

    def test_malformed_hex(self, tmp_path, capsys):
        path = tmp_path / "bad.txt"
        path.write_text("00000000: zz 00\n")
        assert main([str(path)]) == 2
        assert "invalid hexadecimal" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.bin")]) == 2
        assert "Error:" in capsys.readouterr().err

    def test_empty_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(b"")))
        assert main([]) == 2
        assert "No input provided" in capsys.readouterr().err

    def test_file_given_twice(self, dump_file):
        with pytest.raises(SystemExit) as exc_info:
            main([str(dump_file), "--file", str(dump_file)])
        assert exc_info.value.code == 2


class TestStrict:
    def test_strict_with_errors(self, tmp_path, capsys):
        path = tmp_path / "zero.bin"
        path.write_bytes(bytes(64))
        assert main(["--strict", str(path)]) == 1
        assert main([str(path)]) == 0

    def test_strict_clean(self, dump_file):
        # Only an info diagnostic
        assert main(["--strict", str(dump_file)]) == 0


# =============================================================================
# Register map listing
# =============================================================================


class TestRegisters:
    def test_list_table(self, capsys):
        assert main(["--registers"]) == 0
        out = capsys.readouterr().out
        assert "Register map: nvme_bar0 (64 bytes)" in out
        assert "0x14  CC" in out

    def test_list_json(self, capsys):
        main(["--registers", "--json"])
        doc = json.loads(capsys.readouterr().out)
        assert doc["map"] == "nvme_bar0"
        assert [r["name"] for r in doc["registers"]][:2] == ["CAP", "VS"]

    def test_single_register(self, capsys):
        assert main(["--registers", "cc"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("CC @ 0x14 (4B)")
        assert "MPS" in out
        assert "mask=0x780" in out

    def test_single_register_json(self, capsys):
        main(["--json", "--registers", "NSSR"])
        doc = json.loads(capsys.readouterr().out)
        assert doc["write_only"] is True
        assert doc["fields"] == {}

    def test_unknown_register(self, capsys):
        assert main(["--registers", "BOGUS"]) == 2
        assert "not found" in capsys.readouterr().err


# =============================================================================
# Logging
# =============================================================================


class TestLogging:
    def test_debug_goes_to_stderr(self, dump_file, capsys):
        main(["--log-level", "DEBUG", "--json", str(dump_file)])
        captured = capsys.readouterr()
        json.loads(captured.out)  # stdout stays clean JSON
        assert "Decoded 10 registers" in captured.err

    def test_default_is_quiet(self, dump_file, capsys):
        main([str(dump_file)])
        assert capsys.readouterr().err == ""
