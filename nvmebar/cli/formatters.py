"""Formatting helpers for decoded register display."""

from __future__ import annotations

from nvmebar.ingest import ParseResult
from nvmebar.register_maps.base import Register, RegisterMap
from nvmebar.register_maps.decoder import DecodedField, DecodedRegister, ValidationItem
from nvmebar.validator import count_by_level


def _format_items(items: list[ValidationItem], indent: str) -> list[str]:
    return [f"{indent}{item.level.value.upper()}: {item.message}" for item in items]


def _field_line(f: DecodedField) -> str:
    raw = "-" if f.reserved else f.hex_raw
    line = f"  {f.name:<12} [{f.bits:<8}] = {raw}"
    if f.interpretation:
        line += f" ({f.interpretation})"
    return line


def format_table(result: ParseResult) -> str:
    """Render a ParseResult as the human-readable register table."""
    lines = [
        "=" * 80,
        "NVMe BAR0 Register Decode",
        "=" * 80,
        f"Total bytes parsed: {len(result.data)}",
    ]

    for reg in result.registers:
        lines.append("")
        lines.append(f"[0x{reg.offset:02X}] {reg.name} - {reg.description}")
        lines.append("-" * 60)
        lines.append(f"Value: {reg.hex_value}")
        lines.append("Bytes: " + " ".join(f"{b:02x}" for b in result.register_bytes(reg)))

        if reg.diagnostics:
            lines.append("")
            lines.append("Register Validation:")
            lines.extend(_format_items(reg.diagnostics, "  "))

        if reg.fields:
            lines.append("")
            lines.append("Fields:")
            for f in reg.fields:
                lines.append(_field_line(f))
                lines.extend(_format_items(f.diagnostics, "    "))

    counts = count_by_level(result.registers)
    lines.append("")
    lines.append(
        f"Summary: {counts['error']} error(s), {counts['warning']} warning(s), "
        f"{counts['info']} info"
    )
    return "\n".join(lines)


def field_to_dict(f: DecodedField) -> dict:
    return {
        "name": f.name,
        "bits": f.bits,
        # Fields of 64-bit registers are strings, like the register value
        "raw": str(f.raw) if f.width > 32 else f.raw,
        "interpretation": f.interpretation,
        "diagnostics": [item.to_dict() for item in f.diagnostics],
    }


def register_to_dict(reg: DecodedRegister) -> dict:
    return {
        "offset": reg.offset,
        "size": reg.size,
        "name": reg.name,
        "value": reg.value.to_json(),
        "description": reg.description,
        "fields": [field_to_dict(f) for f in reg.fields],
        "diagnostics": [item.to_dict() for item in reg.diagnostics],
    }


def result_to_dict(result: ParseResult) -> dict:
    """JSON/YAML-serializable form of a ParseResult."""
    return {
        "registers": [register_to_dict(reg) for reg in result.registers],
        "totalBytes": len(result.data),
        "summary": count_by_level(result.registers),
    }


def format_register_info(reg: Register) -> str:
    """Format a register definition for human display."""
    access = ", write-only" if reg.write_only else ""
    lines = [f"{reg.name} @ 0x{reg.offset:02X} ({reg.size}B{access})"]
    lines.append(f"  {reg.description}")
    if reg.bit_fields:
        lines.append("  Fields:")
        for bf in reg.bit_fields:
            lines.append(f"    {bf.name:12s} [{bf.bit_range:>5}]  mask=0x{bf.mask:X}  {bf.description}")
    return "\n".join(lines)


def format_register_map(regmap: RegisterMap) -> str:
    """One line per register definition."""
    lines = [f"Register map: {regmap.name} ({regmap.block_size} bytes)"]
    for r in regmap.all_registers():
        lines.append(f"  0x{r.offset:02X}  {r.name:6s} ({r.size}B)  {r.description}")
    return "\n".join(lines)


def register_def_to_dict(reg: Register) -> dict:
    return {
        "register": reg.name,
        "offset": f"0x{reg.offset:02X}",
        "size": reg.size,
        "description": reg.description,
        "write_only": reg.write_only,
        "fields": {
            bf.name: {"bits": bf.bit_range, "mask": f"0x{bf.mask:X}", "description": bf.description}
            for bf in reg.bit_fields
        },
    }
