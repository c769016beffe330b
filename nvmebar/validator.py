"""Consistency checks over a decoded NVMe controller register block.

Each rule inspects decoded values, alone or across registers, and appends
ValidationItem diagnostics to the most specific register or field it
concerns. Rules never remove diagnostics and never depend on each other,
only on decoded values.

validate() is meant to run once per decode; running it again on the same
registers appends the same diagnostics a second time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import SchemaMismatchError
from .register_maps.base import page_size_bytes, queue_entries
from .register_maps.decoder import (
    DecodedField,
    DecodedRegister,
    Level,
    decode,
)

logger = logging.getLogger(__name__)

CAP_ALL_ONES = (1 << 64) - 1
VS_ALL_ONES = (1 << 32) - 1
MAX_COMMAND_SET = 0x7
SHUTDOWN_RESERVED = 3


# =============================================================================
# Register lookup
# =============================================================================

@dataclass
class _Bar0:
    """The registers the rules read, resolved once by mnemonic."""

    cap: DecodedRegister
    vs: DecodedRegister
    cc: DecodedRegister
    csts: DecodedRegister
    aqa: DecodedRegister
    asq: DecodedRegister
    acq: DecodedRegister

    @classmethod
    def resolve(cls, registers: list[DecodedRegister]) -> "_Bar0":
        by_name = {r.name: r for r in registers}
        missing = [n for n in ("CAP", "VS", "CC", "CSTS", "AQA", "ASQ", "ACQ") if n not in by_name]
        if missing:
            raise SchemaMismatchError(f"Required registers not found: {', '.join(missing)}")
        return cls(
            cap=by_name["CAP"],
            vs=by_name["VS"],
            cc=by_name["CC"],
            csts=by_name["CSTS"],
            aqa=by_name["AQA"],
            asq=by_name["ASQ"],
            acq=by_name["ACQ"],
        )

    # Fields used across rules. None means the schema does not define it,
    # in which case the rule depending on it is skipped.

    @property
    def mqes(self) -> Optional[DecodedField]:
        return self.cap.get_field("MQES")

    @property
    def mpsmin(self) -> Optional[DecodedField]:
        return self.cap.get_field("MPSMIN")

    @property
    def mpsmax(self) -> Optional[DecodedField]:
        return self.cap.get_field("MPSMAX")

    @property
    def css_nvm(self) -> Optional[DecodedField]:
        return self.cap.get_field("CSS (NVM)")

    @property
    def mps(self) -> Optional[DecodedField]:
        return self.cc.get_field("MPS")

    @property
    def css(self) -> Optional[DecodedField]:
        return self.cc.get_field("CSS")

    @property
    def shn(self) -> Optional[DecodedField]:
        return self.cc.get_field("SHN")

    @property
    def rdy(self) -> Optional[DecodedField]:
        return self.csts.get_field("RDY")

    @property
    def cfs(self) -> Optional[DecodedField]:
        return self.csts.get_field("CFS")

    @property
    def shst(self) -> Optional[DecodedField]:
        return self.csts.get_field("SHST")

    @property
    def asqs(self) -> Optional[DecodedField]:
        return self.aqa.get_field("ASQS")

    @property
    def acqs(self) -> Optional[DecodedField]:
        return self.aqa.get_field("ACQS")


# =============================================================================
# Rules
# =============================================================================

def check_reserved_bits(registers: list[DecodedRegister]) -> None:
    """Reserved ranges must read as zero."""
    for reg in registers:
        for f in reg.fields:
            if f.reserved and f.raw != 0:
                f.add_diagnostic(
                    Level.WARNING,
                    f"Reserved bit(s) ({f.bits}) are not zero. (Value: {f.hex_raw})",
                )


def check_link_health(bar: _Bar0) -> None:
    """All-zero/all-one CAP or all-one VS usually means the read never reached the device."""
    if bar.cap.value.raw in (0, CAP_ALL_ONES):
        bar.cap.add_diagnostic(
            Level.ERROR,
            "CAP register has an invalid value. "
            "This may indicate a problem communicating with the device.",
        )
    if bar.vs.value.raw == VS_ALL_ONES:
        bar.vs.add_diagnostic(
            Level.ERROR,
            "VS register has an invalid value. "
            "This may indicate a problem communicating with the device.",
        )


def check_controller_status(bar: _Bar0) -> None:
    cfs = bar.cfs
    if cfs is not None and cfs.raw == 1:
        cfs.add_diagnostic(
            Level.ERROR,
            "Controller is reporting a fatal status (CFS=1). A reset is required.",
        )
    rdy = bar.rdy
    if rdy is not None and rdy.raw == 1:
        rdy.add_diagnostic(
            Level.INFO,
            "The controller is reporting that it is ready to process commands (RDY = 1).",
        )


def check_page_size(bar: _Bar0) -> None:
    mps, mpsmin, mpsmax = bar.mps, bar.mpsmin, bar.mpsmax
    if mps is None or mpsmin is None or mpsmax is None:
        return
    if mps.raw < mpsmin.raw or mps.raw > mpsmax.raw:
        mps.add_diagnostic(
            Level.ERROR,
            f"The selected Memory Page Size ({page_size_bytes(mps.raw)} B) is outside "
            f"the controller's capabilities (MPSMIN: {page_size_bytes(mpsmin.raw)} B, "
            f"MPSMAX: {page_size_bytes(mpsmax.raw)} B).",
        )


def check_command_set(bar: _Bar0) -> None:
    css, css_nvm = bar.css, bar.css_nvm
    if css is None or css_nvm is None:
        return
    if css.raw == 0 and not css_nvm.raw:
        css.add_diagnostic(
            Level.ERROR,
            "NVM Command Set was selected, but it is not supported by CAP.CSS.",
        )
    elif css.raw > MAX_COMMAND_SET:
        # CC.CSS is 3 bits wide, so this branch cannot fire for a decoded value.
        css.add_diagnostic(
            Level.WARNING,
            f"An undefined I/O Command Set (>0x{MAX_COMMAND_SET:X}) was selected.",
        )


def check_shutdown_codes(bar: _Bar0) -> None:
    shn = bar.shn
    if shn is not None and shn.raw == SHUTDOWN_RESERVED:
        shn.add_diagnostic(
            Level.WARNING,
            f"A reserved shutdown notification value ({SHUTDOWN_RESERVED}) is set.",
        )
    shst = bar.shst
    if shst is not None and shst.raw == SHUTDOWN_RESERVED:
        shst.add_diagnostic(
            Level.WARNING,
            f"Controller is in a reserved shutdown state ({SHUTDOWN_RESERVED}).",
        )


def check_admin_queue_sizes(bar: _Bar0) -> None:
    """ASQS/ACQS are compared raw against CAP.MQES; messages cite entry counts."""
    mqes = bar.mqes
    if mqes is None:
        return
    for qs in (bar.asqs, bar.acqs):
        if qs is None:
            continue
        if qs.raw > mqes.raw:
            qs.add_diagnostic(
                Level.ERROR,
                f"{qs.name} ({queue_entries(qs.raw)}) exceeds the controller's maximum "
                f"queue entries (CAP.MQES: {queue_entries(mqes.raw)}).",
            )
        if qs.raw == 0:
            qs.add_diagnostic(Level.ERROR, f"{qs.name} must not be zero.")


def check_queue_alignment(bar: _Bar0) -> None:
    mps = bar.mps
    if mps is None:
        return
    page_size = page_size_bytes(mps.raw)
    for reg in (bar.asq, bar.acq):
        address = reg.value.raw
        if address is None:
            continue
        if address % page_size != 0:
            reg.add_diagnostic(
                Level.ERROR,
                f"{reg.name} address (0x{address:016X}) is not aligned to the "
                f"Memory Page Size ({page_size}B).",
            )


_RULES: tuple[Callable[[_Bar0], None], ...] = (
    check_link_health,
    check_controller_status,
    check_page_size,
    check_command_set,
    check_shutdown_codes,
    check_admin_queue_sizes,
    check_queue_alignment,
)


# =============================================================================
# Entry points
# =============================================================================

def validate(registers: list[DecodedRegister]) -> None:
    """Annotate decoded registers in place with diagnostics.

    Args:
        registers: Output of decode().

    Raises:
        SchemaMismatchError: If a register the rules need is missing.
    """
    bar = _Bar0.resolve(registers)
    check_reserved_bits(registers)
    for rule in _RULES:
        rule(bar)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Validation finished: %s", count_by_level(registers))


def decode_and_validate(data: bytes) -> list[DecodedRegister]:
    """Decode a register block and run every rule over it."""
    registers = decode(data)
    validate(registers)
    return registers


def count_by_level(registers: list[DecodedRegister]) -> dict[str, int]:
    """Number of diagnostics per level across all registers and fields."""
    counts = {level.value: 0 for level in Level}
    for reg in registers:
        for item in reg.all_diagnostics():
            counts[item.level.value] += 1
    return counts
