"""
Arithmetic Unit
===============

The acc8 arithmetic/logic unit. Given two 8-bit operands, a carry input and
an operation code it produces a result, the new C/Z/N/V flags and a done
signal.

Single-cycle operations are computed on the edge that issues them. MUL, DIV
and SQRT run a small sub-state-machine:

    IDLE --request--> BUSY --steps exhausted--> DONE --> IDLE
      \\--single-cycle request------------------^

While BUSY the unit is "in progress" and ignores new requests; the caller
is expected to poll done (visible for exactly one cycle) before issuing
the next operation.

The behaviour is split the same way as the control unit:

- compute(): pure single-cycle operation table
- alu_next(): pure transition function (core, request) -> core
- ArithmeticUnit: clocked wrapper holding the current core

Copyright (c) 2026 acc8 Contributors
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum, IntEnum, auto
from typing import Optional

from .config import EmulatorConfig, MultiplyMode
from .registers import Flags

logger = logging.getLogger(__name__)


class AluOp(IntEnum):
    """Arithmetic unit operation codes."""
    ADD = 0
    SUB = 1
    MUL = 2
    DIV = 3
    AND = 4
    OR = 5
    XOR = 6
    NOT = 7
    SHL = 8
    SHR = 9
    ROL = 10
    ROR = 11
    INC = 12
    DEC = 13
    CMP = 14
    SQRT = 15


# Operations that run through the BUSY phase, with their internal step count
STEP_COUNTS: dict[AluOp, int] = {
    AluOp.MUL: 8,
    AluOp.DIV: 8,
    AluOp.SQRT: 1,
}

_NZ = Flags.Z | Flags.N


class AluPhase(Enum):
    """Sub-state of the arithmetic unit."""
    IDLE = auto()
    BUSY = auto()
    DONE = auto()


@dataclass(frozen=True)
class AluRequest:
    """
    Operation request driven by the control unit for one edge.

    Attributes:
        op: Operation to perform
        a: First operand (normally ACC)
        b: Second operand
        carry_in: Current carry flag (used by ROL/ROR)
    """
    op: AluOp
    a: int
    b: int = 0
    carry_in: bool = False


@dataclass(frozen=True)
class AluResult:
    """
    Outcome of an operation.

    Attributes:
        value: 8-bit result
        flags: New values for the flag bits in mask
        mask: Flag bits this operation affects; all others are preserved
        writes_result: False for CMP, whose value is discarded
    """
    value: int
    flags: int
    mask: int
    writes_result: bool = True

    def apply_flags(self, old_flags: int) -> int:
        """Merge the affected flag bits into an existing FLAGS value."""
        return (old_flags & ~self.mask & 0xFF) | (self.flags & self.mask)

    def flag(self, bit: Flags) -> bool:
        """Test a flag bit of the result."""
        return bool(self.flags & bit)


def _nz(value: int) -> int:
    """Z and N bits for an 8-bit value."""
    bits = 0
    if value == 0:
        bits |= Flags.Z
    if value & 0x80:
        bits |= Flags.N
    return bits


def _bit(condition: bool, bit: Flags) -> int:
    return int(bit) if condition else 0


# =============================================================================
# Single-cycle operations
# =============================================================================

def compute(op: AluOp, a: int, b: int = 0, carry_in: bool = False) -> AluResult:
    """
    Evaluate a single-cycle operation.

    Args:
        op: Operation (must not be MUL, DIV or SQRT)
        a: First operand
        b: Second operand
        carry_in: Carry flag, consumed by ROL and ROR

    Returns:
        AluResult with value, flags and affected-flag mask

    Raises:
        ValueError: If op is a multi-step operation
    """
    a &= 0xFF
    b &= 0xFF

    match op:
        case AluOp.ADD:
            total = a + b
            r = total & 0xFF
            v = ((a ^ ~b) & (a ^ r) & 0x80) != 0
            flags = _nz(r) | _bit(total > 0xFF, Flags.C) | _bit(v, Flags.V)
            return AluResult(r, flags, int(_NZ | Flags.C | Flags.V))
        case AluOp.SUB:
            r = (a - b) & 0xFF
            v = ((a ^ b) & (a ^ r) & 0x80) != 0
            flags = _nz(r) | _bit(a < b, Flags.C) | _bit(v, Flags.V)
            return AluResult(r, flags, int(_NZ | Flags.C | Flags.V))
        case AluOp.CMP:
            r = (a - b) & 0xFF
            v = ((a ^ b) & (a ^ r) & 0x80) != 0
            flags = (
                _bit(a == b, Flags.Z)
                | _bit(bool(r & 0x80), Flags.N)
                | _bit(a < b, Flags.C)
                | _bit(v, Flags.V)
            )
            return AluResult(r, flags, int(_NZ | Flags.C | Flags.V), writes_result=False)
        case AluOp.AND:
            r = a & b
            return AluResult(r, _nz(r), int(_NZ))
        case AluOp.OR:
            r = a | b
            return AluResult(r, _nz(r), int(_NZ))
        case AluOp.XOR:
            r = a ^ b
            return AluResult(r, _nz(r), int(_NZ))
        case AluOp.NOT:
            r = a ^ 0xFF
            return AluResult(r, _nz(r), int(_NZ))
        case AluOp.SHL:
            r = (a << 1) & 0xFF
            return AluResult(r, _nz(r) | _bit(bool(a & 0x80), Flags.C), int(_NZ | Flags.C))
        case AluOp.SHR:
            r = a >> 1
            return AluResult(r, _nz(r) | _bit(bool(a & 0x01), Flags.C), int(_NZ | Flags.C))
        case AluOp.ROL:
            r = ((a << 1) & 0xFF) | (1 if carry_in else 0)
            return AluResult(r, _nz(r) | _bit(bool(a & 0x80), Flags.C), int(_NZ | Flags.C))
        case AluOp.ROR:
            r = (a >> 1) | (0x80 if carry_in else 0)
            return AluResult(r, _nz(r) | _bit(bool(a & 0x01), Flags.C), int(_NZ | Flags.C))
        case AluOp.INC:
            r = (a + 1) & 0xFF
            return AluResult(r, _nz(r) | _bit(a == 0x7F, Flags.V), int(_NZ | Flags.V))
        case AluOp.DEC:
            r = (a - 1) & 0xFF
            return AluResult(r, _nz(r) | _bit(a == 0x80, Flags.V), int(_NZ | Flags.V))
        case _:
            raise ValueError(f"{op.name} is a multi-step operation")


def isqrt8(value: int) -> int:
    """Integer square root of an 8-bit value by binary search over [0, 16]."""
    lo, hi = 0, 16
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if mid * mid <= value:
            lo = mid
        else:
            hi = mid - 1
    return lo


# =============================================================================
# Sub-state machine
# =============================================================================

@dataclass(frozen=True)
class AluCore:
    """
    Complete arithmetic unit state.

    Attributes:
        phase: IDLE, BUSY or DONE
        op: Operation in progress (or last completed)
        a: Latched first operand
        b: Latched second operand
        steps_left: Internal steps still to run while BUSY
        step: Index of the next step (bit of b for MUL)
        acc: MUL partial sum / DIV quotient under construction
        remainder: DIV partial remainder
        result: Latest completed result, held until the next one
    """
    phase: AluPhase = AluPhase.IDLE
    op: Optional[AluOp] = None
    a: int = 0
    b: int = 0
    steps_left: int = 0
    step: int = 0
    acc: int = 0
    remainder: int = 0
    result: Optional[AluResult] = None


def _start(core: AluCore, request: AluRequest) -> AluCore:
    op = request.op
    if op not in STEP_COUNTS:
        result = compute(op, request.a, request.b, request.carry_in)
        return replace(core, phase=AluPhase.DONE, op=op, a=request.a & 0xFF,
                       b=request.b & 0xFF, steps_left=0, step=0, result=result)
    return AluCore(
        phase=AluPhase.BUSY,
        op=op,
        a=request.a & 0xFF,
        b=request.b & 0xFF,
        steps_left=STEP_COUNTS[op],
        result=core.result,
    )


def _run_step(core: AluCore, config: EmulatorConfig) -> AluCore:
    """Perform one internal step of a multi-step operation."""
    acc, remainder, step = core.acc, core.remainder, core.step

    if core.op == AluOp.MUL:
        if (core.b >> step) & 1:
            if config.multiply == MultiplyMode.PRODUCT:
                addend = (core.a << step) & 0xFF
            else:
                addend = core.a
            acc = (acc + addend) & 0xFF
    elif core.op == AluOp.DIV:
        # Restoring division, dividend bits MSB first
        remainder = (remainder << 1) | ((core.a >> (7 - step)) & 1)
        remainder -= core.b
        if remainder < 0:
            remainder += core.b
            acc = (acc << 1) & 0xFF
        else:
            acc = ((acc << 1) | 1) & 0xFF
    elif core.op == AluOp.SQRT:
        acc = isqrt8(core.a)

    steps_left = core.steps_left - 1
    core = replace(core, acc=acc, remainder=remainder, step=step + 1, steps_left=steps_left)
    if steps_left > 0:
        return core
    return replace(core, phase=AluPhase.DONE, result=_finish(core, config))


def _finish(core: AluCore, config: EmulatorConfig) -> AluResult:
    if core.op == AluOp.DIV:
        if core.b == 0:
            value = config.div_by_zero_quotient
            return AluResult(value, _nz(value) | Flags.V, int(_NZ | Flags.V))
        return AluResult(core.acc, _nz(core.acc), int(_NZ | Flags.V))
    return AluResult(core.acc, _nz(core.acc), int(_NZ))


def alu_next(
    core: AluCore,
    request: Optional[AluRequest],
    config: EmulatorConfig
) -> AluCore:
    """
    Pure transition function for one clock edge.

    Args:
        core: State before the edge
        request: Operation driven this cycle, or None
        config: Emulator configuration (MUL mode, DIV-by-zero quotient)

    Returns:
        State after the edge. A request arriving while BUSY is dropped.
    """
    if core.phase == AluPhase.BUSY:
        return _run_step(core, config)
    if request is not None:
        return _start(core, request)
    if core.phase == AluPhase.DONE:
        return replace(core, phase=AluPhase.IDLE)
    return core


class ArithmeticUnit:
    """
    Clocked arithmetic unit.

    Example:
        >>> alu = ArithmeticUnit()
        >>> alu.clock(AluRequest(AluOp.MUL, 3, 0b101))
        >>> while not alu.done:
        ...     alu.clock(None)
        >>> alu.result.value
        6
    """

    def __init__(self, config: Optional[EmulatorConfig] = None):
        self.config = config or EmulatorConfig()
        self.core = AluCore()

    @property
    def done(self) -> bool:
        """Done pulse; high for exactly one cycle after an operation completes."""
        return self.core.phase == AluPhase.DONE

    @property
    def busy(self) -> bool:
        """In-progress flag; new requests are ignored while set."""
        return self.core.phase == AluPhase.BUSY

    @property
    def result(self) -> Optional[AluResult]:
        """Latest completed result."""
        return self.core.result

    def clock(self, request: Optional[AluRequest], reset: bool = False) -> None:
        """
        Commit one clock edge.

        Args:
            request: Operation to start this edge, or None
            reset: Reset line; discards any operation in flight
        """
        if reset:
            self.reset()
            return
        if request is not None and self.busy:
            logger.debug(f"ALU busy with {self.core.op.name}, dropping {request.op.name}")
        self.core = alu_next(self.core, request, self.config)

    def reset(self) -> None:
        """Return to IDLE, abandoning any multi-step operation."""
        self.core = AluCore()
