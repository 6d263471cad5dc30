"""
Control Unit
============

The top-level sequencer of the acc8 processor. It walks an explicit state
machine across fetch, decode, memory-access and computation phases:

    IDLE -> FETCH -> DECODE -> EXECUTE -+-> (done) ----------------> IDLE
                                        +-> MEM_READ -+-> MEM_READ   |
                                        |             +-> MEM_WRITE -+
                                        |             +-> ALU_OP ----+
                                        +-> MEM_WRITE ---------------+
                                        +-> ALU_OP ------------------+
                                        +-> BRANCH ------------------+
                                        +-> JUMP ---> MEM_WRITE -----+

Every byte taken from the instruction stream advances PC in the cycle it is
requested, so PC always names the next byte to fetch. A bus read issued on
one edge delivers its byte as an input to the following cycle.

As with the arithmetic unit, the behaviour is a pure function,
control_next(context, inputs) -> (context, outputs), and ControlUnit is the
clocked wrapper that applies the outputs to the register file, the
arithmetic unit and memory on each edge.

Copyright (c) 2026 acc8 Contributors
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Optional, Protocol

from acc8.cpu import isa
from .alu import AluOp, AluRequest, AluResult, ArithmeticUnit
from .config import EmulatorConfig
from .registers import STACK_PAGE, Flags, RegisterFile, RegisterSnapshot, RegisterWrites

logger = logging.getLogger(__name__)


class MemoryProtocol(Protocol):
    """Memory collaborator interface driven by the control unit."""

    def read(self, address: int) -> int:
        """Read byte from address."""
        ...

    def write(self, address: int, value: int) -> None:
        """Write byte to address."""
        ...


class ControlState(Enum):
    """Control unit states."""
    IDLE = auto()
    FETCH = auto()
    DECODE = auto()
    EXECUTE = auto()
    MEM_READ = auto()
    MEM_WRITE = auto()
    ALU_OP = auto()
    BRANCH = auto()
    JUMP = auto()


# =============================================================================
# Opcode groups
# =============================================================================

IMMEDIATE_LOADS = {isa.LDA_IMM: "acc", isa.LDX_IMM: "x", isa.LDY_IMM: "y"}
DIRECT_LOADS = {isa.LDA_DIR: "acc", isa.LDX_DIR: "x", isa.LDY_DIR: "y"}
DIRECT_STORES = {isa.STA_DIR: "acc", isa.STX_DIR: "x", isa.STY_DIR: "y"}

ALU_IMMEDIATE = {
    isa.ADD_IMM: AluOp.ADD,
    isa.SUB_IMM: AluOp.SUB,
    isa.AND_IMM: AluOp.AND,
    isa.OR_IMM: AluOp.OR,
    isa.XOR_IMM: AluOp.XOR,
    isa.CMP_IMM: AluOp.CMP,
}

ALU_DIRECT = {
    isa.ADD_DIR: AluOp.ADD,
    isa.SUB_DIR: AluOp.SUB,
    isa.AND_DIR: AluOp.AND,
    isa.OR_DIR: AluOp.OR,
    isa.XOR_DIR: AluOp.XOR,
    isa.CMP_DIR: AluOp.CMP,
}

ALU_INHERENT = {
    isa.INC: AluOp.INC,
    isa.DEC: AluOp.DEC,
    isa.NOT: AluOp.NOT,
    isa.SHL: AluOp.SHL,
    isa.SHR: AluOp.SHR,
    isa.ROL: AluOp.ROL,
    isa.ROR: AluOp.ROR,
    isa.MUL: AluOp.MUL,
    isa.DIV: AluOp.DIV,
    isa.SQRT: AluOp.SQRT,
}

# opcode -> (flag tested, branch when flag equals)
CONDITIONAL_BRANCHES = {
    isa.BEQ: (Flags.Z, True),
    isa.BNE: (Flags.Z, False),
    isa.BMI: (Flags.N, True),
    isa.BPL: (Flags.N, False),
    isa.BCS: (Flags.C, True),
    isa.BCC: (Flags.C, False),
    isa.BVS: (Flags.V, True),
    isa.BVC: (Flags.V, False),
}

PUSHES = {isa.PHA: "acc", isa.PHX: "x", isa.PHY: "y", isa.PHP: "flags"}
PULLS = {isa.PLA: "acc", isa.PLX: "x", isa.PLY: "y", isa.PLP: "flags"}

# Direct-address opcodes: MEM_READ first sees the address byte (phase 0),
# then the dereferenced data byte (phase 1).
_DIRECT_READS = set(DIRECT_LOADS) | set(ALU_DIRECT)


# =============================================================================
# Cycle records
# =============================================================================

@dataclass(frozen=True)
class BusRequest:
    """A single memory access driven for one edge."""
    address: int
    write: bool = False
    value: int = 0

    @classmethod
    def read(cls, address: int) -> "BusRequest":
        return cls(address & 0xFFFF)

    @classmethod
    def store(cls, address: int, value: int) -> "BusRequest":
        return cls(address & 0xFFFF, write=True, value=value & 0xFF)


@dataclass(frozen=True)
class ControlContext:
    """
    Control unit state register.

    Attributes:
        state: Current state
        phase: Micro-step inside states that take more than one cycle
        latch: Scratch value carried between cycles (address high byte,
            pulled low byte, JSR target)
    """
    state: ControlState = ControlState.IDLE
    phase: int = 0
    latch: int = 0


@dataclass(frozen=True)
class ControlInputs:
    """
    Everything the transition function may observe in one cycle.

    Attributes:
        regs: Register values at the start of the cycle
        data_in: Byte returned by the previous cycle's bus read
        alu_done: Arithmetic unit done pulse
        alu_result: Latest arithmetic unit result
    """
    regs: RegisterSnapshot
    data_in: int = 0
    alu_done: bool = False
    alu_result: Optional[AluResult] = None


@dataclass
class ControlOutputs:
    """
    Side-effect requests for one edge.

    At most one bus request is produced per cycle; it is either a read or
    a write, never both.
    """
    writes: RegisterWrites = field(default_factory=RegisterWrites)
    bus: Optional[BusRequest] = None
    alu: Optional[AluRequest] = None
    done: bool = False


# =============================================================================
# Transition function
# =============================================================================

def _fetch_operand(out: ControlOutputs, regs: RegisterSnapshot) -> None:
    """Read the byte at PC and advance PC past it."""
    out.bus = BusRequest.read(regs.pc)
    out.writes.pc_increment = True


def _inherent_alu_request(opcode: int, regs: RegisterSnapshot) -> AluRequest:
    carry = regs.flag(Flags.C)
    if opcode == isa.NEG:
        return AluRequest(AluOp.SUB, 0, regs.acc, carry)
    if opcode == isa.ABS:
        if regs.acc & 0x80:
            return AluRequest(AluOp.SUB, 0, regs.acc, carry)
        return AluRequest(AluOp.OR, regs.acc, 0, carry)
    op = ALU_INHERENT[opcode]
    b = regs.x if op in (AluOp.MUL, AluOp.DIV) else 0
    return AluRequest(op, regs.acc, b, carry)


def _push(out: ControlOutputs, value: int, sp: int) -> None:
    """Pre-decrement SP and write value to the stack page."""
    new_sp = (sp - 1) & 0xFF
    out.bus = BusRequest.store(STACK_PAGE | new_sp, value)
    out.writes.sp = new_sp


def _pull(out: ControlOutputs, regs: RegisterSnapshot) -> None:
    """Read the stack byte at SP and post-increment SP."""
    out.bus = BusRequest.read(regs.stack_address)
    out.writes.sp = (regs.sp + 1) & 0xFF


def _execute(
    ctx: ControlContext,
    inputs: ControlInputs,
    out: ControlOutputs
) -> ControlContext:
    regs = inputs.regs
    opcode = regs.ir

    if opcode in ALU_INHERENT or opcode in (isa.ABS, isa.NEG):
        out.alu = _inherent_alu_request(opcode, regs)
        return ControlContext(ControlState.ALU_OP)

    if (opcode in IMMEDIATE_LOADS or opcode in ALU_IMMEDIATE
            or opcode in _DIRECT_READS or opcode in DIRECT_STORES):
        _fetch_operand(out, regs)
        return ControlContext(ControlState.MEM_READ)

    if opcode in CONDITIONAL_BRANCHES:
        bit, when = CONDITIONAL_BRANCHES[opcode]
        if regs.flag(bit) == when:
            _fetch_operand(out, regs)
            return ControlContext(ControlState.BRANCH)
        # Not taken: skip the offset byte and retire
        out.writes.pc_increment = True
        out.done = True
        return ControlContext(ControlState.IDLE)

    if opcode == isa.BRA:
        _fetch_operand(out, regs)
        return ControlContext(ControlState.BRANCH)

    if opcode in (isa.JMP, isa.JSR):
        _fetch_operand(out, regs)
        return ControlContext(ControlState.JUMP)

    if opcode == isa.RTS or opcode in PULLS:
        _pull(out, regs)
        return ControlContext(ControlState.MEM_READ)

    if opcode in PUSHES:
        _push(out, getattr(regs, PUSHES[opcode]), regs.sp)
        return ControlContext(ControlState.MEM_WRITE)

    # NOP and every unlisted opcode: PC is already past the opcode byte
    out.done = True
    return ControlContext(ControlState.IDLE)


def _mem_read(
    ctx: ControlContext,
    inputs: ControlInputs,
    out: ControlOutputs,
    config: EmulatorConfig
) -> ControlContext:
    regs = inputs.regs
    opcode = regs.ir
    byte = inputs.data_in

    if opcode in IMMEDIATE_LOADS:
        setattr(out.writes, IMMEDIATE_LOADS[opcode], byte)
        out.done = True
        return ControlContext(ControlState.IDLE)

    if opcode in ALU_IMMEDIATE:
        out.alu = AluRequest(ALU_IMMEDIATE[opcode], regs.acc, byte, regs.flag(Flags.C))
        return ControlContext(ControlState.ALU_OP)

    if opcode in DIRECT_STORES:
        address = config.direct_base | byte
        out.bus = BusRequest.store(address, getattr(regs, DIRECT_STORES[opcode]))
        return ControlContext(ControlState.MEM_WRITE)

    if opcode in _DIRECT_READS:
        if ctx.phase == 0:
            address = config.direct_base | byte
            out.bus = BusRequest.read(address)
            return ControlContext(ControlState.MEM_READ, phase=1)
        if opcode in DIRECT_LOADS:
            setattr(out.writes, DIRECT_LOADS[opcode], byte)
            out.done = True
            return ControlContext(ControlState.IDLE)
        out.alu = AluRequest(ALU_DIRECT[opcode], regs.acc, byte, regs.flag(Flags.C))
        return ControlContext(ControlState.ALU_OP)

    if opcode == isa.RTS:
        if ctx.phase == 0:
            _pull(out, regs)
            return ControlContext(ControlState.MEM_READ, phase=1, latch=byte)
        out.writes.pc_direct = (byte << 8) | ctx.latch
        out.done = True
        return ControlContext(ControlState.IDLE)

    if opcode in PULLS:
        setattr(out.writes, PULLS[opcode], byte)
        out.done = True
        return ControlContext(ControlState.IDLE)

    # Unreachable for a well-formed context; retire rather than stall
    out.done = True
    return ControlContext(ControlState.IDLE)


def _jump(
    ctx: ControlContext,
    inputs: ControlInputs,
    out: ControlOutputs
) -> ControlContext:
    regs = inputs.regs
    if ctx.phase == 0:
        _fetch_operand(out, regs)
        return ControlContext(ControlState.JUMP, phase=1, latch=inputs.data_in)

    target = (ctx.latch << 8) | inputs.data_in
    if regs.ir == isa.JSR:
        # Push return address high byte now, low byte in MEM_WRITE
        _push(out, regs.pc >> 8, regs.sp)
        return ControlContext(ControlState.MEM_WRITE, phase=1, latch=target)

    out.writes.pc_direct = target
    out.done = True
    return ControlContext(ControlState.IDLE)


def control_next(
    ctx: ControlContext,
    inputs: ControlInputs,
    config: EmulatorConfig
) -> tuple[ControlContext, ControlOutputs]:
    """
    Pure transition function for one clock edge.

    Args:
        ctx: Control state before the edge
        inputs: Register snapshot, returned data byte and ALU outputs
        config: Emulator configuration (direct page)

    Returns:
        (next context, outputs to apply on the edge)
    """
    out = ControlOutputs()
    next_ctx = _dispatch(ctx, inputs, out, config)
    # The address output register follows every bus request
    if out.bus is not None:
        out.writes.address = out.bus.address
    return next_ctx, out


def _dispatch(
    ctx: ControlContext,
    inputs: ControlInputs,
    out: ControlOutputs,
    config: EmulatorConfig
) -> ControlContext:
    regs = inputs.regs

    match ctx.state:
        case ControlState.IDLE:
            return ControlContext(ControlState.FETCH)

        case ControlState.FETCH:
            _fetch_operand(out, regs)
            return ControlContext(ControlState.DECODE)

        case ControlState.DECODE:
            out.writes.ir = inputs.data_in
            return ControlContext(ControlState.EXECUTE)

        case ControlState.EXECUTE:
            return _execute(ctx, inputs, out)

        case ControlState.MEM_READ:
            return _mem_read(ctx, inputs, out, config)

        case ControlState.MEM_WRITE:
            if ctx.phase == 1:
                # Second half of JSR
                _push(out, regs.pc & 0xFF, regs.sp)
                out.writes.pc_direct = ctx.latch
            out.done = True
            return ControlContext(ControlState.IDLE)

        case ControlState.ALU_OP:
            if not inputs.alu_done or inputs.alu_result is None:
                return ctx
            result = inputs.alu_result
            if result.writes_result:
                out.writes.acc = result.value
            out.writes.flags = result.apply_flags(regs.flags)
            out.done = True
            return ControlContext(ControlState.IDLE)

        case ControlState.BRANCH:
            offset = inputs.data_in
            if offset & 0x80:
                offset -= 0x100
            out.writes.pc_load = (regs.pc + offset) & 0xFFFF
            out.done = True
            return ControlContext(ControlState.IDLE)

        case ControlState.JUMP:
            return _jump(ctx, inputs, out)

    raise AssertionError(f"unhandled control state {ctx.state}")


# =============================================================================
# Clocked wrapper
# =============================================================================

class ControlUnit:
    """
    acc8 processor core: control unit plus the register file and
    arithmetic unit it drives.

    Instrumentation hooks allow:
    - Monitoring all memory reads/writes (watchpoints)

    Example:
        >>> cpu = ControlUnit(memory)
        >>> while not cpu.clock():
        ...     pass
        >>> print(f"ACC=${cpu.registers.acc:02X} PC=${cpu.registers.pc:04X}")
    """

    def __init__(self, memory: MemoryProtocol, config: Optional[EmulatorConfig] = None):
        """
        Initialize the core in its reset state.

        Args:
            memory: Memory collaborator implementing MemoryProtocol
            config: Emulator configuration (defaults to EmulatorConfig())
        """
        self.memory = memory
        self.config = config or EmulatorConfig()
        self.registers = RegisterFile(self.config.reset_sp)
        self.alu = ArithmeticUnit(self.config)
        self.context = ControlContext()

        # Byte returned by the last bus read
        self.data_in = 0
        self.last_outputs: Optional[ControlOutputs] = None

        # on_memory_read(address, value) -> bool: return False to request a stop
        self.on_memory_read: Optional[Callable[[int, int], bool]] = None
        # on_memory_write(address, value) -> bool: return False to request a stop
        self.on_memory_write: Optional[Callable[[int, int], bool]] = None

        # Flag set by memory hooks to request execution stop
        self.memory_break_requested: bool = False

    @property
    def state(self) -> ControlState:
        """Current control state."""
        return self.context.state

    @property
    def at_boundary(self) -> bool:
        """True between instructions (before the next FETCH)."""
        return self.context.state == ControlState.IDLE

    def clock(self) -> bool:
        """
        Apply one clock edge.

        Returns:
            The done pulse: True if an instruction retired on this edge
        """
        inputs = ControlInputs(
            regs=self.registers.snapshot(),
            data_in=self.data_in,
            alu_done=self.alu.done,
            alu_result=self.alu.result,
        )
        context, out = control_next(self.context, inputs, self.config)

        if out.bus is not None:
            self._drive_bus(out.bus)
        self.alu.clock(out.alu)
        self.registers.clock(out.writes)
        self.context = context
        self.last_outputs = out

        if out.done and isa.decode_opcode(inputs.regs.ir) is None:
            logger.debug(f"Unknown opcode ${inputs.regs.ir:02X} executed as NOP")
        return out.done

    def _drive_bus(self, request: BusRequest) -> None:
        if request.write:
            if self.on_memory_write and not self.on_memory_write(request.address, request.value):
                self.memory_break_requested = True
            self.memory.write(request.address, request.value)
        else:
            self.data_in = self.memory.read(request.address) & 0xFF
            if self.on_memory_read and not self.on_memory_read(request.address, self.data_in):
                self.memory_break_requested = True

    def reset(self) -> None:
        """
        Reset the core to its power-on state.

        Forces IDLE, resets every register and abandons any arithmetic
        operation in flight.
        """
        self.registers.reset()
        self.alu.reset()
        self.context = ControlContext()
        self.data_in = 0
        self.last_outputs = None
        self.memory_break_requested = False

    def __repr__(self) -> str:
        return f"ControlUnit(state={self.state.name}, {self.registers!r})"
