"""
acc8 Emulator
=============

`Emulator` wires a memory map, a control unit and a BreakpointManager
together and counts what the clock does to them. Programs are loaded as raw
images, run edge by edge or instruction by instruction, and stopped by
breakpoints, watchpoints, register conditions, a cycle limit or a halt.

A program halts when an instruction leaves PC at its own first byte, which
is what `here: JMP here` and `BRA $` do.

    >>> from acc8.emulator import Emulator
    >>> emu = Emulator()
    >>> emu.load_program(bytes([0x01, 0x0A, 0x10, 0x02, 0x50, 0x00, 0x04]))
    >>> emu.run(1_000).reason
    <BreakReason.HALT: 9>
    >>> emu.registers['acc']
    12

Copyright (c) 2026 acc8 Contributors
"""

import logging
import struct
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from acc8.disassembler import Disassembler
from acc8.errors import Acc8Error, ProgramLoadError
from .breakpoints import BreakpointManager, BreakEvent, BreakReason
from .config import EmulatorConfig
from .control import ControlState, ControlUnit
from .memory import Memory, PROGRAM_BASE
from .registers import Flags, RegisterSnapshot

logger = logging.getLogger(__name__)

SNAPSHOT_MAGIC = b'A8S\x01'
# Total cycles and instructions retired, after the register bytes
_COUNTERS = struct.Struct('>QQ')
_REGISTER_BYTES = 10
SNAPSHOT_SIZE = len(SNAPSHOT_MAGIC) + _REGISTER_BYTES + _COUNTERS.size + 0x10000

# Ceiling on edges per instruction; MUL and DIV, the longest, take 13
_MAX_INSTRUCTION_CYCLES = 32


class Emulator:
    """
    A complete acc8 machine.

    Attributes:
        config: Settings the machine was built with
        memory: The memory map
        cpu: The ControlUnit, for edge-level inspection
        breakpoints: Debug stops consulted by run()
        on_retire: Trace hook, called as on_retire(address, registers) each
            time an instruction retires; address is its first byte

    Example:
        >>> emu = Emulator()
        >>> emu.load_program(code)
        >>> emu.add_breakpoint(0x0010)
        >>> print(emu.run(100_000))
        Breakpoint at $0010
    """

    def __init__(
        self,
        config: Optional[EmulatorConfig] = None,
        memory: Optional[Memory] = None
    ):
        """
        Args:
            config: Machine settings (EmulatorConfig() when omitted)
            memory: Memory map to use instead of the standard one
        """
        self.config = config or EmulatorConfig()
        self.memory = memory or Memory()
        self.cpu = ControlUnit(self.memory, self.config)
        self.breakpoints = BreakpointManager()

        # Watchpoints fire from the control unit's bus accesses
        self.cpu.on_memory_read = self.breakpoints.check_memory_read
        self.cpu.on_memory_write = self.breakpoints.check_memory_write

        self.on_retire: Optional[Callable[[int, RegisterSnapshot], None]] = None

        self._total_cycles = 0
        self._instructions_retired = 0
        self._instruction_start = self.cpu.registers.pc
        self._is_running = False
        # Set after a breakpoint or condition stop so the next run() can
        # execute the instruction it stopped in front of
        self._resume_pc: Optional[int] = None

    # =========================================================================
    # Program Loading
    # =========================================================================

    def load_program(self, data: bytes, address: int = PROGRAM_BASE) -> None:
        """
        Load a program image into program memory.

        The loader bypasses the write protection that program memory
        presents to the bus. PC is not changed; call reset() to start
        from address $0000.

        Raises:
            ProgramLoadError: If the image is empty or does not fit
        """
        self.memory.load_program(bytes(data), address)

    def load_program_file(self, path: Union[str, Path], address: int = PROGRAM_BASE) -> None:
        """
        Load a raw binary program image from a file.

        Raises:
            ProgramLoadError: If the file is missing, empty or too large
        """
        path = Path(path)
        if not path.exists():
            raise ProgramLoadError(f"Program file not found: {path}")
        self.load_program(path.read_bytes(), address)

    def load_data(self, data: bytes, address: int) -> None:
        """
        Place bytes into memory at address, bypassing write protection.

        Raises:
            ProgramLoadError: If the data crosses the end of a memory block
        """
        self.memory.load(address, bytes(data))

    # =========================================================================
    # Execution Control
    # =========================================================================

    def reset(self) -> None:
        """
        Reset the processor to its power-on state.

        Registers, control state and the arithmetic unit are reset and the
        counters cleared. Memory contents are kept.
        """
        self.cpu.reset()
        self._total_cycles = 0
        self._instructions_retired = 0
        self._instruction_start = self.cpu.registers.pc
        self._is_running = False
        self._resume_pc = None
        self.breakpoints.clear_break_request()
        logger.info("Emulator reset")

    def clock(self) -> bool:
        """
        Apply a single clock edge.

        Returns:
            True if an instruction retired on this edge
        """
        if self.cpu.at_boundary:
            self._instruction_start = self.cpu.registers.pc
        done = self.cpu.clock()
        self._total_cycles += 1
        if done:
            self._instructions_retired += 1
            if self.on_retire:
                self.on_retire(self._instruction_start, self.cpu.registers.snapshot())
        return done

    def step(self) -> BreakEvent:
        """
        Execute until the current (or next) instruction retires.

        Breakpoints are not consulted.

        Returns:
            BreakEvent with reason=STEP and the PC after the instruction
        """
        for _ in range(_MAX_INSTRUCTION_CYCLES):
            if self.clock():
                break
        else:
            raise Acc8Error(f"Instruction at ${self._instruction_start:04X} did not retire")

        self.cpu.memory_break_requested = False
        pc = self.cpu.registers.pc
        return BreakEvent(
            BreakReason.STEP,
            address=pc,
            message=f"Step to ${pc:04X}"
        )

    def run(self, max_cycles: int = 1_000_000) -> BreakEvent:
        """
        Clock the machine until something stops it, at most max_cycles edges.

        Stops are checked in this order: user interrupt, PC breakpoint and
        register conditions before each fetch; watchpoints and HALT after
        each retirement; the cycle limit last. A run that follows a
        breakpoint or condition stop first executes the instruction it
        stopped in front of.
        """
        self.breakpoints.clear_last_event()
        self.cpu.memory_break_requested = False
        self._is_running = True
        try:
            return self._run(max_cycles)
        finally:
            self._is_running = False

    def _run(self, max_cycles: int) -> BreakEvent:
        resume_pc, self._resume_pc = self._resume_pc, None
        first = True
        cycles = 0

        while cycles < max_cycles:
            if self.cpu.at_boundary:
                pc = self.cpu.registers.pc
                resuming = first and pc == resume_pc
                if not self.breakpoints.check_instruction(self.cpu, pc, resuming):
                    event = self.breakpoints.last_event
                    if event.reason in (BreakReason.PC_BREAKPOINT, BreakReason.REGISTER_CONDITION):
                        self._resume_pc = pc
                    return event
                first = False

            done = self.clock()
            cycles += 1
            if not done:
                continue

            if self.cpu.memory_break_requested:
                self.cpu.memory_break_requested = False
                return self.breakpoints.last_event

            pc = self.cpu.registers.pc
            if pc == self._instruction_start:
                event = BreakEvent(
                    BreakReason.HALT,
                    address=pc,
                    message=f"Halted at ${pc:04X}"
                )
                self.breakpoints.record(event)
                logger.debug(event.message)
                return event

        event = BreakEvent(
            BreakReason.MAX_CYCLES,
            address=self.cpu.registers.pc,
            message=f"Reached max cycles ({max_cycles})"
        )
        self.breakpoints.record(event)
        return event

    def run_until_pc(self, address: int, max_cycles: int = 1_000_000) -> bool:
        """True if the run stops in front of address rather than anywhere else."""
        with self._temporary_breakpoint(address):
            event = self.run(max_cycles)
        return event.reason == BreakReason.PC_BREAKPOINT and event.address == address & 0xFFFF

    @contextmanager
    def _temporary_breakpoint(self, address: int) -> Iterator[None]:
        if self.breakpoints.has_breakpoint(address):
            yield
            return
        self.breakpoints.add_breakpoint(address)
        try:
            yield
        finally:
            self.breakpoints.remove_breakpoint(address)

    # =========================================================================
    # Debug Stops
    # =========================================================================

    def add_breakpoint(self, address: int) -> None:
        """Add a PC breakpoint at the specified address."""
        self.breakpoints.add_breakpoint(address)

    def remove_breakpoint(self, address: int) -> None:
        """Remove a PC breakpoint at the specified address."""
        self.breakpoints.remove_breakpoint(address)

    def add_watchpoint(
        self,
        address: int,
        on_write: bool = True,
        on_read: bool = False
    ) -> None:
        """Watch address for bus writes, reads or both (writes by default)."""
        if on_read:
            self.breakpoints.add_read_watchpoint(address)
        if on_write:
            self.breakpoints.add_write_watchpoint(address)

    def clear_breakpoints(self) -> None:
        """Remove all breakpoints, watchpoints and conditions."""
        self.breakpoints.clear_all()
        self._resume_pc = None

    # =========================================================================
    # Memory Access
    # =========================================================================

    def read_byte(self, address: int) -> int:
        """Read a single byte from memory."""
        return self.memory.read(address)

    def read_bytes(self, address: int, count: int) -> bytes:
        """Read count consecutive bytes from memory."""
        return self.memory.read_bytes(address, count)

    def write_byte(self, address: int, value: int) -> None:
        """Write a single byte through the bus (program memory ignores it)."""
        self.memory.write(address, value)

    # =========================================================================
    # State Inspection
    # =========================================================================

    @property
    def registers(self) -> dict:
        """
        Get current register values as a dictionary.

        Returns:
            Dictionary with keys: acc, x, y, pc, sp, ir, flags, address,
            c, z, n, v
        """
        regs = self.cpu.registers
        return {
            'acc': regs.acc,
            'x': regs.x,
            'y': regs.y,
            'pc': regs.pc,
            'sp': regs.sp,
            'ir': regs.ir,
            'flags': regs.flags,
            'address': regs.address,
            'c': regs.flag(Flags.C),
            'z': regs.flag(Flags.Z),
            'n': regs.flag(Flags.N),
            'v': regs.flag(Flags.V),
        }

    @property
    def state(self) -> ControlState:
        """Current control unit state."""
        return self.cpu.state

    @property
    def total_cycles(self) -> int:
        """Clock edges applied since the last reset."""
        return self._total_cycles

    @property
    def instructions_retired(self) -> int:
        """Instructions completed since the last reset."""
        return self._instructions_retired

    @property
    def is_running(self) -> bool:
        """True while inside run()."""
        return self._is_running

    # =========================================================================
    # Snapshots
    # =========================================================================

    def save_snapshot(self, path: Union[str, Path]) -> None:
        """
        Write the machine state to path.

        The file holds SNAPSHOT_MAGIC, the 10 register bytes, total cycles
        and instructions retired as two big-endian 64-bit counters, and then
        all 64KB of memory in address order.

        Raises:
            Acc8Error: If an instruction is part-way through
        """
        if not self.cpu.at_boundary:
            raise Acc8Error(
                f"Snapshots are taken between instructions (control unit is in {self.state.name})"
            )
        Path(path).write_bytes(
            SNAPSHOT_MAGIC
            + bytes(self.cpu.registers.get_snapshot_data())
            + _COUNTERS.pack(self._total_cycles, self._instructions_retired)
            + bytes(self.memory.get_snapshot_data())
        )

    def load_snapshot(self, path: Union[str, Path]) -> None:
        """
        Restore a state written by save_snapshot().

        Raises:
            ProgramLoadError: If the file is missing, has the wrong magic
                or the wrong size
        """
        try:
            blob = Path(path).read_bytes()
        except FileNotFoundError:
            raise ProgramLoadError(f"Snapshot file not found: {path}") from None

        if not blob.startswith(SNAPSHOT_MAGIC):
            raise ProgramLoadError(f"{path} is not an acc8 snapshot")
        if len(blob) != SNAPSHOT_SIZE:
            raise ProgramLoadError(
                f"Snapshot {path} is {len(blob)} bytes, expected {SNAPSHOT_SIZE}"
            )

        data = list(blob)
        self.cpu.reset()
        offset = len(SNAPSHOT_MAGIC)
        offset += self.cpu.registers.apply_snapshot_data(data, offset)
        self._total_cycles, self._instructions_retired = _COUNTERS.unpack_from(blob, offset)
        self.memory.apply_snapshot_data(data, offset + _COUNTERS.size)
        self._instruction_start = self.cpu.registers.pc
        self._resume_pc = None

    # =========================================================================
    # Debug Helpers
    # =========================================================================

    def disassemble_at(self, address: int, count: int = 10) -> List[str]:
        """Disassemble count instructions from memory starting at address."""
        code = self.memory.read_bytes(address, count * 3)
        disasm = Disassembler(direct_page=self.config.direct_page)
        return [str(inst) for inst in disasm.disassemble(code, address, count)]

    def __repr__(self) -> str:
        return (
            f"Emulator(state={self.state.name}, "
            f"pc=${self.cpu.registers.pc:04X}, "
            f"cycles={self._total_cycles})"
        )
