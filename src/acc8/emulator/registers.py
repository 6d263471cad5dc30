"""
Register File
=============

Holds the architectural registers of the acc8 processor:

- ACC, X, Y: 8-bit data registers
- PC: 16-bit program counter (always the address of the next byte to fetch)
- SP: 8-bit stack pointer (offset into the stack page $0100-$01FF)
- IR: 8-bit instruction register (current opcode)
- FLAGS: 8-bit condition register
- ADDR: 16-bit address output (last address driven onto the bus)

Writes are synchronous: the control unit describes what it wants written in
a RegisterWrites record, and clock() commits every enabled write on the
edge. Reads are combinational: a committed value is visible immediately,
in the same cycle, with no mirrored output register.

Copyright (c) 2026 acc8 Contributors
"""

from dataclasses import dataclass
from enum import IntFlag
from typing import Optional


class Flags(IntFlag):
    """
    FLAGS register bits.

    Bit layout:
        7  6  5  4  3  2  1  0
        E  B  D  I  V  N  Z  C

    Only C, Z, N and V are computed by the arithmetic unit. The upper
    nibble changes only through the flag-register load (PLP).
    """
    C = 0x01  # Carry/Borrow
    Z = 0x02  # Zero
    N = 0x04  # Sign/Negative
    V = 0x08  # Overflow
    I = 0x10  # IRQ disable
    D = 0x20  # Decimal
    B = 0x40  # Break
    E = 0x80  # Extended


STACK_PAGE = 0x0100


@dataclass(frozen=True)
class RegisterSnapshot:
    """
    Immutable view of all registers, taken at the start of a cycle.

    The control unit's transition function receives one of these as its
    register input, so a transition can never observe a half-applied edge.
    """
    acc: int
    x: int
    y: int
    pc: int
    sp: int
    ir: int
    flags: int
    address: int

    def flag(self, bit: Flags) -> bool:
        """Test a single flag bit."""
        return bool(self.flags & bit)

    @property
    def stack_address(self) -> int:
        """Bus address SP currently points at."""
        return STACK_PAGE | self.sp


@dataclass
class RegisterWrites:
    """
    Write-enables and data inputs for one clock edge.

    A field left as None means its write-enable is deasserted. The three
    PC update modes may all be requested; clock() applies only the one
    with the highest precedence (direct-write, then load, then increment).
    """
    acc: Optional[int] = None
    x: Optional[int] = None
    y: Optional[int] = None
    sp: Optional[int] = None
    ir: Optional[int] = None
    flags: Optional[int] = None
    address: Optional[int] = None
    pc_direct: Optional[int] = None
    pc_load: Optional[int] = None
    pc_increment: bool = False

    def any(self) -> bool:
        """True if at least one write-enable is asserted."""
        return self.pc_increment or any(
            value is not None
            for value in (self.acc, self.x, self.y, self.sp, self.ir,
                          self.flags, self.address, self.pc_direct, self.pc_load)
        )


@dataclass
class RegisterState:
    """
    Raw register storage, used for snapshot save/restore.

    All values stored as Python ints but represent:
    - acc, x, y, sp, ir, flags: 8-bit unsigned (0-255)
    - pc, address: 16-bit unsigned (0-65535)
    """
    acc: int = 0
    x: int = 0
    y: int = 0
    pc: int = 0
    sp: int = 0xFF
    ir: int = 0
    flags: int = 0
    address: int = 0


class RegisterFile:
    """
    Register file with synchronous writes and combinational reads.

    Example:
        >>> regs = RegisterFile()
        >>> regs.clock(RegisterWrites(acc=0x42, pc_increment=True))
        >>> print(f"ACC=${regs.acc:02X} PC=${regs.pc:04X}")
        ACC=$42 PC=$0001
    """

    def __init__(self, reset_sp: int = 0xFF):
        """
        Initialize registers to their reset values.

        Args:
            reset_sp: Value SP takes on reset
        """
        self._reset_sp = reset_sp & 0xFF
        self.state = RegisterState(sp=self._reset_sp)

    # ========================================
    # Combinational reads
    # ========================================

    @property
    def acc(self) -> int:
        """Accumulator (8-bit)."""
        return self.state.acc

    @property
    def x(self) -> int:
        """Index register X (8-bit)."""
        return self.state.x

    @property
    def y(self) -> int:
        """Index register Y (8-bit)."""
        return self.state.y

    @property
    def pc(self) -> int:
        """Program counter (16-bit)."""
        return self.state.pc

    @property
    def sp(self) -> int:
        """Stack pointer (8-bit offset into the stack page)."""
        return self.state.sp

    @property
    def ir(self) -> int:
        """Instruction register (8-bit)."""
        return self.state.ir

    @property
    def flags(self) -> int:
        """FLAGS register (8-bit)."""
        return self.state.flags

    @property
    def address(self) -> int:
        """Address output (16-bit)."""
        return self.state.address

    def flag(self, bit: Flags) -> bool:
        """Test a single flag bit."""
        return bool(self.state.flags & bit)

    def snapshot(self) -> RegisterSnapshot:
        """Take an immutable copy of every register."""
        s = self.state
        return RegisterSnapshot(
            acc=s.acc, x=s.x, y=s.y, pc=s.pc, sp=s.sp,
            ir=s.ir, flags=s.flags, address=s.address,
        )

    # ========================================
    # Clock edge
    # ========================================

    def clock(self, writes: RegisterWrites, reset: bool = False) -> None:
        """
        Commit one clock edge.

        Args:
            writes: Write-enables and data for this edge
            reset: Reset line; overrides every write when asserted
        """
        if reset:
            self.reset()
            return

        s = self.state
        if writes.acc is not None:
            s.acc = writes.acc & 0xFF
        if writes.x is not None:
            s.x = writes.x & 0xFF
        if writes.y is not None:
            s.y = writes.y & 0xFF
        if writes.sp is not None:
            s.sp = writes.sp & 0xFF
        if writes.ir is not None:
            s.ir = writes.ir & 0xFF
        if writes.flags is not None:
            s.flags = writes.flags & 0xFF
        if writes.address is not None:
            s.address = writes.address & 0xFFFF

        # Direct-write beats load beats increment
        if writes.pc_direct is not None:
            s.pc = writes.pc_direct & 0xFFFF
        elif writes.pc_load is not None:
            s.pc = writes.pc_load & 0xFFFF
        elif writes.pc_increment:
            s.pc = (s.pc + 1) & 0xFFFF

    def reset(self) -> None:
        """Force every register to its reset value."""
        self.state = RegisterState(sp=self._reset_sp)

    # ========================================
    # Debugger access
    # ========================================

    def poke(self, **values: int) -> None:
        """
        Set registers directly, outside of a clock edge.

        Intended for debuggers and tests that need a register preset
        before execution; normal execution goes through clock().

        Raises:
            KeyError: If a name is not a register
        """
        widths = {"acc": 0xFF, "x": 0xFF, "y": 0xFF, "sp": 0xFF, "ir": 0xFF,
                  "flags": 0xFF, "pc": 0xFFFF, "address": 0xFFFF}
        for name, value in values.items():
            if name not in widths:
                raise KeyError(f"Unknown register '{name}'")
            setattr(self.state, name, value & widths[name])

    def get_snapshot_data(self) -> list[int]:
        """Get register state for snapshot (10 bytes)."""
        s = self.state
        return [
            s.acc, s.x, s.y,
            (s.pc >> 8) & 0xFF, s.pc & 0xFF,
            s.sp, s.ir, s.flags,
            (s.address >> 8) & 0xFF, s.address & 0xFF,
        ]

    def apply_snapshot_data(self, data: list[int], offset: int = 0) -> int:
        """Restore register state from snapshot; returns bytes consumed."""
        d = data[offset:offset + 10]
        self.state = RegisterState(
            acc=d[0], x=d[1], y=d[2],
            pc=(d[3] << 8) | d[4],
            sp=d[5], ir=d[6], flags=d[7],
            address=(d[8] << 8) | d[9],
        )
        return 10

    def __repr__(self) -> str:
        s = self.state
        return (
            f"RegisterFile(acc=${s.acc:02X}, x=${s.x:02X}, y=${s.y:02X}, "
            f"pc=${s.pc:04X}, sp=${s.sp:02X}, flags=${s.flags:02X})"
        )
