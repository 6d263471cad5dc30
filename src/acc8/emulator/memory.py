"""
Memory Subsystem for the acc8 Emulator
======================================

Memory Map:
    $0000-$00FF  Program memory (read-only while executing)
    $0100-$01FF  Stack page (part of data memory)
    $0200-$FFFF  General data memory

The Memory class replaces a shared tri-state bus with an explicit
arbitration step: for every access, the blocks that claim the address are
collected and exactly one must answer. A map that leaves a hole or lets
two blocks overlap is rejected with BusContentionError when it is built,
since every hole or overlap begins at a block boundary.

Copyright (c) 2026 acc8 Contributors
"""

import logging
from enum import Enum
from typing import Optional, Sequence

from acc8.errors import BusContentionError, MemoryMapError, ProgramLoadError

logger = logging.getLogger(__name__)

PROGRAM_BASE = 0x0000
PROGRAM_SIZE = 0x0100
STACK_BASE = 0x0100
STACK_SIZE = 0x0100
DATA_BASE = 0x0100
DATA_SIZE = 0x10000 - DATA_BASE


class Region(Enum):
    """Logical region an address belongs to."""
    PROGRAM = "program"
    STACK = "stack"
    DATA = "data"


def region_of(address: int) -> Region:
    """Classify a 16-bit address by the fixed memory map."""
    address &= 0xFFFF
    if address < STACK_BASE:
        return Region.PROGRAM
    if address < STACK_BASE + STACK_SIZE:
        return Region.STACK
    return Region.DATA


class MemoryBlock:
    """
    A contiguous byte store mapped at a base address.

    Attributes:
        name: Block name used in diagnostics
        base: First address claimed
        size: Number of bytes
        writable: False for blocks that ignore bus writes
    """

    def __init__(self, name: str, base: int, size: int, writable: bool = True):
        if size <= 0 or base < 0 or base + size > 0x10000:
            raise MemoryMapError(f"Block '{name}' at ${base:04X}+{size} is outside the address space")
        self.name = name
        self.base = base
        self.size = size
        self.writable = writable
        self._data = bytearray(size)

    @property
    def end(self) -> int:
        """One past the last address claimed."""
        return self.base + self.size

    def claims(self, address: int) -> bool:
        """Check whether this block drives the given address."""
        return self.base <= address < self.end

    def read(self, address: int) -> int:
        """Read byte at an absolute address inside the block."""
        return self._data[address - self.base]

    def write(self, address: int, value: int) -> bool:
        """
        Write byte from the bus.

        Returns:
            True if stored, False if the block is read-only
        """
        if not self.writable:
            return False
        self._data[address - self.base] = value & 0xFF
        return True

    def load(self, address: int, data: bytes) -> None:
        """Store bytes regardless of the writable flag (loader path)."""
        offset = address - self.base
        if offset < 0 or offset + len(data) > self.size:
            raise ProgramLoadError(
                f"{len(data)} bytes at ${address:04X} do not fit in {self.name} memory "
                f"(${self.base:04X}-${self.end - 1:04X})"
            )
        self._data[offset:offset + len(data)] = data

    def clear(self) -> None:
        """Zero every byte."""
        self._data = bytearray(self.size)

    def dump(self) -> bytes:
        """Copy of the block contents."""
        return bytes(self._data)

    def __repr__(self) -> str:
        mode = "rw" if self.writable else "ro"
        return f"MemoryBlock({self.name!r}, ${self.base:04X}-${self.end - 1:04X}, {mode})"


class Memory:
    """
    Unified memory interface combining program and data memory.

    Provides the read/write contract the control unit drives:
        read(address) -> byte
        write(address, byte)

    Example:
        >>> mem = Memory()
        >>> mem.load_program(bytes([0x01, 0x42]))
        >>> mem.read(0x0001)
        66
        >>> mem.write(0x0200, 0x55)
        >>> mem.read(0x0200)
        85
    """

    def __init__(self, blocks: Optional[Sequence[MemoryBlock]] = None):
        """
        Initialize memory.

        Args:
            blocks: Custom block list; defaults to the standard map
                (read-only program block, read/write data block)

        Raises:
            BusContentionError: If blocks overlap or leave addresses unclaimed
        """
        if blocks is None:
            blocks = [
                MemoryBlock("program", PROGRAM_BASE, PROGRAM_SIZE, writable=False),
                MemoryBlock("data", DATA_BASE, DATA_SIZE),
            ]
        self._blocks = list(blocks)
        self._check_map()

    def _check_map(self) -> None:
        """Arbitrate the first address of every block and of every gap."""
        boundaries = {0}
        for block in self._blocks:
            boundaries.add(block.base)
            if block.end < 0x10000:
                boundaries.add(block.end)
        for address in sorted(boundaries):
            self.arbitrate(address)

    @property
    def blocks(self) -> list[MemoryBlock]:
        """Mapped blocks in declaration order."""
        return list(self._blocks)

    @property
    def program(self) -> MemoryBlock:
        """The block that drives address $0000."""
        return self.arbitrate(PROGRAM_BASE)

    def arbitrate(self, address: int) -> MemoryBlock:
        """
        Select the single block that drives an address.

        Raises:
            BusContentionError: If zero or several blocks claim the address
        """
        address &= 0xFFFF
        claimants = [block for block in self._blocks if block.claims(address)]
        if len(claimants) != 1:
            raise BusContentionError(address, [b.name for b in claimants])
        return claimants[0]

    def read(self, address: int) -> int:
        """
        Read byte from memory.

        Args:
            address: 16-bit address

        Returns:
            Byte value at address
        """
        address &= 0xFFFF
        return self.arbitrate(address).read(address)

    def write(self, address: int, value: int) -> None:
        """
        Write byte to memory.

        Writes to read-only program memory are ignored.

        Args:
            address: 16-bit address
            value: Byte value to write
        """
        address &= 0xFFFF
        block = self.arbitrate(address)
        if not block.write(address, value):
            logger.debug(f"Ignored write of ${value & 0xFF:02X} to read-only {block.name} at ${address:04X}")

    def load(self, address: int, data: bytes) -> None:
        """
        Store bytes starting at address, bypassing write protection.

        Raises:
            ProgramLoadError: If the data crosses a block boundary
        """
        if not data:
            return
        address &= 0xFFFF
        self.arbitrate(address).load(address, bytes(data))

    def load_program(self, data: bytes, address: int = PROGRAM_BASE) -> None:
        """
        Place a program image into program memory.

        Raises:
            ProgramLoadError: If the image is empty or does not fit
        """
        if not data:
            raise ProgramLoadError("Program image is empty")
        block = self.program
        if not block.claims(address):
            raise ProgramLoadError(f"${address:04X} is outside program memory")
        block.load(address, bytes(data))
        logger.info(f"Loaded {len(data)} program bytes at ${address:04X}")

    def read_bytes(self, address: int, count: int) -> bytes:
        """Read count consecutive bytes (wrapping at $FFFF)."""
        return bytes(self.read((address + i) & 0xFFFF) for i in range(count))

    def clear(self) -> None:
        """Zero every block."""
        for block in self._blocks:
            block.clear()

    def get_snapshot_data(self) -> list[int]:
        """Get complete memory state for snapshot (64KB, address order)."""
        result: list[int] = []
        for block in sorted(self._blocks, key=lambda b: b.base):
            result.extend(block.dump())
        return result

    def apply_snapshot_data(self, data: list[int], offset: int = 0) -> int:
        """Restore memory state from snapshot; returns bytes consumed."""
        pos = offset
        for block in sorted(self._blocks, key=lambda b: b.base):
            block.load(block.base, bytes(data[pos:pos + block.size]))
            pos += block.size
        return pos - offset
