"""
acc8 Instruction Set Definition
===============================

This module defines the acc8 instruction set: opcodes, addressing modes,
instruction sizes and nominal cycle classes. It is shared by the
assembler (which encodes instructions), the disassembler (which decodes
them) and the control unit (which dispatches on the opcode groups).

Addressing Modes
----------------
1. **INHERENT**: No operand (e.g., NOP, INC, PHA)
   - 1 byte instruction
   - Example: INC -> $16

2. **IMMEDIATE**: Literal value follows opcode (e.g., LDA #$41)
   - 2 bytes
   - Example: LDA #$41 -> $01 $41

3. **DIRECT**: One address byte inside the direct page
   - 2 bytes: opcode + offset into the direct page
   - Example: STA $10 -> $04 $10 (stores to $0210 with the default page)

4. **RELATIVE**: PC-relative branch
   - 2 bytes: opcode + signed offset
   - Range: -128 to +127 from the next instruction
   - Example: BNE loop -> $41 $offset

5. **ABSOLUTE**: Full 16-bit address, high byte first
   - 3 bytes
   - Example: JMP $0010 -> $50 $00 $10

Opcodes that are not in the table execute as NOP.

Copyright (c) 2026 acc8 Contributors
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


# =============================================================================
# Addressing Mode Enumeration
# =============================================================================

class AddressingMode(Enum):
    """acc8 addressing modes."""
    INHERENT = auto()   # No operand (NOP, INC)
    IMMEDIATE = auto()  # #value (literal)
    DIRECT = auto()     # Offset into the direct page
    RELATIVE = auto()   # Branch displacement (signed 8-bit)
    ABSOLUTE = auto()   # Full 16-bit address

    def __str__(self) -> str:
        """Return human-readable name for error messages."""
        return self.name.lower()


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    Information about a specific instruction encoding.

    Attributes:
        opcode: The opcode byte
        mnemonic: Instruction mnemonic
        mode: Addressing mode of this encoding
        size: Total instruction size in bytes (including operand)
        cycles: Nominal cycle class (taken-branch timing for branches)
        operand_size: Size of operand in bytes (0, 1, or 2)
    """
    opcode: int
    mnemonic: str
    mode: AddressingMode
    size: int
    cycles: int
    operand_size: int

    def __repr__(self) -> str:
        return (
            f"InstructionInfo(opcode=${self.opcode:02X}, {self.mnemonic} "
            f"{self.mode}, size={self.size}, cycles={self.cycles})"
        )


def _op(opcode: int, mnemonic: str, mode: AddressingMode, cycles: int) -> InstructionInfo:
    operand_size = {
        AddressingMode.INHERENT: 0,
        AddressingMode.IMMEDIATE: 1,
        AddressingMode.DIRECT: 1,
        AddressingMode.RELATIVE: 1,
        AddressingMode.ABSOLUTE: 2,
    }[mode]
    return InstructionInfo(opcode, mnemonic, mode, 1 + operand_size, cycles, operand_size)


_INH = AddressingMode.INHERENT
_IMM = AddressingMode.IMMEDIATE
_DIR = AddressingMode.DIRECT
_REL = AddressingMode.RELATIVE
_ABS = AddressingMode.ABSOLUTE


# =============================================================================
# Opcode Table
# =============================================================================
# Key: (mnemonic, addressing_mode)
# =============================================================================

_INSTRUCTIONS = [
    # Control
    _op(0x00, "NOP", _INH, 1),

    # Loads and stores
    _op(0x01, "LDA", _IMM, 2),
    _op(0x02, "LDA", _DIR, 3),
    _op(0x04, "STA", _DIR, 3),
    _op(0x06, "LDX", _IMM, 2),
    _op(0x07, "LDX", _DIR, 3),
    _op(0x08, "STX", _DIR, 3),
    _op(0x09, "LDY", _IMM, 2),
    _op(0x0A, "LDY", _DIR, 3),
    _op(0x0B, "STY", _DIR, 3),

    # Arithmetic
    _op(0x10, "ADD", _IMM, 2),
    _op(0x11, "ADD", _DIR, 3),
    _op(0x12, "SUB", _IMM, 2),
    _op(0x13, "SUB", _DIR, 3),
    _op(0x14, "MUL", _INH, 9),
    _op(0x15, "DIV", _INH, 9),
    _op(0x16, "INC", _INH, 2),
    _op(0x17, "DEC", _INH, 2),

    # Logic and shifts
    _op(0x20, "AND", _IMM, 2),
    _op(0x21, "AND", _DIR, 3),
    _op(0x22, "OR", _IMM, 2),
    _op(0x23, "OR", _DIR, 3),
    _op(0x24, "XOR", _IMM, 2),
    _op(0x25, "XOR", _DIR, 3),
    _op(0x26, "NOT", _INH, 2),
    _op(0x28, "SHL", _INH, 2),
    _op(0x29, "SHR", _INH, 2),
    _op(0x2A, "ROL", _INH, 2),
    _op(0x2B, "ROR", _INH, 2),

    # Compare
    _op(0x30, "CMP", _IMM, 2),
    _op(0x31, "CMP", _DIR, 3),

    # Branches (cycles = taken timing; not taken is 1)
    _op(0x40, "BEQ", _REL, 2),
    _op(0x41, "BNE", _REL, 2),
    _op(0x42, "BMI", _REL, 2),
    _op(0x43, "BPL", _REL, 2),
    _op(0x44, "BCS", _REL, 2),
    _op(0x45, "BCC", _REL, 2),
    _op(0x46, "BVS", _REL, 2),
    _op(0x47, "BVC", _REL, 2),
    _op(0x48, "BRA", _REL, 2),

    # Jumps and subroutines
    _op(0x50, "JMP", _ABS, 3),
    _op(0x52, "JSR", _ABS, 4),
    _op(0x53, "RTS", _INH, 3),

    # Stack
    _op(0x60, "PHA", _INH, 2),
    _op(0x61, "PLA", _INH, 2),
    _op(0x62, "PHX", _INH, 2),
    _op(0x63, "PLX", _INH, 2),
    _op(0x64, "PHY", _INH, 2),
    _op(0x65, "PLY", _INH, 2),
    _op(0x66, "PHP", _INH, 2),
    _op(0x67, "PLP", _INH, 2),

    # Scientific
    _op(0x70, "SQRT", _INH, 2),
    _op(0x72, "ABS", _INH, 2),
    _op(0x73, "NEG", _INH, 2),
]

OPCODE_TABLE: dict[tuple[str, AddressingMode], InstructionInfo] = {
    (info.mnemonic, info.mode): info for info in _INSTRUCTIONS
}

# Reverse table used by the disassembler and control unit
DECODE_TABLE: dict[int, InstructionInfo] = {
    info.opcode: info for info in _INSTRUCTIONS
}

MNEMONICS: frozenset[str] = frozenset(info.mnemonic for info in _INSTRUCTIONS)

BRANCH_INSTRUCTIONS: frozenset[str] = frozenset(
    info.mnemonic for info in _INSTRUCTIONS if info.mode == AddressingMode.RELATIVE
)


# =============================================================================
# Opcode Constants
# =============================================================================
# Named opcodes used by the control unit's dispatch tables.

NOP = 0x00
LDA_IMM, LDA_DIR, STA_DIR = 0x01, 0x02, 0x04
LDX_IMM, LDX_DIR, STX_DIR = 0x06, 0x07, 0x08
LDY_IMM, LDY_DIR, STY_DIR = 0x09, 0x0A, 0x0B
ADD_IMM, ADD_DIR, SUB_IMM, SUB_DIR = 0x10, 0x11, 0x12, 0x13
MUL, DIV, INC, DEC = 0x14, 0x15, 0x16, 0x17
AND_IMM, AND_DIR, OR_IMM, OR_DIR, XOR_IMM, XOR_DIR = 0x20, 0x21, 0x22, 0x23, 0x24, 0x25
NOT, SHL, SHR, ROL, ROR = 0x26, 0x28, 0x29, 0x2A, 0x2B
CMP_IMM, CMP_DIR = 0x30, 0x31
BEQ, BNE, BMI, BPL, BCS, BCC, BVS, BVC, BRA = range(0x40, 0x49)
JMP, JSR, RTS = 0x50, 0x52, 0x53
PHA, PLA, PHX, PLX, PHY, PLY, PHP, PLP = range(0x60, 0x68)
SQRT, ABS, NEG = 0x70, 0x72, 0x73


# =============================================================================
# Lookup Functions
# =============================================================================

def get_instruction_info(
    mnemonic: str,
    mode: AddressingMode
) -> Optional[InstructionInfo]:
    """
    Look up instruction encoding by mnemonic and addressing mode.

    Args:
        mnemonic: Instruction mnemonic (case-insensitive)
        mode: Addressing mode

    Returns:
        InstructionInfo if the combination exists, None otherwise
    """
    return OPCODE_TABLE.get((mnemonic.upper(), mode))


def decode_opcode(opcode: int) -> Optional[InstructionInfo]:
    """Look up an opcode byte; None for unlisted (NOP-executing) opcodes."""
    return DECODE_TABLE.get(opcode & 0xFF)


def get_valid_modes(mnemonic: str) -> list[AddressingMode]:
    """
    Get all valid addressing modes for a mnemonic.

    Args:
        mnemonic: Instruction mnemonic (case-insensitive)

    Returns:
        List of valid addressing modes (empty if mnemonic unknown)
    """
    mnemonic = mnemonic.upper()
    return [mode for (mnem, mode) in OPCODE_TABLE if mnem == mnemonic]


def is_valid_instruction(mnemonic: str) -> bool:
    """Check if a mnemonic is part of the instruction set."""
    return mnemonic.upper() in MNEMONICS


def is_branch_instruction(mnemonic: str) -> bool:
    """Check if a mnemonic is a relative branch."""
    return mnemonic.upper() in BRANCH_INSTRUCTIONS
