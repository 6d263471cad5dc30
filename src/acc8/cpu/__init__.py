"""
acc8 CPU Package
================

Instruction set definitions shared by the assembler, the disassembler and
the emulator's control unit.

Usage:
    from acc8.cpu import (
        AddressingMode,
        InstructionInfo,
        OPCODE_TABLE,
        get_instruction_info,
    )

Copyright (c) 2026 acc8 Contributors
"""

from acc8.cpu.isa import (
    # Core types
    AddressingMode,
    InstructionInfo,
    # Instruction tables
    OPCODE_TABLE,
    DECODE_TABLE,
    MNEMONICS,
    BRANCH_INSTRUCTIONS,
    # Lookup functions
    get_instruction_info,
    decode_opcode,
    get_valid_modes,
    is_valid_instruction,
    is_branch_instruction,
)

__all__ = [
    "AddressingMode",
    "InstructionInfo",
    "OPCODE_TABLE",
    "DECODE_TABLE",
    "MNEMONICS",
    "BRANCH_INSTRUCTIONS",
    "get_instruction_info",
    "decode_opcode",
    "get_valid_modes",
    "is_valid_instruction",
    "is_branch_instruction",
]
