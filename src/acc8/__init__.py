"""
acc8 SDK - Toolchain and Emulator for the acc8 Processor
========================================================

This package provides an assembler, a disassembler and a cycle-level
emulator for acc8, a small 8-bit accumulator machine with three data
registers, a stack page, a multi-cycle arithmetic unit and a 64KB address
space whose first page holds a read-only program.

Main Components
---------------
- **assembler**: two-pass assembler (acc8asm)
    Converts assembly source (.asm) to a raw binary program image

- **disassembler**: turns program images back into assembly text

- **emulator**: the processor itself (acc8run)
    Register file, arithmetic unit, control unit, memory and debugging

Quick Start
-----------
Assemble and run a program:
    >>> from acc8 import Assembler, Emulator
    >>> code = Assembler().assemble_string("LDA #$0A\\nADD #$02\\nhalt: JMP halt\\n")
    >>> emu = Emulator()
    >>> emu.load_program(code)
    >>> emu.run(1_000)
    >>> emu.registers['acc']
    12

Or use the command-line tools:
    $ acc8asm prog.asm -o prog.bin
    $ acc8run prog.bin --trace

Version History
---------------
1.0.0 - Initial release with assembler, disassembler and emulator
"""

__version__ = "1.0.0"
__author__ = "acc8 Contributors"

from acc8.assembler import Assembler
from acc8.disassembler import Disassembler, DisassembledInstruction
from acc8.emulator import Emulator, EmulatorConfig, MultiplyMode
from acc8.errors import (
    Acc8Error,
    ConfigurationError,
    MemoryMapError,
    BusContentionError,
    ProgramLoadError,
    AssemblerError,
    AssemblySyntaxError,
    UnknownMnemonicError,
    AddressingModeError,
    UndefinedSymbolError,
    DuplicateSymbolError,
    BranchRangeError,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Toolchain
    "Assembler",
    "Disassembler",
    "DisassembledInstruction",
    # Emulator
    "Emulator",
    "EmulatorConfig",
    "MultiplyMode",
    # Exception hierarchy
    "Acc8Error",
    "ConfigurationError",
    "MemoryMapError",
    "BusContentionError",
    "ProgramLoadError",
    "AssemblerError",
    "AssemblySyntaxError",
    "UnknownMnemonicError",
    "AddressingModeError",
    "UndefinedSymbolError",
    "DuplicateSymbolError",
    "BranchRangeError",
]
