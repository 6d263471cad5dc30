"""
acc8 Emulator
=============

A cycle-level emulator for the acc8 8-bit accumulator processor.

The processor is built from three clocked components:

- **RegisterFile**: ACC, X, Y, PC, SP, IR, FLAGS and the address output,
  with synchronous writes and same-cycle reads
- **ArithmeticUnit**: single-cycle operations plus multi-step MUL, DIV and
  SQRT with a one-cycle done pulse
- **ControlUnit**: the fetch/decode/execute state machine that drives the
  other two and the memory bus

Each of the two sequential components has a pure transition function
(`control_next`, `alu_next`) that can be tested without any clock.

Quick Start
-----------

Basic usage::

    >>> from acc8.emulator import Emulator
    >>> emu = Emulator()
    >>> emu.load_program(bytes([0x01, 0x0A, 0x06, 0x05, 0x10, 0x02]))
    >>> for _ in range(3):
    ...     emu.step()
    >>> emu.registers['acc']
    12

With debugging::

    >>> emu.add_breakpoint(0x0010)
    >>> event = emu.run()
    >>> if event.reason == BreakReason.PC_BREAKPOINT:
    ...     print(f"Stopped at ${event.address:04X}")

Module Structure
----------------

- `emulator.py`: Main Emulator class (high-level API)
- `control.py`: Control unit state machine and processor core
- `alu.py`: Arithmetic unit
- `registers.py`: Register file and FLAGS bits
- `memory.py`: Program/data memory with bus arbitration
- `breakpoints.py`: Debugging support
- `config.py`: Emulator configuration

Copyright (c) 2026 acc8 Contributors
"""

# Main entry point
from .emulator import Emulator
from .config import EmulatorConfig, MultiplyMode

# Processor components
from .control import (
    ControlUnit,
    ControlState,
    ControlContext,
    ControlInputs,
    ControlOutputs,
    BusRequest,
    control_next,
)
from .alu import (
    ArithmeticUnit,
    AluCore,
    AluOp,
    AluPhase,
    AluRequest,
    AluResult,
    alu_next,
    compute,
)
from .registers import (
    Flags,
    RegisterFile,
    RegisterSnapshot,
    RegisterWrites,
)

# Memory subsystem
from .memory import Memory, MemoryBlock, Region, region_of

# Debugging support
from .breakpoints import (
    BreakpointManager,
    BreakEvent,
    BreakReason,
    RegisterCondition,
)

__all__ = [
    # Main API
    "Emulator",
    "EmulatorConfig",
    "MultiplyMode",

    # Control unit
    "ControlUnit",
    "ControlState",
    "ControlContext",
    "ControlInputs",
    "ControlOutputs",
    "BusRequest",
    "control_next",

    # Arithmetic unit
    "ArithmeticUnit",
    "AluCore",
    "AluOp",
    "AluPhase",
    "AluRequest",
    "AluResult",
    "alu_next",
    "compute",

    # Registers
    "Flags",
    "RegisterFile",
    "RegisterSnapshot",
    "RegisterWrites",

    # Memory
    "Memory",
    "MemoryBlock",
    "Region",
    "region_of",

    # Debugging
    "BreakpointManager",
    "BreakEvent",
    "BreakReason",
    "RegisterCondition",
]
