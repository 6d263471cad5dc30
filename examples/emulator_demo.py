#!/usr/bin/env python3
"""
acc8 Emulator Demo
==================

This script demonstrates how to use the acc8 SDK to:
1. Assemble a program from source (countdown.asm, 5 factorial)
2. Load it into the emulator
3. Step, trace and stop on breakpoints
4. Inspect registers and data memory
5. Save a snapshot

Usage:
    python examples/emulator_demo.py [SNAPSHOT]

The snapshot goes to SNAPSHOT, or to countdown.a8s in the system temporary
directory when no path is given.

Copyright (c) 2026 acc8 Contributors
"""

import sys
import tempfile
from pathlib import Path

from acc8.assembler import Assembler
from acc8.emulator import Emulator, EmulatorConfig, MultiplyMode


def main(snapshot=None):
    here = Path(__file__).parent

    # ==========================================================================
    # 1. Assemble the program
    # ==========================================================================
    print("Assembling countdown.asm...")
    asm = Assembler()
    code = asm.assemble_file(here / "countdown.asm")
    print(f"  {len(code)} bytes at ${asm.get_origin():04X}")
    for name, value in sorted(asm.get_symbols().items()):
        print(f"  {name:<10} = ${value:04X}")

    # ==========================================================================
    # 2. Create an emulator and load the image
    # ==========================================================================
    # MultiplyMode.POPCOUNT (the default) computes a * popcount(b);
    # MultiplyMode.PRODUCT computes a * b.
    emu = Emulator(EmulatorConfig(multiply=MultiplyMode.PRODUCT))
    emu.load_program(code, asm.get_origin())
    emu.reset()

    print("\nProgram listing:")
    for line in emu.disassemble_at(asm.get_origin(), count=8):
        print(f"  {line}")

    # ==========================================================================
    # 3. Step a few instructions, then trace the rest
    # ==========================================================================
    print("\nStepping:")
    for _ in range(3):
        emu.step()
        regs = emu.registers
        print(f"  PC=${regs['pc']:04X} ACC=${regs['acc']:02X} cycles={emu.total_cycles}")

    # Stop every time the loop body stores its running value
    emu.add_watchpoint(0x0210)
    event = emu.run()
    print(f"\n{event}")
    event = emu.run()
    print(f"{event}")
    emu.clear_breakpoints()

    def trace(address, regs):
        print(f"  ${address:04X}  ACC=${regs.acc:02X} X=${regs.x:02X}")

    emu.on_retire = trace
    print("\nTracing to the end:")
    event = emu.run()
    emu.on_retire = None

    # ==========================================================================
    # 4. Inspect the results
    # ==========================================================================
    print(f"\n{event}")
    print(f"  Result at $0210: ${emu.read_byte(0x0210):02X}")
    print(f"  {emu.instructions_retired} instructions in {emu.total_cycles} cycles")

    # ==========================================================================
    # 5. Save a snapshot
    # ==========================================================================
    snapshot = Path(snapshot or Path(tempfile.gettempdir()) / "countdown.a8s")
    emu.save_snapshot(snapshot)
    print(f"\nSaved snapshot to {snapshot} ({snapshot.stat().st_size} bytes)")
    return snapshot


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
