"""
acc8 Command-Line Tools
=======================

- acc8asm: assemble source into a raw program image
- acc8disasm: disassemble a program image
- acc8run: run a program image (or source) in the emulator
"""
