"""
acc8 Disassembler
=================

Turns acc8 machine code back into source the assembler accepts.

Usage:
    disasm = Disassembler()
    for instr in disasm.disassemble(program, start_address=0x0000, count=10):
        print(instr)

    instr = disasm.disassemble_one(program, address=0x0000)
    print(instr.text)            # e.g. "LDA #$0A"

Annotations go into the `comment` field: the full address of a direct
operand, the displacement of a branch, the character of a printable
immediate, or a symbol name when a symbol table is supplied. Opcodes
missing from the instruction table come out as `.BYTE $xx`; the processor
executes them as NOP.

Copyright (c) 2026 acc8 Contributors
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from acc8.cpu.isa import AddressingMode, decode_opcode


@dataclass
class DisassembledInstruction:
    """
    One decoded instruction (or one byte of undecodable data).

    Attributes:
        address: Where the first byte sits in memory
        opcode: The first byte
        mnemonic: Instruction mnemonic, or ".BYTE" for unknown opcodes
        mode: Addressing mode
        operand_bytes: Bytes after the opcode (empty when truncated)
        operand_str: Operand as assembler syntax
        size: Bytes consumed
        raw_bytes: opcode + operand bytes as found in the buffer
        comment: Annotation, possibly empty
    """
    address: int
    opcode: int
    mnemonic: str
    mode: AddressingMode
    operand_bytes: bytes
    operand_str: str
    size: int
    raw_bytes: bytes
    comment: str = ""

    @property
    def text(self) -> str:
        """Assembler source for this instruction."""
        return f"{self.mnemonic} {self.operand_str}".rstrip()

    def __str__(self) -> str:
        """Listing line: '$ADDR: BYTES  TEXT ; comment'."""
        line = f"${self.address:04X}: {self.raw_bytes.hex(' ').upper():<8}  "
        if not self.comment:
            return line + self.text
        return f"{line}{self.text:<16} ; {self.comment}"

    def to_dict(self) -> dict:
        """JSON-friendly form with $-prefixed hex strings."""
        return {
            "address": f"${self.address:04X}",
            "address_int": self.address,
            "opcode": f"${self.opcode:02X}",
            "mnemonic": self.mnemonic,
            "mode": str(self.mode),
            "operand": self.operand_str,
            "size": self.size,
            "bytes": [f"${b:02X}" for b in self.raw_bytes],
            "comment": self.comment,
        }


class Disassembler:
    """
    Disassembler for acc8 machine code.

    Attributes:
        symbol_table: Address -> name, used in place of numeric comments
        direct_page: Page that direct-mode offsets are resolved against
    """

    def __init__(
        self,
        symbol_table: Optional[Dict[int, str]] = None,
        direct_page: int = 0x02
    ):
        self.symbol_table = symbol_table or {}
        self.direct_page = direct_page & 0xFF

    def disassemble_one(
        self,
        data: bytes,
        address: int = 0,
        offset: int = 0
    ) -> DisassembledInstruction:
        """
        Decode the instruction starting at data[offset], located at address.

        Raises:
            ValueError: If offset is past the end of data
        """
        if not 0 <= offset < len(data):
            raise ValueError(f"Offset {offset} beyond data length {len(data)}")

        opcode = data[offset]
        info = decode_opcode(opcode)
        if info is None:
            return DisassembledInstruction(
                address, opcode, ".BYTE", AddressingMode.INHERENT, b"",
                f"${opcode:02X}", 1, bytes([opcode]), "unknown opcode",
            )

        raw = bytes(data[offset:offset + info.size])
        if len(raw) < info.size:
            return DisassembledInstruction(
                address, opcode, info.mnemonic, info.mode, b"",
                "???", len(raw), raw, "incomplete instruction",
            )

        operand = raw[1:]
        operand_str, comment = self._operand(info.mode, operand, address + info.size)
        return DisassembledInstruction(
            address, opcode, info.mnemonic, info.mode, operand,
            operand_str, info.size, raw, comment,
        )

    def _operand(self, mode: AddressingMode, operand: bytes, next_address: int) -> tuple[str, str]:
        """Operand text and comment; next_address is where the following instruction starts."""
        if mode == AddressingMode.INHERENT:
            return "", ""

        if mode == AddressingMode.IMMEDIATE:
            value = operand[0]
            return f"#${value:02X}", f"'{chr(value)}'" if 0x20 <= value < 0x7F else ""

        if mode == AddressingMode.DIRECT:
            full = self.direct_page << 8 | operand[0]
            return f"${operand[0]:02X}", self.symbol_table.get(full, f"${full:04X}")

        if mode == AddressingMode.ABSOLUTE:
            target = int.from_bytes(operand, "big")
            return f"${target:04X}", self.symbol_table.get(target, "")

        if mode == AddressingMode.RELATIVE:
            disp = int.from_bytes(operand, "big", signed=True)
            target = (next_address + disp) & 0xFFFF
            return f"${target:04X}", self.symbol_table.get(target, f"{disp:+d}")

        raise AssertionError(f"unhandled addressing mode {mode}")

    def iter_instructions(
        self,
        data: bytes,
        start_address: int = 0,
        max_bytes: Optional[int] = None
    ) -> Iterator[DisassembledInstruction]:
        """Decode data front to back, stopping at max_bytes (if given)."""
        limit = len(data) if max_bytes is None else min(max_bytes, len(data))
        offset = 0
        while offset < limit:
            instr = self.disassemble_one(data, start_address + offset, offset)
            yield instr
            offset += instr.size

    def disassemble(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None,
        max_bytes: Optional[int] = None
    ) -> List[DisassembledInstruction]:
        """
        Decode up to count instructions (None = all).

        An instruction that starts before max_bytes is decoded in full even
        if it extends past it.
        """
        result = []
        for instr in self.iter_instructions(data, start_address, max_bytes):
            if count is not None and len(result) >= count:
                break
            result.append(instr)
        return result

    def disassemble_to_text(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None
    ) -> str:
        """Listing with one instruction per line."""
        return "\n".join(map(str, self.disassemble(data, start_address, count)))
