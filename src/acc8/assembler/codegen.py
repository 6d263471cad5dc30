"""
acc8 Code Generator
===================

Two-pass code generation from parsed statements.

Pass 1 walks the statements with a location counter, recording the address
of every label and the value of every EQU. Instruction sizes depend only on
the mnemonic and the operand syntax, so no pass-1 size is ever revised.

Pass 2 evaluates operands against the complete symbol table, encodes each
instruction, range-checks operands and records a listing line per source
line.

Operand resolution
------------------
- `#value`   -> IMMEDIATE, -128..255
- branches   -> RELATIVE, offset from the following instruction, -128..+127
- JMP / JSR  -> ABSOLUTE, $0000-$FFFF (high byte first)
- otherwise  -> DIRECT: a page offset $00-$FF, or a full address inside
  the direct page (e.g. $0210 with the default page $02)
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from acc8.cpu import (
    AddressingMode,
    InstructionInfo,
    get_instruction_info,
    get_valid_modes,
    is_branch_instruction,
)
from acc8.errors import (
    AddressingModeError,
    AssemblerError,
    BranchRangeError,
    DuplicateSymbolError,
    ErrorCollector,
    SourceLocation,
)
from acc8.assembler.expressions import ExpressionEvaluator
from acc8.assembler.lexer import TokenType
from acc8.assembler.parser import Directive, Instruction, LabelDef, Statement

logger = logging.getLogger(__name__)


@dataclass
class Symbol:
    """
    Symbol table entry.

    Attributes:
        name: Symbol name
        value: Address or constant value
        location: Where the symbol was defined (None for predefined)
        is_constant: True for EQU and predefined symbols
    """
    name: str
    value: int
    location: Optional[SourceLocation] = None
    is_constant: bool = False


class CodeGenerator:
    """
    Generates an acc8 program image from statements.

    Usage:
        codegen = CodeGenerator()
        code = codegen.generate(statements)
    """

    def __init__(self, direct_page: int = 0x02):
        """
        Args:
            direct_page: Page that direct-mode operands address
        """
        self.direct_page = direct_page & 0xFF
        self._predefined: dict[str, int] = {}
        self._symbols: dict[str, Symbol] = {}
        self._evaluator = ExpressionEvaluator()
        self._errors = ErrorCollector()
        self._output: dict[int, int] = {}
        self._listing_lines: list[str] = []
        self._pc = 0

    def define_symbol(self, name: str, value: int) -> None:
        """Pre-define a constant visible to every assembly run."""
        self._predefined[name] = value

    # =========================================================================
    # Main Entry Point
    # =========================================================================

    def generate(self, statements: list[Statement]) -> bytes:
        """
        Assemble statements into a program image.

        Returns:
            Bytes from the lowest to the highest assembled address, gaps
            filled with zero

        Raises:
            AssemblerError: If assembly fails; a single error is raised with
                its specific type
        """
        self._symbols = {
            name: Symbol(name, value, is_constant=True)
            for name, value in self._predefined.items()
        }
        self._evaluator = ExpressionEvaluator({n: s.value for n, s in self._symbols.items()})
        self._errors.clear()
        self._output = {}
        self._listing_lines = []

        self._pass1(statements)
        self._errors.raise_if_errors()

        self._pass2(statements)
        self._errors.raise_if_errors()

        code = self.get_code()
        logger.debug(f"Assembled {len(code)} bytes at ${self.get_origin():04X}")
        return code

    # =========================================================================
    # Pass 1
    # =========================================================================

    def _pass1(self, statements: list[Statement]) -> None:
        self._pc = 0
        for stmt in statements:
            try:
                if isinstance(stmt, LabelDef):
                    self._define(stmt.name, self._pc, stmt)
                elif isinstance(stmt, Instruction):
                    self._pc += self._instruction_info(stmt).size
                elif isinstance(stmt, Directive):
                    self._pass1_directive(stmt)
            except AssemblerError as e:
                self._errors.add(e)

    def _pass1_directive(self, directive: Directive) -> None:
        if directive.name == "ORG":
            self._pc = self._set_origin(directive)
        elif directive.name == "EQU":
            arg = directive.arguments[0]
            if arg[0].type == TokenType.STRING:
                raise AssemblerError(
                    "EQU value must be numeric", directive.location,
                    source_line=directive.source_line,
                )
            value = self._evaluator.evaluate(arg, self._pc, directive.source_line)
            self._define(directive.label, value, directive, is_constant=True)
        elif directive.name == "BYTE":
            self._pc += sum(
                len(arg[0].value) if arg[0].type == TokenType.STRING else 1
                for arg in directive.arguments
            )

    def _set_origin(self, directive: Directive) -> int:
        value = self._evaluator.evaluate(directive.arguments[0], self._pc, directive.source_line)
        if not 0 <= value <= 0xFFFF:
            raise AssemblerError(
                f"ORG address {value} is outside $0000-$FFFF", directive.location,
                source_line=directive.source_line,
            )
        return value

    def _define(
        self,
        name: str,
        value: int,
        stmt: Statement,
        is_constant: bool = False
    ) -> None:
        if name in self._symbols:
            original = self._symbols[name].location
            raise DuplicateSymbolError(name, stmt.location, original, stmt.source_line)
        self._symbols[name] = Symbol(name, value, stmt.location, is_constant)
        self._evaluator.symbols[name] = value

    def _instruction_info(self, inst: Instruction) -> InstructionInfo:
        """Pick the encoding implied by the mnemonic and operand syntax."""
        if inst.operand is None:
            mode = AddressingMode.INHERENT
        elif inst.operand.immediate:
            mode = AddressingMode.IMMEDIATE
        elif is_branch_instruction(inst.mnemonic):
            mode = AddressingMode.RELATIVE
        elif get_instruction_info(inst.mnemonic, AddressingMode.ABSOLUTE):
            mode = AddressingMode.ABSOLUTE
        else:
            mode = AddressingMode.DIRECT

        info = get_instruction_info(inst.mnemonic, mode)
        if info is None:
            raise AddressingModeError(
                inst.mnemonic,
                str(mode),
                location=inst.location,
                source_line=inst.source_line,
                valid_modes=[str(m) for m in get_valid_modes(inst.mnemonic)],
            )
        return info

    # =========================================================================
    # Pass 2
    # =========================================================================

    def _pass2(self, statements: list[Statement]) -> None:
        self._pc = 0
        for i, stmt in enumerate(statements):
            try:
                if isinstance(stmt, LabelDef):
                    # A label sharing its line with an instruction is listed there
                    following = statements[i + 1] if i + 1 < len(statements) else None
                    if following is None or following.location != stmt.location:
                        self._list(self._pc, b"", stmt)
                elif isinstance(stmt, Instruction):
                    self._emit(self._encode(stmt), stmt)
                elif isinstance(stmt, Directive):
                    self._pass2_directive(stmt)
            except AssemblerError as e:
                self._errors.add(e)

    def _pass2_directive(self, directive: Directive) -> None:
        if directive.name == "ORG":
            self._pc = self._set_origin(directive)
            self._list(None, b"", directive)
        elif directive.name == "EQU":
            value = self._symbols[directive.label].value
            self._listing_lines.append(
                f"={value & 0xFFFF:04X}  {'':12s}  {directive.location.line:4d}  {directive.source_line.rstrip()}"
            )
        elif directive.name == "BYTE":
            data = bytearray()
            for arg in directive.arguments:
                if arg[0].type == TokenType.STRING:
                    data.extend(ord(c) & 0xFF for c in arg[0].value)
                else:
                    data.append(self._byte_value(arg, directive))
            self._emit(bytes(data), directive)

    def _byte_value(self, tokens, stmt: Statement) -> int:
        value = self._evaluator.evaluate(tokens, self._pc, stmt.source_line)
        if not -128 <= value <= 0xFF:
            raise AssemblerError(
                f"value {value} does not fit in a byte", stmt.location,
                hint="byte values must be in -128..255",
                source_line=stmt.source_line,
            )
        return value & 0xFF

    def _encode(self, inst: Instruction) -> bytes:
        info = self._instruction_info(inst)

        match info.mode:
            case AddressingMode.INHERENT:
                return bytes([info.opcode])

            case AddressingMode.IMMEDIATE:
                return bytes([info.opcode, self._byte_value(inst.operand.tokens, inst)])

            case AddressingMode.DIRECT:
                value = self._evaluator.evaluate(inst.operand.tokens, self._pc, inst.source_line)
                if 0 <= value <= 0xFF:
                    offset = value
                elif 0 <= value <= 0xFFFF and value >> 8 == self.direct_page:
                    offset = value & 0xFF
                else:
                    base = self.direct_page << 8
                    raise AssemblerError(
                        f"address {_hex(value)} is outside the direct page", inst.location,
                        hint=f"direct operands must be $00-$FF or ${base:04X}-${base | 0xFF:04X}",
                        source_line=inst.source_line,
                    )
                return bytes([info.opcode, offset])

            case AddressingMode.ABSOLUTE:
                target = self._evaluator.evaluate(inst.operand.tokens, self._pc, inst.source_line)
                if not 0 <= target <= 0xFFFF:
                    raise AssemblerError(
                        f"address {_hex(target)} is outside $0000-$FFFF", inst.location,
                        source_line=inst.source_line,
                    )
                return bytes([info.opcode, target >> 8, target & 0xFF])

            case AddressingMode.RELATIVE:
                tokens = inst.operand.tokens
                target = self._evaluator.evaluate(tokens, self._pc, inst.source_line)
                offset = target - (self._pc + info.size)
                if not -128 <= offset <= 127:
                    if len(tokens) == 1 and tokens[0].type == TokenType.IDENTIFIER:
                        name = str(tokens[0].value)
                    else:
                        name = _hex(target)
                    raise BranchRangeError(name, offset, inst.location, inst.source_line)
                return bytes([info.opcode, offset & 0xFF])

        raise AssertionError(f"unhandled addressing mode {info.mode}")

    def _emit(self, data: bytes, stmt: Statement) -> None:
        start = self._pc
        if start + len(data) > 0x10000:
            raise AssemblerError(
                "code runs past $FFFF", stmt.location, source_line=stmt.source_line
            )
        for offset, byte in enumerate(data):
            address = start + offset
            if address in self._output:
                raise AssemblerError(
                    f"code at ${address:04X} overlaps earlier output", stmt.location,
                    hint="check ORG directives",
                    source_line=stmt.source_line,
                )
            self._output[address] = byte
        self._pc += len(data)
        self._list(start, data, stmt)

    def _list(self, address: Optional[int], data: bytes, stmt: Statement) -> None:
        addr = f"${address:04X}" if address is not None else "     "
        hex_str = " ".join(f"{b:02X}" for b in data)
        self._listing_lines.append(
            f"{addr}  {hex_str:12s}  {stmt.location.line:4d}  {stmt.source_line.rstrip()}"
        )

    # =========================================================================
    # Results
    # =========================================================================

    def get_code(self) -> bytes:
        """Program image from the origin to the last assembled byte."""
        if not self._output:
            return b""
        lo, hi = min(self._output), max(self._output)
        return bytes(self._output.get(a, 0) for a in range(lo, hi + 1))

    def get_origin(self) -> int:
        """Lowest assembled address (0 when nothing was assembled)."""
        return min(self._output) if self._output else 0

    def get_symbols(self) -> dict[str, int]:
        """Symbol name -> value."""
        return {name: sym.value for name, sym in self._symbols.items()}

    def get_listing(self) -> str:
        """Listing with addresses, code bytes, line numbers and source."""
        lines = [
            "acc8 Assembler Listing",
            "=" * 60,
            "",
            "Addr   Code          Line  Source",
            "-" * 60,
        ]
        lines.extend(self._listing_lines)
        lines.append("")
        lines.append("Symbol Table")
        lines.append("-" * 30)
        for name, sym in sorted(self._symbols.items()):
            lines.append(f"{name:20s} = ${sym.value & 0xFFFF:04X}")
        return "\n".join(lines)

    def write_listing(self, filepath: str | Path) -> None:
        Path(filepath).write_text(self.get_listing() + "\n")

    def write_symbols(self, filepath: str | Path) -> None:
        lines = [f"{name:20s} = ${sym.value & 0xFFFF:04X}" for name, sym in sorted(self._symbols.items())]
        Path(filepath).write_text("\n".join(lines) + "\n")


def _hex(value: int) -> str:
    return f"${value:04X}" if value >= 0 else f"-${-value:04X}"
