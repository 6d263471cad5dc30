"""
acc8 Error Hierarchy
====================

Every exception the toolkit raises derives from Acc8Error:

    Acc8Error
    ├── ConfigurationError      EmulatorConfig field out of range
    ├── MemoryMapError          region outside the 64KB address space
    │   └── BusContentionError  an address with zero or several drivers
    ├── ProgramLoadError        image or snapshot cannot be loaded
    └── AssemblerError          source errors, with location and hint
        ├── AssemblySyntaxError
        ├── UnknownMnemonicError
        ├── AddressingModeError
        ├── UndefinedSymbolError
        ├── DuplicateSymbolError
        └── BranchRangeError

The processor core itself never raises: unknown opcodes, division by zero
and stack wraparound end up in register and flag state. These exceptions
belong to the surfaces around the core.

Assembler errors print as:

    count.asm:7: error: undefined symbol 'lop'
        BNE lop
    hint: did you mean 'loop'?

Copyright (c) 2026 acc8 Contributors
"""

from dataclasses import dataclass
from typing import Optional


class Acc8Error(Exception):
    """Base exception for all acc8 errors."""


# =============================================================================
# Emulator Exceptions
# =============================================================================

class ConfigurationError(Acc8Error):
    """An EmulatorConfig field is out of range."""


class MemoryMapError(Acc8Error):
    """Memory regions are declared inconsistently."""


class BusContentionError(MemoryMapError):
    """
    Address decode did not yield exactly one driver.

    Attributes:
        address: The address that failed to decode
        claimants: Names of the regions that claimed it (empty for a gap)
    """

    def __init__(self, address: int, claimants: list[str]):
        self.address = address
        self.claimants = claimants
        who = ", ".join(claimants) if claimants else "no region"
        super().__init__(f"bus contention at ${address:04X}: driven by {who}")


class ProgramLoadError(Acc8Error):
    """A program image or snapshot cannot be placed into memory."""


# =============================================================================
# Assembler Exceptions
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """A file and 1-indexed line, printed as 'file:line'."""
    filename: str
    line: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}"


class AssemblerError(Acc8Error):
    """
    An error in assembly source.

    Attributes:
        message: What went wrong, without location
        location: Where it went wrong, when known
        hint: How to fix it, when the assembler can tell
        source_line: Text of the offending line
        errors: The individual errors; a combined error raised by
            ErrorCollector lists each of them, otherwise [self]
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        *,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        self.errors: list[AssemblerError] = [self]
        super().__init__(message)

    def __str__(self) -> str:
        where = f"{self.location}: " if self.location else ""
        lines = [f"{where}error: {self.message}"]
        if self.source_line is not None:
            lines.append("    " + self.source_line.strip())
        if self.hint:
            lines.append(f"hint: {self.hint}")
        return "\n".join(lines)


class AssemblySyntaxError(AssemblerError):
    """Malformed token, operand or directive."""


class UnknownMnemonicError(AssemblerError):
    """Mnemonic is not part of the instruction set."""

    def __init__(self, mnemonic: str, location=None, **context):
        self.mnemonic = mnemonic
        super().__init__(f"unknown mnemonic '{mnemonic}'", location, **context)


class AddressingModeError(AssemblerError):
    """The operand syntax selects a mode the mnemonic lacks (e.g. STA #$41)."""

    def __init__(
        self,
        mnemonic: str,
        mode: str,
        location=None,
        source_line: Optional[str] = None,
        valid_modes: Optional[list[str]] = None,
    ):
        self.mnemonic = mnemonic
        self.mode = mode
        self.valid_modes = list(valid_modes or ())
        super().__init__(
            f"'{mnemonic}' does not support {mode} addressing mode",
            location,
            hint=f"{mnemonic} supports: {', '.join(self.valid_modes)}" if self.valid_modes else None,
            source_line=source_line,
        )


class UndefinedSymbolError(AssemblerError):
    """Reference to a symbol that is never defined; suggests near misses."""

    def __init__(
        self,
        symbol: str,
        location=None,
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = list(similar_symbols or ())
        hint = None
        if self.similar_symbols:
            hint = "did you mean " + ", ".join(f"'{s}'" for s in self.similar_symbols[:3]) + "?"
        super().__init__(
            f"undefined symbol '{symbol}'", location, hint=hint, source_line=source_line
        )


class DuplicateSymbolError(AssemblerError):
    """A label or EQU name defined twice."""

    def __init__(
        self,
        symbol: str,
        location=None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.original_location = original_location
        hint = f"'{symbol}' was first defined at {original_location}" if original_location else None
        super().__init__(
            f"duplicate symbol '{symbol}'", location, hint=hint, source_line=source_line
        )


class BranchRangeError(AssemblerError):
    """
    Branch displacement outside -128..+127.

    The displacement is measured from the instruction after the branch.
    """

    def __init__(
        self,
        target: str,
        offset: int,
        location=None,
        source_line: Optional[str] = None,
    ):
        self.target = target
        self.offset = offset
        super().__init__(
            f"branch target '{target}' is out of range (offset: {offset})",
            location,
            hint="use JMP for targets more than 128 bytes away",
            source_line=source_line,
        )


# =============================================================================
# Error Collection
# =============================================================================

class ErrorCollector:
    """
    Gathers the errors of one assembler pass so all of them are reported.

    Example:
        errors = ErrorCollector()
        for stmt in statements:
            try:
                ...
            except AssemblerError as e:
                errors.add(e)
        errors.raise_if_errors()
    """

    def __init__(self):
        self.errors: list[AssemblerError] = []

    def __len__(self) -> int:
        return len(self.errors)

    def add(self, error: AssemblerError) -> None:
        self.errors.append(error)

    def clear(self) -> None:
        self.errors.clear()

    def raise_if_errors(self) -> None:
        """
        Raise what was collected, if anything.

        One error is raised unchanged so callers can catch its type. Several
        are combined into one AssemblerError whose message lists them all
        and whose errors attribute holds them.
        """
        if not self.errors:
            return
        if len(self.errors) == 1:
            raise self.errors[0]
        body = "\n\n".join(str(e) for e in self.errors)
        combined = AssemblerError(f"assembly failed with {len(self.errors)} errors:\n\n{body}")
        combined.errors = list(self.errors)
        raise combined
