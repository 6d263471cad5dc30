"""
acc8 Assembler
==============

`Assembler` runs source through the lexer, the parser and the two-pass code
generator and keeps the result (image, origin, symbols, listing) around
for the write_* methods. `assemble()` and `assemble_file()` are one-shot
shortcuts with default settings.

>>> from acc8.assembler import Assembler
>>> asm = Assembler()
>>> asm.assemble_string('''
...     LDA #10
... loop:
...     DEC
...     BNE loop
... halt:
...     JMP halt
... ''').hex()
'010a1741fd500005'

The acc8asm command wraps this class; see acc8.cli.acc8asm.
"""

import logging
from pathlib import Path

from acc8.assembler.codegen import CodeGenerator
from acc8.assembler.parser import parse_source

logger = logging.getLogger(__name__)


class Assembler:
    """
    Assembles acc8 source into a raw program image.

    One Assembler can be reused; each assemble_* call replaces the output of
    the previous one, while symbols given through define_symbol() stay.

    Attributes:
        direct_page: Page that direct-mode operands address. Code is only
            correct on an emulator configured with the same page.
    """

    def __init__(
        self,
        defines: dict[str, int] | None = None,
        direct_page: int = 0x02
    ):
        self.direct_page = direct_page
        self._codegen = CodeGenerator(direct_page=direct_page)
        for name, value in (defines or {}).items():
            self.define_symbol(name, value)

    def define_symbol(self, name: str, value: int) -> None:
        """Pre-define a symbol as if by 'name EQU value'."""
        self._codegen.define_symbol(name, value)

    # =========================================================================
    # Assembling
    # =========================================================================

    def assemble_string(self, source: str, filename: str = "<input>") -> bytes:
        """
        Assemble source and return the image.

        filename only appears in error locations.

        Raises:
            AssemblerError: For the first error, or a combined error when
                a pass finds several
        """
        statements = parse_source(source, filename)
        logger.debug(f"Parsed {len(statements)} statements from {filename}")
        return self._codegen.generate(statements)

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Read and assemble filepath.

        Raises:
            AssemblerError: If the source has errors
            FileNotFoundError: If filepath does not exist
        """
        filepath = Path(filepath)
        logger.info(f"Assembling {filepath}")
        return self.assemble_string(filepath.read_text(), str(filepath))

    # =========================================================================
    # Results
    # =========================================================================

    def get_code(self) -> bytes:
        """Program image from the last assembly."""
        return self._codegen.get_code()

    def get_origin(self) -> int:
        """Address of the first byte of the image."""
        return self._codegen.get_origin()

    def get_symbols(self) -> dict[str, int]:
        """Symbol table from the last assembly."""
        return self._codegen.get_symbols()

    def get_listing(self) -> str:
        """Assembly listing from the last assembly."""
        return self._codegen.get_listing()

    def write_binary(self, filepath: str | Path) -> None:
        """Write the raw program image."""
        code = self.get_code()
        Path(filepath).write_bytes(code)
        logger.info(f"Wrote {len(code)} bytes to {filepath}")

    def write_listing(self, filepath: str | Path) -> None:
        """Write the assembly listing."""
        self._codegen.write_listing(filepath)
        logger.info(f"Wrote listing to {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        """Write the symbol table, one 'name = $value' per line."""
        self._codegen.write_symbols(filepath)
        logger.info(f"Wrote symbols to {filepath}")


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>") -> bytes:
    """
    Assemble source code with default settings.

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler().assemble_string(source, filename)


def assemble_file(filepath: str | Path) -> bytes:
    """
    Assemble a file with default settings.

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler().assemble_file(filepath)
