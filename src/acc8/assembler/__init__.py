"""
acc8 Assembler
==============

Converts acc8 assembly source into a raw binary program image that the
emulator loads into program memory.

Main Components
---------------
- **Assembler**: Main class that runs the pipeline
- **Lexer**: Tokenizes source text
- **Parser**: Parses tokens into statements (instructions, directives, labels)
- **CodeGenerator**: Two-pass code generation
- **ExpressionEvaluator**: Evaluates `label+1`, `$-2` style operands

Assembly Process
----------------
1. **Parsing (Lexer + Parser)**: tokens -> statements, one line at a time
2. **Code Generation (CodeGenerator)**:
   - Pass 1: symbol collection and address calculation
   - Pass 2: encoding, operand range checks, listing

Example Usage
-------------
>>> from acc8.assembler import Assembler
>>> asm = Assembler()
>>> code = asm.assemble_string('''
... start:
...     LDA #'A'
...     JSR print
... halt:
...     JMP halt
... print:
...     STA $00
...     RTS
... ''')

Supported Features
------------------
- Full acc8 instruction set and addressing modes
- Labels (`name:`) and constants (`name EQU value`)
- ORG, .BYTE (alias FCB, DB) with numbers and "strings"
- Numbers: decimal, $FF, 0xFF, %1010, 0b1010, 'c'
- Expressions with + and -, '$' for the current address
- Listing file and symbol table output
"""

from acc8.assembler.assembler import Assembler, assemble, assemble_file
from acc8.assembler.lexer import Lexer, Token, TokenType
from acc8.assembler.parser import (
    Parser,
    Statement,
    Instruction,
    Directive,
    LabelDef,
    Operand,
    parse_source,
)
from acc8.assembler.codegen import CodeGenerator, Symbol
from acc8.assembler.expressions import ExpressionEvaluator

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    # Parser
    "Parser",
    "Statement",
    "Instruction",
    "Directive",
    "LabelDef",
    "Operand",
    "parse_source",
    # Code generator
    "CodeGenerator",
    "Symbol",
    # Expressions
    "ExpressionEvaluator",
]
