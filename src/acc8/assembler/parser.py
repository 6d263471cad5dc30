"""
acc8 Assembly Language Parser
=============================

Turns the lexer's token stream into a list of statements for the code
generator. The language is line oriented; each line holds at most one
label and one instruction or directive.

Statement Types
---------------
1. **LabelDef**: `loop:`
2. **Instruction**: `LDA #$41`, `STA $10`, `BNE loop`, `JSR print`
3. **Directive**: `ORG $20`, `count EQU 10`, `.BYTE 1, 2, "hi"`

Addressing Mode Detection
-------------------------
| Syntax      | Mode                          | Example     |
|-------------|-------------------------------|-------------|
| (none)      | Inherent                      | NOP, RTS    |
| #value      | Immediate                     | #$41        |
| value       | Direct, absolute or relative  | $10, loop   |

A bare value is resolved by the code generator from the mnemonic: branches
are relative, JMP/JSR absolute, everything else direct.
"""

from dataclasses import dataclass, field
from typing import Optional

from acc8.cpu import MNEMONICS
from acc8.errors import (
    AssemblerError,
    AssemblySyntaxError,
    ErrorCollector,
    SourceLocation,
    UnknownMnemonicError,
)
from acc8.assembler.lexer import Lexer, Token, TokenType


# =============================================================================
# Statement Data Classes
# =============================================================================

@dataclass
class Statement:
    """
    Base class for all parsed statements.

    Attributes:
        location: Where the statement appears
        source_line: Raw text of the line (for listings and errors)
    """
    location: SourceLocation
    source_line: str


@dataclass
class LabelDef(Statement):
    """Label definition; the label takes the current location."""
    name: str


@dataclass
class Operand:
    """
    Instruction operand.

    Attributes:
        immediate: True for '#value'
        tokens: Expression tokens (without the '#')
    """
    immediate: bool
    tokens: list[Token] = field(default_factory=list)


@dataclass
class Instruction(Statement):
    """
    Machine instruction statement.

    Attributes:
        mnemonic: The instruction mnemonic (uppercase)
        operand: The operand, None for inherent instructions
    """
    mnemonic: str
    operand: Optional[Operand] = None


@dataclass
class Directive(Statement):
    """
    Assembler directive statement.

    Attributes:
        name: Canonical directive name (ORG, EQU or BYTE)
        arguments: One token list per comma-separated argument
        label: Symbol being defined (EQU only)
    """
    name: str
    arguments: list[list[Token]] = field(default_factory=list)
    label: Optional[str] = None


# =============================================================================
# Directive Names
# =============================================================================

# Accepted spellings -> canonical name
DIRECTIVES = {
    "ORG": "ORG",
    ".ORG": "ORG",
    "EQU": "EQU",
    ".EQU": "EQU",
    ".BYTE": "BYTE",
    "FCB": "BYTE",
    "DB": "BYTE",
}

_PRIMARY = (TokenType.NUMBER, TokenType.IDENTIFIER, TokenType.DOLLAR)
_SIGNS = (TokenType.PLUS, TokenType.MINUS)


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Parses a token stream into statements.

    Errors are collected per line so that one run reports every bad line.

    Usage:
        parser = Parser(tokens, source_lines)
        statements = parser.parse()
    """

    def __init__(self, tokens: list[Token], source_lines: list[str]):
        self._tokens = tokens
        self._source_lines = source_lines
        self._pos = 0
        self._errors = ErrorCollector()

    def parse(self) -> list[Statement]:
        """
        Parse all tokens.

        Raises:
            AssemblerError: If any line failed to parse
        """
        statements: list[Statement] = []
        while not self._check(TokenType.EOF):
            line_tokens = self._take_line()
            if not line_tokens:
                continue
            try:
                statements.extend(self._parse_line(line_tokens))
            except AssemblerError as e:
                self._errors.add(e)
        self._errors.raise_if_errors()
        return statements

    # =========================================================================
    # Token Access
    # =========================================================================

    def _check(self, token_type: TokenType) -> bool:
        return self._tokens[self._pos].type == token_type

    def _take_line(self) -> list[Token]:
        """Consume tokens up to and including the next NEWLINE."""
        line = []
        while not self._check(TokenType.EOF):
            token = self._tokens[self._pos]
            self._pos += 1
            if token.type == TokenType.NEWLINE:
                break
            line.append(token)
        return line

    def _source_line(self, token: Token) -> str:
        if 0 < token.line <= len(self._source_lines):
            return self._source_lines[token.line - 1]
        return ""

    def _error(self, message: str, token: Token, hint: Optional[str] = None) -> AssemblySyntaxError:
        return AssemblySyntaxError(
            message, token.location, hint=hint, source_line=self._source_line(token)
        )

    # =========================================================================
    # Line Parsing
    # =========================================================================

    def _parse_line(self, tokens: list[Token]) -> list[Statement]:
        first = tokens[0]
        location = first.location
        text = self._source_line(first)
        result: list[Statement] = []

        if first.type != TokenType.IDENTIFIER:
            raise self._error(f"expected label or mnemonic, found '{first.value}'", first)

        # name EQU value
        if len(tokens) > 1 and tokens[1].type == TokenType.IDENTIFIER \
                and DIRECTIVES.get(str(tokens[1].value).upper()) == "EQU":
            args = self._split_arguments(tokens[2:], tokens[1])
            if len(args) != 1:
                raise self._error("EQU takes exactly one value", tokens[1])
            return [Directive(location, text, "EQU", args, label=str(first.value))]

        # label:
        if len(tokens) > 1 and tokens[1].type == TokenType.COLON:
            name = str(first.value)
            if name.startswith("."):
                raise self._error(f"invalid label name '{name}'", first)
            result.append(LabelDef(location, text, name))
            tokens = tokens[2:]
            if not tokens:
                return result
            if tokens[0].type != TokenType.IDENTIFIER:
                raise self._error(f"expected mnemonic after label, found '{tokens[0].value}'", tokens[0])

        head = tokens[0]
        word = str(head.value).upper()

        if word in DIRECTIVES:
            name = DIRECTIVES[word]
            if name == "EQU":
                raise self._error("EQU needs a symbol name", head, hint="write 'name EQU value'")
            args = self._split_arguments(tokens[1:], head)
            if name == "ORG" and len(args) != 1:
                raise self._error("ORG takes exactly one address", head)
            if name == "BYTE" and not args:
                raise self._error(".BYTE needs at least one value", head)
            result.append(Directive(head.location, text, name, args))
            return result

        if word not in MNEMONICS:
            hint = "labels must end with ':'" if len(tokens) == 1 else None
            raise UnknownMnemonicError(str(head.value), head.location, source_line=text, hint=hint)

        result.append(Instruction(head.location, text, word, self._parse_operand(tokens[1:], head)))
        return result

    def _parse_operand(self, tokens: list[Token], head: Token) -> Optional[Operand]:
        if not tokens:
            return None
        immediate = tokens[0].type == TokenType.HASH
        expr = tokens[1:] if immediate else tokens
        if not expr:
            raise self._error("expected value after '#'", tokens[0])
        for token in expr:
            if token.type == TokenType.COMMA:
                raise self._error(f"unexpected ',' in {head.value} operand", token)
        self._check_expression(expr)
        return Operand(immediate, expr)

    def _split_arguments(self, tokens: list[Token], head: Token) -> list[list[Token]]:
        """Split comma-separated directive arguments."""
        if not tokens:
            return []
        args: list[list[Token]] = [[]]
        for token in tokens:
            if token.type == TokenType.COMMA:
                args.append([])
            else:
                args[-1].append(token)
        for arg in args:
            if not arg:
                raise self._error(f"empty argument in {head.value}", head)
            if not (len(arg) == 1 and arg[0].type == TokenType.STRING):
                self._check_expression(arg)
        return args

    def _check_expression(self, tokens: list[Token]) -> None:
        """
        Validate: [sign] primary (('+' | '-') primary)*

        where primary is a number, a symbol or '$' (current location).
        """
        i = 0
        if tokens[i].type in _SIGNS:
            i += 1
        expect_primary = True
        for token in tokens[i:]:
            if expect_primary:
                if token.type not in _PRIMARY:
                    raise self._error(f"expected value, found '{token.value}'", token)
            elif token.type not in _SIGNS:
                raise self._error(f"unexpected '{token.value}' in expression", token)
            expect_primary = not expect_primary
        if expect_primary:
            raise self._error("incomplete expression", tokens[-1])


def parse_source(source: str, filename: str = "<input>") -> list[Statement]:
    """
    Tokenize and parse assembly source.

    Raises:
        AssemblerError: On lexical or syntax errors
    """
    tokens = list(Lexer(source, filename).tokenize())
    return Parser(tokens, source.splitlines()).parse()
