"""
acc8 Assembly Language Lexer
============================

Converts source text into a stream of tokens for the parser. Source is
scanned a line at a time with one compiled pattern; every line except the
last ends in a NEWLINE token and the stream always ends with EOF.

Token Types
-----------
- IDENTIFIER: Labels, mnemonics, directives (".BYTE"), symbol names
- NUMBER: Decimal, hex ($FF/0xFF), binary (%1010/0b1010), character ('A')
- STRING: Double-quoted strings ("hello"), used by .BYTE
- PLUS, MINUS: Expression operators
- COMMA, COLON, HASH: Delimiters
- DOLLAR: A lone '$', meaning the current location
- NEWLINE, EOF

Comments
--------
- Semicolon: "; comment" (anywhere on line)
- Asterisk: "* comment" (only at start of line)

Escapes in strings and character literals: \\n \\r \\t \\0 \\\\ \\" \\'
and \\xHH. Any other escaped character stands for itself.

Example
-------
>>> from acc8.assembler.lexer import Lexer
>>> for token in Lexer("start: LDA #$41 ; load 'A'").tokenize():
...     print(token)
Token(IDENTIFIER, 'start', 1:1)
Token(COLON, ':', 1:6)
Token(IDENTIFIER, 'LDA', 1:8)
Token(HASH, '#', 1:12)
Token(NUMBER, $41, 1:13)
Token(EOF, 1:27)
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator

from acc8.errors import AssemblySyntaxError, SourceLocation


class TokenType(Enum):
    """Token types for the acc8 assembly language."""
    NEWLINE = auto()
    EOF = auto()

    IDENTIFIER = auto()
    NUMBER = auto()
    STRING = auto()

    PLUS = auto()
    MINUS = auto()

    COMMA = auto()
    COLON = auto()
    HASH = auto()
    DOLLAR = auto()


@dataclass(frozen=True)
class Token:
    """
    A single token from the source code.

    Attributes:
        type: The TokenType classification
        value: String for identifiers and strings, int for numbers
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: str | int | None
    line: int
    column: int
    filename: str

    def __repr__(self) -> str:
        where = f"{self.line}:{self.column}"
        if self.value is None:
            return f"Token({self.type.name}, {where})"
        if isinstance(self.value, int):
            return f"Token({self.type.name}, ${self.value:X}, {where})"
        return f"Token({self.type.name}, {self.value!r}, {where})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line)


# Alternatives are tried in order; hex and binary prefixes must win over
# plain decimals, and '$' with digits over the lone location counter.
_TOKEN_PATTERN = re.compile(r"""
      (?P<space>     [ \t\r]+ )
    | (?P<comment>   ;.* )
    | (?P<directive> \.[A-Za-z_][A-Za-z0-9_]* )
    | (?P<ident>     [A-Za-z_][A-Za-z0-9_]* )
    | (?P<hex>       \$[0-9A-Fa-f]+ | 0[xX][0-9A-Fa-f]* )
    | (?P<binary>    %[01]+ | 0[bB][01]+ )
    | (?P<decimal>   [0-9][A-Za-z0-9_]* )
    | (?P<dollar>    \$ )
    | (?P<string>    " (?: [^"\\\n] | \\. )* (?P<string_end>")? )
    | (?P<char>      ' (?P<char_body> \\x[0-9A-Fa-f]{1,2} | \\. | [^'\\\n] )? (?P<char_end>')? )
    | (?P<punct>     [-+,:\#] )
""", re.VERBOSE)

_PUNCTUATION = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    "#": TokenType.HASH,
}

_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "0": "\0",
}

_ESCAPE_PATTERN = re.compile(r"\\(x[0-9A-Fa-f]{0,2}|.)")


class Lexer:
    """
    Tokenizes acc8 assembly source code.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = list(lexer.tokenize())
    """

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source code.

        Raises:
            AssemblySyntaxError: If invalid syntax is encountered
        """
        lines = self.source.split("\n")
        for number, text in enumerate(lines, start=1):
            yield from self._scan_line(text, number)
            if number < len(lines):
                yield Token(TokenType.NEWLINE, None, number, len(text) + 1, self.filename)
        yield Token(TokenType.EOF, None, len(lines), len(lines[-1]) + 1, self.filename)

    def _scan_line(self, text: str, line: int) -> Iterator[Token]:
        if text.lstrip(" \t").startswith("*"):
            return

        pos = 0
        while pos < len(text):
            match = _TOKEN_PATTERN.match(text, pos)
            if match is None:
                raise self._error(f"unexpected character '{text[pos]}'", text, line)
            pos = match.end()
            kind = match.lastgroup
            if kind in ("space", "comment"):
                continue
            yield Token(
                *self._classify(match, text, line),
                line=line,
                column=match.start() + 1,
                filename=self.filename,
            )

    def _classify(self, match: re.Match, text: str, line: int) -> tuple[TokenType, str | int]:
        """Turn one pattern match into (type, value)."""
        lexeme = match.group()
        # Named sub-groups (string_end, char_body, ...) make lastgroup
        # unreliable for the literals, so test them by their first character
        if lexeme[0] == '"':
            if match.group("string_end") is None:
                raise self._error("unterminated string literal", text, line)
            return TokenType.STRING, self._unescape(lexeme[1:-1], text, line)
        if lexeme[0] == "'":
            body = match.group("char_body")
            if body is None:
                raise self._error("unterminated character literal", text, line)
            if match.group("char_end") is None:
                raise self._error("expected closing quote for character literal", text, line)
            return TokenType.NUMBER, ord(self._unescape(body, text, line))

        kind = match.lastgroup
        if kind in ("directive", "ident"):
            return TokenType.IDENTIFIER, lexeme
        if kind in ("hex", "binary"):
            # Strip '$' / '%' or the two-character 0x / 0b prefix
            digits = lexeme[2:] if lexeme[0] == "0" else lexeme[1:]
            if not digits:
                raise self._error("expected hexadecimal digits", text, line)
            return TokenType.NUMBER, int(digits, 16 if kind == "hex" else 2)
        if kind == "decimal":
            if not lexeme.isdigit():
                raise self._error(f"invalid number '{lexeme}'", text, line)
            return TokenType.NUMBER, int(lexeme)
        if kind == "dollar":
            return TokenType.DOLLAR, lexeme
        return _PUNCTUATION[lexeme], lexeme

    def _unescape(self, raw: str, text: str, line: int) -> str:
        def replace(escape: re.Match) -> str:
            seq = escape.group(1)
            if seq[0] == "x":
                if len(seq) == 1:
                    raise self._error("expected hexadecimal digits after \\x", text, line)
                return chr(int(seq[1:], 16))
            return _ESCAPES.get(seq, seq)

        return _ESCAPE_PATTERN.sub(replace, raw)

    def _error(self, message: str, text: str, line: int) -> AssemblySyntaxError:
        return AssemblySyntaxError(
            message, SourceLocation(self.filename, line), source_line=text
        )
