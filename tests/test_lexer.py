# =============================================================================
# test_lexer.py - Lexer Unit Tests
# =============================================================================
# Tests for the acc8 assembler lexer/tokenizer.
#
# Test coverage includes:
#   - Number formats: decimal, hexadecimal ($ and 0x), binary (% and 0b), char
#   - String literals with escape sequences
#   - Identifiers, directives and punctuation
#   - Comments (semicolon and line-start asterisk forms)
#   - Error conditions
# =============================================================================

import pytest

from acc8.assembler.lexer import Lexer, TokenType
from acc8.errors import AssemblySyntaxError


def tokenize(source: str) -> list:
    """Tokenize and drop the trailing EOF."""
    return [t for t in Lexer(source, "<test>").tokenize() if t.type != TokenType.EOF]


def values(source: str) -> list:
    return [t.value for t in tokenize(source)]


# =============================================================================
# Numbers
# =============================================================================

class TestNumbers:
    """Numeric literal formats."""

    @pytest.mark.parametrize("text,value", [
        ("42", 42),
        ("$FF", 0xFF),
        ("$1a", 0x1A),
        ("0x10", 0x10),
        ("0XfF", 0xFF),
        ("%1010", 0b1010),
        ("0b11", 0b11),
        ("'A'", 0x41),
        ("'\\n'", 0x0A),
        ("'\\x7f'", 0x7F),
    ])
    def test_formats(self, text, value):
        tokens = tokenize(text)
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == value

    def test_lone_dollar(self):
        """A '$' not followed by hex digits is the location counter."""
        tokens = tokenize("$-2")
        assert [t.type for t in tokens] == [TokenType.DOLLAR, TokenType.MINUS, TokenType.NUMBER]

    def test_invalid_decimal(self):
        with pytest.raises(AssemblySyntaxError):
            tokenize("12abc")

    def test_missing_hex_digits(self):
        with pytest.raises(AssemblySyntaxError):
            tokenize("0x")

    def test_unterminated_char(self):
        with pytest.raises(AssemblySyntaxError):
            tokenize("'A")


# =============================================================================
# Strings, identifiers and punctuation
# =============================================================================

class TestTokens:
    """Non-numeric tokens."""

    def test_string_with_escapes(self):
        tokens = tokenize('"hi\\t\\"x\\""')
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == 'hi\t"x"'

    def test_unterminated_string(self):
        with pytest.raises(AssemblySyntaxError) as exc_info:
            tokenize('"abc\nNOP')
        assert exc_info.value.location.line == 1

    def test_identifiers_keep_case(self):
        assert values("Loop_1 LDA") == ["Loop_1", "LDA"]

    def test_dot_directive(self):
        tokens = tokenize(".BYTE")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == ".BYTE"

    def test_punctuation(self):
        types = [t.type for t in tokenize("label: LDA #1, +")]
        assert types == [
            TokenType.IDENTIFIER, TokenType.COLON, TokenType.IDENTIFIER,
            TokenType.HASH, TokenType.NUMBER, TokenType.COMMA, TokenType.PLUS,
        ]

    def test_unexpected_character(self):
        with pytest.raises(AssemblySyntaxError) as exc_info:
            tokenize("LDA @1")
        assert "unexpected character" in str(exc_info.value)


# =============================================================================
# Comments, lines and positions
# =============================================================================

class TestLayout:
    """Comments, newlines and positions."""

    def test_semicolon_comment(self):
        assert values("NOP ; no operation") == ["NOP"]

    def test_star_comment_at_line_start(self):
        assert values("* header\nNOP") == [None, "NOP"]

    def test_newlines_are_tokens(self):
        types = [t.type for t in tokenize("NOP\nINC\n")]
        assert types == [
            TokenType.IDENTIFIER, TokenType.NEWLINE,
            TokenType.IDENTIFIER, TokenType.NEWLINE,
        ]

    def test_positions(self):
        tokens = tokenize("NOP\n  INC")
        inc = tokens[2]
        assert (inc.line, inc.column) == (2, 3)
        assert str(inc.location) == "<test>:2"

    def test_eof_always_last(self):
        tokens = list(Lexer("").tokenize())
        assert [t.type for t in tokens] == [TokenType.EOF]
