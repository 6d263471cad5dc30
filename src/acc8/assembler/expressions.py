"""
Expression Evaluation
=====================

Evaluates operand expressions of the form

    [sign] primary (('+' | '-') primary)*

where a primary is a numeric literal, a symbol, or '$' for the address of
the current instruction. Arithmetic is done on Python ints; range checks
belong to the code generator, which knows the width of each field.
"""

from typing import Optional

from acc8.errors import SourceLocation, UndefinedSymbolError
from acc8.assembler.lexer import Token, TokenType


class ExpressionEvaluator:
    """
    Evaluates token lists against a symbol table.

    Attributes:
        symbols: Symbol name -> value (case-sensitive)
    """

    def __init__(self, symbols: Optional[dict[str, int]] = None):
        self.symbols: dict[str, int] = symbols if symbols is not None else {}

    def evaluate(
        self,
        tokens: list[Token],
        pc: int,
        source_line: Optional[str] = None
    ) -> int:
        """
        Evaluate an expression.

        Args:
            tokens: Expression tokens (already validated by the parser)
            pc: Value of '$'
            source_line: Line text for error messages

        Raises:
            UndefinedSymbolError: If a symbol has no value
        """
        total = 0
        sign = 1
        for token in tokens:
            if token.type == TokenType.PLUS:
                continue
            if token.type == TokenType.MINUS:
                sign = -sign
                continue
            total += sign * self._primary(token, pc, source_line)
            sign = 1
        return total

    def _primary(self, token: Token, pc: int, source_line: Optional[str]) -> int:
        if token.type == TokenType.NUMBER:
            return int(token.value)
        if token.type == TokenType.DOLLAR:
            return pc
        return self._resolve_symbol(str(token.value), token.location, source_line)

    def _resolve_symbol(
        self,
        name: str,
        location: SourceLocation,
        source_line: Optional[str]
    ) -> int:
        if name in self.symbols:
            return self.symbols[name]
        raise UndefinedSymbolError(
            name,
            location=location,
            source_line=source_line,
            similar_symbols=self._find_similar_symbols(name),
        )

    def _find_similar_symbols(self, name: str) -> list[str]:
        """Find symbols that look like a typo of name (for error hints)."""
        name_lower = name.lower()
        similar = []
        for sym in sorted(self.symbols):
            sym_lower = sym.lower()
            if sym_lower == name_lower or (
                abs(len(sym) - len(name)) <= 1
                and _edit_distance(name_lower, sym_lower) <= 2
            ):
                similar.append(sym)
        return similar[:3]


def _edit_distance(s1: str, s2: str) -> int:
    """Levenshtein distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min(distances[j], distances[j + 1], new_distances[-1]))
        distances = new_distances
    return distances[-1]
