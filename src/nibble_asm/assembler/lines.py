"""
Logical Line Grouping
=====================

Splits the flat token stream into logical lines at NEWLINE tokens.
Lines without tokens (blank or comment-only) are dropped, so both
assembly passes only ever see lines that carry at least one token.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from nibble_asm.assembler.lexer import Lexer, Token, TokenType
from nibble_asm.errors import SourceLocation


@dataclass
class SourceLine:
    """
    One logical line of the program.

    Attributes:
        tokens: Tokens of the line, NEWLINE excluded (never empty)
        line: Line number in source (1-indexed)
        text: Raw source text of the line, for listings and diagnostics
    """
    tokens: list[Token] = field(default_factory=list)
    line: int = 0
    text: str = ""

    @property
    def first(self) -> Token:
        return self.tokens[0]

    @property
    def second(self) -> Optional[Token]:
        return self.tokens[1] if len(self.tokens) > 1 else None

    @property
    def location(self) -> SourceLocation:
        return self.first.location

    def __len__(self) -> int:
        return len(self.tokens)


def group_lines(tokens: Iterable[Token], source: Optional[str] = None) -> list[SourceLine]:
    """
    Group tokens into logical lines.

    Args:
        tokens: Token stream from the lexer
        source: Original source text; when given, each line keeps its text

    Returns:
        Non-empty lines in source order. A final line that is not
        terminated by a newline is kept.
    """
    # Numbered the same way as the lexer: only '\n' ends a line
    source_lines = [s.rstrip("\r") for s in source.split("\n")] if source is not None else []
    lines: list[SourceLine] = []
    current: list[Token] = []

    def flush() -> None:
        if not current:
            return
        number = current[0].line
        text = source_lines[number - 1] if number <= len(source_lines) else ""
        lines.append(SourceLine(tokens=list(current), line=number, text=text))
        current.clear()

    for token in tokens:
        if token.type == TokenType.NEWLINE:
            flush()
        else:
            current.append(token)
    flush()

    return lines


def parse_source(source: str, filename: str = "<input>") -> list[SourceLine]:
    """
    Convenience function: tokenize ``source`` and group it into lines.

    Raises:
        LexError: If the source cannot be tokenized
    """
    return group_lines(Lexer(source, filename).tokenize(), source)
