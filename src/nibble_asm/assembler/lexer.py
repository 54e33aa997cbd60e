"""
Assembly Language Lexer
=======================

This module converts source text into a stream of tokens that the line
grouper and code generator consume.

Token Types
-----------
- MNEMONIC: Instruction keywords (lit, jmp, add, halt, ...)
- REGISTER: Register operand, ``r`` plus one hex digit (r0..rf)
- BYTE: Raw byte literal, exactly two hex digits (00..ff)
- LABEL_DEF: Label definition, identifier immediately followed by ``:``
- LABEL_REF: Label reference, ``h_name`` (high part) or ``l_name`` (low part)
- ADDRESS: Address directive, ``|`` plus exactly four hex digits
- NEWLINE: End of line

Hex digits are lowercase only. A comment starts at ``;`` and runs to the
end of the line. Spaces, tabs and carriage returns separate tokens.

Words
-----
A run of letters, digits and underscores (plus a directly following
``:``) is scanned as one unit and then classified, so the longest match
always wins: ``rsf`` is the shift keyword rather than ``r`` + ``sf``,
``r5`` is a register, ``r`` alone is the read keyword and ``add:`` is a
label definition. A word that fits no class is a LexError; it is never
split into smaller tokens.

Example
-------
>>> from nibble_asm.assembler.lexer import Lexer
>>> for token in Lexer("loop: ; top\\nadd r3\\n").tokenize():
...     print(token)
Token(LABEL_DEF, 'loop', 1:1)
Token(NEWLINE, 1:12)
Token(MNEMONIC, 'add', 2:1)
Token(REGISTER, $3, 2:5)
Token(NEWLINE, 2:7)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional, Union
import string

from nibble_asm.assembler.opcodes import MNEMONICS, Mnemonic
from nibble_asm.errors import LexError, SourceLocation


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token categories of the assembly language."""

    NEWLINE = auto()     # End of line (terminates a logical line)

    MNEMONIC = auto()    # Instruction keyword
    REGISTER = auto()    # r0..rf
    BYTE = auto()        # 00..ff inline data
    LABEL_DEF = auto()   # name:
    LABEL_REF = auto()   # h_name / l_name
    ADDRESS = auto()     # |xxxx


class Nibble(Enum):
    """Which part of a label's address a reference selects."""

    HIGH = "h"
    LOW = "l"


@dataclass(frozen=True)
class LabelRef:
    """
    Payload of a LABEL_REF token.

    Attributes:
        name: Referenced label name (without prefix)
        nibble: Selected part of the resolved address
    """
    name: str
    nibble: Nibble


TokenValue = Union[Mnemonic, int, str, LabelRef, None]


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from the source code.

    Attributes:
        type: The TokenType classification
        value: Kind-specific payload (Mnemonic, register id, byte value,
               label name, LabelRef, address, or None for NEWLINE)
        text: The token's spelling in the source
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: TokenValue
    text: str
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        if self.value is None:
            return f"Token({self.type.name}, {self.line}:{self.column})"
        if isinstance(self.value, int):
            return f"Token({self.type.name}, ${self.value:X}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.text.rstrip(':')!r}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes assembly source code.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = list(lexer.tokenize())

    The scan is total: every character outside whitespace and comments
    must belong to a token, otherwise LexError is raised with the exact
    location of the offending text.
    """

    IDENT_START = string.ascii_letters + "_"
    IDENT_CHARS = string.ascii_letters + string.digits + "_"
    HEX_DIGITS = "0123456789abcdef"
    WHITESPACE = " \t\r"

    LABEL_REF_PREFIXES = {
        "h_": Nibble.HIGH,
        "l_": Nibble.LOW,
    }

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

        self._pos = 0
        self._line = 1
        self._column = 1
        self._line_start_pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source code.

        Raises:
            LexError: If a span matches no token pattern
        """
        while not self._at_end():
            if self._skip_whitespace():
                continue
            if self._skip_comment():
                continue
            yield self._scan_token()

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, or '' past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume the current character, keeping line/column in step."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1

        return char

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        value: TokenValue,
        text: str,
        start_line: int,
        start_column: int,
    ) -> Token:
        return Token(
            type=token_type,
            value=value,
            text=text,
            line=start_line,
            column=start_column,
            filename=self.filename,
        )

    def _error(self, message: str, column: Optional[int] = None) -> LexError:
        """Build a LexError pointing at the current line."""
        location = SourceLocation(self.filename, self._line, column or self._column)
        return LexError(message, location, source_line=self.get_current_line())

    # =========================================================================
    # Whitespace and Comment Handling
    # =========================================================================

    def _skip_whitespace(self) -> bool:
        skipped = False
        # '' in "..." is True, so check for end of input first
        while self._peek() and self._peek() in self.WHITESPACE:
            self._advance()
            skipped = True
        return skipped

    def _skip_comment(self) -> bool:
        """Skip a ';' comment up to (not including) the newline."""
        if self._peek() != ";":
            return False
        while not self._at_end() and self._peek() != "\n":
            self._advance()
        return True

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        start_line = self._line
        start_column = self._column
        char = self._peek()

        if char == "\n":
            self._advance()
            return self._make_token(TokenType.NEWLINE, None, "\n", start_line, start_column)

        if char == "|":
            return self._scan_address(start_line, start_column)

        if char in self.IDENT_CHARS:
            return self._scan_word(start_line, start_column)

        self._advance()
        raise self._error(f"unexpected character {char!r}", start_column)

    def _scan_address(self, start_line: int, start_column: int) -> Token:
        """Scan '|' followed by exactly four hex digits."""
        self._advance()  # consume |

        digits = self._read_word()
        if len(digits) != 4 or not self._is_hex(digits):
            raise self._error(
                f"address directive needs exactly four lowercase hex digits, got '|{digits}'",
                start_column,
            )

        return self._make_token(
            TokenType.ADDRESS, int(digits, 16), "|" + digits, start_line, start_column
        )

    def _scan_word(self, start_line: int, start_column: int) -> Token:
        """Scan a word (plus an optional trailing ':') and classify it."""
        word = self._read_word()

        if self._peek() == ":":
            self._advance()
            if not self._is_identifier(word):
                raise self._error(f"invalid label name '{word}'", start_column)
            return self._make_token(
                TokenType.LABEL_DEF, word, word + ":", start_line, start_column
            )

        if word in MNEMONICS:
            return self._make_token(
                TokenType.MNEMONIC, MNEMONICS[word], word, start_line, start_column
            )

        if len(word) == 2 and word[0] == "r" and self._is_hex(word[1]):
            return self._make_token(
                TokenType.REGISTER, int(word[1], 16), word, start_line, start_column
            )

        if len(word) == 2 and self._is_hex(word):
            return self._make_token(
                TokenType.BYTE, int(word, 16), word, start_line, start_column
            )

        nibble = self.LABEL_REF_PREFIXES.get(word[:2])
        if nibble is not None and self._is_identifier(word[2:]):
            return self._make_token(
                TokenType.LABEL_REF,
                LabelRef(word[2:], nibble),
                word,
                start_line,
                start_column,
            )

        raise self._error(f"unrecognized token '{word}'", start_column)

    def _read_word(self) -> str:
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())
        return "".join(chars)

    def _is_hex(self, text: str) -> bool:
        return bool(text) and all(c in self.HEX_DIGITS for c in text)

    def _is_identifier(self, text: str) -> bool:
        return bool(text) and text[0] in self.IDENT_START

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def get_current_line(self) -> str:
        """Return the text of the line currently being scanned."""
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end].rstrip("\r")


def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """Tokenize a whole source string into a list."""
    return list(Lexer(source, filename).tokenize())
