"""
nibble_asm Error Hierarchy
==========================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from NibbleAsmError, allowing callers to catch
every assembler-related error with a single except clause.

Exception Hierarchy
-------------------
NibbleAsmError (base)
├── AssemblerError (translation-related)
│   ├── LexError - source text that matches no token pattern
│   ├── UnrecognizedLineError - line shape matches no encoding rule
│   └── UndefinedLabelError - reference to a label that is never defined
└── DriverError (file handling around the translation)
    ├── FileOpenError - source file cannot be opened
    ├── FileReadError - source file cannot be read or decoded
    ├── FileCreateError - output file cannot be created
    └── FileWriteError - output file cannot be written

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence


# =============================================================================
# Base Exception Class
# =============================================================================

class NibbleAsmError(Exception):
    """
    Base exception for all nibble_asm errors.

        try:
            assembler.assemble_file("program.asm")
        except NibbleAsmError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(NibbleAsmError):
    """
    Base exception for all translation errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            prog.asm:3:5: error: undefined label 'lop'
                jmp h_lop
                    ^
            hint: did you mean 'loop'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class LexError(AssemblerError):
    """
    Source text that cannot be tokenized.

    Raised when the lexer meets a span outside whitespace and comments
    that matches none of the token patterns.

    Examples:
        - Uppercase hex digits (``FF``)
        - A bare identifier without ``:`` or ``h_``/``l_`` prefix
        - An address directive with the wrong number of digits (``|100``)
    """
    pass


class UnrecognizedLineError(AssemblerError):
    """
    A logical line whose tokens match no encoding rule.

    The offending tokens are kept on the exception so callers can
    report exactly what the encoder saw.
    """

    def __init__(
        self,
        tokens: Sequence,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.tokens = list(tokens)
        shown = " ".join(token.text for token in self.tokens)
        super().__init__(
            f"unrecognized line '{shown}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UndefinedLabelError(AssemblerError):
    """
    Reference to a label that is defined nowhere in the program.

    Raised during the second pass. The generator passes in similarly
    named labels so the hint can catch typos.
    """

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_labels: Optional[list[str]] = None,
    ):
        self.label = label
        self.similar_labels = similar_labels or []

        hint = None
        if self.similar_labels:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_labels[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined label '{label}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


# =============================================================================
# Driver Exceptions
# =============================================================================

class DriverError(NibbleAsmError):
    """
    Base exception for file handling around the translation.

    Attributes:
        path: The file involved
        reason: Short description of the underlying failure
    """

    action = "access"

    def __init__(self, path: str | Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"cannot {self.action} '{self.path}': {reason}")


class FileOpenError(DriverError):
    """Source file does not exist, is a directory, or is not permitted."""
    action = "open"


class FileReadError(DriverError):
    """Source file was opened but its contents could not be read as text."""
    action = "read"


class FileCreateError(DriverError):
    """Output file (or its temporary sibling) could not be created."""
    action = "create"


class FileWriteError(DriverError):
    """Output file could not be written or moved into place."""
    action = "write"
