"""
nibble_asm - Assembler for a small 8-bit machine
================================================

This package translates assembly source for a small 8-bit,
byte-addressable machine into a fixed 65536-byte ROM image that is
loaded verbatim into the machine's address space.

Every instruction is one byte: a 4-bit opcode nibble and a 4-bit
operand (a register id or part of a label's address). Labels may be
used before they are defined; an address directive (``|0100``) moves
the location counter.

Quick Start
-----------
    >>> from nibble_asm import Assembler
    >>> asm = Assembler()
    >>> rom = asm.assemble_file("program.asm")
    >>> asm.write_rom("program.rom")

Or use the command-line tool:
    $ nibasm program.asm program.rom
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from nibble_asm.assembler import Assembler, assemble, assemble_file
from nibble_asm.errors import (
    NibbleAsmError,
    SourceLocation,
    AssemblerError,
    LexError,
    UnrecognizedLineError,
    UndefinedLabelError,
    DriverError,
    FileOpenError,
    FileReadError,
    FileCreateError,
    FileWriteError,
)

__all__ = [
    "__version__",
    "Assembler",
    "assemble",
    "assemble_file",
    "NibbleAsmError",
    "SourceLocation",
    "AssemblerError",
    "LexError",
    "UnrecognizedLineError",
    "UndefinedLabelError",
    "DriverError",
    "FileOpenError",
    "FileReadError",
    "FileCreateError",
    "FileWriteError",
]
