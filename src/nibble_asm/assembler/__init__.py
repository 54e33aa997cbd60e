"""
Assembler for the nibble machine
================================

This package turns assembly source for a small 8-bit, byte-addressable
machine into a raw 65536-byte ROM image.

Main Components
---------------
- **Assembler**: Orchestrates the pipeline and handles files
- **Lexer**: Tokenizes source into tokens
- **group_lines**: Groups tokens into logical lines
- **CodeGenerator**: Two-pass label resolution and encoding
- **RomImage**: The fixed 64K output buffer

Assembly Process
----------------
1. **Lexing**: source text -> tokens (comments and whitespace dropped)
2. **Grouping**: tokens -> logical lines (blank lines dropped)
3. **Pass 1**: compute every line's address, record label addresses
4. **Pass 2**: encode one byte per instruction line into the ROM

Example Usage
-------------
>>> from nibble_asm.assembler import assemble
>>> rom = assemble("lit r1\\nadd r2\\nhalt\\n")
>>> rom[:3].hex()
'019213'
"""

from nibble_asm.assembler.assembler import Assembler, assemble, assemble_file
from nibble_asm.assembler.lexer import Lexer, Token, TokenType, LabelRef, Nibble, tokenize
from nibble_asm.assembler.lines import SourceLine, group_lines, parse_source
from nibble_asm.assembler.codegen import CodeGenerator
from nibble_asm.assembler.opcodes import (
    Mnemonic,
    MNEMONICS,
    OPCODE_NIBBLES,
    ZERO_OPERAND_CODES,
)
from nibble_asm.assembler.rom import RomImage, ROM_SIZE

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "LabelRef",
    "Nibble",
    "tokenize",
    # Line grouping
    "SourceLine",
    "group_lines",
    "parse_source",
    # Code generator
    "CodeGenerator",
    # Instruction set
    "Mnemonic",
    "MNEMONICS",
    "OPCODE_NIBBLES",
    "ZERO_OPERAND_CODES",
    # Output
    "RomImage",
    "ROM_SIZE",
]
