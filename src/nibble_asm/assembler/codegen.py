"""
Code Generator
==============

This module turns logical lines into a 64K ROM image. It implements a
two-pass assembly process:

Pass 1 (Label Resolution)
-------------------------
- Walk all lines with a location counter starting at 0
- A label definition records ``name -> counter``
- An address directive moves the counter
- Every other line occupies exactly one byte

Pass 2 (Encoding)
-----------------
- Walk the lines again with a fresh counter and the complete label table
- Encode each instruction line into one byte at its address
- Resolve label references (forward references included)

Both passes advance the counter with the same rule, so every line gets
the same address in both. Any error aborts the whole run and no ROM is
kept; a ROM image only exists after a fully successful pass 2.

Line Encoding
-------------
```
Line shape              Byte
----------------------  ------------------------------
name:                   (none)
|xxxx                   (none, counter := xxxx)
h_name / l_name         resolved label part
jmp / call / ret / halt $10 / $11 / $12 / $13
nn                      nn (inline data)
<op> rN                 (opcode << 4) | N
<op> h_name / l_name    (opcode << 4) | resolved part
```

A high reference resolves to ``address >> 8`` (all eight upper bits), a
low reference to ``address & $F`` (only the lowest four bits).
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional
import difflib
import logging

from nibble_asm.errors import (
    AssemblerError,
    SourceLocation,
    UndefinedLabelError,
    UnrecognizedLineError,
)
from nibble_asm.assembler.lexer import Nibble, Token, TokenType
from nibble_asm.assembler.lines import SourceLine
from nibble_asm.assembler.opcodes import (
    Mnemonic,
    encode,
    get_opcode_nibble,
    get_zero_operand_code,
)
from nibble_asm.assembler.rom import ADDRESS_MASK, RomImage

logger = logging.getLogger(__name__)


# =============================================================================
# Symbol Table Entry
# =============================================================================

@dataclass
class Symbol:
    """
    Label table entry.

    Attributes:
        name: Label name (case-sensitive)
        value: Resolved 16-bit address
        location: Where the label was (last) defined
    """
    name: str
    value: int
    location: SourceLocation


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Generates a ROM image from logical lines.

    The code generator maintains:
    - Label table built by pass 1
    - Location counter
    - Listing lines and warnings recorded along the way

    Usage:
        codegen = CodeGenerator()
        rom = codegen.generate(lines)
        codegen.write_symbols("program.sym")
    """

    def __init__(self) -> None:
        self._symbols: dict[str, Symbol] = {}
        self._rom: Optional[RomImage] = None
        self._pc = 0
        self._listing_lines: list[str] = []
        self._warnings: list[str] = []

    # =========================================================================
    # Public Interface
    # =========================================================================

    def generate(self, lines: Iterable[SourceLine]) -> bytes:
        """
        Assemble logical lines into a 65536-byte image.

        Args:
            lines: Non-empty logical lines in source order

        Returns:
            The complete ROM image

        Raises:
            UnrecognizedLineError: If a line matches no encoding rule
            UndefinedLabelError: If a referenced label is never defined
        """
        lines = list(lines)
        self.reset()

        try:
            self._pass1(lines)
            logger.debug(
                "pass 1: %d lines, %d labels: %s",
                len(lines),
                len(self._symbols),
                ", ".join(f"{name}=${sym.value:04X}" for name, sym in self._symbols.items()),
            )
            rom = self._pass2(lines)
        except AssemblerError:
            # No labels or listing survive a failed run
            self.reset()
            raise

        logger.debug("pass 2: wrote %d bytes", len(rom.used_addresses()))

        self._rom = rom
        return bytes(rom)

    def reset(self) -> None:
        """Drop the label table, ROM image and diagnostics of the last run."""
        self._symbols = {}
        self._rom = None
        self._pc = 0
        self._listing_lines = []
        self._warnings = []

    def get_rom(self) -> Optional[bytes]:
        """Return the last successfully generated image, or None."""
        return bytes(self._rom) if self._rom is not None else None

    def get_used_addresses(self) -> list[int]:
        """Addresses written by the last successful run."""
        return self._rom.used_addresses() if self._rom is not None else []

    def get_symbols(self) -> dict[str, int]:
        """Return a dictionary of label names to addresses."""
        return {name: sym.value for name, sym in self._symbols.items()}

    def get_warnings(self) -> list[str]:
        """Return warnings collected during the last run."""
        return list(self._warnings)

    # =========================================================================
    # Pass 1: Label Resolution
    # =========================================================================

    def _pass1(self, lines: list[SourceLine]) -> None:
        """Collect label addresses; never emits bytes."""
        self._pc = 0

        for line in lines:
            first = line.first

            if first.type == TokenType.LABEL_DEF:
                self._define_label(first)
                self._warn_ignored_tokens(line)
            elif first.type == TokenType.ADDRESS:
                self._warn_ignored_tokens(line)

            self._pc = self._next_address(line, self._pc)

    def _define_label(self, token: Token) -> None:
        """Record a label at the current location; later definitions win."""
        name = token.value
        existing = self._symbols.get(name)
        if existing is not None:
            self._warn(
                f"{token.location}: label '{name}' redefined "
                f"(was ${existing.value:04X} at {existing.location}, now ${self._pc:04X})"
            )

        self._symbols[name] = Symbol(name=name, value=self._pc, location=token.location)

    @staticmethod
    def _next_address(line: SourceLine, pc: int) -> int:
        """Location counter after ``line``; shared by both passes."""
        first = line.first
        if first.type == TokenType.LABEL_DEF:
            return pc
        if first.type == TokenType.ADDRESS:
            return first.value
        return (pc + 1) & ADDRESS_MASK

    # =========================================================================
    # Pass 2: Encoding
    # =========================================================================

    def _pass2(self, lines: list[SourceLine]) -> RomImage:
        """Encode every line into a fresh ROM image."""
        rom = RomImage()
        self._pc = 0

        for line in lines:
            value = self._encode_line(line)
            if value is not None:
                rom.write(self._pc, value)
            self._add_listing(line, value)
            self._pc = self._next_address(line, self._pc)

        return rom

    def _encode_line(self, line: SourceLine) -> Optional[int]:
        """
        Encode one line.

        Returns:
            The byte to store at the current address, or None for lines
            that emit nothing (label definitions, address directives)
        """
        first, second = line.first, line.second

        if first.type in (TokenType.LABEL_DEF, TokenType.ADDRESS):
            return None

        if len(line) == 1:
            if first.type == TokenType.LABEL_REF:
                return self._resolve(first, line)
            if first.type == TokenType.BYTE:
                return first.value
            if first.type == TokenType.MNEMONIC:
                code = get_zero_operand_code(first.value)
                if code is not None:
                    return code

        elif len(line) == 2 and first.type == TokenType.MNEMONIC:
            opcode = get_opcode_nibble(first.value)
            if opcode is not None:
                if second.type == TokenType.REGISTER:
                    return encode(opcode, second.value)
                if second.type == TokenType.LABEL_REF:
                    return encode(opcode, self._resolve(second, line))

        raise UnrecognizedLineError(
            line.tokens,
            location=line.location,
            source_line=line.text,
            hint=self._unrecognized_hint(line),
        )

    def _resolve(self, token: Token, line: SourceLine) -> int:
        """Resolve a label reference to the selected part of its address."""
        ref = token.value
        symbol = self._symbols.get(ref.name)
        if symbol is None:
            raise UndefinedLabelError(
                ref.name,
                location=token.location,
                source_line=line.text,
                similar_labels=difflib.get_close_matches(ref.name, list(self._symbols)),
            )

        if ref.nibble == Nibble.HIGH:
            return symbol.value >> 8
        return symbol.value & 0xF

    @staticmethod
    def _unrecognized_hint(line: SourceLine) -> Optional[str]:
        """Explain the most common ways a line goes wrong."""
        first, second = line.first, line.second

        if first.type != TokenType.MNEMONIC:
            if first.type == TokenType.REGISTER:
                return "a register operand must follow a mnemonic"
            if len(line) > 1:
                return "data bytes and label references must stand alone on their line"
            return None

        mnemonic: Mnemonic = first.value
        if len(line) > 2:
            return f"'{mnemonic.value}' takes at most one operand"
        if second is None:
            return f"'{mnemonic.value}' needs a register or label operand"
        if get_opcode_nibble(mnemonic) is None:
            return f"'{mnemonic.value}' takes no operand"
        return f"'{mnemonic.value}' operand must be a register (r0-rf) or h_/l_ label reference"

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def _warn(self, message: str) -> None:
        self._warnings.append(message)
        logger.warning(message)

    def _warn_ignored_tokens(self, line: SourceLine) -> None:
        if len(line) > 1:
            ignored = " ".join(token.text for token in line.tokens[1:])
            self._warn(f"{line.location}: ignoring '{ignored}' after '{line.first.text}'")

    # =========================================================================
    # Listing and Symbol Output
    # =========================================================================

    def _add_listing(self, line: SourceLine, value: Optional[int]) -> None:
        code = f"{value:02X}" if value is not None else ""
        self._listing_lines.append(
            f"{self._pc:04X}  {code:4s}  {line.line:4d}  {line.text}"
        )

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            The listing showing addresses, generated bytes, and source lines.
        """
        lines = []
        lines.append("nibasm Listing")
        lines.append("=" * 60)
        lines.append("")
        lines.append("Addr  Code  Line  Source")
        lines.append("-" * 60)
        lines.extend(self._listing_lines)
        lines.append("")
        lines.append("Label Table")
        lines.append("-" * 30)
        for name, sym in sorted(self._symbols.items()):
            lines.append(f"{name:20s} = ${sym.value:04X}")
        return "\n".join(lines) + "\n"

    def _require_success(self) -> None:
        if self._rom is None:
            raise AssemblerError("no successful assembly to report on")

    def write_listing(self, filepath: str | Path) -> None:
        """Write the assembly listing file."""
        self._require_success()
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.get_listing())

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write symbol table file.

        Format: name $address (one per line, sorted by name)
        """
        self._require_success()
        with open(filepath, "w", encoding="utf-8") as f:
            f.write("# Label table\n")
            f.write("# Generated by nibasm\n")
            for name, sym in sorted(self._symbols.items()):
                f.write(f"{name} ${sym.value:04X}\n")
