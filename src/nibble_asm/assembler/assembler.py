"""
Assembler - Main Interface
==========================

This module provides the main Assembler class, the primary interface for
turning source text into a 64K ROM image. It coordinates the lexer, the
line grouper and the code generator, and owns the file handling around
them.

Example Usage
-------------
>>> from nibble_asm.assembler import Assembler
>>>
>>> asm = Assembler()
>>> rom = asm.assemble_string('''
... start:
...     lit r1
...     add r2
...     jmp h_start
...     halt
... ''')
>>> len(rom)
65536
>>> asm.write_rom("program.rom")

Command-Line Usage
------------------
    $ nibasm program.asm program.rom -l program.lst -s program.sym

File Handling
-------------
Reading distinguishes a file that cannot be opened (FileOpenError) from
one whose contents cannot be read as UTF-8 text (FileReadError).
Writing goes through a temporary file in the destination directory that
is renamed over the destination only once it is complete, so a failed
run never leaves an empty or truncated ROM file behind.
"""

from contextlib import suppress
from pathlib import Path
from typing import Optional
import logging
import os
import tempfile

from nibble_asm.assembler.codegen import CodeGenerator
from nibble_asm.assembler.lines import parse_source
from nibble_asm.errors import (
    AssemblerError,
    FileCreateError,
    FileOpenError,
    FileReadError,
    FileWriteError,
)

logger = logging.getLogger(__name__)

# Permissions for written ROM files (mkstemp creates files as 0600)
OUTPUT_FILE_MODE = 0o644


class Assembler:
    """
    Main assembler class.

    Attributes:
        verbose: If True, progress messages are logged at INFO level
                 instead of DEBUG
    """

    def __init__(self, verbose: bool = False):
        """
        Initialize the assembler.

        Args:
            verbose: Log progress at INFO level
        """
        self._verbose = verbose
        self._codegen = CodeGenerator()
        self._source_file: Optional[Path] = None

    def _log(self, message: str, *args) -> None:
        logger.log(logging.INFO if self._verbose else logging.DEBUG, message, *args)

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_string(self, source: str, filename: str = "<input>") -> bytes:
        """
        Assemble source code from a string.

        The assembly pipeline is:
        1. Tokenize and group into logical lines
        2. Pass 1: resolve label addresses
        3. Pass 2: encode lines into the ROM image

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            The 65536-byte ROM image

        Raises:
            AssemblerError: If assembly fails
        """
        self._codegen.reset()
        lines = parse_source(source, filename)
        self._log("Parsed %d lines from %s", len(lines), filename)

        rom = self._codegen.generate(lines)
        self._log(
            "Assembled %d bytes, %d labels",
            len(self._codegen.get_used_addresses()),
            len(self._codegen.get_symbols()),
        )
        return rom

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble source code from a file.

        Args:
            filepath: Path to assembly source file

        Returns:
            The 65536-byte ROM image

        Raises:
            FileOpenError: If the file cannot be opened
            FileReadError: If the file cannot be read or is not UTF-8
            AssemblerError: If assembly fails
        """
        filepath = Path(filepath)
        self._source_file = filepath
        self._log("Assembling %s...", filepath)

        self._codegen.reset()
        source = read_source(filepath)
        return self.assemble_string(source, str(filepath))

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_rom(self) -> Optional[bytes]:
        """
        Get the ROM image of the last successful assembly.

        Returns:
            The 65536-byte image, or None if nothing assembled successfully
        """
        return self._codegen.get_rom()

    def get_symbols(self) -> dict[str, int]:
        """
        Get the label table.

        Returns:
            Dictionary mapping label names to addresses
        """
        return self._codegen.get_symbols()

    def get_used_addresses(self) -> list[int]:
        """Addresses that received a byte in the last assembly."""
        return self._codegen.get_used_addresses()

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            Listing with addresses, code bytes, source and label table
        """
        return self._codegen.get_listing()

    def get_warnings(self) -> list[str]:
        """Warnings from the last assembly (label redefinitions, ignored tokens)."""
        return self._codegen.get_warnings()

    def write_rom(self, filepath: str | Path) -> None:
        """
        Write the ROM image as a raw 65536-byte file.

        Args:
            filepath: Output file path

        Raises:
            AssemblerError: If there is no successfully assembled image
            FileCreateError: If the output file cannot be created
            FileWriteError: If the output file cannot be written
        """
        rom = self.get_rom()
        if rom is None:
            raise AssemblerError("no ROM image to write; assembly has not succeeded")

        write_atomic(filepath, rom)
        self._log("Wrote %d bytes to %s", len(rom), filepath)

    def write_listing(self, filepath: str | Path) -> None:
        """
        Write assembly listing file.

        Args:
            filepath: Output file path

        Raises:
            AssemblerError: If the last assembly did not succeed
        """
        self._codegen.write_listing(filepath)
        self._log("Wrote listing to %s", filepath)

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write label table file.

        Args:
            filepath: Output file path

        Raises:
            AssemblerError: If the last assembly did not succeed
        """
        self._codegen.write_symbols(filepath)
        self._log("Wrote symbols to %s", filepath)


# =============================================================================
# File Helpers
# =============================================================================

def read_source(filepath: str | Path) -> str:
    """
    Read a source file as UTF-8 text.

    Raises:
        FileOpenError: If the file cannot be opened
        FileReadError: If reading or decoding fails
    """
    filepath = Path(filepath)
    try:
        f = open(filepath, "rb")
    except OSError as e:
        raise FileOpenError(filepath, e.strerror or str(e)) from e

    with f:
        try:
            data = f.read()
        except OSError as e:
            raise FileReadError(filepath, e.strerror or str(e)) from e

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FileReadError(filepath, f"not valid UTF-8 text ({e.reason} at byte {e.start})") from e


def write_atomic(filepath: str | Path, data: bytes) -> None:
    """
    Replace ``filepath`` with ``data`` in one step.

    The data is written to a temporary file next to the destination and
    renamed over it. On failure the temporary file is removed and the
    destination is left untouched.

    Raises:
        FileCreateError: If the temporary file cannot be created
        FileWriteError: If writing or renaming fails
    """
    filepath = Path(filepath)
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{filepath.name}.", suffix=".tmp", dir=filepath.parent
        )
    except OSError as e:
        raise FileCreateError(filepath, e.strerror or str(e)) from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp_name, OUTPUT_FILE_MODE)
        os.replace(tmp_name, filepath)
    except OSError as e:
        with suppress(OSError):
            os.unlink(tmp_name)
        raise FileWriteError(filepath, e.strerror or str(e)) from e


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>") -> bytes:
    """
    Convenience function to assemble source code.

    Args:
        source: Assembly source code
        filename: Virtual filename for errors

    Returns:
        The 65536-byte ROM image

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler().assemble_string(source, filename)


def assemble_file(filepath: str | Path) -> bytes:
    """
    Convenience function to assemble a file.

    Raises:
        NibbleAsmError: If reading or assembly fails
    """
    return Assembler().assemble_file(filepath)
