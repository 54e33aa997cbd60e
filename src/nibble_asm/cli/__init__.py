"""
nibble_asm Command-Line Interface
=================================

- **nibasm**: assembler, source file -> 64K ROM image

The tool is a Click application with help text and uniform exit codes
(see ``nibble_asm.cli.errors``).
"""

__all__ = ["nibasm"]
