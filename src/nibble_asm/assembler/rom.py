"""
ROM Image Buffer
================

The output of the assembler: the complete 64K address space of the
target machine as a flat byte buffer. Byte *i* is the content of
address *i*; there is no header, length prefix or checksum.
"""

ROM_SIZE = 0x10000
ADDRESS_MASK = 0xFFFF


class RomImage:
    """
    Fixed-size, zero-initialized 65536-byte memory image.

    Addresses are taken modulo 64K and values modulo 256, so every write
    lands inside the buffer. The image tracks which addresses were
    written, which the listing and verbose summary use.

    Usage:
        rom = RomImage()
        rom.write(0x0100, 0x13)
        data = bytes(rom)
    """

    def __init__(self) -> None:
        self._data = bytearray(ROM_SIZE)
        self._written: set[int] = set()

    def write(self, address: int, value: int) -> None:
        """Store one byte at a 16-bit address."""
        address &= ADDRESS_MASK
        self._data[address] = value & 0xFF
        self._written.add(address)

    def __getitem__(self, address: int) -> int:
        return self._data[address & ADDRESS_MASK]

    def __len__(self) -> int:
        return ROM_SIZE

    def __bytes__(self) -> bytes:
        return bytes(self._data)

    def used_addresses(self) -> list[int]:
        """Addresses written at least once, in ascending order."""
        return sorted(self._written)
