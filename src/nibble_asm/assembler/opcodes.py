"""
Instruction Set Definitions
===========================

The target machine encodes every instruction in a single byte:

    7   6   5   4   3   2   1   0
    +---------------+---------------+
    | opcode nibble |    operand    |
    +---------------+---------------+

The operand nibble is a register id (0-15) or a value derived from a
label address. Three control instructions (call, ret, halt) take no
operand and use fixed codes; jmp has a fixed code of its own when it is
written without an operand.

| Mnemonic | Nibble | Meaning                 |
|----------|--------|-------------------------|
| lit      | $0     | load literal            |
| jmp      | $1     | jump                    |
| cjmp     | $2     | conditional jump        |
| tac      | $3     | call with target        |
| tre      | $4     | return with target      |
| r        | $5     | read                    |
| w        | $6     | write                   |
| eq       | $7     | equal test              |
| cmp      | $8     | compare                 |
| add      | $9     | add                     |
| sub      | $A     | subtract                |
| lsf      | $B     | shift left              |
| rsf      | $C     | shift right             |
| or       | $D     | bitwise or              |
| and      | $E     | bitwise and             |
| not      | $F     | bitwise not             |

Zero-operand codes: jmp=$10, call=$11, ret=$12, halt=$13.
"""

from enum import Enum
from typing import Optional


class Mnemonic(Enum):
    """Instruction keywords, valued by their source spelling."""

    LIT = "lit"
    JMP = "jmp"
    CJMP = "cjmp"
    TAC = "tac"
    TRE = "tre"
    R = "r"
    W = "w"
    EQ = "eq"
    CMP = "cmp"
    ADD = "add"
    SUB = "sub"
    LSF = "lsf"
    RSF = "rsf"
    OR = "or"
    AND = "and"
    NOT = "not"
    CALL = "call"
    RET = "ret"
    HALT = "halt"


# Opcode nibble (high 4 bits) for every mnemonic that takes an operand
OPCODE_NIBBLES: dict[Mnemonic, int] = {
    Mnemonic.LIT: 0x0,
    Mnemonic.JMP: 0x1,
    Mnemonic.CJMP: 0x2,
    Mnemonic.TAC: 0x3,
    Mnemonic.TRE: 0x4,
    Mnemonic.R: 0x5,
    Mnemonic.W: 0x6,
    Mnemonic.EQ: 0x7,
    Mnemonic.CMP: 0x8,
    Mnemonic.ADD: 0x9,
    Mnemonic.SUB: 0xA,
    Mnemonic.LSF: 0xB,
    Mnemonic.RSF: 0xC,
    Mnemonic.OR: 0xD,
    Mnemonic.AND: 0xE,
    Mnemonic.NOT: 0xF,
}

# Full byte emitted when the mnemonic stands alone on its line
ZERO_OPERAND_CODES: dict[Mnemonic, int] = {
    Mnemonic.JMP: 0x10,
    Mnemonic.CALL: 0x11,
    Mnemonic.RET: 0x12,
    Mnemonic.HALT: 0x13,
}

# Source spelling -> Mnemonic, used by the lexer
MNEMONICS: dict[str, Mnemonic] = {m.value: m for m in Mnemonic}


def get_opcode_nibble(mnemonic: Mnemonic) -> Optional[int]:
    """Return the opcode nibble, or None for zero-operand-only mnemonics."""
    return OPCODE_NIBBLES.get(mnemonic)


def get_zero_operand_code(mnemonic: Mnemonic) -> Optional[int]:
    """Return the fixed code for a bare mnemonic, or None if it needs an operand."""
    return ZERO_OPERAND_CODES.get(mnemonic)


def encode(opcode_nibble: int, operand: int) -> int:
    """
    Pack an opcode nibble and an operand into one instruction byte.

    The operand is OR-ed in without masking to 4 bits, so a high-part
    label value wider than a nibble spills into the opcode bits. Only
    the result is truncated to 8 bits.
    """
    return ((opcode_nibble << 4) | operand) & 0xFF
