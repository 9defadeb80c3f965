"""
Code and data encoders for the Pippin assembler.

Operand syntax (one argument token after the mnemonic):
  IMMEDIATE  5        literal hex value                      mode 0
  DIRECT     [5       value at memory address 5              mode 1
  INDIRECT   [[5      value at the address stored at 5       mode 2

Only a single opening bracket (or two) is written; there is no closing
bracket. Numbers are always hexadecimal, optionally signed, without a
0x prefix.

Each encoder is a pure function of one line that either returns a record
or raises AssemblerError for the first problem found on that line. The
encode_code / encode_data folds run every line and collect the failures,
so one pass reports every defective line.
"""

from __future__ import annotations
import enum
import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .diagnostics import AssemblerError
from .opcodes import InstructionSet
from .preprocessor import SectionLine

__all__ = ['Mode', 'EncodedInstruction', 'EncodedDatum', 'parse_hex', 'to_hex',
           'encode_instruction', 'encode_datum', 'encode_code', 'encode_data']

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r'[+-]?[0-9A-Fa-f]+')

# Operands are 32-bit signed words
INT_MIN = -(1 << 31)
INT_MAX = (1 << 31) - 1


class Mode(enum.IntEnum):
    IMMEDIATE = 0
    DIRECT = 1
    INDIRECT = 2


def parse_hex(text: str) -> int:
    """Parse signed hex text ("1F", "-a", "+0") into a 32-bit int.

    Stricter than int(text, 16): no 0x prefix, no underscores, no spaces.
    """
    if not _HEX_RE.fullmatch(text):
        raise ValueError(f"not a hex number: {text!r}")
    value = int(text, 16)
    if not INT_MIN <= value <= INT_MAX:
        raise ValueError(f"hex number out of range: {text!r}")
    return value


def to_hex(value: int) -> str:
    """Uppercase hex without padding; negatives keep a leading '-'."""
    return format(value, 'X')


@dataclass(frozen=True)
class EncodedInstruction:
    opcode: int
    operand: int
    mode: Mode

    def render(self) -> str:
        return f"{to_hex(self.opcode)} {to_hex(self.operand)} {int(self.mode)}"


@dataclass(frozen=True)
class EncodedDatum:
    address: int
    value: int

    def render(self) -> str:
        return f"{to_hex(self.address)} {to_hex(self.value)}"


# ──────────────────────────────────────────────
# Code section
# ──────────────────────────────────────────────

def _operand(text: str, reason: str, line: SectionLine) -> int:
    try:
        return parse_hex(text)
    except ValueError:
        raise AssemblerError(reason, line.line_num, line.text) from None


def encode_instruction(line: SectionLine, isa: InstructionSet) -> EncodedInstruction:
    """Encode one code line, or raise AssemblerError with the first problem."""
    parts = line.text.split()
    mnem = parts[0]

    def fail(reason: str) -> AssemblerError:
        return AssemblerError(reason, line.line_num, line.text)

    if mnem.upper() not in isa:
        raise fail("line has an illegal mnemonic")
    # Case is checked before arity so "lod 1 2" reports the case problem
    if mnem not in isa:
        raise fail("mnemonic must be in uppercase")

    opcode = isa.lookup(mnem)

    if isa.is_no_argument(mnem):
        if len(parts) > 1:
            raise fail("mnemonic does not take arguments")
        return EncodedInstruction(opcode, 0, Mode.IMMEDIATE)

    if len(parts) > 2:
        raise fail("mnemonic has too many arguments")
    if len(parts) == 1:
        raise fail("mnemonic has no arguments")

    arg = parts[1]

    if len(arg) >= 3 and arg.startswith('[['):
        if not isa.allows_indirect_mode(mnem):
            raise fail("does not allow indirect addressing")
        operand = _operand(arg[2:], "indirect argument is not a hex number", line)
        return EncodedInstruction(opcode, operand, Mode.INDIRECT)

    # Any instruction with an argument may address memory directly
    if arg.startswith('['):
        operand = _operand(arg[1:], "direct argument is not a hex number", line)
        return EncodedInstruction(opcode, operand, Mode.DIRECT)

    if not isa.allows_immediate_mode(mnem):
        raise fail("does not allow immediate addressing")
    operand = _operand(arg, "immediate argument is not a hex number", line)
    return EncodedInstruction(opcode, operand, Mode.IMMEDIATE)


def encode_code(lines: Iterable[SectionLine], isa: InstructionSet
                ) -> Tuple[List[EncodedInstruction], List[Tuple[int, str]]]:
    """Encode every code line; return (instructions, diagnostics)."""
    instructions: List[EncodedInstruction] = []
    problems: List[Tuple[int, str]] = []
    for line in lines:
        try:
            instructions.append(encode_instruction(line, isa))
        except AssemblerError as e:
            logger.debug(f"{e} (source line {line.source_line}: {line.text!r})")
            problems.append((e.line_num, str(e)))
    return instructions, problems


# ──────────────────────────────────────────────
# Data section
# ──────────────────────────────────────────────

def encode_datum(line: SectionLine) -> EncodedDatum:
    """Encode one "address value" data line."""
    parts = line.text.split()
    if len(parts) != 2:
        raise AssemblerError("this is not an address/value pair", line.line_num, line.text)
    try:
        return EncodedDatum(parse_hex(parts[0]), parse_hex(parts[1]))
    except ValueError:
        # Same message whichever half is bad
        raise AssemblerError("address is not a hex number", line.line_num, line.text) from None


def encode_data(lines: Iterable[SectionLine]
                ) -> Tuple[List[EncodedDatum], List[Tuple[int, str]]]:
    """Encode every data line; return (data, diagnostics)."""
    data: List[EncodedDatum] = []
    problems: List[Tuple[int, str]] = []
    for line in lines:
        try:
            data.append(encode_datum(line))
        except AssemblerError as e:
            logger.debug(f"{e} (source line {line.source_line}: {line.text!r})")
            problems.append((e.line_num, str(e)))
    return data, problems
