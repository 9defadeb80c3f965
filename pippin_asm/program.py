"""
Assembled program image and its text format.

    <opcode> <operand> <mode>     one line per instruction
    -1                            separator
    <address> <value>             one line per initial memory word

All numbers are uppercase hex without padding. This is what the Pippin
loader reads; load_program() parses it back.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

from .encoder import EncodedDatum, EncodedInstruction, Mode, parse_hex

__all__ = ['Program', 'SEPARATOR', 'load_program']

SEPARATOR = "-1"


@dataclass
class Program:
    code: List[EncodedInstruction] = field(default_factory=list)
    data: List[EncodedDatum] = field(default_factory=list)

    def lines(self) -> List[str]:
        out = [instr.render() for instr in self.code]
        out.append(SEPARATOR)
        out.extend(datum.render() for datum in self.data)
        return out

    def render(self) -> str:
        """Full output text, newline-terminated."""
        return '\n'.join(self.lines()) + '\n'


def load_program(text: str) -> Program:
    """Parse the assembler's output format back into a Program.

    Raises ValueError naming the first malformed line.
    """
    program = Program()
    in_data = False
    for line_num, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line:
            continue
        if not in_data and line == SEPARATOR:
            in_data = True
            continue
        parts = line.split()
        try:
            if in_data:
                if len(parts) != 2:
                    raise ValueError("expected <address> <value>")
                program.data.append(EncodedDatum(parse_hex(parts[0]), parse_hex(parts[1])))
            else:
                if len(parts) != 3:
                    raise ValueError("expected <opcode> <operand> <mode>")
                program.code.append(EncodedInstruction(
                    parse_hex(parts[0]), parse_hex(parts[1]), Mode(int(parts[2]))))
        except ValueError as e:
            raise ValueError(f"Line {line_num}: {e}") from e
    if not in_data:
        raise ValueError(f"Missing '{SEPARATOR}' separator")
    return program
