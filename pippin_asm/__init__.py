"""
Pippin Assembler
================
Two-pass assembler for the Pippin teaching machine: turns line-oriented
Pippin assembly into the "opcode operand mode" program text that the
Pippin loader reads.

Architecture:
    ┌──────────┐    ┌──────────────┐    ┌──────────┐    ┌──────────┐
    │  Source  │───>│ Preprocessor │───>│ Encoders │───>│ Program  │
    │ (.pasm)  │    │ (code/data)  │    │ (records)│    │ (.pexe)  │
    └──────────┘    └──────────────┘    └──────────┘    └──────────┘

    - opcodes.py:      InstructionSet (opcode table + addressing classes)
    - preprocessor.py: layout checks, DATA split
    - encoder.py:      per-line instruction and data encoding
    - program.py:      output text format, render and load
    - assembler.py:    driver, collects diagnostics, writes output
    - diagnostics.py:  line -> message map, AssemblerError
"""

__version__ = "1.0.0"

from .diagnostics import AssemblerError, Diagnostics
from .opcodes import InstructionSet, PIPPIN, load_instruction_set
from .encoder import Mode, EncodedInstruction, EncodedDatum
from .program import Program, load_program
from .assembler import Assembler, assemble


def assemble_source(source: str, isa: InstructionSet = PIPPIN) -> str:
    """Assemble Pippin source text and return the program text.

    Raises AssemblerError (with .diagnostics) if the source has errors.
    """
    return Assembler(isa).assemble_or_raise(source).render()
