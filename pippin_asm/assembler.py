"""
Pippin two-pass assembler driver.

Assembles Pippin source text into the program text format (see program.py).

Pipeline:
  1. Layout pass: reject indented lines and blank lines that are followed
     by more source.
  2. Split the remaining lines into code and data at the DATA marker.
  3. Encode the code section and the data section. Each stage records
     every defective line instead of stopping at the first one.

Every diagnostic ends up in one line -> message map. Output is written
only when that map is empty, and then in full.

Usage:
    errors = {}
    ok = assemble("prog.pasm", "prog.pexe", errors)
    if not ok:
        for line, msg in sorted(errors.items()):
            print(msg)
"""

from __future__ import annotations
import logging
import os
import tempfile
from typing import List, MutableMapping, Optional, Sequence

from .diagnostics import AssemblerError, Diagnostics, FILE_LEVEL, file_message, report
from .encoder import encode_code, encode_data
from .opcodes import PIPPIN, InstructionSet
from .preprocessor import check_layout, read_lines, split_sections
from .program import Program

__all__ = ['Assembler', 'assemble']

logger = logging.getLogger(__name__)

MSG_OPEN_INPUT = "Unable to open the input file"
MSG_DECODE_INPUT = "Unable to decode the input file"
MSG_WRITE_OUTPUT = "Unable to write the assembled program to the output file"


class Assembler:
    """Pippin assembler bound to one instruction set.

    Usage:
        asm = Assembler()
        errors = {}
        program = asm.assemble_source(text, errors)   # None when errors
        program = asm.assemble_or_raise(text)         # raises AssemblerError
        ok = asm.assemble("in.pasm", "out.pexe", errors)
    """

    def __init__(self, isa: InstructionSet = PIPPIN):
        self.isa = isa

    def assemble_lines(self, lines: Sequence[str],
                       errors: MutableMapping[int, str]) -> Optional[Program]:
        """Run every stage over lines, recording into errors.

        Returns the Program when errors is still empty afterwards, else None.
        """
        for line_num, msg in check_layout(lines):
            report(errors, line_num, msg)

        sections = split_sections(lines)

        code, problems = encode_code(sections.code, self.isa)
        for line_num, msg in problems:
            report(errors, line_num, msg)

        data, problems = encode_data(sections.data)
        for line_num, msg in problems:
            report(errors, line_num, msg)

        if errors:
            logger.info(f"Assembly failed with {len(errors)} error(s)")
            return None
        logger.info(f"Assembled {len(code)} instruction(s), {len(data)} data word(s)")
        return Program(code, data)

    def assemble_source(self, source: str,
                        errors: MutableMapping[int, str]) -> Optional[Program]:
        return self.assemble_lines(read_lines(source), errors)

    def assemble_or_raise(self, source: str) -> Program:
        """Assemble source text; raise AssemblerError listing every diagnostic."""
        errors = Diagnostics()
        program = self.assemble_source(source, errors)
        if program is None:
            raise AssemblerError(f"{len(errors)} error(s):\n" + errors.format(),
                                 diagnostics=errors)
        return program

    def read_source(self, input_path, errors: MutableMapping[int, str]) -> List[str]:
        """Read and split input_path. Failures go to errors at key 0."""
        try:
            # utf-8-sig drops a leading byte order mark
            with open(input_path, 'r', encoding='utf-8-sig') as f:
                return read_lines(f.read())
        except UnicodeDecodeError as e:
            logger.debug(f"Cannot decode {input_path}: {e}")
            report(errors, FILE_LEVEL, file_message(MSG_DECODE_INPUT))
        except OSError as e:
            logger.debug(f"Cannot open {input_path}: {e}")
            report(errors, FILE_LEVEL, file_message(MSG_OPEN_INPUT))
        return []

    def assemble_file(self, input_path,
                      errors: MutableMapping[int, str]) -> Optional[Program]:
        """Assemble the file at input_path without writing anything."""
        return self.assemble_lines(self.read_source(input_path, errors), errors)

    def assemble(self, input_path, output_path,
                 errors: Optional[MutableMapping[int, str]]) -> bool:
        """Assemble the file at input_path into output_path.

        Diagnostics go into errors (line number -> message); key 0 holds
        input/output failures. Nothing is written unless there are no
        errors. Returns True on success.
        """
        if errors is None:
            raise ValueError("Coding error: the error map is null")

        program = self.assemble_file(input_path, errors)
        if program is None:
            return False

        try:
            _write_atomic(output_path, program.render())
        except OSError as e:
            logger.debug(f"Cannot write {output_path}: {e}")
            report(errors, FILE_LEVEL, file_message(MSG_WRITE_OUTPUT))
            return False

        logger.info(f"Wrote {output_path}")
        return not errors


# ──────────────────────────────────────────────
# Output
# ──────────────────────────────────────────────

def _write_atomic(output_path, text: str) -> None:
    """Write text to output_path in full or not at all.

    The text goes to a temporary file beside the target, which then replaces
    the target. On failure the temporary file is removed and any previous
    output is left as it was.
    """
    directory = os.path.dirname(os.path.abspath(output_path))
    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile('w', encoding='utf-8', dir=directory,
                                         prefix='.pippin-', suffix='.tmp',
                                         delete=False) as f:
            tmp_name = f.name
            f.write(text)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, output_path)
    except OSError:
        if tmp_name is not None and os.path.exists(tmp_name):
            try:
                os.unlink(tmp_name)
            except OSError as e:
                logger.warning(f"Could not remove temporary file {tmp_name}: {e}")
        raise


# ──────────────────────────────────────────────
# Convenience function
# ──────────────────────────────────────────────

def assemble(input_path, output_path, errors: Optional[MutableMapping[int, str]],
             isa: Optional[InstructionSet] = None) -> bool:
    """Assemble input_path into output_path; see Assembler.assemble."""
    return Assembler(isa or PIPPIN).assemble(input_path, output_path, errors)
