"""
Line preprocessor: layout checks and the code/data split.

Source layout rules:
  - non-blank lines start in column 0 (no leading space or tab)
  - blank lines are only legal as a trailing run at the end of the file
  - a line reading exactly DATA separates code from data

Numbering of the split lines: code lines are numbered by their position in
the code section (1, 2, ...); data lines continue from code_count + 1.
These are the numbers the encoders report against. The raw file line is
kept alongside for logging.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .diagnostics import line_message

__all__ = ['SectionLine', 'Sections', 'DATA_MARKER', 'read_lines',
           'check_layout', 'split_sections']

logger = logging.getLogger(__name__)

DATA_MARKER = "DATA"

_LINE_BREAK_RE = re.compile(r"\r\n|[\n\r\u2028\u2029\x85]")


@dataclass(frozen=True)
class SectionLine:
    """A trimmed, non-blank line assigned to the code or data section."""
    text: str
    line_num: int       # number used for diagnostics
    source_line: int    # 1-based line in the source file


@dataclass
class Sections:
    code: List[SectionLine] = field(default_factory=list)
    data: List[SectionLine] = field(default_factory=list)


def read_lines(text: str) -> List[str]:
    """Split source text on line boundaries. A final newline adds no line.

    Only CR, LF, CRLF, NEL and the Unicode line/paragraph separators end a
    line; form feed and vertical tab stay in the line as trailing space.
    """
    if not text:
        return []
    lines = _LINE_BREAK_RE.split(text)
    if lines[-1] == "":
        lines.pop()
    return lines


def _is_blank(line: str) -> bool:
    return not line.strip()


def check_layout(lines: Sequence[str]) -> List[Tuple[int, str]]:
    """Return (line_num, message) for every layout violation, in file order."""
    problems = []
    for i, line in enumerate(lines):
        line_num = i + 1
        if not _is_blank(line) and line[0] in (' ', '\t'):
            problems.append((line_num, line_message(line_num, "starts with white space")))
        # A blank line is only illegal when something follows it directly
        if _is_blank(line) and i < len(lines) - 1 and not _is_blank(lines[i + 1]):
            problems.append((line_num, line_message(line_num, "illegal blank line")))
    return problems


def split_sections(lines: Sequence[str]) -> Sections:
    """Split lines into code and data sections at the DATA marker.

    Blank lines are dropped, every kept line is trimmed, and DATA lines
    themselves are consumed.
    """
    sections = Sections()
    raw_data: List[Tuple[str, int]] = []
    data_found = False

    for i, line in enumerate(lines, 1):
        text = line.strip()
        if text == DATA_MARKER:
            data_found = True
        elif not text:
            continue
        elif data_found:
            raw_data.append((text, i))
        else:
            sections.code.append(SectionLine(text, len(sections.code) + 1, i))

    offset = len(sections.code) + 1
    sections.data = [SectionLine(text, offset + n, src)
                     for n, (text, src) in enumerate(raw_data)]

    logger.debug(f"Split {len(lines)} lines into {len(sections.code)} code, "
                 f"{len(sections.data)} data")
    return sections
