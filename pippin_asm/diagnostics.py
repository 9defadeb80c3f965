"""
Diagnostics collected during one assembly run.

Line numbers are the keys; key 0 is reserved for whole-file I/O failures.
Only one message is kept per line: a later report for the same line
replaces the earlier one.
"""

from __future__ import annotations
import logging
from typing import Iterator, MutableMapping, Optional, Tuple

__all__ = ['Diagnostics', 'AssemblerError', 'FILE_LEVEL', 'report',
           'line_message', 'file_message']

logger = logging.getLogger(__name__)

FILE_LEVEL = 0


def line_message(line_num: int, reason: str) -> str:
    return f"Error on line {line_num}: {reason}"


def file_message(reason: str) -> str:
    return f"Error: {reason}"


class AssemblerError(Exception):
    """Raised on assembly errors.

    The encoders raise one of these per defective line; the driver catches
    it and records it. The strict API raises one carrying every diagnostic.
    """
    def __init__(self, message: str, line_num: int = 0, line_text: str = "",
                 diagnostics: Optional[Diagnostics] = None):
        self.reason = message
        self.line_num = line_num
        self.line_text = line_text
        self.diagnostics = diagnostics
        super().__init__(line_message(line_num, message) if line_num else file_message(message))


def report(errors: MutableMapping[int, str], line_num: int, message: str) -> None:
    """Record a diagnostic in any line -> message mapping. Last one per line wins."""
    previous = errors.get(line_num)
    if previous is not None and previous != message:
        logger.debug(f"Line {line_num}: replacing '{previous}' with '{message}'")
    errors[line_num] = message


class Diagnostics(dict):
    """Map of line number -> message. Last diagnostic per line wins."""

    def report(self, line_num: int, message: str) -> None:
        report(self, line_num, message)

    def lines(self) -> Iterator[Tuple[int, str]]:
        """Yield (line, message) pairs in line order."""
        for line_num in sorted(self):
            yield line_num, self[line_num]

    def format(self) -> str:
        return '\n'.join(msg for _, msg in self.lines())
