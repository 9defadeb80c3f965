#!/usr/bin/env python3
"""
pippinasm: Pippin assembler CLI

Usage:
    python pippinasm.py <input.pasm> [-o output.pexe] [--isa isa.json]
                                     [--stdout] [--verbose] [--quiet]

Output defaults to the input path with a .pexe suffix.

Examples:
    python pippinasm.py factorial.pasm
    python pippinasm.py factorial.pasm -o build/factorial.pexe
    python pippinasm.py test.pasm --stdout
    python pippinasm.py test.pasm --isa my_isa.json -v
"""

import argparse
import logging
import os
import sys

# Allow running from project root or as module
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from pippin_asm import __version__
from pippin_asm.assembler import Assembler
from pippin_asm.diagnostics import Diagnostics
from pippin_asm.opcodes import PIPPIN, load_instruction_set

logger = logging.getLogger("pippinasm")


def setup_logging(verbose: int, quiet: bool):
    """Configure logging from -v / -q."""
    if quiet:
        level = logging.ERROR
    elif verbose == 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:  # -vv or more
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s',
        stream=sys.stderr,
        force=True,
    )


def default_output(input_path: str) -> str:
    return os.path.splitext(input_path)[0] + ".pexe"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pippinasm",
        description="Pippin assembler",
    )
    parser.add_argument("input", help="Input assembly source file")
    parser.add_argument("-o", "--output",
                        help="Output program file (default: input with .pexe suffix)")
    parser.add_argument("--isa", default=None,
                        help="JSON instruction set definition (default: built-in Pippin)")
    parser.add_argument("--stdout", action="store_true",
                        help="Print the assembled program instead of writing a file")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase verbosity (-v, -vv)")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Suppress all output except errors")
    parser.add_argument("--version", action="version",
                        version=f"pippinasm {__version__}")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.quiet)

    if args.isa:
        try:
            isa = load_instruction_set(args.isa)
        except ValueError as e:
            print(f"Instruction set error: {e}", file=sys.stderr)
            return 2
    else:
        isa = PIPPIN
    logger.info(f"Instruction set: {isa.name}")

    asm = Assembler(isa)
    errors = Diagnostics()

    if args.stdout:
        program = asm.assemble_file(args.input, errors)
        if program is not None:
            sys.stdout.write(program.render())
            return 0
    else:
        output = args.output or default_output(args.input)
        if asm.assemble(args.input, output, errors):
            if not args.quiet:
                print(f"Assembled {args.input} -> {output}")
            return 0

    for _, msg in errors.lines():
        print(msg, file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
