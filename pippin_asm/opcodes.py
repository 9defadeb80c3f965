"""
Pippin instruction set catalog.

Maps each mnemonic to its numeric opcode and classifies which addressing
modes the instruction accepts:

  no argument    instruction takes no operand          e.g. HALT, NOP
  immediate      bare hex literal operand              e.g. LOD 5
  direct         [addr], memory at addr                e.g. LOD [5
  indirect       [[addr], memory at memory[addr]       e.g. LOD [[5

Direct addressing is allowed for every instruction that takes an argument,
so there is no set for it.

The catalog is a frozen value handed to the assembler. To target a
different instruction set, build another InstructionSet (or load one from
JSON with load_instruction_set) and pass it in.
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Union

__all__ = ['InstructionSet', 'PIPPIN', 'load_instruction_set']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstructionSet:
    """Immutable opcode table plus addressing-mode classification."""
    opcodes: Mapping[str, int]
    no_argument: FrozenSet[str] = field(default_factory=frozenset)
    allows_immediate: FrozenSet[str] = field(default_factory=frozenset)
    allows_indirect: FrozenSet[str] = field(default_factory=frozenset)
    name: str = "custom"

    def __post_init__(self):
        # Freeze whatever the caller handed us
        object.__setattr__(self, 'opcodes', MappingProxyType(dict(self.opcodes)))
        object.__setattr__(self, 'no_argument', frozenset(self.no_argument))
        object.__setattr__(self, 'allows_immediate', frozenset(self.allows_immediate))
        object.__setattr__(self, 'allows_indirect', frozenset(self.allows_indirect))

        for mnem, code in self.opcodes.items():
            if not isinstance(code, int) or isinstance(code, bool) or code < 0:
                raise ValueError(f"Opcode for {mnem} must be a non-negative integer, got {code!r}")

        for set_name in ('no_argument', 'allows_immediate', 'allows_indirect'):
            unknown = getattr(self, set_name) - set(self.opcodes)
            if unknown:
                raise ValueError(f"{set_name} lists unknown mnemonics: {', '.join(sorted(unknown))}")

        clash = self.no_argument & (self.allows_immediate | self.allows_indirect)
        if clash:
            raise ValueError(f"Mnemonics without arguments cannot take operands: {', '.join(sorted(clash))}")

    def __hash__(self):
        # opcodes is a mapping proxy, which is not hashable itself
        return hash((tuple(sorted(self.opcodes.items())), self.no_argument,
                     self.allows_immediate, self.allows_indirect, self.name))

    def lookup(self, mnemonic: str) -> Optional[int]:
        """Return the opcode for an exact-case mnemonic, or None."""
        return self.opcodes.get(mnemonic)

    def __contains__(self, mnemonic: object) -> bool:
        return mnemonic in self.opcodes

    def is_no_argument(self, mnemonic: str) -> bool:
        return mnemonic in self.no_argument

    def allows_immediate_mode(self, mnemonic: str) -> bool:
        return mnemonic in self.allows_immediate

    def allows_indirect_mode(self, mnemonic: str) -> bool:
        return mnemonic in self.allows_indirect


# ──────────────────────────────────────────────
# Pippin opcode table
# ──────────────────────────────────────────────

PIPPIN = InstructionSet(
    name="pippin",
    opcodes={
        'NOP':  0x0,
        'NOT':  0x1,
        'LOD':  0x2,
        'STO':  0x3,
        'ADD':  0x4,
        'SUB':  0x5,
        'MUL':  0x6,
        'DIV':  0x7,
        'AND':  0x8,
        'CMPL': 0x9,
        'CMPZ': 0xA,
        'JUMP': 0xB,
        'JMPZ': 0xC,
        'HALT': 0xF,
    },
    no_argument={'HALT', 'NOP', 'NOT'},
    allows_immediate={'LOD', 'ADD', 'SUB', 'MUL', 'DIV', 'AND', 'JUMP', 'JMPZ'},
    allows_indirect={'LOD', 'STO', 'ADD', 'SUB', 'MUL', 'DIV'},
)


# ──────────────────────────────────────────────
# JSON loader
# ──────────────────────────────────────────────

def _opcode_value(mnem: str, value: Union[int, str]) -> int:
    """Opcode values may be given as ints or as hex strings ("0xA", "A")."""
    if isinstance(value, bool):
        raise ValueError(f"Opcode for {mnem} is not a number: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.lower().startswith('0x'):
            text = text[2:]
        try:
            return int(text, 16)
        except ValueError:
            raise ValueError(f"Opcode for {mnem} is not a hex number: {value!r}") from None
    raise ValueError(f"Opcode for {mnem} is not a number: {value!r}")


def _mnemonic_list(doc: Dict, key: str) -> Iterable[str]:
    value = doc.get(key, [])
    if not isinstance(value, list) or not all(isinstance(m, str) for m in value):
        raise ValueError(f"'{key}' must be a list of mnemonics")
    return value


def load_instruction_set(path) -> InstructionSet:
    """Load an InstructionSet from a JSON file.

    Expected layout:
        {
          "name": "my-isa",
          "opcodes": {"LOD": 1, "HALT": "0xF"},
          "no_argument": ["HALT"],
          "allows_immediate": ["LOD"],
          "allows_indirect": []
        }

    Raises ValueError for unreadable or malformed documents.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            doc = json.load(f)
    except OSError as e:
        raise ValueError(f"Cannot read instruction set {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"Instruction set {path} is not valid JSON: {e}") from e

    if not isinstance(doc, dict) or not isinstance(doc.get('opcodes'), dict):
        raise ValueError(f"Instruction set {path} needs an 'opcodes' object")

    opcodes = {mnem: _opcode_value(mnem, val) for mnem, val in doc['opcodes'].items()}
    isa = InstructionSet(
        name=str(doc.get('name', 'custom')),
        opcodes=opcodes,
        no_argument=frozenset(_mnemonic_list(doc, 'no_argument')),
        allows_immediate=frozenset(_mnemonic_list(doc, 'allows_immediate')),
        allows_indirect=frozenset(_mnemonic_list(doc, 'allows_indirect')),
    )
    logger.debug(f"Loaded instruction set {isa.name}: {len(isa.opcodes)} mnemonics")
    return isa
