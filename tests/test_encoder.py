"""
Encoder tests for the Pippin assembler.

Covers mnemonic checks, argument counts, the three addressing modes and
hex parsing, one line at a time.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from pippin_asm.diagnostics import AssemblerError
from pippin_asm.encoder import (
    Mode, EncodedInstruction, EncodedDatum, parse_hex, to_hex,
    encode_instruction, encode_datum, encode_code, encode_data,
)
from pippin_asm.opcodes import PIPPIN, InstructionSet
from pippin_asm.preprocessor import SectionLine


def _code(text: str, line_num: int = 1) -> SectionLine:
    return SectionLine(text, line_num, line_num)


def _encode(text: str, isa: InstructionSet = PIPPIN) -> EncodedInstruction:
    return encode_instruction(_code(text), isa)


def _reason(text: str, isa: InstructionSet = PIPPIN) -> str:
    with pytest.raises(AssemblerError) as exc:
        _encode(text, isa)
    return exc.value.reason


class TestHexParsing:
    def test_plain_digits(self):
        assert parse_hex("5") == 5
        assert parse_hex("1F") == 0x1F
        assert parse_hex("ff") == 0xFF

    def test_signed(self):
        assert parse_hex("-A") == -10
        assert parse_hex("+10") == 16

    @pytest.mark.parametrize("text", ["", "0x10", "1_0", "G", " 5", "-", "5 "])
    def test_rejects_malformed(self, text):
        with pytest.raises(ValueError):
            parse_hex(text)

    def test_32bit_range(self):
        assert parse_hex("7FFFFFFF") == 0x7FFFFFFF
        assert parse_hex("-80000000") == -0x80000000
        with pytest.raises(ValueError):
            parse_hex("80000000")

    def test_render_uppercase_unpadded(self):
        assert to_hex(0) == "0"
        assert to_hex(0xab) == "AB"
        assert to_hex(-26) == "-1A"


class TestMnemonics:
    def test_unknown_mnemonic(self):
        assert _reason("FOO 5") == "line has an illegal mnemonic"

    def test_lowercase_mnemonic(self):
        assert _reason("lod 5") == "mnemonic must be in uppercase"

    def test_mixed_case_mnemonic(self):
        assert _reason("Halt") == "mnemonic must be in uppercase"

    def test_case_error_masks_arity_error(self):
        assert _reason("lod 1 2") == "mnemonic must be in uppercase"

    def test_error_message_carries_line_number(self):
        with pytest.raises(AssemblerError) as exc:
            encode_instruction(_code("FOO", 7), PIPPIN)
        assert str(exc.value) == "Error on line 7: line has an illegal mnemonic"
        assert exc.value.line_num == 7


class TestArguments:
    @pytest.mark.parametrize("mnem", sorted(PIPPIN.no_argument))
    def test_no_argument_encodes_zero_operand_and_mode(self, mnem):
        instr = _encode(mnem)
        assert instr == EncodedInstruction(PIPPIN.lookup(mnem), 0, Mode.IMMEDIATE)

    def test_no_argument_with_argument(self):
        assert _reason("HALT 5") == "mnemonic does not take arguments"

    def test_too_many_arguments(self):
        assert _reason("LOD 5 6") == "mnemonic has too many arguments"

    def test_missing_argument(self):
        assert _reason("LOD") == "mnemonic has no arguments"


class TestAddressingModes:
    def test_immediate(self):
        assert _encode("LOD 5") == EncodedInstruction(0x2, 5, Mode.IMMEDIATE)

    def test_immediate_lowercase_hex(self):
        assert _encode("ADD ff").operand == 0xFF

    def test_immediate_not_allowed(self):
        assert _reason("STO 5") == "does not allow immediate addressing"
        assert _reason("CMPZ 1") == "does not allow immediate addressing"

    def test_immediate_bad_hex(self):
        assert _reason("LOD XYZ") == "immediate argument is not a hex number"

    def test_direct(self):
        assert _encode("ADD [A") == EncodedInstruction(0x4, 0xA, Mode.DIRECT)

    @pytest.mark.parametrize("mnem", ["LOD", "STO", "AND", "CMPL", "CMPZ", "JUMP"])
    def test_direct_allowed_for_every_argument_mnemonic(self, mnem):
        assert _encode(f"{mnem} [1F").mode == Mode.DIRECT

    def test_direct_bad_hex(self):
        assert _reason("STO [Q") == "direct argument is not a hex number"

    def test_double_bracket_alone_is_direct(self):
        assert _reason("LOD [[") == "direct argument is not a hex number"

    def test_single_bracket_alone(self):
        assert _reason("LOD [") == "direct argument is not a hex number"

    def test_indirect(self):
        assert _encode("STO [[-2") == EncodedInstruction(0x3, -2, Mode.INDIRECT)

    def test_indirect_not_allowed(self):
        assert _reason("AND [[5") == "does not allow indirect addressing"
        assert _reason("JUMP [[5") == "does not allow indirect addressing"

    def test_indirect_bad_hex(self):
        assert _reason("LOD [[5Z") == "indirect argument is not a hex number"

    def test_permission_checked_before_hex(self):
        assert _reason("STO ZZ") == "does not allow immediate addressing"

    def test_render(self):
        assert _encode("LOD [[1f").render() == "2 1F 2"
        assert _encode("HALT").render() == "F 0 0"


class TestCustomInstructionSet:
    ISA = InstructionSet(
        opcodes={'PUSH': 0x10, 'POP': 0x11, 'JMP': 0x1A},
        no_argument={'POP'},
        allows_immediate={'PUSH'},
        allows_indirect={'JMP'},
    )

    def test_opcodes_come_from_injected_set(self):
        assert _encode("PUSH 3", self.ISA).render() == "10 3 0"
        assert _encode("POP", self.ISA).render() == "11 0 0"
        assert _encode("JMP [[4", self.ISA).render() == "1A 4 2"

    def test_pippin_mnemonics_unknown(self):
        assert _reason("LOD 5", self.ISA) == "line has an illegal mnemonic"

    def test_classification(self):
        assert _reason("JMP 4", self.ISA) == "does not allow immediate addressing"
        assert _reason("PUSH [[4", self.ISA) == "does not allow indirect addressing"


class TestData:
    def _datum(self, text: str, line_num: int = 5) -> EncodedDatum:
        return encode_datum(SectionLine(text, line_num, line_num))

    def test_pair(self):
        assert self._datum("A 7") == EncodedDatum(0xA, 7)
        assert self._datum("1f   -3").render() == "1F -3"

    @pytest.mark.parametrize("text", ["A", "A 7 8"])
    def test_not_a_pair(self, text):
        with pytest.raises(AssemblerError, match="this is not an address/value pair"):
            self._datum(text)

    @pytest.mark.parametrize("text", ["Z 7", "A Z"])
    def test_bad_hex_always_blames_address(self, text):
        with pytest.raises(AssemblerError, match="address is not a hex number"):
            self._datum(text)


class TestFolds:
    def test_encode_code_collects_every_failure(self):
        lines = [_code("LOD 5", 1), _code("FOO", 2), _code("HALT 1", 3), _code("NOP", 4)]
        code, problems = encode_code(lines, PIPPIN)
        assert [i.render() for i in code] == ["2 5 0", "0 0 0"]
        assert [n for n, _ in problems] == [2, 3]
        assert problems[0][1] == "Error on line 2: line has an illegal mnemonic"

    def test_encode_data_keeps_order(self):
        lines = [SectionLine("1 2", 4, 6), SectionLine("3", 5, 7), SectionLine("4 5", 6, 8)]
        data, problems = encode_data(lines)
        assert [d.render() for d in data] == ["1 2", "4 5"]
        assert problems == [(5, "Error on line 5: this is not an address/value pair")]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
