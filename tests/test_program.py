"""
Program text format: rendering and loading.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from pippin_asm.encoder import EncodedDatum, EncodedInstruction, Mode
from pippin_asm.program import Program, load_program


class TestRender:
    def test_layout(self):
        program = Program(
            code=[EncodedInstruction(0x2, 0x5, Mode.IMMEDIATE),
                  EncodedInstruction(0xF, 0, Mode.IMMEDIATE)],
            data=[EncodedDatum(0x1A, 0x2B)],
        )
        assert program.render() == "2 5 0\nF 0 0\n-1\n1A 2B\n"

    def test_empty(self):
        assert Program().render() == "-1\n"


class TestLoad:
    def test_rendered_fields_parse_back(self):
        code = [EncodedInstruction(op, operand, mode)
                for op, operand, mode in [(0x2, 0x7FFFFFFF, Mode.IMMEDIATE),
                                          (0x4, -0x80000000, Mode.DIRECT),
                                          (0x3, 0xABC, Mode.INDIRECT)]]
        data = [EncodedDatum(0, -1), EncodedDatum(0xFF, 0x10)]
        loaded = load_program(Program(code, data).render())
        assert loaded.code == code
        assert loaded.data == data

    def test_missing_separator(self):
        with pytest.raises(ValueError, match="separator"):
            load_program("2 5 0\n")

    def test_bad_mode(self):
        with pytest.raises(ValueError, match="Line 1"):
            load_program("2 5 3\n-1\n")

    def test_bad_data_line(self):
        with pytest.raises(ValueError, match="Line 3"):
            load_program("2 5 0\n-1\n1 2 3\n")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
