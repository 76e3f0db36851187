"""Tests for word and bit-field helpers."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from lc3_vm.bits import sign_extend, to_signed, to_word, field


class TestSignExtend:
    """Test sign extension for the instruction set's offset widths."""

    @pytest.mark.parametrize("bit_count", [5, 6, 9, 11])
    def test_matches_twos_complement_for_all_words(self, bit_count):
        """Extended value reinterpreted as signed equals the field's value."""
        mask = (1 << bit_count) - 1
        for x in range(0x10000):
            low = x & mask
            expected = low - (1 << bit_count) if low >> (bit_count - 1) else low
            assert to_signed(sign_extend(x, bit_count)) == expected

    def test_negative_imm5(self):
        """imm5 0b11111 is -1."""
        assert sign_extend(0x1F, 5) == 0xFFFF

    def test_positive_imm5(self):
        """imm5 0b01111 stays 15."""
        assert sign_extend(0x0F, 5) == 0x000F

    def test_most_negative_offset9(self):
        """PCoffset9 0x100 is -256."""
        assert sign_extend(0x100, 9) == 0xFF00

    def test_result_is_16_bit(self):
        """Extended values never exceed 16 bits."""
        assert sign_extend(0x7FF, 11) <= 0xFFFF


class TestWordHelpers:
    """Test truncation, reinterpretation and field extraction."""

    def test_to_word_wraps(self):
        assert to_word(0x10000) == 0
        assert to_word(-1) == 0xFFFF

    def test_to_signed(self):
        assert to_signed(0x7FFF) == 32767
        assert to_signed(0x8000) == -32768
        assert to_signed(0xFFFF) == -1

    def test_field(self):
        """Opcode is the top four bits, DR bits 11-9."""
        word = 0x1A25
        assert field(word, 12, 4) == 0x1
        assert field(word, 9, 3) == 0x5