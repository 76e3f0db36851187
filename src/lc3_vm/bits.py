"""Word and bit-field helpers for 16-bit LC-3 instruction words.

All values handled here are plain Python ints holding 16-bit unsigned
words. Results are always re-truncated to 16 bits so that address and
arithmetic wraparound matches the hardware.
"""

WORD_MASK = 0xFFFF
SIGN_BIT = 0x8000


def to_word(value: int) -> int:
    """Truncate an int to a 16-bit unsigned word."""
    return value & WORD_MASK


def sign_extend(value: int, bit_count: int) -> int:
    """Sign-extend the low ``bit_count`` bits of ``value`` to 16 bits.

    Args:
        value: Word whose low ``bit_count`` bits hold a two's-complement field
        bit_count: Width of the field (5, 6, 9 or 11 in the instruction set)

    Returns:
        16-bit unsigned word with the same signed value as the field
    """
    value &= (1 << bit_count) - 1
    if (value >> (bit_count - 1)) & 1:
        value |= (WORD_MASK << bit_count) & WORD_MASK
    return value


def to_signed(word: int) -> int:
    """Reinterpret a 16-bit word as a signed integer."""
    word &= WORD_MASK
    return word - 0x10000 if word & SIGN_BIT else word


def field(word: int, shift: int, width: int) -> int:
    """Extract ``width`` bits of ``word`` starting at bit ``shift``."""
    return (word >> shift) & ((1 << width) - 1)
