"""Hand-assembly helpers for building LC-3 instruction words in tests."""


def add_reg(dr, sr1, sr2):
    return 0x1000 | dr << 9 | sr1 << 6 | sr2


def add_imm(dr, sr1, imm5):
    return 0x1000 | dr << 9 | sr1 << 6 | 0x20 | (imm5 & 0x1F)


def and_reg(dr, sr1, sr2):
    return 0x5000 | dr << 9 | sr1 << 6 | sr2


def and_imm(dr, sr1, imm5):
    return 0x5000 | dr << 9 | sr1 << 6 | 0x20 | (imm5 & 0x1F)


def not_(dr, sr):
    return 0x9000 | dr << 9 | sr << 6 | 0x3F


def br(offset9, n=False, z=False, p=False):
    return n << 11 | z << 10 | p << 9 | (offset9 & 0x1FF)


def jmp(base):
    return 0xC000 | base << 6


RET = jmp(7)


def jsr(offset11):
    return 0x4800 | (offset11 & 0x7FF)


def jsrr(base):
    return 0x4000 | base << 6


def ld(dr, offset9):
    return 0x2000 | dr << 9 | (offset9 & 0x1FF)


def ldi(dr, offset9):
    return 0xA000 | dr << 9 | (offset9 & 0x1FF)


def ldr(dr, base, offset6):
    return 0x6000 | dr << 9 | base << 6 | (offset6 & 0x3F)


def lea(dr, offset9):
    return 0xE000 | dr << 9 | (offset9 & 0x1FF)


def st(sr, offset9):
    return 0x3000 | sr << 9 | (offset9 & 0x1FF)


def sti(sr, offset9):
    return 0xB000 | sr << 9 | (offset9 & 0x1FF)


def str_(sr, base, offset6):
    return 0x7000 | sr << 9 | base << 6 | (offset6 & 0x3F)


def trap(vector):
    return 0xF000 | vector


GETC = trap(0x20)
OUT = trap(0x21)
PUTS = trap(0x22)
IN = trap(0x23)
PUTSP = trap(0x24)
HALT = trap(0x25)


def image_bytes(origin, words):
    """Serialize words as a big-endian object image."""
    return b"".join(w.to_bytes(2, "big") for w in [origin, *words])
