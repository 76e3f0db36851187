"""InstructionDecoder: turns a 16-bit instruction word into a registry key.

The top four bits select the opcode; the remaining twelve are split into
the operand fields of that opcode's layout. Decoding never touches
machine state: the result names the handler to run (``OP_ADD``,
``OP_TRAP``, ...) and carries the already-extracted operands, with every
PC offset and immediate sign-extended to 16 bits.

Field layouts (bit ranges inclusive):

    ADD/AND   DR[11:9] SR1[8:6] imm[5]  SR2[2:0] | imm5[4:0]
    NOT       DR[11:9] SR[8:6]
    BR        n[11] z[10] p[9]          PCoffset9[8:0]
    JMP       BaseR[8:6]
    JSR/JSRR  long[11]                  PCoffset11[10:0] | BaseR[8:6]
    LD/LDI    DR[11:9]                  PCoffset9[8:0]
    LEA       DR[11:9]                  PCoffset9[8:0]
    LDR       DR[11:9] BaseR[8:6]       offset6[5:0]
    ST/STI    SR[11:9]                  PCoffset9[8:0]
    STR       SR[11:9] BaseR[8:6]       offset6[5:0]
    TRAP      trapvect8[7:0]
"""

from dataclasses import dataclass, field as dc_field
from enum import IntEnum
from typing import Callable, Dict, Optional

from .bits import field, sign_extend, to_signed


class Opcode(IntEnum):
    BR = 0
    ADD = 1
    LD = 2
    ST = 3
    JSR = 4
    AND = 5
    LDR = 6
    STR = 7
    RTI = 8
    NOT = 9
    LDI = 10
    STI = 11
    JMP = 12
    RES = 13
    LEA = 14
    TRAP = 15


# Opcodes with no handler in this VM.
INVALID_OPCODES = frozenset({Opcode.RTI, Opcode.RES})


@dataclass
class DecodeResult:
    """Result of decoding one instruction word.

    Attributes:
        key: Registry key of the handler (e.g. "OP_ADD")
        params: Operand fields extracted from the word
        valid: Whether the word names an executable instruction
        error: Reason the word is invalid
        raw_instruction: The instruction word itself
    """
    key: str
    params: Dict[str, int] = dc_field(default_factory=dict)
    valid: bool = True
    error: Optional[str] = None
    raw_instruction: int = 0

    @property
    def opcode(self) -> Opcode:
        return Opcode(self.raw_instruction >> 12)

    def __str__(self) -> str:
        return disassemble(self)


def _reg3(word: int, shift: int) -> int:
    return field(word, shift, 3)


def _decode_operate(word: int) -> Dict[str, int]:
    params = {
        "dr": _reg3(word, 9),
        "sr1": _reg3(word, 6),
        "imm_mode": (word >> 5) & 0x1,
    }
    if params["imm_mode"]:
        params["imm5"] = sign_extend(word & 0x1F, 5)
    else:
        params["sr2"] = word & 0x7
    return params


def _decode_not(word: int) -> Dict[str, int]:
    return {"dr": _reg3(word, 9), "sr": _reg3(word, 6)}


def _decode_br(word: int) -> Dict[str, int]:
    return {"cond": _reg3(word, 9), "offset": sign_extend(word & 0x1FF, 9)}


def _decode_jmp(word: int) -> Dict[str, int]:
    return {"base": _reg3(word, 6)}


def _decode_jsr(word: int) -> Dict[str, int]:
    if (word >> 11) & 0x1:
        return {"long": 1, "offset": sign_extend(word & 0x7FF, 11)}
    return {"long": 0, "base": _reg3(word, 6)}


def _decode_pc_relative_load(word: int) -> Dict[str, int]:
    return {"dr": _reg3(word, 9), "offset": sign_extend(word & 0x1FF, 9)}


def _decode_base_load(word: int) -> Dict[str, int]:
    return {
        "dr": _reg3(word, 9),
        "base": _reg3(word, 6),
        "offset": sign_extend(word & 0x3F, 6),
    }


def _decode_pc_relative_store(word: int) -> Dict[str, int]:
    return {"sr": _reg3(word, 9), "offset": sign_extend(word & 0x1FF, 9)}


def _decode_base_store(word: int) -> Dict[str, int]:
    return {
        "sr": _reg3(word, 9),
        "base": _reg3(word, 6),
        "offset": sign_extend(word & 0x3F, 6),
    }


def _decode_trap(word: int) -> Dict[str, int]:
    return {"vector": word & 0xFF, "instruction": word}


_FIELD_DECODERS: Dict[Opcode, Callable[[int], Dict[str, int]]] = {
    Opcode.BR: _decode_br,
    Opcode.ADD: _decode_operate,
    Opcode.LD: _decode_pc_relative_load,
    Opcode.ST: _decode_pc_relative_store,
    Opcode.JSR: _decode_jsr,
    Opcode.AND: _decode_operate,
    Opcode.LDR: _decode_base_load,
    Opcode.STR: _decode_base_store,
    Opcode.NOT: _decode_not,
    Opcode.LDI: _decode_pc_relative_load,
    Opcode.STI: _decode_pc_relative_store,
    Opcode.JMP: _decode_jmp,
    Opcode.LEA: _decode_pc_relative_load,
    Opcode.TRAP: _decode_trap,
}


class InstructionDecoder:
    """Decoder for LC-3 instruction words.

    Every one of the 16 opcode values maps either to a field decoder or
    to the invalid set, so ``decode`` is total over 16-bit words.
    """

    def __init__(self):
        missing = set(Opcode) - set(_FIELD_DECODERS) - INVALID_OPCODES
        if missing:
            raise RuntimeError(f"Opcodes without a decoder: {sorted(missing)}")

    def decode(self, word: int) -> DecodeResult:
        """Decode an instruction word.

        Args:
            word: 16-bit instruction word

        Returns:
            DecodeResult naming the handler key and operand fields
        """
        word &= 0xFFFF
        opcode = Opcode(word >> 12)

        if opcode in INVALID_OPCODES:
            return DecodeResult(
                key=f"OP_{opcode.name}",
                params={},
                valid=False,
                error=f"Illegal opcode {opcode.name} (x{word:04X})",
                raw_instruction=word,
            )

        return DecodeResult(
            key=f"OP_{opcode.name}",
            params=_FIELD_DECODERS[opcode](word),
            valid=True,
            raw_instruction=word,
        )


# =========================================================================
# Assembly rendering
# =========================================================================

def _imm(value: int) -> str:
    return f"#{to_signed(value)}"


def disassemble(result: DecodeResult) -> str:
    """Render a decoded instruction as LC-3 assembly text."""
    if not result.valid:
        return f".FILL x{result.raw_instruction:04X}"

    p = result.params
    op = result.opcode

    if op in (Opcode.ADD, Opcode.AND):
        second = _imm(p["imm5"]) if p["imm_mode"] else f"R{p['sr2']}"
        return f"{op.name} R{p['dr']}, R{p['sr1']}, {second}"
    if op == Opcode.NOT:
        return f"NOT R{p['dr']}, R{p['sr']}"
    if op == Opcode.BR:
        cond = p["cond"]
        letters = "".join(c for c, bit in (("n", 4), ("z", 2), ("p", 1)) if cond & bit)
        return f"BR{letters} {_imm(p['offset'])}"
    if op == Opcode.JMP:
        return "RET" if p["base"] == 7 else f"JMP R{p['base']}"
    if op == Opcode.JSR:
        if p["long"]:
            return f"JSR {_imm(p['offset'])}"
        return f"JSRR R{p['base']}"
    if op in (Opcode.LD, Opcode.LDI, Opcode.LEA):
        return f"{op.name} R{p['dr']}, {_imm(p['offset'])}"
    if op == Opcode.LDR:
        return f"LDR R{p['dr']}, R{p['base']}, {_imm(p['offset'])}"
    if op in (Opcode.ST, Opcode.STI):
        return f"{op.name} R{p['sr']}, {_imm(p['offset'])}"
    if op == Opcode.STR:
        return f"STR R{p['sr']}, R{p['base']}, {_imm(p['offset'])}"
    return f"TRAP x{p['vector']:02X}"
